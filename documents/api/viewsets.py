"""
Documents API ViewSets.

Endpoints (under /api/v1/):
- documents/                  list, upload (multipart field ``file``)
- documents/{id}/             retrieve, update, delete
- documents/stats/            counts and sizes by type
- documents/{id}/download/    stream the stored bytes
- documents/{id}/share/       grant (POST) or change (PUT/PATCH) access
"""

import logging

from django.http import FileResponse
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import OpenApiTypes, extend_schema
from rest_framework import filters, permissions, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser

from api.base import APIResponse, IdentityViewSetMixin, StandardPagination
from core.access import DOCUMENT_RESOURCE
from core.permissions import RuleTablePermission

from ..analytics import document_summary
from ..filters import DocumentFilter
from ..services import DocumentService
from .serializers import (
    DocumentSerializer, DocumentShareRequestSerializer, DocumentShareUpdateSerializer,
    DocumentUpdateSerializer, DocumentUploadSerializer,
)

logger = logging.getLogger(__name__)


class DocumentViewSet(IdentityViewSetMixin, viewsets.GenericViewSet):
    """
    API endpoint for stored documents.

    Admin and HR see every document; others see public ones, their own
    uploads and documents shared with them, and managers also see their
    department's documents.
    """
    permission_classes = [permissions.IsAuthenticated, RuleTablePermission]
    serializer_class = DocumentSerializer
    pagination_class = StandardPagination
    parser_classes = [JSONParser, MultiPartParser, FormParser]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_class = DocumentFilter
    search_fields = ['filename', 'description']
    ordering_fields = ['created_at', 'filename', 'size']
    ordering = ['-created_at']

    resource_type = DOCUMENT_RESOURCE
    collection_actions = {
        'list': 'list',
        'create': 'upload',
        'stats': 'stats',
    }

    def get_service(self) -> DocumentService:
        return DocumentService(blob_store=self.get_blob_store())

    def get_queryset(self):
        return self.get_service().visible_documents(self.get_identity()).prefetch_related(
            'shares__user', 'shares__shared_by'
        )

    def list(self, request):
        return self.paginated(self.filter_queryset(self.get_queryset()))

    @extend_schema(request=DocumentUploadSerializer, responses=DocumentSerializer)
    def create(self, request):
        serializer = DocumentUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        upload = data.pop('file')
        document = self.get_service().upload(self.get_identity(), upload, data)
        return APIResponse.created(DocumentSerializer(document).data)

    def retrieve(self, request, pk=None):
        document = self.get_service().get_document(self.get_identity(), pk)
        return APIResponse.success(DocumentSerializer(document).data)

    @extend_schema(request=DocumentUpdateSerializer, responses=DocumentSerializer)
    def update(self, request, pk=None):
        serializer = DocumentUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        expected_version = data.pop('version', None)
        document = self.get_service().update(
            self.get_identity(), pk, data, expected_version=expected_version
        )
        return APIResponse.success(DocumentSerializer(document).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk)

    def destroy(self, request, pk=None):
        self.get_service().delete(self.get_identity(), pk)
        return APIResponse.deleted()

    @action(detail=False, methods=['get'])
    def stats(self, request):
        return APIResponse.success(document_summary(self.get_identity()))

    @extend_schema(responses={(200, 'application/octet-stream'): OpenApiTypes.BINARY})
    @action(detail=True, methods=['get'])
    def download(self, request, pk=None):
        """Stream the document bytes as an attachment."""
        document, blob = self.get_service().open_for_download(self.get_identity(), pk)
        return FileResponse(
            blob.stream,
            as_attachment=True,
            filename=document.filename,
            content_type=document.mimetype,
        )

    @extend_schema(request=DocumentShareRequestSerializer, responses=DocumentSerializer)
    @action(detail=True, methods=['post', 'put', 'patch'])
    def share(self, request, pk=None):
        """
        POST: share with a list of principals. Existing grants are left unchanged.
        PUT/PATCH: change the level of an existing grant.
        """
        service = self.get_service()
        identity = self.get_identity()

        if request.method == 'POST':
            serializer = DocumentShareRequestSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            data = serializer.validated_data
            document = service.share(identity, pk, data['users'], data['permission'])
        else:
            serializer = DocumentShareUpdateSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            data = serializer.validated_data
            document = service.update_share(identity, pk, data['user'], data['permission'])
        return APIResponse.success(DocumentSerializer(document).data)
