"""
HR Core API ViewSets - employee profiles, status and onboarding documents.

Endpoints (under /api/v1/):
- employees/                              list, create
- employees/{id}/                         retrieve, update, delete
- employees/me/                           caller's own profile
- employees/team/                         caller's direct reports
- employees/stats/                        headcount figures
- employees/{id}/status/                  status transition
- employees/{id}/documents/               list / upload onboarding documents
- employees/documents/{document_id}/verify/  verify or reject a document
- employees/documents/{document_id}/download/  stream a document
- employees/{id}/warnings/                list / issue warnings
"""

import logging

from django.http import FileResponse
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import OpenApiTypes, extend_schema
from rest_framework import filters, permissions, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser

from accounts.serializers import BasicUserSerializer
from api.base import APIResponse, IdentityViewSetMixin, StandardPagination
from core.access import EMPLOYEE_RESOURCE
from core.permissions import RuleTablePermission
from disciplinary.api.serializers import WarningCreateSerializer, WarningSerializer
from disciplinary.services import WarningService

from ..analytics import headcount_summary
from ..filters import EmployeeFilter
from ..services import EmployeeService
from .serializers import (
    DocumentVerificationSerializer, EmployeeDetailSerializer, EmployeeDocumentSerializer,
    EmployeeDocumentUploadSerializer, EmployeeListSerializer, EmployeeUpdateSerializer,
    EmployeeWriteSerializer, StatusUpdateSerializer,
)

logger = logging.getLogger(__name__)


class EmployeeViewSet(IdentityViewSetMixin, viewsets.GenericViewSet):
    """
    API endpoint for employee management.

    Admin and HR see every profile; managers see their direct reports;
    everybody may read their own profile through ``me``.

    Filters:
    - status, status__in, employment_type, department, manager, is_probation
    - search: name, email, employee_id, designation
    """
    permission_classes = [permissions.IsAuthenticated, RuleTablePermission]
    pagination_class = StandardPagination
    parser_classes = [JSONParser, MultiPartParser, FormParser]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_class = EmployeeFilter
    search_fields = [
        'user__first_name', 'user__last_name', 'user__email',
        'employee_id', 'designation'
    ]
    ordering_fields = ['joining_date', 'created_at', 'employee_id']
    ordering = ['-created_at']

    resource_type = EMPLOYEE_RESOURCE
    collection_actions = {
        'list': 'list',
        'create': 'create',
        'stats': 'stats',
        'team': 'view_team',
        'verify_document': 'verify_document',
    }

    def get_service(self) -> EmployeeService:
        return EmployeeService(blob_store=self.get_blob_store())

    def get_queryset(self):
        return self.get_service().visible_profiles(self.get_identity())

    def get_serializer_class(self):
        if self.action == 'list':
            return EmployeeListSerializer
        if self.action == 'create':
            return EmployeeWriteSerializer
        if self.action in ('update', 'partial_update'):
            return EmployeeUpdateSerializer
        return EmployeeDetailSerializer

    # ==================== CRUD ====================

    def list(self, request):
        return self.paginated(self.filter_queryset(self.get_queryset()))

    def create(self, request):
        serializer = EmployeeWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        profile = self.get_service().create_profile(self.get_identity(), dict(serializer.validated_data))
        return APIResponse.created(EmployeeDetailSerializer(profile).data)

    def retrieve(self, request, pk=None):
        profile = self.get_service().get_profile(self.get_identity(), pk)
        return APIResponse.success(EmployeeDetailSerializer(profile).data)

    def update(self, request, pk=None, partial=False):
        service = self.get_service()
        identity = self.get_identity()
        profile = service.get_profile(identity, pk)
        serializer = EmployeeUpdateSerializer(profile, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        profile = service.update_profile(identity, pk, dict(serializer.validated_data))
        return APIResponse.success(EmployeeDetailSerializer(profile).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk, partial=True)

    def destroy(self, request, pk=None):
        self.get_service().delete_profile(self.get_identity(), pk)
        return APIResponse.deleted()

    # ==================== COLLECTION ACTIONS ====================

    @action(detail=False, methods=['get'])
    def me(self, request):
        """Get the current user's employee profile."""
        profile = self.get_service().get_own_profile(self.get_identity())
        return APIResponse.success(EmployeeDetailSerializer(profile).data)

    @extend_schema(responses=BasicUserSerializer(many=True))
    @action(detail=False, methods=['get'])
    def team(self, request):
        """Direct reports of the current user."""
        team = self.get_service().team(self.get_identity())
        return APIResponse.listed(BasicUserSerializer(team, many=True).data)

    @action(detail=False, methods=['get'])
    def stats(self, request):
        """Headcount by department and status."""
        return APIResponse.success(headcount_summary(self.get_identity()).as_dict())

    # ==================== TRANSITIONS ====================

    @extend_schema(request=StatusUpdateSerializer, responses=EmployeeDetailSerializer)
    @action(detail=True, methods=['put', 'patch', 'post'])
    def status(self, request, pk=None):
        """Move the employee to another employment status."""
        serializer = StatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        profile = self.get_service().change_status(
            self.get_identity(),
            pk,
            data['status'],
            reason=data.get('reason', ''),
            effective_date=data.get('effective_date'),
        )
        return APIResponse.success(EmployeeDetailSerializer(profile).data)

    # ==================== DOCUMENTS ====================

    @extend_schema(request=EmployeeDocumentUploadSerializer, responses=EmployeeDocumentSerializer(many=True))
    @action(detail=True, methods=['get', 'post'])
    def documents(self, request, pk=None):
        """
        GET: list onboarding documents of the employee.
        POST: upload a document (multipart field ``document``).
        """
        service = self.get_service()
        identity = self.get_identity()

        if request.method == 'GET':
            documents = service.list_documents(identity, pk)
            return APIResponse.listed(EmployeeDocumentSerializer(documents, many=True).data)

        serializer = EmployeeDocumentUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        document = service.upload_document(
            identity,
            pk,
            serializer.validated_data['document'],
            document_type=serializer.validated_data['document_type'],
            description=serializer.validated_data['description'],
        )
        return APIResponse.created(EmployeeDocumentSerializer(document).data)

    @extend_schema(request=DocumentVerificationSerializer, responses=EmployeeDocumentSerializer)
    @action(
        detail=False,
        methods=['put', 'post'],
        url_path=r'documents/(?P<document_id>[^/.]+)/verify',
        url_name='verify-document',
    )
    def verify_document(self, request, document_id=None):
        """Verify or reject an onboarding document."""
        serializer = DocumentVerificationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        document = self.get_service().verify_document(
            self.get_identity(),
            document_id,
            serializer.validated_data['status'],
            rejection_reason=serializer.validated_data['rejection_reason'],
        )
        return APIResponse.success(EmployeeDocumentSerializer(document).data)

    @extend_schema(responses={(200, 'application/octet-stream'): OpenApiTypes.BINARY})
    @action(
        detail=False,
        methods=['get'],
        url_path=r'documents/(?P<document_id>[^/.]+)/download',
        url_name='download-document',
    )
    def download_document(self, request, document_id=None):
        """Stream an onboarding document as an attachment."""
        document, blob = self.get_service().open_document(self.get_identity(), document_id)
        return FileResponse(
            blob.stream,
            as_attachment=True,
            filename=document.filename,
            content_type=blob.metadata.get('content_type') or 'application/octet-stream',
        )

    # ==================== WARNINGS ====================

    @extend_schema(request=WarningCreateSerializer, responses=WarningSerializer(many=True))
    @action(detail=True, methods=['get', 'post'])
    def warnings(self, request, pk=None):
        """
        GET: warnings of the employee.
        POST: issue a warning to the employee.
        """
        service = WarningService()
        identity = self.get_identity()

        if request.method == 'GET':
            warnings = service.for_employee(identity, pk)
            return APIResponse.listed(WarningSerializer(warnings, many=True).data)

        serializer = WarningCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        warning = service.issue(identity, pk, dict(serializer.validated_data))
        return APIResponse.created(WarningSerializer(warning).data)
