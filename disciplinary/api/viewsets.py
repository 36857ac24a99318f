"""
Disciplinary API ViewSets.

Endpoints (under /api/v1/):
- warnings/                         list, create
- warnings/{id}/                    retrieve, update, delete
- warnings/active/                  unexpired active warnings, most severe first
- warnings/stats/                   counts by severity
- warnings/employee/{employee_id}/  warnings of one employee
- warnings/{id}/resolve/            resolve
- warnings/{id}/escalate/           escalate (once)
- warnings/{id}/withdraw/           withdraw with a reason
"""

from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema
from rest_framework import filters, permissions, viewsets
from rest_framework.decorators import action

from api.base import APIResponse, IdentityViewSetMixin, StandardPagination
from core.access import WARNING_RESOURCE
from core.permissions import RuleTablePermission

from ..analytics import warning_summary
from ..filters import WarningFilter
from ..services import WarningService
from .serializers import (
    WarningIssueSerializer, WarningNotesSerializer, WarningSerializer,
    WarningUpdateSerializer, WarningWithdrawSerializer,
)


class WarningViewSet(IdentityViewSetMixin, viewsets.GenericViewSet):
    """
    API endpoint for disciplinary warnings.

    HR sees every warning, managers the warnings of their direct reports.
    """
    permission_classes = [permissions.IsAuthenticated, RuleTablePermission]
    serializer_class = WarningSerializer
    pagination_class = StandardPagination
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_class = WarningFilter
    search_fields = ['title', 'type', 'employee__employee_id', 'employee__user__last_name']
    ordering_fields = ['date_issued', 'valid_until', 'severity', 'created_at']
    ordering = ['-date_issued']

    resource_type = WARNING_RESOURCE
    collection_actions = {
        'list': 'list',
        'active': 'list',
        'stats': 'stats',
    }

    service_class = WarningService

    def get_service(self) -> WarningService:
        return self.service_class()

    def get_queryset(self):
        return self.get_service().visible_warnings(self.get_identity())

    def list(self, request):
        return self.paginated(self.filter_queryset(self.get_queryset()))

    @extend_schema(request=WarningIssueSerializer, responses=WarningSerializer)
    def create(self, request):
        serializer = WarningIssueSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        profile = data.pop('employee')
        warning = self.get_service().issue(self.get_identity(), profile.pk, data)
        return APIResponse.created(WarningSerializer(warning).data)

    def retrieve(self, request, pk=None):
        warning = self.get_service().get_warning(self.get_identity(), pk)
        return APIResponse.success(WarningSerializer(warning).data)

    @extend_schema(request=WarningUpdateSerializer, responses=WarningSerializer)
    def update(self, request, pk=None, partial=False):
        serializer = WarningUpdateSerializer(data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        warning = self.get_service().update(self.get_identity(), pk, dict(serializer.validated_data))
        return APIResponse.success(WarningSerializer(warning).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk, partial=True)

    def destroy(self, request, pk=None):
        self.get_service().delete(self.get_identity(), pk)
        return APIResponse.deleted()

    @action(detail=False, methods=['get'])
    def active(self, request):
        """Unexpired active warnings, critical first."""
        warnings = self.get_service().active_warnings(self.get_identity())
        return APIResponse.listed(WarningSerializer(warnings, many=True).data)

    @action(detail=False, methods=['get'])
    def stats(self, request):
        return APIResponse.success(warning_summary(self.get_identity()))

    @action(detail=False, methods=['get'], url_path=r'employee/(?P<employee_id>[^/.]+)', url_name='employee')
    def employee(self, request, employee_id=None):
        """Warnings of one employee, optionally filtered by ``status``."""
        warnings = self.get_service().for_employee(
            self.get_identity(),
            employee_id,
            status=request.query_params.get('status'),
        )
        return APIResponse.listed(WarningSerializer(warnings, many=True).data)

    @extend_schema(request=WarningNotesSerializer, responses=WarningSerializer)
    @action(detail=True, methods=['put', 'post'])
    def resolve(self, request, pk=None):
        serializer = WarningNotesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        warning = self.get_service().resolve(self.get_identity(), pk, serializer.validated_data['notes'])
        return APIResponse.success(WarningSerializer(warning).data)

    @extend_schema(request=WarningNotesSerializer, responses=WarningSerializer)
    @action(detail=True, methods=['put', 'post'])
    def escalate(self, request, pk=None):
        serializer = WarningNotesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        warning = self.get_service().escalate(self.get_identity(), pk, serializer.validated_data['notes'])
        return APIResponse.success(WarningSerializer(warning).data)

    @extend_schema(request=WarningWithdrawSerializer, responses=WarningSerializer)
    @action(detail=True, methods=['put', 'post'])
    def withdraw(self, request, pk=None):
        serializer = WarningWithdrawSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        warning = self.get_service().withdraw(self.get_identity(), pk, serializer.validated_data['reason'])
        return APIResponse.success(WarningSerializer(warning).data)
