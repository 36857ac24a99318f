"""
Appraisals API ViewSets.

Endpoints (under /api/v1/):
- appraisals/                       list, create
- appraisals/{id}/                  retrieve, update, delete
- appraisals/me/                    caller's own appraisals
- appraisals/stats/                 status, rating and due-date figures
- appraisals/users/{user_id}/       appraisals of one employee
- appraisals/{id}/self-assessment/  employee self-assessment
- appraisals/{id}/review/           reviewer assessment
- appraisals/{id}/cancel/           cancel an unfinished appraisal
"""

from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema
from rest_framework import filters, permissions, viewsets
from rest_framework.decorators import action

from api.base import APIResponse, IdentityViewSetMixin, StandardPagination
from core.access import APPRAISAL_RESOURCE
from core.permissions import RuleTablePermission

from ..analytics import appraisal_summary
from ..filters import AppraisalFilter
from ..services import AppraisalService
from .serializers import (
    AppraisalCreateSerializer, AppraisalDetailSerializer, AppraisalListSerializer,
    AppraisalUpdateSerializer, CancelSerializer, ReviewSerializer, SelfAssessmentSerializer,
)


class AppraisalViewSet(IdentityViewSetMixin, viewsets.GenericViewSet):
    """
    API endpoint for performance appraisals.

    Listing is scoped: HR and admin see everything, managers their own,
    their reviews and their reports' appraisals, employees their own and
    the ones they review.
    """
    permission_classes = [permissions.IsAuthenticated, RuleTablePermission]
    pagination_class = StandardPagination
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_class = AppraisalFilter
    search_fields = ['cycle', 'employee__first_name', 'employee__last_name', 'employee__email']
    ordering_fields = ['appraisal_date', 'due_date', 'rating', 'created_at']
    ordering = ['-appraisal_date']

    resource_type = APPRAISAL_RESOURCE
    collection_actions = {
        'list': 'list',
        'stats': 'stats',
    }

    def get_service(self) -> AppraisalService:
        return AppraisalService()

    def get_queryset(self):
        return self.get_service().visible_appraisals(self.get_identity())

    def get_serializer_class(self):
        if self.action == 'list':
            return AppraisalListSerializer
        if self.action == 'create':
            return AppraisalCreateSerializer
        if self.action in ('update', 'partial_update'):
            return AppraisalUpdateSerializer
        return AppraisalDetailSerializer

    # ==================== CRUD ====================

    def list(self, request):
        return self.paginated(self.filter_queryset(self.get_queryset()))

    @extend_schema(request=AppraisalCreateSerializer, responses=AppraisalDetailSerializer)
    def create(self, request):
        serializer = AppraisalCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        appraisal = self.get_service().create(self.get_identity(), dict(serializer.validated_data))
        return APIResponse.created(AppraisalDetailSerializer(appraisal).data)

    def retrieve(self, request, pk=None):
        appraisal = self.get_service().get_appraisal(self.get_identity(), pk)
        return APIResponse.success(AppraisalDetailSerializer(appraisal).data)

    @extend_schema(request=AppraisalUpdateSerializer, responses=AppraisalDetailSerializer)
    def update(self, request, pk=None, partial=False):
        serializer = AppraisalUpdateSerializer(data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        appraisal = self.get_service().update(self.get_identity(), pk, dict(serializer.validated_data))
        return APIResponse.success(AppraisalDetailSerializer(appraisal).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk, partial=True)

    def destroy(self, request, pk=None):
        self.get_service().delete(self.get_identity(), pk)
        return APIResponse.deleted()

    # ==================== COLLECTION ACTIONS ====================

    @action(detail=False, methods=['get'])
    def me(self, request):
        """Appraisals where the caller is the employee."""
        appraisals = self.get_service().my_appraisals(self.get_identity())
        return APIResponse.listed(AppraisalListSerializer(appraisals, many=True).data)

    @action(detail=False, methods=['get'])
    def stats(self, request):
        return APIResponse.success(appraisal_summary(self.get_identity()))

    @action(detail=False, methods=['get'], url_path=r'users/(?P<user_id>[^/.]+)', url_name='user')
    def user(self, request, user_id=None):
        appraisals = self.get_service().for_user(self.get_identity(), user_id)
        return APIResponse.listed(AppraisalListSerializer(appraisals, many=True).data)

    # ==================== TRANSITIONS ====================

    @extend_schema(request=SelfAssessmentSerializer, responses=AppraisalDetailSerializer)
    @action(detail=True, methods=['put', 'post'], url_path='self-assessment', url_name='self-assessment')
    def self_assessment(self, request, pk=None):
        serializer = SelfAssessmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        appraisal = self.get_service().submit_self_assessment(
            self.get_identity(), pk, serializer.validated_data['self_assessment']
        )
        return APIResponse.success(AppraisalDetailSerializer(appraisal).data)

    @extend_schema(request=ReviewSerializer, responses=AppraisalDetailSerializer)
    @action(detail=True, methods=['put', 'post'])
    def review(self, request, pk=None):
        serializer = ReviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        appraisal = self.get_service().submit_review(
            self.get_identity(),
            pk,
            review=data['review'],
            rating=data['rating'],
            status=data['status'],
            overall_comments=data.get('overall_comments'),
        )
        return APIResponse.success(AppraisalDetailSerializer(appraisal).data)

    @extend_schema(request=CancelSerializer, responses=AppraisalDetailSerializer)
    @action(detail=True, methods=['put', 'post'])
    def cancel(self, request, pk=None):
        serializer = CancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        appraisal = self.get_service().cancel(self.get_identity(), pk, serializer.validated_data['reason'])
        return APIResponse.success(AppraisalDetailSerializer(appraisal).data)
