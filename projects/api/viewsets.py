"""
Projects API ViewSets.

Endpoints (under /api/v1/):
- projects/                        list, create
- projects/{id}/                   retrieve, update, delete
- projects/me/                     projects the caller manages or works on
- projects/stats/                  status, budget and priority figures
- projects/{id}/manager/           reassign the manager
- projects/{id}/team/              list / add team members
- projects/{id}/team/{user_id}/    update / remove a team member
- projects/{id}/tasks/             list / create / update tasks
- projects/{id}/documents/         list / attach documents
- projects/{id}/documents/{doc}/   detach a document
"""

from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema
from rest_framework import filters, permissions, viewsets
from rest_framework.decorators import action

from api.base import APIResponse, IdentityViewSetMixin, StandardPagination
from core.access import PROJECT_RESOURCE
from core.exceptions import ValidationError
from core.permissions import RuleTablePermission

from ..analytics import project_summary
from ..filters import ProjectFilter
from ..services import ProjectService
from .serializers import (
    ManagerAssignSerializer, ProjectCreateSerializer, ProjectDetailSerializer,
    ProjectDocumentAttachSerializer, ProjectDocumentSerializer,
    ProjectListSerializer, ProjectMemberSerializer, ProjectTaskSerializer,
    ProjectTaskUpdateSerializer, ProjectTaskWriteSerializer, ProjectUpdateSerializer,
    TeamMemberAddSerializer, TeamMemberUpdateSerializer,
)


class ProjectViewSet(IdentityViewSetMixin, viewsets.GenericViewSet):
    """
    API endpoint for projects.

    Admin and HR see every project; everybody else sees the projects they
    manage or are an active team member of.

    Filters:
    - status, status__in, priority, manager, start and budget ranges
    - search: name, client, description
    """
    permission_classes = [permissions.IsAuthenticated, RuleTablePermission]
    pagination_class = StandardPagination
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_class = ProjectFilter
    search_fields = ['name', 'client', 'description']
    ordering_fields = ['start_date', 'end_date', 'budget', 'created_at']
    ordering = ['-created_at']

    resource_type = PROJECT_RESOURCE
    collection_actions = {
        'list': 'list',
        'create': 'create',
        'stats': 'stats',
    }

    def get_service(self) -> ProjectService:
        return ProjectService()

    def get_queryset(self):
        return self.get_service().visible_projects(self.get_identity())

    def get_serializer_class(self):
        if self.action == 'list':
            return ProjectListSerializer
        if self.action == 'create':
            return ProjectCreateSerializer
        if self.action in ('update', 'partial_update'):
            return ProjectUpdateSerializer
        return ProjectDetailSerializer

    # ==================== CRUD ====================

    def list(self, request):
        return self.paginated(self.filter_queryset(self.get_queryset()))

    @extend_schema(request=ProjectCreateSerializer, responses=ProjectDetailSerializer)
    def create(self, request):
        serializer = ProjectCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        project = self.get_service().create(self.get_identity(), dict(serializer.validated_data))
        return APIResponse.created(ProjectDetailSerializer(project).data)

    def retrieve(self, request, pk=None):
        project = self.get_service().get_project(self.get_identity(), pk)
        return APIResponse.success(ProjectDetailSerializer(project).data)

    @extend_schema(request=ProjectUpdateSerializer, responses=ProjectDetailSerializer)
    def update(self, request, pk=None, partial=False):
        serializer = ProjectUpdateSerializer(data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        project = self.get_service().update(self.get_identity(), pk, dict(serializer.validated_data))
        return APIResponse.success(ProjectDetailSerializer(project).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk, partial=True)

    def destroy(self, request, pk=None):
        self.get_service().delete(self.get_identity(), pk)
        return APIResponse.deleted()

    # ==================== COLLECTION ACTIONS ====================

    @action(detail=False, methods=['get'])
    def me(self, request):
        projects = self.get_service().my_projects(self.get_identity())
        return APIResponse.listed(ProjectListSerializer(projects, many=True).data)

    @action(detail=False, methods=['get'])
    def stats(self, request):
        return APIResponse.success(project_summary(self.get_identity()))

    # ==================== MANAGER & TEAM ====================

    @extend_schema(request=ManagerAssignSerializer, responses=ProjectDetailSerializer)
    @action(detail=True, methods=['put', 'post'])
    def manager(self, request, pk=None):
        serializer = ManagerAssignSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        project = self.get_service().assign_manager(
            self.get_identity(), pk, serializer.validated_data['manager']
        )
        return APIResponse.success(ProjectDetailSerializer(project).data)

    @extend_schema(request=TeamMemberAddSerializer, responses=ProjectMemberSerializer(many=True))
    @action(detail=True, methods=['get', 'post'])
    def team(self, request, pk=None):
        """
        GET: active team members.
        POST: add a member or reactivate a previous one.
        """
        service = self.get_service()
        identity = self.get_identity()

        if request.method == 'GET':
            members = service.team(identity, pk)
            return APIResponse.listed(ProjectMemberSerializer(members, many=True).data)

        serializer = TeamMemberAddSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        member = service.add_member(
            identity, pk, data['user'], role=data['role'], allocation=data['allocation']
        )
        return APIResponse.created(ProjectMemberSerializer(member).data)

    @extend_schema(request=TeamMemberUpdateSerializer, responses=ProjectMemberSerializer)
    @action(
        detail=True,
        methods=['put', 'patch', 'delete'],
        url_path=r'team/(?P<user_id>[^/.]+)',
        url_name='team-member',
    )
    def team_member(self, request, pk=None, user_id=None):
        service = self.get_service()
        identity = self.get_identity()

        if request.method == 'DELETE':
            service.remove_member(identity, pk, user_id)
            return APIResponse.deleted()

        serializer = TeamMemberUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        member = service.update_member(
            identity,
            pk,
            user_id,
            role=serializer.validated_data.get('role'),
            allocation=serializer.validated_data.get('allocation'),
        )
        return APIResponse.success(ProjectMemberSerializer(member).data)

    # ==================== TASKS ====================

    @extend_schema(request=ProjectTaskWriteSerializer, responses=ProjectTaskSerializer(many=True))
    @action(detail=True, methods=['get', 'post', 'put', 'patch'])
    def tasks(self, request, pk=None):
        """
        GET: tasks of the project.
        POST: create a task.
        PUT/PATCH: update the task named by ``task``.
        """
        service = self.get_service()
        identity = self.get_identity()

        if request.method == 'GET':
            tasks = service.tasks(identity, pk)
            return APIResponse.listed(ProjectTaskSerializer(tasks, many=True).data)

        if request.method == 'POST':
            serializer = ProjectTaskWriteSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            task = service.create_task(identity, pk, dict(serializer.validated_data))
            return APIResponse.created(ProjectTaskSerializer(task).data)

        serializer = ProjectTaskUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        task_id = data.pop('task', None)
        if task_id is None:
            raise ValidationError("The task to update is required.", field='task')
        task = service.update_task(identity, pk, task_id, data)
        return APIResponse.success(ProjectTaskSerializer(task).data)

    # ==================== DOCUMENTS ====================

    @extend_schema(request=ProjectDocumentAttachSerializer, responses=ProjectDocumentSerializer(many=True))
    @action(detail=True, methods=['get', 'post'])
    def documents(self, request, pk=None):
        """
        GET: documents attached to the project.
        POST: attach a document the caller may share.
        """
        service = self.get_service()
        identity = self.get_identity()

        if request.method == 'GET':
            links = service.documents(identity, pk)
            return APIResponse.listed(ProjectDocumentSerializer(links, many=True).data)

        serializer = ProjectDocumentAttachSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        link = service.attach_document(
            identity, pk, serializer.validated_data['document'],
            description=serializer.validated_data['description'],
        )
        return APIResponse.created(ProjectDocumentSerializer(link).data)

    @extend_schema(request=None, responses=None)
    @action(
        detail=True,
        methods=['delete'],
        url_path=r'documents/(?P<document_id>[^/.]+)',
        url_name='project-document',
    )
    def project_document(self, request, pk=None, document_id=None):
        self.get_service().detach_document(self.get_identity(), pk, document_id)
        return APIResponse.deleted()
