"""
Projects Services - project lifecycle, team membership and tasks.

- ProjectService: create, update, delete, manager reassignment
- Team membership: add, update, remove with in-place reactivation
- Tasks: create and update, completion stamping
- Documents: attach stored documents so the team can read them

Team rows are unique per (project, user). Every membership change locks
the project row first, so concurrent adds of the same principal either
reactivate the existing row or hit the unique constraint and surface as
``Conflict``.
"""

import logging
from typing import Any, Dict, Optional

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Q, QuerySet
from django.utils import timezone

from core.access import (
    ADMIN, DOCUMENT_RESOURCE, HR, MANAGER, PROJECT_RESOURCE,
    Identity, ResourceContext, ensure_can_perform,
)
from core.exceptions import Conflict, InvalidOperation, NotFound, ValidationError
from documents.models import Document
from documents.services import document_context

from .models import Project, ProjectDocument, ProjectMember, ProjectTask

logger = logging.getLogger(__name__)

User = get_user_model()

MANAGER_ROLES = (ADMIN, MANAGER)

UPDATABLE_FIELDS = (
    'name', 'description', 'status', 'priority', 'start_date', 'end_date',
    'budget', 'client', 'settings',
)
TASK_FIELDS = ('name', 'description', 'status', 'priority', 'due_date', 'assignee')


def project_context(project: Project) -> ResourceContext:
    """Access snapshot of a project with its current active team."""
    return ResourceContext(
        resource_type=PROJECT_RESOURCE,
        manager_id=project.manager_id,
        member_ids=project.active_member_ids(),
    )


def _validate_dates(start_date, end_date) -> None:
    if start_date and end_date and end_date < start_date:
        raise ValidationError("End date must be after start date.", field='end_date')


def _validate_allocation(allocation) -> None:
    if allocation is None or not 1 <= allocation <= 100:
        raise ValidationError("Allocation must be between 1 and 100.", field='allocation')


class ProjectService:
    """
    Service for projects.

    Handles:
    - Project CRUD scoped to the caller
    - Manager reassignment
    - Team membership and task tracking
    """

    @staticmethod
    def _load(project_id, for_update: bool = False) -> Project:
        queryset = Project.objects.select_related('manager')
        if for_update:
            queryset = queryset.select_for_update()
        project = queryset.filter(pk=project_id).first()
        if project is None:
            raise NotFound('Project', project_id)
        return project

    @staticmethod
    def _load_user(user_id):
        user = User.objects.select_related('role').filter(pk=user_id).first()
        if user is None:
            raise NotFound('User', user_id)
        return user

    @staticmethod
    def _require_active(user, field: str = 'user') -> None:
        if user.status != User.Status.ACTIVE:
            raise ValidationError(f"User {user.pk} is not active.", field=field)

    def _validate_manager(self, user) -> None:
        self._require_active(user, field='manager')
        if user.role.name not in MANAGER_ROLES:
            raise ValidationError("Project manager must be an admin or manager.", field='manager')

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @staticmethod
    def _involving(user_id) -> Q:
        return Q(manager_id=user_id) | Q(members__user_id=user_id, members__is_active=True)

    def visible_projects(self, identity: Identity) -> QuerySet:
        """All projects for admin and HR; managed or member projects otherwise."""
        ensure_can_perform(identity, 'list', PROJECT_RESOURCE)
        queryset = Project.objects.select_related('manager')
        if identity.role in (ADMIN, HR):
            return queryset
        return queryset.filter(self._involving(identity.id)).distinct()

    def my_projects(self, identity: Identity) -> QuerySet:
        return (
            Project.objects.select_related('manager')
            .filter(self._involving(identity.id))
            .distinct()
            .order_by('-created_at')
        )

    def get_project(self, identity: Identity, project_id) -> Project:
        project = self._load(project_id)
        ensure_can_perform(identity, 'view', PROJECT_RESOURCE, project_context(project))
        return project

    def team(self, identity: Identity, project_id) -> QuerySet:
        project = self._load(project_id)
        ensure_can_perform(identity, 'view_team', PROJECT_RESOURCE, project_context(project))
        return project.members.filter(is_active=True).select_related('user', 'user__role')

    # -------------------------------------------------------------------------
    # Project CRUD
    # -------------------------------------------------------------------------

    @transaction.atomic
    def create(self, identity: Identity, data: Dict[str, Any]) -> Project:
        """
        Create a project and put its manager on the team at 100%.

        The manager defaults to the caller.
        """
        ensure_can_perform(identity, 'create', PROJECT_RESOURCE)
        data = dict(data)
        manager = data.pop('manager', None) or self._load_user(identity.id)
        self._validate_manager(manager)
        _validate_dates(data.get('start_date'), data.get('end_date'))

        project = Project.objects.create(
            manager=manager,
            created_by_id=identity.id,
            updated_by_id=identity.id,
            **data
        )
        ProjectMember.objects.create(
            project=project,
            user=manager,
            role=ProjectMember.Role.MANAGER,
            allocation=100,
        )
        logger.info("Project %s created by %s with manager %s", project.pk, identity.id, manager.pk)
        return project

    @transaction.atomic
    def update(self, identity: Identity, project_id, data: Dict[str, Any]) -> Project:
        project = self._load(project_id, for_update=True)
        ensure_can_perform(identity, 'update', PROJECT_RESOURCE, project_context(project))

        if 'manager' in data:
            raise InvalidOperation(
                "The project manager can only be changed through manager reassignment."
            )
        unknown = set(data) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(
                f"These fields cannot be updated: {', '.join(sorted(unknown))}.",
                field=sorted(unknown)[0],
            )
        _validate_dates(data.get('start_date', project.start_date), data.get('end_date', project.end_date))

        for name, value in data.items():
            setattr(project, name, value)
        project.updated_by_id = identity.id
        project.save()
        logger.info("Project %s updated by %s", project.pk, identity.id)
        return project

    @transaction.atomic
    def delete(self, identity: Identity, project_id) -> None:
        project = self._load(project_id, for_update=True)
        ensure_can_perform(identity, 'delete', PROJECT_RESOURCE, project_context(project))
        project.delete(user_id=identity.id)
        logger.info("Project %s deleted by %s", project.pk, identity.id)

    @transaction.atomic
    def assign_manager(self, identity: Identity, project_id, user_id) -> Project:
        """
        Hand the project over to a new manager.

        The old manager's team entry is deactivated and the new manager is
        added (or reactivated) at 100% allocation with the manager role.
        """
        project = self._load(project_id, for_update=True)
        ensure_can_perform(identity, 'assign_manager', PROJECT_RESOURCE, project_context(project))
        new_manager = self._load_user(user_id)
        self._validate_manager(new_manager)

        previous_id = project.manager_id
        today = timezone.localdate()
        if previous_id != new_manager.pk:
            ProjectMember.objects.filter(
                project=project, user_id=previous_id, is_active=True
            ).update(is_active=False, end_date=today)

        ProjectMember.objects.update_or_create(
            project=project,
            user=new_manager,
            defaults={
                'role': ProjectMember.Role.MANAGER,
                'allocation': 100,
                'is_active': True,
                'start_date': today,
                'end_date': None,
            },
        )

        project.manager = new_manager
        project.updated_by_id = identity.id
        project.save(update_fields=['manager', 'updated_by', 'updated_at'])
        logger.info(
            "Project %s manager changed from %s to %s by %s",
            project.pk, previous_id, new_manager.pk, identity.id
        )
        return project

    # -------------------------------------------------------------------------
    # Team
    # -------------------------------------------------------------------------

    @transaction.atomic
    def add_member(
        self,
        identity: Identity,
        project_id,
        user_id,
        role: str = ProjectMember.Role.DEVELOPER,
        allocation: int = 100,
    ) -> ProjectMember:
        """
        Add a principal to the team or reactivate their previous entry.

        Raises:
            ValidationError: Inactive principal, manager role or allocation
                outside 1-100.
            Conflict: The principal is already an active member.
        """
        project = self._load(project_id, for_update=True)
        ensure_can_perform(identity, 'manage_team', PROJECT_RESOURCE, project_context(project))
        user = self._load_user(user_id)
        self._require_active(user)
        if role == ProjectMember.Role.MANAGER:
            raise ValidationError("Use manager reassignment to set the project manager.", field='role')
        _validate_allocation(allocation)

        existing = ProjectMember.objects.filter(project=project, user=user).first()
        if existing is not None:
            if existing.is_active:
                raise Conflict("User is already a team member.")
            reactivated = ProjectMember.objects.filter(pk=existing.pk, is_active=False).update(
                is_active=True,
                role=role,
                allocation=allocation,
                start_date=timezone.localdate(),
                end_date=None,
                updated_at=timezone.now(),
            )
            if not reactivated:
                raise Conflict("User is already a team member.")
            existing.refresh_from_db()
            member = existing
        else:
            try:
                with transaction.atomic():
                    member = ProjectMember.objects.create(
                        project=project,
                        user=user,
                        role=role,
                        allocation=allocation,
                    )
            except IntegrityError:
                raise Conflict("User is already a team member.")

        project.updated_by_id = identity.id
        project.save(update_fields=['updated_by', 'updated_at'])
        logger.info("User %s added to project %s as %s (%d%%)", user.pk, project.pk, role, allocation)
        return member

    @transaction.atomic
    def update_member(
        self,
        identity: Identity,
        project_id,
        user_id,
        role: Optional[str] = None,
        allocation: Optional[int] = None,
    ) -> ProjectMember:
        project = self._load(project_id, for_update=True)
        ensure_can_perform(identity, 'manage_team', PROJECT_RESOURCE, project_context(project))
        member = ProjectMember.objects.filter(project=project, user_id=user_id, is_active=True).first()
        if member is None:
            raise InvalidOperation("User is not an active team member of this project.")

        if role is not None:
            if (role == ProjectMember.Role.MANAGER) != (member.user_id == project.manager_id):
                raise ValidationError("The manager role belongs to the project manager only.", field='role')
            member.role = role
        if allocation is not None:
            _validate_allocation(allocation)
            member.allocation = allocation
        member.save()

        project.updated_by_id = identity.id
        project.save(update_fields=['updated_by', 'updated_at'])
        return member

    @transaction.atomic
    def remove_member(self, identity: Identity, project_id, user_id) -> None:
        """
        Deactivate a team entry.

        Raises:
            InvalidOperation: The principal is the current manager, or not an
                active member.
        """
        project = self._load(project_id, for_update=True)
        ensure_can_perform(identity, 'manage_team', PROJECT_RESOURCE, project_context(project))
        if str(project.manager_id) == str(user_id):
            raise InvalidOperation(
                "Cannot remove the project manager. Assign a new manager first."
            )

        removed = ProjectMember.objects.filter(
            project=project, user_id=user_id, is_active=True
        ).update(is_active=False, end_date=timezone.localdate(), updated_at=timezone.now())
        if not removed:
            raise InvalidOperation("User is not an active team member of this project.")

        project.updated_by_id = identity.id
        project.save(update_fields=['updated_by', 'updated_at'])
        logger.info("User %s removed from project %s by %s", user_id, project.pk, identity.id)

    # -------------------------------------------------------------------------
    # Tasks
    # -------------------------------------------------------------------------

    def tasks(self, identity: Identity, project_id) -> QuerySet:
        project = self._load(project_id)
        ensure_can_perform(identity, 'view', PROJECT_RESOURCE, project_context(project))
        return project.tasks.select_related('assignee', 'completed_by')

    @staticmethod
    def _check_assignee(project: Project, assignee) -> None:
        if assignee is None:
            return
        if not project.members.filter(user=assignee, is_active=True).exists():
            raise ValidationError("Tasks can only be assigned to active team members.", field='assignee')

    @staticmethod
    def _stamp_completion(task: ProjectTask, identity: Identity) -> None:
        if task.status == ProjectTask.Status.COMPLETED:
            if task.completed_at is None:
                task.completed_at = timezone.now()
                task.completed_by_id = identity.id
        else:
            task.completed_at = None
            task.completed_by = None

    @transaction.atomic
    def create_task(self, identity: Identity, project_id, data: Dict[str, Any]) -> ProjectTask:
        project = self._load(project_id, for_update=True)
        ensure_can_perform(identity, 'manage_tasks', PROJECT_RESOURCE, project_context(project))
        self._check_assignee(project, data.get('assignee'))

        task = ProjectTask(project=project, **data)
        self._stamp_completion(task, identity)
        task.save()
        logger.info("Task %s created on project %s", task.pk, project.pk)
        return task

    @transaction.atomic
    def update_task(self, identity: Identity, project_id, task_id, data: Dict[str, Any]) -> ProjectTask:
        project = self._load(project_id, for_update=True)
        ensure_can_perform(identity, 'manage_tasks', PROJECT_RESOURCE, project_context(project))
        task = project.tasks.select_for_update().filter(pk=task_id).first()
        if task is None:
            raise NotFound('Task', task_id)

        unknown = set(data) - set(TASK_FIELDS)
        if unknown:
            raise ValidationError(
                f"These fields cannot be updated: {', '.join(sorted(unknown))}.",
                field=sorted(unknown)[0],
            )
        if 'assignee' in data:
            self._check_assignee(project, data['assignee'])

        for name, value in data.items():
            setattr(task, name, value)
        self._stamp_completion(task, identity)
        task.save()
        logger.info("Task %s on project %s updated to %s", task.pk, project.pk, task.status)
        return task

    # -------------------------------------------------------------------------
    # Documents
    # -------------------------------------------------------------------------

    def documents(self, identity: Identity, project_id) -> QuerySet:
        """Live documents attached to the project."""
        project = self._load(project_id)
        ensure_can_perform(identity, 'view', PROJECT_RESOURCE, project_context(project))
        return project.document_links.filter(document__is_deleted=False).select_related(
            'document', 'document__uploaded_by', 'added_by'
        )

    @transaction.atomic
    def attach_document(self, identity: Identity, project_id, document_id, description: str = '') -> ProjectDocument:
        """
        Attach a stored document to the project.

        The caller must be on the project and hold the share right on the
        document, since attaching opens it to the whole team.

        Raises:
            NotFound: Unknown or deleted document.
            Forbidden: The caller may not share the document.
            Conflict: The document is already attached.
        """
        project = self._load(project_id, for_update=True)
        ensure_can_perform(identity, 'attach_document', PROJECT_RESOURCE, project_context(project))
        document = Document.objects.filter(pk=document_id).first()
        if document is None:
            raise NotFound('Document', document_id)
        ensure_can_perform(identity, 'share', DOCUMENT_RESOURCE, document_context(document))

        if ProjectDocument.objects.filter(project=project, document=document).exists():
            raise Conflict("Document is already attached to this project.")
        try:
            with transaction.atomic():
                link = ProjectDocument.objects.create(
                    project=project,
                    document=document,
                    description=description or '',
                    added_by_id=identity.id,
                )
        except IntegrityError:
            raise Conflict("Document is already attached to this project.")

        logger.info("Document %s attached to project %s by %s", document.pk, project.pk, identity.id)
        return link

    @transaction.atomic
    def detach_document(self, identity: Identity, project_id, document_id) -> None:
        project = self._load(project_id, for_update=True)
        ensure_can_perform(identity, 'detach_document', PROJECT_RESOURCE, project_context(project))
        removed, _ = ProjectDocument.objects.filter(project=project, document_id=document_id).delete()
        if not removed:
            raise NotFound('Project document', document_id)
        logger.info("Document %s detached from project %s by %s", document_id, project.pk, identity.id)
