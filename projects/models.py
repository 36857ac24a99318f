"""
Projects Models - internal projects, their team and tasks.

This module defines:
- Project: a piece of work led by one manager
- ProjectMember: team entry of a principal on a project
- ProjectTask: unit of work tracked for progress
- ProjectDocument: stored document attached to a project

Team entries are never deleted. Removing a member deactivates the row and
adding the same principal again reactivates it in place, so there is at
most one row per (project, user).
"""

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import F, Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from core.db.models import BaseModel, SoftDeleteModel


class Priority(models.TextChoices):
    LOW = 'low', _('Low')
    MEDIUM = 'medium', _('Medium')
    HIGH = 'high', _('High')
    CRITICAL = 'critical', _('Critical')


# ============================================================================
# PROJECTS
# ============================================================================

class Project(SoftDeleteModel):
    """Project with a single manager and an allocated team."""

    class Status(models.TextChoices):
        PLANNING = 'planning', _('Planning')
        IN_PROGRESS = 'in_progress', _('In Progress')
        ON_HOLD = 'on_hold', _('On Hold')
        COMPLETED = 'completed', _('Completed')
        CANCELLED = 'cancelled', _('Cancelled')

    name = models.CharField(max_length=100)
    description = models.TextField(max_length=2000)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PLANNING,
        db_index=True,
    )
    priority = models.CharField(
        max_length=20,
        choices=Priority.choices,
        default=Priority.MEDIUM,
        db_index=True,
    )
    start_date = models.DateField()
    end_date = models.DateField(null=True, blank=True)
    budget = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0)],
    )
    client = models.CharField(max_length=200, blank=True)
    manager = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='managed_projects'
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='created_projects'
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='updated_projects'
    )
    documents = models.ManyToManyField(
        'documents.Document',
        through='ProjectDocument',
        related_name='projects',
        blank=True,
    )

    # Declared last: the name shadows django.conf.settings in the class body
    settings = models.JSONField(
        default=dict,
        blank=True,
        help_text=_('Flags such as is_public, allow_team_chat, notify_on_update')
    )

    class Meta:
        verbose_name = _('Project')
        verbose_name_plural = _('Projects')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['manager', 'status'], name='project_manager_status_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(end_date__isnull=True) | Q(end_date__gte=F('start_date')),
                name='projects_project_end_after_start',
            ),
            models.CheckConstraint(
                condition=Q(budget__isnull=True) | Q(budget__gte=0),
                name='projects_project_budget_non_negative',
            ),
        ]

    def __str__(self):
        return self.name

    @property
    def duration_days(self):
        if not self.start_date or not self.end_date:
            return None
        return abs((self.end_date - self.start_date).days)

    @property
    def progress(self) -> int:
        """Percentage of completed tasks, 0 without tasks."""
        tasks = list(self.tasks.all())
        if not tasks:
            return 0
        completed = sum(1 for task in tasks if task.status == ProjectTask.Status.COMPLETED)
        return round(completed / len(tasks) * 100)

    def active_member_ids(self):
        return frozenset(
            self.members.filter(is_active=True).values_list('user_id', flat=True)
        )


class ProjectMember(BaseModel):
    """Team entry of a principal on a project."""

    class Role(models.TextChoices):
        MANAGER = 'manager', _('Manager')
        DEVELOPER = 'developer', _('Developer')
        DESIGNER = 'designer', _('Designer')
        TESTER = 'tester', _('Tester')
        ANALYST = 'analyst', _('Analyst')
        OTHER = 'other', _('Other')

    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='members')
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='project_memberships'
    )
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.DEVELOPER)
    allocation = models.PositiveSmallIntegerField(
        default=100,
        validators=[MinValueValidator(1), MaxValueValidator(100)],
        help_text=_('Percentage of working time, 1-100')
    )
    start_date = models.DateField(default=timezone.localdate)
    end_date = models.DateField(null=True, blank=True)
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        verbose_name = _('Project Member')
        verbose_name_plural = _('Project Members')
        ordering = ['start_date']
        constraints = [
            models.UniqueConstraint(
                fields=['project', 'user'],
                name='projects_member_unique_per_project',
            ),
            models.CheckConstraint(
                condition=Q(allocation__gte=1) & Q(allocation__lte=100),
                name='projects_member_allocation_range',
            ),
        ]

    def __str__(self):
        return f"{self.user} on {self.project} ({self.role})"


class ProjectDocument(BaseModel):
    """
    Stored document attached to a project.

    The managers and active members of a live project may read the
    documents attached to it.
    """

    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='document_links')
    document = models.ForeignKey(
        'documents.Document',
        on_delete=models.CASCADE,
        related_name='project_links'
    )
    description = models.CharField(max_length=500, blank=True)
    added_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='attached_project_documents'
    )

    class Meta:
        verbose_name = _('Project Document')
        verbose_name_plural = _('Project Documents')
        ordering = ['created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['project', 'document'],
                name='projects_document_unique_per_project',
            ),
        ]

    def __str__(self):
        return f"{self.document} on {self.project}"


class ProjectTask(BaseModel):
    """Task tracked on a project."""

    class Status(models.TextChoices):
        NOT_STARTED = 'not_started', _('Not Started')
        IN_PROGRESS = 'in_progress', _('In Progress')
        REVIEW = 'review', _('Review')
        COMPLETED = 'completed', _('Completed')
        BLOCKED = 'blocked', _('Blocked')

    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='tasks')
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.NOT_STARTED,
        db_index=True,
    )
    priority = models.CharField(max_length=20, choices=Priority.choices, default=Priority.MEDIUM)
    due_date = models.DateField(null=True, blank=True)
    assignee = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='project_tasks'
    )
    completed_at = models.DateTimeField(null=True, blank=True)
    completed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='completed_project_tasks'
    )

    class Meta:
        verbose_name = _('Project Task')
        verbose_name_plural = _('Project Tasks')
        ordering = ['created_at']

    def __str__(self):
        return self.name
