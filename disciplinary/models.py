"""
Disciplinary Models - warnings issued to employees.

A warning is ``active`` until it is resolved or withdrawn. Escalation is a
separate flag that can be set once and does not change the status.
Expiry is evaluated when reading: an active warning past ``valid_until``
keeps its stored status but no longer counts as active.
"""

import math

from django.conf import settings
from django.db import models
from django.db.models import Case, IntegerField, Q, Value, When
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from core.db.managers import SoftDeleteManager, SoftDeleteQuerySet
from core.db.models import SoftDeleteModel


class WarningQuerySet(SoftDeleteQuerySet):

    def currently_active(self):
        """Active warnings that have not expired yet."""
        return self.filter(status=DisciplinaryWarning.Status.ACTIVE, valid_until__gt=timezone.now())

    def by_severity(self):
        """Critical first, then newest first."""
        return self.annotate(
            severity_rank=Case(
                When(severity=DisciplinaryWarning.Severity.CRITICAL, then=Value(0)),
                When(severity=DisciplinaryWarning.Severity.HIGH, then=Value(1)),
                When(severity=DisciplinaryWarning.Severity.MEDIUM, then=Value(2)),
                default=Value(3),
                output_field=IntegerField(),
            )
        ).order_by('severity_rank', '-date_issued')


class WarningManager(SoftDeleteManager.from_queryset(WarningQuerySet)):
    pass


class DisciplinaryWarning(SoftDeleteModel):
    """Disciplinary warning attached to an employee profile."""

    class Severity(models.TextChoices):
        LOW = 'low', _('Low')
        MEDIUM = 'medium', _('Medium')
        HIGH = 'high', _('High')
        CRITICAL = 'critical', _('Critical')

    class Status(models.TextChoices):
        ACTIVE = 'active', _('Active')
        RESOLVED = 'resolved', _('Resolved')
        ESCALATED = 'escalated', _('Escalated')
        WITHDRAWN = 'withdrawn', _('Withdrawn')

    employee = models.ForeignKey(
        'hr_core.EmployeeProfile',
        on_delete=models.CASCADE,
        related_name='warnings'
    )
    type = models.CharField(max_length=100)
    title = models.CharField(max_length=200)
    description = models.TextField()
    severity = models.CharField(
        max_length=20,
        choices=Severity.choices,
        default=Severity.MEDIUM,
        db_index=True,
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.ACTIVE,
        db_index=True,
    )
    date_issued = models.DateTimeField(default=timezone.now, db_index=True)
    valid_until = models.DateTimeField()

    resolved_at = models.DateTimeField(null=True, blank=True)
    resolution_notes = models.TextField(blank=True)

    escalated = models.BooleanField(default=False)
    escalation_date = models.DateTimeField(null=True, blank=True)
    escalation_notes = models.TextField(blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='issued_warnings'
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='updated_warnings'
    )

    objects = WarningManager()
    all_objects = WarningManager(alive_only=False)

    class Meta:
        db_table = 'disciplinary_warning'
        verbose_name = _('Warning')
        verbose_name_plural = _('Warnings')
        ordering = ['-date_issued']
        indexes = [
            models.Index(fields=['employee', 'status'], name='disc_warning_emp_status_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(valid_until__gt=models.F('date_issued')),
                name='disciplinary_warning_valid_after_issue',
            ),
        ]

    def __str__(self):
        return f"{self.title} ({self.get_severity_display()})"

    @property
    def duration_days(self) -> int:
        delta = self.valid_until - self.date_issued
        return math.ceil(abs(delta.total_seconds()) / 86400)

    @property
    def days_remaining(self) -> int:
        if self.status != self.Status.ACTIVE:
            return 0
        now = timezone.now()
        if now > self.valid_until:
            return 0
        return math.ceil((self.valid_until - now).total_seconds() / 86400)

    @property
    def is_expired(self) -> bool:
        return self.valid_until <= timezone.now()
