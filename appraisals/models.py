"""
Appraisals Models - review cycles with goals and KPIs.

This module implements:
- Appraisal: one review of one employee by a designated reviewer
- AppraisalGoal: weighted goal with an optional 1-5 rating
- AppraisalKPI: numeric target and actual result

Status moves go through ``appraisals.services.AppraisalService``. The
overall rating and the date-based fields are derived on read.
"""

from typing import Optional

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from core.db.models import BaseModel, SoftDeleteModel

from .rating import calculate_overall_rating


class Appraisal(SoftDeleteModel):
    """Performance appraisal of an employee."""

    class Status(models.TextChoices):
        DRAFT = 'draft', _('Draft')
        IN_PROGRESS = 'in_progress', _('In Progress')
        NEEDS_REVIEW = 'needs_review', _('Needs Review')
        COMPLETED = 'completed', _('Completed')
        CANCELLED = 'cancelled', _('Cancelled')

    TERMINAL_STATUSES = (Status.COMPLETED, Status.CANCELLED)

    employee = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='appraisals'
    )
    reviewer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='appraisals_to_review'
    )
    appraisal_date = models.DateField(default=timezone.localdate)
    due_date = models.DateField()
    cycle = models.CharField(max_length=100, help_text=_("e.g. 'Q1 2024', 'Annual 2024'"))
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.DRAFT,
        db_index=True,
    )

    self_assessment = models.TextField(blank=True)
    self_assessment_date = models.DateTimeField(null=True, blank=True)
    review = models.TextField(blank=True)
    review_date = models.DateTimeField(null=True, blank=True)
    rating = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1), MaxValueValidator(5)],
    )
    overall_comments = models.TextField(blank=True)
    competencies = models.JSONField(default=list, blank=True)
    development_needs = models.JSONField(default=list, blank=True)
    career_aspirations = models.TextField(blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='created_appraisals'
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='updated_appraisals'
    )

    class Meta:
        verbose_name = _('Appraisal')
        verbose_name_plural = _('Appraisals')
        ordering = ['-appraisal_date']
        indexes = [
            models.Index(fields=['reviewer', 'status'], name='appraisal_reviewer_status_idx'),
            models.Index(fields=['due_date'], name='appraisal_due_date_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['employee', 'appraisal_date'],
                condition=Q(is_deleted=False) & ~Q(status='cancelled'),
                name='appraisals_one_open_per_employee_date',
            ),
        ]

    def __str__(self):
        return f"{self.cycle} - {self.employee}"

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATUSES

    @property
    def days_remaining(self) -> Optional[int]:
        if not self.due_date:
            return None
        days = (self.due_date - timezone.localdate()).days
        return days if days > 0 else 0

    @property
    def is_overdue(self) -> bool:
        if self.is_terminal or not self.due_date:
            return False
        return timezone.localdate() > self.due_date

    @property
    def duration_days(self) -> Optional[int]:
        if not self.appraisal_date or not self.completed_at:
            return None
        delta = timezone.localdate(self.completed_at) - self.appraisal_date
        return abs(delta.days)

    @property
    def overall_rating(self) -> Optional[float]:
        return calculate_overall_rating(self.rating, self.goals.all(), self.kpis.all())


class AppraisalGoal(BaseModel):
    """Weighted goal within an appraisal."""

    class Status(models.TextChoices):
        NOT_STARTED = 'not_started', _('Not Started')
        IN_PROGRESS = 'in_progress', _('In Progress')
        COMPLETED = 'completed', _('Completed')
        EXCEEDED = 'exceeded', _('Exceeded')

    appraisal = models.ForeignKey(Appraisal, on_delete=models.CASCADE, related_name='goals')
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.NOT_STARTED)
    weightage = models.PositiveSmallIntegerField(
        default=0,
        validators=[MaxValueValidator(100)],
    )
    rating = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1), MaxValueValidator(5)],
    )
    comments = models.TextField(blank=True)
    reviewer_comments = models.TextField(blank=True)

    class Meta:
        verbose_name = _('Appraisal Goal')
        verbose_name_plural = _('Appraisal Goals')
        ordering = ['created_at']

    def __str__(self):
        return self.title


class AppraisalKPI(BaseModel):
    """Key performance indicator with a numeric target."""

    appraisal = models.ForeignKey(Appraisal, on_delete=models.CASCADE, related_name='kpis')
    name = models.CharField(max_length=200)
    target = models.DecimalField(max_digits=12, decimal_places=2)
    actual = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    comments = models.TextField(blank=True)

    class Meta:
        verbose_name = _('Appraisal KPI')
        verbose_name_plural = _('Appraisal KPIs')
        ordering = ['created_at']

    def __str__(self):
        return self.name
