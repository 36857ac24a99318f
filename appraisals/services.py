"""
Appraisals Services - appraisal workflow.

States: draft -> in_progress -> (needs_review) -> completed | cancelled

- The employee submits a self-assessment from draft or in_progress.
- The designated reviewer submits the review from in_progress or
  needs_review; completing requires a self-assessment, a review and at
  least one goal.
- HR, the employee's manager or the reviewer may cancel any appraisal
  that is not finished yet.
"""

import logging
from typing import Any, Dict, List, Optional

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Q, QuerySet
from django.utils import timezone

from core.access import (
    ADMIN, APPRAISAL_RESOURCE, HR, INACTIVE_STATUSES, MANAGER,
    Identity, ResourceContext, ensure_can_perform,
)
from core.exceptions import (
    Conflict, InvalidTransition, NotFound, PreconditionFailed, ValidationError,
)

from .models import Appraisal, AppraisalGoal, AppraisalKPI

logger = logging.getLogger(__name__)

User = get_user_model()

Status = Appraisal.Status

REVIEWER_ROLES = (ADMIN, HR, MANAGER)

SELF_ASSESSMENT_FROM = (Status.DRAFT, Status.IN_PROGRESS)
REVIEW_FROM = (Status.IN_PROGRESS, Status.NEEDS_REVIEW)
REVIEW_TARGETS = (Status.COMPLETED, Status.NEEDS_REVIEW)

UPDATABLE_FIELDS = (
    'due_date', 'cycle', 'overall_comments', 'competencies',
    'development_needs', 'career_aspirations',
)


def appraisal_context(appraisal: Appraisal) -> ResourceContext:
    """Access snapshot of an appraisal, with the employee's current manager."""
    return ResourceContext(
        resource_type=APPRAISAL_RESOURCE,
        subject_id=appraisal.employee_id,
        manager_id=appraisal.employee.manager_id,
        reviewer_id=appraisal.reviewer_id,
        department=appraisal.employee.department,
    )


def _blank(value: Optional[str]) -> bool:
    return not (value or '').strip()


class AppraisalService:
    """
    Service for the appraisal workflow.

    Handles:
    - Creation with reviewer validation and duplicate detection
    - Self-assessment and review submissions
    - Cancellation and soft deletion
    - Listing scoped to the caller
    """

    @staticmethod
    def _load(appraisal_id, for_update: bool = False) -> Appraisal:
        queryset = Appraisal.objects.select_related('employee', 'reviewer')
        if for_update:
            queryset = queryset.select_for_update()
        appraisal = queryset.filter(pk=appraisal_id).first()
        if appraisal is None:
            raise NotFound('Appraisal', appraisal_id)
        return appraisal

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def visible_appraisals(self, identity: Identity) -> QuerySet:
        """
        Appraisals the caller may list.

        Admin and HR see all; managers see their own, the ones they review
        and those of their direct reports; employees see their own and the
        ones they review.
        """
        ensure_can_perform(identity, 'list', APPRAISAL_RESOURCE)
        queryset = Appraisal.objects.select_related('employee', 'reviewer')
        if identity.role in (ADMIN, HR):
            return queryset

        scope = Q(employee_id=identity.id) | Q(reviewer_id=identity.id)
        if identity.role == MANAGER:
            scope |= Q(employee__manager_id=identity.id)
        return queryset.filter(scope)

    def my_appraisals(self, identity: Identity) -> QuerySet:
        return (
            Appraisal.objects.select_related('employee', 'reviewer')
            .filter(employee_id=identity.id)
            .order_by('-appraisal_date')
        )

    def for_user(self, identity: Identity, user_id) -> QuerySet:
        """All appraisals of one employee. HR, admin or the direct manager."""
        user = User.objects.filter(pk=user_id).first()
        if user is None:
            raise NotFound('User', user_id)
        ensure_can_perform(identity, 'list_for_user', APPRAISAL_RESOURCE, ResourceContext(
            resource_type=APPRAISAL_RESOURCE,
            subject_id=user.pk,
            manager_id=user.manager_id,
            department=user.department,
        ))
        return (
            Appraisal.objects.select_related('employee', 'reviewer')
            .filter(employee=user)
            .order_by('-appraisal_date')
        )

    def get_appraisal(self, identity: Identity, appraisal_id) -> Appraisal:
        appraisal = self._load(appraisal_id)
        ensure_can_perform(identity, 'view', APPRAISAL_RESOURCE, appraisal_context(appraisal))
        return appraisal

    # -------------------------------------------------------------------------
    # Creation and edits
    # -------------------------------------------------------------------------

    @staticmethod
    def _validate_reviewer(reviewer) -> None:
        if reviewer is None or reviewer.is_deleted:
            raise ValidationError("Reviewer not found.", field='reviewer')
        if reviewer.status != User.Status.ACTIVE:
            raise ValidationError("Reviewer must be an active user.", field='reviewer')
        if reviewer.role.name not in REVIEWER_ROLES:
            raise ValidationError("Reviewer must be an admin, HR or manager.", field='reviewer')

    @transaction.atomic
    def create(self, identity: Identity, data: Dict[str, Any]) -> Appraisal:
        """
        Create a draft appraisal.

        Raises:
            ValidationError: Inactive employee, or a reviewer that is not an
                active admin, HR or manager.
            Conflict: A non-cancelled appraisal already exists for the
                employee on the same date.
        """
        data = dict(data)
        employee = data.pop('employee')
        reviewer = data.pop('reviewer')
        goals = data.pop('goals', [])
        kpis = data.pop('kpis', [])

        ensure_can_perform(identity, 'create', APPRAISAL_RESOURCE, ResourceContext(
            resource_type=APPRAISAL_RESOURCE,
            subject_id=employee.pk,
            manager_id=employee.manager_id,
            department=employee.department,
        ))

        if employee.status in INACTIVE_STATUSES:
            raise ValidationError("Employee is not active.", field='employee')
        self._validate_reviewer(reviewer)

        appraisal_date = data.pop('appraisal_date', None) or timezone.localdate()
        due_date = data.get('due_date')
        if due_date and due_date < appraisal_date:
            raise ValidationError("Due date cannot be before the appraisal date.", field='due_date')

        duplicate = Appraisal.objects.filter(
            employee=employee,
            appraisal_date=appraisal_date,
        ).exclude(status=Status.CANCELLED)
        if duplicate.exists():
            raise Conflict("An active appraisal already exists for this employee on the selected date.")

        try:
            with transaction.atomic():
                appraisal = Appraisal.objects.create(
                    employee=employee,
                    reviewer=reviewer,
                    appraisal_date=appraisal_date,
                    status=Status.DRAFT,
                    created_by_id=identity.id,
                    updated_by_id=identity.id,
                    **data
                )
        except IntegrityError:
            raise Conflict("An active appraisal already exists for this employee on the selected date.")

        self._replace_children(appraisal, goals, kpis)
        logger.info(
            "Appraisal %s created for employee %s (reviewer %s) by %s",
            appraisal.pk, employee.pk, reviewer.pk, identity.id
        )
        return appraisal

    @staticmethod
    def _replace_children(
        appraisal: Appraisal,
        goals: Optional[List[Dict[str, Any]]],
        kpis: Optional[List[Dict[str, Any]]],
    ) -> None:
        if goals is not None:
            appraisal.goals.all().delete()
            AppraisalGoal.objects.bulk_create([
                AppraisalGoal(appraisal=appraisal, **goal) for goal in goals
            ])
        if kpis is not None:
            appraisal.kpis.all().delete()
            AppraisalKPI.objects.bulk_create([
                AppraisalKPI(appraisal=appraisal, **kpi) for kpi in kpis
            ])

    @transaction.atomic
    def update(self, identity: Identity, appraisal_id, data: Dict[str, Any]) -> Appraisal:
        """Edit descriptive fields, goals and KPIs of an unfinished appraisal."""
        appraisal = self._load(appraisal_id, for_update=True)
        ensure_can_perform(identity, 'update', APPRAISAL_RESOURCE, appraisal_context(appraisal))
        if appraisal.is_terminal:
            raise InvalidTransition(
                "Completed or cancelled appraisals cannot be edited.",
                current_state=appraisal.status,
            )

        data = dict(data)
        goals = data.pop('goals', None)
        kpis = data.pop('kpis', None)
        unknown = set(data) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(
                f"These fields cannot be updated: {', '.join(sorted(unknown))}.",
                field=sorted(unknown)[0],
            )

        for name, value in data.items():
            setattr(appraisal, name, value)
        if appraisal.due_date < appraisal.appraisal_date:
            raise ValidationError("Due date cannot be before the appraisal date.", field='due_date')
        appraisal.updated_by_id = identity.id
        appraisal.save()
        self._replace_children(appraisal, goals, kpis)

        logger.info("Appraisal %s updated by %s", appraisal.pk, identity.id)
        return appraisal

    @transaction.atomic
    def delete(self, identity: Identity, appraisal_id) -> None:
        appraisal = self._load(appraisal_id, for_update=True)
        ensure_can_perform(identity, 'delete', APPRAISAL_RESOURCE, appraisal_context(appraisal))
        appraisal.delete(user_id=identity.id)
        logger.info("Appraisal %s deleted by %s", appraisal.pk, identity.id)

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    @transaction.atomic
    def submit_self_assessment(self, identity: Identity, appraisal_id, text: str) -> Appraisal:
        appraisal = self._load(appraisal_id, for_update=True)
        ensure_can_perform(
            identity, 'submit_self_assessment', APPRAISAL_RESOURCE, appraisal_context(appraisal)
        )
        if appraisal.status not in SELF_ASSESSMENT_FROM:
            raise InvalidTransition(
                "Self-assessment can only be submitted for draft or in-progress appraisals.",
                current_state=appraisal.status,
                requested_state=Status.IN_PROGRESS,
                allowed_states=SELF_ASSESSMENT_FROM,
            )
        if _blank(text):
            raise ValidationError("Self-assessment text is required.", field='self_assessment')

        appraisal.self_assessment = text.strip()
        appraisal.self_assessment_date = timezone.now()
        appraisal.status = Status.IN_PROGRESS
        appraisal.updated_by_id = identity.id
        appraisal.save(update_fields=[
            'self_assessment', 'self_assessment_date', 'status', 'updated_by', 'updated_at'
        ])
        logger.info("Self-assessment submitted for appraisal %s", appraisal.pk)
        return appraisal

    @transaction.atomic
    def submit_review(
        self,
        identity: Identity,
        appraisal_id,
        review: str,
        rating: int,
        status: str = Status.COMPLETED,
        overall_comments: Optional[str] = None,
    ) -> Appraisal:
        """
        Record the reviewer's assessment.

        Raises:
            InvalidTransition: Appraisal not in progress or awaiting review,
                or an unknown target status.
            ValidationError: Rating outside 1-5 or blank review text.
            PreconditionFailed: Completing without a self-assessment, a
                review or any goal.
        """
        appraisal = self._load(appraisal_id, for_update=True)
        ensure_can_perform(identity, 'submit_review', APPRAISAL_RESOURCE, appraisal_context(appraisal))

        if appraisal.status not in REVIEW_FROM:
            raise InvalidTransition(
                "Appraisal must be in progress or awaiting review to submit a review.",
                current_state=appraisal.status,
                requested_state=status,
                allowed_states=REVIEW_FROM,
            )
        if status not in REVIEW_TARGETS:
            raise InvalidTransition(
                current_state=appraisal.status,
                requested_state=status,
                allowed_states=REVIEW_TARGETS,
            )
        if rating is None or not 1 <= rating <= 5:
            raise ValidationError("Rating must be between 1 and 5.", field='rating')
        if _blank(review):
            raise ValidationError("Review text is required.", field='review')

        if status == Status.COMPLETED:
            missing = []
            if _blank(appraisal.self_assessment):
                missing.append('self_assessment')
            if not appraisal.goals.exists():
                missing.append('goals')
            if missing:
                raise PreconditionFailed(
                    "Cannot complete the appraisal: missing " + ', '.join(missing) + '.',
                    missing=missing,
                )

        now = timezone.now()
        appraisal.review = review.strip()
        appraisal.rating = rating
        appraisal.review_date = now
        appraisal.status = status
        update_fields = ['review', 'rating', 'review_date', 'status', 'updated_by', 'updated_at']
        if overall_comments is not None:
            appraisal.overall_comments = overall_comments
            update_fields.append('overall_comments')
        if status == Status.COMPLETED:
            appraisal.completed_at = now
            update_fields.append('completed_at')
        appraisal.updated_by_id = identity.id
        appraisal.save(update_fields=update_fields)

        logger.info("Review submitted for appraisal %s by %s -> %s", appraisal.pk, identity.id, status)
        return appraisal

    @transaction.atomic
    def cancel(self, identity: Identity, appraisal_id, reason: str = '') -> Appraisal:
        appraisal = self._load(appraisal_id, for_update=True)
        ensure_can_perform(identity, 'cancel', APPRAISAL_RESOURCE, appraisal_context(appraisal))
        if appraisal.is_terminal:
            raise InvalidTransition(
                current_state=appraisal.status,
                requested_state=Status.CANCELLED,
            )

        appraisal.status = Status.CANCELLED
        if reason:
            appraisal.overall_comments = reason
        appraisal.updated_by_id = identity.id
        appraisal.save(update_fields=['status', 'overall_comments', 'updated_by', 'updated_at'])
        logger.info("Appraisal %s cancelled by %s", appraisal.pk, identity.id)
        return appraisal
