"""
Disciplinary Services - warning lifecycle.

- WarningService: issue, update, resolve, escalate, withdraw, delete
- Active-warning queries that exclude expired warnings at read time

Only ``active`` warnings move. Resolve and escalate are open to HR and to
the subject's direct manager; withdraw is HR only and needs a reason.
"""

import logging
from typing import Any, Dict

from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from core.access import (
    MANAGER, WARNING_RESOURCE, Identity, ResourceContext, ensure_can_perform,
)
from core.exceptions import InvalidTransition, NotFound, ValidationError
from hr_core.models import EmployeeProfile

from .models import DisciplinaryWarning

logger = logging.getLogger(__name__)

# Active warning count at which the employee's manager is notified
MANAGER_NOTIFICATION_THRESHOLD = 3

UPDATABLE_FIELDS = ('type', 'title', 'description', 'severity', 'valid_until')


def warning_context(profile: EmployeeProfile) -> ResourceContext:
    """Access snapshot for warnings about ``profile``."""
    return ResourceContext(
        resource_type=WARNING_RESOURCE,
        subject_id=profile.user_id,
        manager_id=profile.user.manager_id,
        department=profile.user.department,
    )


class WarningService:
    """
    Service for disciplinary warnings.

    Handles:
    - Issuing warnings and notifying the manager at the threshold
    - Resolve / escalate / withdraw transitions
    - Listing scoped to the caller
    """

    @staticmethod
    def _load(warning_id, for_update: bool = False) -> DisciplinaryWarning:
        queryset = DisciplinaryWarning.objects.select_related('employee', 'employee__user')
        if for_update:
            queryset = queryset.select_for_update()
        warning = queryset.filter(pk=warning_id).first()
        if warning is None:
            raise NotFound('Warning', warning_id)
        return warning

    @staticmethod
    def _load_profile(profile_id) -> EmployeeProfile:
        profile = EmployeeProfile.objects.select_related('user').filter(pk=profile_id).first()
        if profile is None:
            raise NotFound('Employee', profile_id)
        return profile

    @staticmethod
    def _validate_window(date_issued, valid_until) -> None:
        if valid_until is None:
            raise ValidationError("Valid until date is required.", field='valid_until')
        if valid_until <= date_issued:
            raise ValidationError("Valid until date must be after the issue date.", field='valid_until')

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def visible_warnings(self, identity: Identity) -> QuerySet:
        """Warnings the caller may list: all for HR, direct reports for managers."""
        ensure_can_perform(identity, 'list', WARNING_RESOURCE)
        queryset = DisciplinaryWarning.objects.select_related('employee', 'employee__user', 'created_by')
        if identity.role == MANAGER:
            queryset = queryset.filter(employee__user__manager_id=identity.id)
        return queryset

    def active_warnings(self, identity: Identity) -> QuerySet:
        """Unexpired active warnings, most severe first."""
        return self.visible_warnings(identity).currently_active().by_severity()

    def get_warning(self, identity: Identity, warning_id) -> DisciplinaryWarning:
        warning = self._load(warning_id)
        ensure_can_perform(identity, 'view', WARNING_RESOURCE, warning_context(warning.employee))
        return warning

    def for_employee(self, identity: Identity, profile_id, status: str = None) -> QuerySet:
        profile = self._load_profile(profile_id)
        ensure_can_perform(identity, 'view', WARNING_RESOURCE, warning_context(profile))
        queryset = DisciplinaryWarning.objects.filter(employee=profile).select_related('created_by')
        if status:
            queryset = queryset.filter(status=status)
        return queryset.order_by('-date_issued')

    @staticmethod
    def active_count(profile_id) -> int:
        return DisciplinaryWarning.objects.all().currently_active().filter(employee_id=profile_id).count()

    # -------------------------------------------------------------------------
    # Creation and edits
    # -------------------------------------------------------------------------

    @transaction.atomic
    def issue(self, identity: Identity, profile_id, data: Dict[str, Any]) -> DisciplinaryWarning:
        """
        Issue a warning to an employee.

        Raises:
            ValidationError: If ``valid_until`` is not after ``date_issued``.
        """
        profile = self._load_profile(profile_id)
        ensure_can_perform(identity, 'create', WARNING_RESOURCE, warning_context(profile))

        data = dict(data)
        data.pop('employee', None)
        date_issued = data.pop('date_issued', None) or timezone.now()
        self._validate_window(date_issued, data.get('valid_until'))

        warning = DisciplinaryWarning.objects.create(
            employee=profile,
            date_issued=date_issued,
            status=DisciplinaryWarning.Status.ACTIVE,
            created_by_id=identity.id,
            updated_by_id=identity.id,
            **data
        )
        logger.info(
            "Warning %s (%s) issued to employee %s by %s",
            warning.pk, warning.severity, profile.pk, identity.id
        )

        active = self.active_count(profile.pk)
        if active >= MANAGER_NOTIFICATION_THRESHOLD:
            self._notify_manager(profile, active)
        return warning

    @staticmethod
    def _notify_manager(profile: EmployeeProfile, active: int) -> None:
        logger.warning(
            "Employee %s has %d active warnings; notifying manager %s",
            profile.user.email, active, profile.user.manager_id or '(none)'
        )

    @transaction.atomic
    def update(self, identity: Identity, warning_id, data: Dict[str, Any]) -> DisciplinaryWarning:
        warning = self._load(warning_id, for_update=True)
        ensure_can_perform(identity, 'update', WARNING_RESOURCE, warning_context(warning.employee))

        unknown = set(data) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(
                f"These fields cannot be updated: {', '.join(sorted(unknown))}.",
                field=sorted(unknown)[0],
            )
        if 'valid_until' in data:
            self._validate_window(warning.date_issued, data['valid_until'])

        for name, value in data.items():
            setattr(warning, name, value)
        warning.updated_by_id = identity.id
        warning.save()
        logger.info("Warning %s updated by %s", warning.pk, identity.id)
        return warning

    @transaction.atomic
    def delete(self, identity: Identity, warning_id) -> None:
        warning = self._load(warning_id, for_update=True)
        ensure_can_perform(identity, 'delete', WARNING_RESOURCE, warning_context(warning.employee))
        warning.delete(user_id=identity.id)
        logger.info("Warning %s deleted by %s", warning.pk, identity.id)

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    @staticmethod
    def _require_active(warning: DisciplinaryWarning, requested: str) -> None:
        if warning.status != DisciplinaryWarning.Status.ACTIVE:
            raise InvalidTransition(
                f"Only active warnings can be {requested}.",
                current_state=warning.status,
                requested_state=requested,
            )

    @transaction.atomic
    def resolve(self, identity: Identity, warning_id, notes: str = '') -> DisciplinaryWarning:
        warning = self._load(warning_id, for_update=True)
        ensure_can_perform(identity, 'resolve', WARNING_RESOURCE, warning_context(warning.employee))
        self._require_active(warning, DisciplinaryWarning.Status.RESOLVED)

        warning.status = DisciplinaryWarning.Status.RESOLVED
        warning.resolved_at = timezone.now()
        warning.resolution_notes = notes or ''
        warning.updated_by_id = identity.id
        warning.save(update_fields=['status', 'resolved_at', 'resolution_notes', 'updated_by', 'updated_at'])
        logger.info("Warning %s resolved by %s", warning.pk, identity.id)
        return warning

    @transaction.atomic
    def escalate(self, identity: Identity, warning_id, notes: str = '') -> DisciplinaryWarning:
        """
        Flag a warning as escalated. The status stays ``active``.

        Raises:
            InvalidTransition: If the warning is not active or was already
                escalated. The stored flag and date are left untouched.
        """
        warning = self._load(warning_id, for_update=True)
        ensure_can_perform(identity, 'escalate', WARNING_RESOURCE, warning_context(warning.employee))
        self._require_active(warning, DisciplinaryWarning.Status.ESCALATED)
        if warning.escalated:
            raise InvalidTransition(
                "Warning has already been escalated.",
                current_state=warning.status,
                requested_state=DisciplinaryWarning.Status.ESCALATED,
            )

        warning.escalated = True
        warning.escalation_date = timezone.now()
        warning.escalation_notes = notes or ''
        warning.updated_by_id = identity.id
        warning.save(update_fields=['escalated', 'escalation_date', 'escalation_notes', 'updated_by', 'updated_at'])
        logger.info("Warning %s escalated by %s", warning.pk, identity.id)
        return warning

    @transaction.atomic
    def withdraw(self, identity: Identity, warning_id, reason: str) -> DisciplinaryWarning:
        warning = self._load(warning_id, for_update=True)
        ensure_can_perform(identity, 'withdraw', WARNING_RESOURCE, warning_context(warning.employee))
        if not (reason or '').strip():
            raise ValidationError("A reason is required to withdraw a warning.", field='reason')
        self._require_active(warning, DisciplinaryWarning.Status.WITHDRAWN)

        warning.status = DisciplinaryWarning.Status.WITHDRAWN
        warning.resolved_at = timezone.now()
        warning.resolution_notes = f"Warning withdrawn. Reason: {reason.strip()}"
        warning.updated_by_id = identity.id
        warning.save(update_fields=['status', 'resolved_at', 'resolution_notes', 'updated_by', 'updated_at'])
        logger.info("Warning %s withdrawn by %s", warning.pk, identity.id)
        return warning
