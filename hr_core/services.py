"""
HR Core Services - Business Logic Layer

This module provides the employee lifecycle operations:

- EmployeeService: profile CRUD, status transitions, team lookups
- Onboarding documents: upload, listing, download and verification, including the
  automatic activation of an onboarding profile once every document of
  the profile is verified

Every operation takes the caller's resolved ``Identity`` and checks it
against the access rule table before touching anything.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from core.access import (
    EMPLOYEE_RESOURCE, MANAGER, Identity, ResourceContext, ensure_can_perform,
)
from core.exceptions import InvalidTransition, NotFound, ValidationError
from core.storage import BlobObject
from core.validators import validate_file_upload

from .models import EmployeeDocument, EmployeeProfile, EmploymentStatusChange

logger = logging.getLogger(__name__)

User = get_user_model()

Status = EmployeeProfile.EmploymentStatus

# Allowed employment status moves. Terminated is terminal.
ALLOWED_TRANSITIONS = {
    Status.ONBOARDING: (Status.ACTIVE, Status.TERMINATED),
    Status.ACTIVE: (Status.ON_LEAVE, Status.INACTIVE, Status.TERMINATED),
    Status.ON_LEAVE: (Status.ACTIVE, Status.INACTIVE, Status.TERMINATED),
    Status.INACTIVE: (Status.ACTIVE, Status.TERMINATED),
    Status.TERMINATED: (),
}


def allowed_transitions(current: str) -> tuple:
    return ALLOWED_TRANSITIONS.get(current, ())


def employee_context(profile: EmployeeProfile) -> ResourceContext:
    """Access snapshot of a profile, read from its committed principal."""
    return ResourceContext(
        resource_type=EMPLOYEE_RESOURCE,
        subject_id=profile.user_id,
        manager_id=profile.user.manager_id,
        department=profile.user.department,
    )


class EmployeeService:
    """
    Service for employee lifecycle management.

    Handles:
    - Profile creation, update and soft deletion
    - Employment status transitions with history
    - Onboarding document upload and verification
    - Team (direct reports) listing
    """

    def __init__(self, blob_store=None):
        self.blob_store = blob_store

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    @staticmethod
    def _load(profile_id, for_update: bool = False) -> EmployeeProfile:
        queryset = EmployeeProfile.objects.select_related('user')
        if for_update:
            queryset = queryset.select_for_update()
        profile = queryset.filter(pk=profile_id).first()
        if profile is None:
            raise NotFound('Employee', profile_id)
        return profile

    def visible_profiles(self, identity: Identity) -> QuerySet:
        """
        Profiles the caller may list.

        Admin and HR see everyone, managers see their direct reports.
        """
        ensure_can_perform(identity, 'list', EMPLOYEE_RESOURCE)
        queryset = EmployeeProfile.objects.select_related('user', 'user__role')
        if identity.role == MANAGER:
            queryset = queryset.filter(user__manager_id=identity.id)
        return queryset

    def get_profile(self, identity: Identity, profile_id) -> EmployeeProfile:
        profile = self._load(profile_id)
        ensure_can_perform(identity, 'view', EMPLOYEE_RESOURCE, employee_context(profile))
        return profile

    def get_own_profile(self, identity: Identity) -> EmployeeProfile:
        profile = EmployeeProfile.objects.select_related('user').filter(user_id=identity.id).first()
        if profile is None:
            raise NotFound('Employee profile', message="No employee record found for current user.")
        return profile

    def team(self, identity: Identity) -> QuerySet:
        """Direct reports of the caller."""
        ensure_can_perform(identity, 'view_team', EMPLOYEE_RESOURCE)
        return User.objects.direct_reports(identity.id).select_related('role')

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    @transaction.atomic
    def create_profile(self, identity: Identity, data: Dict[str, Any]) -> EmployeeProfile:
        """
        Create a profile in the onboarding state.

        The principal is moved to ``onboarding`` as well unless it is
        already suspended or terminated.
        """
        ensure_can_perform(identity, 'create', EMPLOYEE_RESOURCE)

        user = data.pop('user')
        if EmployeeProfile.all_objects.filter(user=user).exists():
            raise ValidationError("This user already has an employee profile.", field='user')

        profile = EmployeeProfile.objects.create(
            user=user,
            status=Status.ONBOARDING,
            created_by_id=identity.id,
            updated_by_id=identity.id,
            **data
        )
        User.objects.filter(pk=user.pk, status=User.Status.ACTIVE).update(
            status=User.Status.ONBOARDING
        )

        logger.info("Employee profile %s created for user %s by %s", profile.employee_id, user.pk, identity.id)
        return profile

    @transaction.atomic
    def update_profile(self, identity: Identity, profile_id, data: Dict[str, Any]) -> EmployeeProfile:
        profile = self._load(profile_id, for_update=True)
        ensure_can_perform(identity, 'update', EMPLOYEE_RESOURCE, employee_context(profile))

        if 'status' in data:
            raise ValidationError("Use the status endpoint to change employment status.", field='status')

        for name, value in data.items():
            setattr(profile, name, value)
        profile.updated_by_id = identity.id
        profile.save()
        logger.info("Employee profile %s updated by %s", profile.pk, identity.id)
        return profile

    @transaction.atomic
    def delete_profile(self, identity: Identity, profile_id) -> None:
        profile = self._load(profile_id, for_update=True)
        ensure_can_perform(identity, 'delete', EMPLOYEE_RESOURCE, employee_context(profile))
        profile.delete(user_id=identity.id)
        logger.info("Employee profile %s deleted by %s", profile.pk, identity.id)

    # -------------------------------------------------------------------------
    # Status transitions
    # -------------------------------------------------------------------------

    @transaction.atomic
    def change_status(
        self,
        identity: Identity,
        profile_id,
        new_status: str,
        reason: str = '',
        effective_date: Optional[date] = None,
    ) -> EmployeeProfile:
        """
        Move a profile to ``new_status``.

        Raises:
            InvalidTransition: If the move is not in ALLOWED_TRANSITIONS,
                including a move to the current status.
        """
        profile = self._load(profile_id, for_update=True)
        ensure_can_perform(identity, 'change_status', EMPLOYEE_RESOURCE, employee_context(profile))
        return self._apply_transition(profile, new_status, identity.id, reason, effective_date)

    def _apply_transition(
        self,
        profile: EmployeeProfile,
        new_status: str,
        actor_id=None,
        reason: str = '',
        effective_date: Optional[date] = None,
    ) -> EmployeeProfile:
        current = profile.status
        allowed = allowed_transitions(current)
        if new_status not in allowed:
            raise InvalidTransition(
                current_state=current,
                requested_state=new_status,
                allowed_states=allowed,
            )

        effective_date = effective_date or timezone.localdate()
        update_fields = ['status', 'updated_by', 'updated_at']
        profile.status = new_status
        profile.updated_by_id = actor_id

        if new_status == Status.TERMINATED:
            profile.last_working_day = effective_date
            update_fields.append('last_working_day')
        if (
            new_status == Status.ACTIVE
            and profile.is_probation
            and profile.probation_end_date
            and profile.probation_end_date <= effective_date
        ):
            profile.is_probation = False
            update_fields.append('is_probation')

        profile.save(update_fields=update_fields)

        EmploymentStatusChange.objects.create(
            profile=profile,
            from_status=current,
            to_status=new_status,
            effective_date=effective_date,
            reason=reason or '',
            changed_by_id=actor_id,
        )
        self._sync_principal_status(profile, current, new_status)

        logger.info(
            "Employee %s status %s -> %s by %s",
            profile.pk, current, new_status, actor_id or 'system'
        )
        return profile

    @staticmethod
    def _sync_principal_status(profile: EmployeeProfile, previous: str, new_status: str) -> None:
        if new_status == Status.TERMINATED:
            User.objects.filter(pk=profile.user_id).update(status=User.Status.TERMINATED)
        elif new_status == Status.ACTIVE and previous == Status.ONBOARDING:
            User.objects.filter(pk=profile.user_id, status=User.Status.ONBOARDING).update(
                status=User.Status.ACTIVE
            )

    # -------------------------------------------------------------------------
    # Onboarding documents
    # -------------------------------------------------------------------------

    @transaction.atomic
    def upload_document(
        self,
        identity: Identity,
        profile_id,
        file,
        document_type: str = EmployeeDocument.DocumentType.OTHER,
        description: str = '',
    ) -> EmployeeDocument:
        profile = self._load(profile_id)
        ensure_can_perform(identity, 'upload_document', EMPLOYEE_RESOURCE, employee_context(profile))
        validate_file_upload(file, field='document')

        file_id = self.blob_store.put(file, {
            'filename': file.name,
            'content_type': getattr(file, 'content_type', ''),
            'employee_profile': str(profile.pk),
            'uploaded_by': identity.id,
        })
        document = EmployeeDocument.objects.create(
            profile=profile,
            document_type=document_type,
            file_id=file_id,
            filename=file.name,
            description=description,
            uploaded_by_id=identity.id,
        )
        logger.info("Employee document %s uploaded for profile %s", document.pk, profile.pk)
        return document

    def list_documents(self, identity: Identity, profile_id) -> List[EmployeeDocument]:
        profile = self._load(profile_id)
        ensure_can_perform(identity, 'list_documents', EMPLOYEE_RESOURCE, employee_context(profile))
        return list(profile.documents.select_related('verified_by').all())

    def open_document(self, identity: Identity, document_id) -> Tuple[EmployeeDocument, BlobObject]:
        """
        Return an onboarding document and an open stream of its bytes.

        Readable by whoever may list the profile's documents. The caller
        owns the stream and must close it.
        """
        document = (
            EmployeeDocument.objects.select_related('profile', 'profile__user')
            .filter(pk=document_id, profile__is_deleted=False)
            .first()
        )
        if document is None:
            raise NotFound('Employee document', document_id)
        ensure_can_perform(identity, 'list_documents', EMPLOYEE_RESOURCE, employee_context(document.profile))

        blob = self.blob_store.get(document.file_id)
        logger.info("Employee document %s downloaded by %s", document.pk, identity.id)
        return document, blob

    @transaction.atomic
    def verify_document(
        self,
        identity: Identity,
        document_id,
        status: str,
        rejection_reason: str = '',
    ) -> EmployeeDocument:
        """
        Verify or reject a pending onboarding document.

        When the last unverified document of an onboarding profile is
        verified, the profile is activated with no actor.
        """
        ensure_can_perform(identity, 'verify_document', EMPLOYEE_RESOURCE)

        Verification = EmployeeDocument.VerificationStatus
        if status not in (Verification.VERIFIED, Verification.REJECTED):
            raise ValidationError('Status must be either "verified" or "rejected".', field='status')
        if status == Verification.REJECTED and not (rejection_reason or '').strip():
            raise ValidationError("Please provide a reason for rejection.", field='rejection_reason')

        document = (
            EmployeeDocument.objects.select_for_update()
            .filter(pk=document_id, profile__is_deleted=False)
            .first()
        )
        if document is None:
            raise NotFound('Employee document', document_id)
        if document.status != Verification.PENDING:
            raise InvalidTransition(current_state=document.status, requested_state=status)

        document.status = status
        document.verified_by_id = identity.id
        document.verified_at = timezone.now()
        document.rejection_reason = rejection_reason if status == Verification.REJECTED else ''
        document.save(update_fields=['status', 'verified_by', 'verified_at', 'rejection_reason', 'updated_at'])
        logger.info("Employee document %s %s by %s", document.pk, status, identity.id)

        if status == Verification.VERIFIED:
            self._maybe_activate(document.profile_id)
        return document

    def _maybe_activate(self, profile_id) -> Optional[EmployeeProfile]:
        profile = self._load(profile_id, for_update=True)
        if profile.status != Status.ONBOARDING:
            return None
        if profile.documents.exclude(status=EmployeeDocument.VerificationStatus.VERIFIED).exists():
            return None
        return self._apply_transition(
            profile,
            Status.ACTIVE,
            actor_id=None,
            reason='All onboarding documents verified.',
        )
