"""
HR Core Models - employee profiles and onboarding documents.

This module implements:
- EmployeeProfile: HR record attached 1:1 to a principal
- EmploymentStatusChange: immutable history of profile status moves
- EmployeeDocument: onboarding document awaiting verification

Status changes never happen on save(); they go through
``hr_core.services.EmployeeService`` which validates the move and writes
the history entry.
"""

import logging

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from core.db.models import BaseModel, SoftDeleteModel

logger = logging.getLogger(__name__)


class EmployeeProfile(SoftDeleteModel):
    """
    Employee record linking a principal to HR data.

    The principal keeps the account-level status (can they log in); the
    profile keeps the employment status.
    """

    class EmploymentStatus(models.TextChoices):
        ONBOARDING = 'onboarding', _('Onboarding')
        ACTIVE = 'active', _('Active')
        ON_LEAVE = 'on_leave', _('On Leave')
        INACTIVE = 'inactive', _('Inactive')
        TERMINATED = 'terminated', _('Terminated')

    class EmploymentType(models.TextChoices):
        FULL_TIME = 'full-time', _('Full-time')
        PART_TIME = 'part-time', _('Part-time')
        CONTRACT = 'contract', _('Contract')
        INTERNSHIP = 'internship', _('Internship')
        TEMPORARY = 'temporary', _('Temporary')

    class Gender(models.TextChoices):
        MALE = 'male', _('Male')
        FEMALE = 'female', _('Female')
        OTHER = 'other', _('Other')
        UNDISCLOSED = 'prefer_not_to_say', _('Prefer not to say')

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='employee_profile'
    )

    # Employment Details
    employee_id = models.CharField(
        max_length=50,
        unique=True,
        help_text=_('Internal employee ID')
    )
    status = models.CharField(
        max_length=20,
        choices=EmploymentStatus.choices,
        default=EmploymentStatus.ONBOARDING,
        db_index=True,
    )
    employment_type = models.CharField(
        max_length=20,
        choices=EmploymentType.choices,
        default=EmploymentType.FULL_TIME
    )
    designation = models.CharField(max_length=200)
    joining_date = models.DateField()
    is_probation = models.BooleanField(default=True)
    probation_end_date = models.DateField(null=True, blank=True)
    last_working_day = models.DateField(null=True, blank=True)

    # Personal Details
    date_of_birth = models.DateField(null=True, blank=True)
    gender = models.CharField(max_length=20, choices=Gender.choices, blank=True)
    phone = models.CharField(max_length=20, blank=True)
    address = models.JSONField(default=dict, blank=True)
    emergency_contact = models.JSONField(default=dict, blank=True)
    skills = models.JSONField(default=list, blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_employee_profiles'
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='updated_employee_profiles'
    )

    class Meta:
        verbose_name = _('Employee Profile')
        verbose_name_plural = _('Employee Profiles')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'is_deleted'], name='hr_profile_status_idx'),
        ]

    def __str__(self):
        return f"{self.employee_id} - {self.user.full_name or self.user.email}"

    @property
    def full_name(self) -> str:
        return self.user.full_name

    @property
    def department(self) -> str:
        return self.user.department

    @property
    def tenure_years(self) -> float:
        """Years since joining, as a fraction."""
        if not self.joining_date:
            return 0.0
        delta = timezone.now().date() - self.joining_date
        return round(delta.days / 365.25, 2)


class EmploymentStatusChange(BaseModel):
    """
    One entry of a profile's status history.

    Entries are append-only: saving an existing row or deleting one raises.
    ``changed_by`` is empty for system-driven moves such as auto-activation.
    """

    profile = models.ForeignKey(
        EmployeeProfile,
        on_delete=models.CASCADE,
        related_name='status_history'
    )
    from_status = models.CharField(max_length=20, choices=EmployeeProfile.EmploymentStatus.choices)
    to_status = models.CharField(max_length=20, choices=EmployeeProfile.EmploymentStatus.choices)
    effective_date = models.DateField(default=timezone.localdate)
    reason = models.TextField(blank=True)
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+'
    )

    class Meta:
        verbose_name = _('Employment Status Change')
        verbose_name_plural = _('Employment Status Changes')
        ordering = ['created_at']

    def __str__(self):
        return f"{self.profile_id}: {self.from_status} -> {self.to_status}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError(_('Status history entries cannot be modified.'))
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError(_('Status history entries cannot be deleted.'))


class EmployeeDocument(BaseModel):
    """Onboarding document stored in the blob store and verified by HR."""

    class DocumentType(models.TextChoices):
        ID_PROOF = 'id_proof', _('ID Proof')
        ADDRESS_PROOF = 'address_proof', _('Address Proof')
        QUALIFICATION = 'qualification', _('Qualification')
        EXPERIENCE = 'experience', _('Experience')
        OTHER = 'other', _('Other')

    class VerificationStatus(models.TextChoices):
        PENDING = 'pending', _('Pending')
        VERIFIED = 'verified', _('Verified')
        REJECTED = 'rejected', _('Rejected')

    profile = models.ForeignKey(
        EmployeeProfile,
        on_delete=models.CASCADE,
        related_name='documents'
    )
    document_type = models.CharField(
        max_length=20,
        choices=DocumentType.choices,
        default=DocumentType.OTHER
    )
    file_id = models.CharField(max_length=64)
    filename = models.CharField(max_length=255)
    description = models.CharField(max_length=255, blank=True)
    status = models.CharField(
        max_length=20,
        choices=VerificationStatus.choices,
        default=VerificationStatus.PENDING,
        db_index=True,
    )
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='uploaded_employee_documents'
    )
    verified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='verified_employee_documents'
    )
    verified_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.TextField(blank=True)

    class Meta:
        verbose_name = _('Employee Document')
        verbose_name_plural = _('Employee Documents')
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.filename} ({self.get_status_display()})"
