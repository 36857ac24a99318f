"""
Accounts Models - principals, roles and the permission catalog.

This module implements:
- Permission: immutable catalog of named capabilities
- Role: named set of permissions, one default per name
- User: the authenticated principal (role, status, manager, department)
"""

import logging

from django.contrib.auth.models import AbstractUser, UserManager
from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _

from core import access

logger = logging.getLogger(__name__)


class PermissionCodename(models.TextChoices):
    MANAGE_ALL = 'manage_all', _('Manage everything')
    MANAGE_EMPLOYEES = 'manage_employees', _('Manage employees')
    VIEW_EMPLOYEES = 'view_employees', _('View employees')
    MANAGE_PROJECTS = 'manage_projects', _('Manage projects')
    VIEW_PROJECTS = 'view_projects', _('View projects')
    VERIFY_DOCUMENTS = 'verify_documents', _('Verify documents')
    UPLOAD_DOCUMENTS = 'upload_documents', _('Upload documents')
    VIEW_DOCUMENTS = 'view_documents', _('View documents')
    ISSUE_WARNINGS = 'issue_warnings', _('Issue warnings')
    TERMINATE_EMPLOYEES = 'terminate_employees', _('Terminate employees')
    APPRAISE_EMPLOYEES = 'appraise_employees', _('Appraise employees')
    VIEW_APPRAISALS = 'view_appraisals', _('View appraisals')
    VIEW_REPORTS = 'view_reports', _('View reports')
    EXPORT_REPORTS = 'export_reports', _('Export reports')


class RoleName(models.TextChoices):
    ADMIN = access.ADMIN, _('Administrator')
    MANAGER = access.MANAGER, _('Manager')
    HR = access.HR, _('Human Resources')
    EMPLOYEE = access.EMPLOYEE, _('Employee')


class Permission(models.Model):
    """
    Atomic named capability.

    The catalog is seeded by ``manage.py init_roles`` and never edited
    afterwards.
    """

    codename = models.CharField(
        max_length=50,
        unique=True,
        choices=PermissionCodename.choices,
    )
    description = models.CharField(max_length=255, blank=True)

    class Meta:
        ordering = ['codename']
        verbose_name = _('Permission')
        verbose_name_plural = _('Permissions')

    def __str__(self):
        return self.codename


class Role(models.Model):
    """
    Named set of permissions.

    Several roles may share a name, but only one of them can be flagged as
    the default; new principals are attached to the default role.
    """

    name = models.CharField(max_length=20, choices=RoleName.choices, db_index=True)
    description = models.CharField(max_length=255, blank=True)
    is_default = models.BooleanField(default=False)
    permissions = models.ManyToManyField(Permission, related_name='roles', blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['name']
        verbose_name = _('Role')
        verbose_name_plural = _('Roles')
        constraints = [
            models.UniqueConstraint(
                fields=['name'],
                condition=Q(is_default=True),
                name='accounts_role_one_default_per_name',
            ),
        ]

    def __str__(self):
        return self.name

    @classmethod
    def default_for(cls, name: str) -> 'Role':
        """Return the default role for ``name``, creating it on first use."""
        role = cls.objects.filter(name=name, is_default=True).first()
        if role is None:
            role, _created = cls.objects.get_or_create(name=name, is_default=True)
        return role

    def permission_codenames(self):
        return tuple(self.permissions.order_by('codename').values_list('codename', flat=True))


# Default role to permission mapping
ROLE_PERMISSIONS = {
    RoleName.ADMIN: tuple(PermissionCodename.values),
    RoleName.MANAGER: (
        PermissionCodename.VIEW_EMPLOYEES,
        PermissionCodename.MANAGE_PROJECTS,
        PermissionCodename.VIEW_PROJECTS,
        PermissionCodename.VIEW_DOCUMENTS,
        PermissionCodename.ISSUE_WARNINGS,
        PermissionCodename.APPRAISE_EMPLOYEES,
        PermissionCodename.VIEW_APPRAISALS,
        PermissionCodename.VIEW_REPORTS,
    ),
    RoleName.HR: (
        PermissionCodename.VIEW_EMPLOYEES,
        PermissionCodename.VERIFY_DOCUMENTS,
        PermissionCodename.VIEW_DOCUMENTS,
        PermissionCodename.ISSUE_WARNINGS,
        PermissionCodename.VIEW_APPRAISALS,
        PermissionCodename.VIEW_REPORTS,
    ),
    RoleName.EMPLOYEE: (
        PermissionCodename.VIEW_PROJECTS,
        PermissionCodename.UPLOAD_DOCUMENTS,
        PermissionCodename.VIEW_DOCUMENTS,
        PermissionCodename.VIEW_APPRAISALS,
    ),
}


class PrincipalManager(UserManager):
    """
    Default user manager: hides soft-deleted principals and attaches the
    default role when none is given.
    """

    def get_queryset(self):
        return super().get_queryset().filter(is_deleted=False)

    def _create_user(self, username, email, password, **extra_fields):
        if extra_fields.get('role') is None and extra_fields.get('role_id') is None:
            role_name = RoleName.ADMIN if extra_fields.get('is_superuser') else RoleName.EMPLOYEE
            extra_fields['role'] = Role.default_for(role_name)
        return super()._create_user(username, email, password, **extra_fields)

    def direct_reports(self, manager_id):
        """Principals whose manager is ``manager_id``."""
        return self.get_queryset().filter(manager_id=manager_id)


class User(AbstractUser):
    """
    The authenticated principal.

    Exactly one role; ``status`` gates every action, suspended and
    terminated principals can do nothing.
    """

    class Status(models.TextChoices):
        ACTIVE = 'active', _('Active')
        ONBOARDING = 'onboarding', _('Onboarding')
        SUSPENDED = 'suspended', _('Suspended')
        TERMINATED = 'terminated', _('Terminated')

    class Department(models.TextChoices):
        ENGINEERING = 'Engineering', _('Engineering')
        HR = 'HR', _('HR')
        MANAGEMENT = 'Management', _('Management')
        OPERATIONS = 'Operations', _('Operations')
        FINANCE = 'Finance', _('Finance')
        OTHER = 'Other', _('Other')

    email = models.EmailField(
        unique=True,
        db_index=True,
        help_text=_('Email address (used for login)')
    )
    role = models.ForeignKey(
        Role,
        on_delete=models.PROTECT,
        related_name='users',
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.ACTIVE,
        db_index=True,
    )
    manager = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='direct_reports',
    )
    department = models.CharField(
        max_length=20,
        choices=Department.choices,
        default=Department.OTHER,
        db_index=True,
    )
    position = models.CharField(max_length=100, blank=True)
    last_seen = models.DateTimeField(null=True, blank=True)

    is_deleted = models.BooleanField(default=False, db_index=True)
    deleted_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = PrincipalManager()
    all_objects = models.Manager()

    # Use email as username
    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['username']

    class Meta:
        verbose_name = _('User')
        verbose_name_plural = _('Users')
        indexes = [
            models.Index(fields=['department', 'status'], name='accounts_user_dept_status_idx'),
        ]

    def __str__(self):
        return self.email

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def role_name(self) -> str:
        return self.role.name

    @property
    def is_inactive_principal(self) -> bool:
        return self.status in (self.Status.SUSPENDED, self.Status.TERMINATED)
