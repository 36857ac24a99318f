"""
Accounts Services - identity resolution, registration and login.

- IdentityResolver: principal id -> Identity (role, permissions, status)
- AuthService: register / login on top of the credential service
- seed_roles_and_permissions: idempotent catalog and default role seeding
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from django.contrib.auth import authenticate
from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from core.access import Identity, ensure_can_perform, EMPLOYEE_RESOURCE
from core.exceptions import AccountInactive, Conflict, InvalidCredential, NotFound, ValidationError

from .authentication import CredentialService
from .models import Permission, PermissionCodename, Role, RoleName, ROLE_PERMISSIONS, User

logger = logging.getLogger(__name__)


# =============================================================================
# IDENTITY RESOLUTION
# =============================================================================

class IdentityResolver:
    """
    Resolves a principal identifier to its role, permissions and status.

    Suspended and terminated principals are rejected before anything else
    happens for the request. Recording ``last_seen`` is best effort.
    """

    def resolve(self, principal_id) -> Identity:
        """
        Raises:
            NotFound: If the principal does not exist or was deleted.
            AccountInactive: If the principal is suspended or terminated.
        """
        user = (
            User.objects.select_related('role')
            .filter(pk=principal_id)
            .first()
        )
        if user is None:
            raise NotFound('User', principal_id)

        if user.is_inactive_principal:
            logger.info("Rejected inactive principal %s (%s)", user.pk, user.status)
            raise AccountInactive(status=user.status)

        identity = self.identity_for(user)
        self._record_last_seen(user.pk)
        return identity

    @staticmethod
    def identity_for(user: User) -> Identity:
        return Identity(
            id=user.pk,
            role=user.role.name,
            status=user.status,
            permissions=user.role.permission_codenames(),
            department=user.department,
            manager_id=user.manager_id,
        )

    @staticmethod
    def _record_last_seen(principal_id) -> None:
        try:
            with transaction.atomic():
                User.objects.filter(pk=principal_id).update(last_seen=timezone.now())
        except DatabaseError as exc:
            logger.warning("Could not record last_seen for user %s: %s", principal_id, exc)


# =============================================================================
# AUTHENTICATION
# =============================================================================

@dataclass
class AuthResult:
    """Token plus the principal it was issued for."""
    token: str
    user: User
    identity: Identity


class AuthService:
    """Registration and login."""

    def __init__(self, credentials: Optional[CredentialService] = None):
        self.credentials = credentials or CredentialService()

    @transaction.atomic
    def register(self, data: Dict[str, Any], actor: Optional[Identity] = None) -> AuthResult:
        """
        Create a principal and issue a token for it.

        Only an admin may register someone with a role other than the
        default ``employee`` role.
        """
        role_name = data.pop('role', None) or RoleName.EMPLOYEE
        if role_name not in RoleName.values:
            raise ValidationError(f"Unknown role '{role_name}'.", field='role')
        if role_name != RoleName.EMPLOYEE:
            if actor is None:
                raise ValidationError("Only an administrator can assign this role.", field='role')
            ensure_can_perform(actor, 'change_role', EMPLOYEE_RESOURCE)

        email = data.pop('email').lower()
        if User.all_objects.filter(email__iexact=email).exists():
            raise Conflict("A user with this email already exists.", extra_data={'field': 'email'})

        password = data.pop('password')
        try:
            user = User.objects.create_user(
                username=email,
                email=email,
                password=password,
                role=Role.default_for(role_name),
                **data,
            )
        except IntegrityError:
            raise Conflict("A user with this email already exists.", extra_data={'field': 'email'})

        logger.info("Registered user %s with role %s", user.pk, role_name)
        identity = IdentityResolver.identity_for(user)
        return AuthResult(
            token=self.credentials.issue(user.pk, role_name),
            user=user,
            identity=identity,
        )

    def login(self, email: str, password: str, request=None) -> AuthResult:
        """
        Raises:
            InvalidCredential: On an unknown email or wrong password.
            AccountInactive: If the account is suspended or terminated.
        """
        user = authenticate(request, username=email.lower(), password=password)
        if user is None:
            logger.info("Failed login for %s", email)
            raise InvalidCredential("Invalid credentials.", code='INVALID_CREDENTIALS')

        identity = IdentityResolver().resolve(user.pk)
        return AuthResult(
            token=self.credentials.issue(user.pk, identity.role),
            user=user,
            identity=identity,
        )


# =============================================================================
# SEEDING
# =============================================================================

def seed_roles_and_permissions() -> Dict[str, int]:
    """
    Create the permission catalog and the four default roles.

    Safe to run repeatedly; existing rows are kept and role permissions are
    reset to the default mapping.
    """
    created_permissions = 0
    with transaction.atomic():
        permissions = {}
        for codename, label in PermissionCodename.choices:
            permission, created = Permission.objects.get_or_create(
                codename=codename,
                defaults={'description': str(label)},
            )
            permissions[codename] = permission
            created_permissions += int(created)

        for role_name, codenames in ROLE_PERMISSIONS.items():
            role = Role.default_for(role_name)
            if not role.description:
                role.description = str(RoleName(role_name).label)
                role.save(update_fields=['description'])
            role.permissions.set([permissions[c] for c in codenames])

    logger.info("Seeded %d new permissions and %d roles", created_permissions, len(ROLE_PERMISSIONS))
    return {'permissions': created_permissions, 'roles': len(ROLE_PERMISSIONS)}
