"""
Tests for accounts: identity resolution, tokens, registration, login and seeding.

This module tests:
- IdentityResolver (inactive and deleted principals, last_seen)
- CredentialService (issue, verify, expiry)
- AuthService registration rules
- /auth/register, /auth/login and /auth/me endpoints
- Role and permission seeding
"""

from datetime import timedelta

import pytest
from django.core.management import CommandError, call_command
from django.urls import reverse
from django.utils import timezone
from rest_framework import status

from accounts.authentication import CredentialService, PrincipalAccessToken
from accounts.models import Role, RoleName, User
from accounts.services import AuthService, IdentityResolver, seed_roles_and_permissions
from core.exceptions import (
    AccountInactive, Conflict, ExpiredCredential, InsufficientRole, InvalidCredential,
    NotFound, ValidationError,
)

STRONG_PASSWORD = 'Corr3ct-Horse-Battery'


def registration_payload(**overrides):
    payload = {
        'email': 'new.hire@example.com',
        'password': STRONG_PASSWORD,
        'first_name': 'Robin',
        'last_name': 'Lane',
        'department': 'Engineering',
    }
    payload.update(overrides)
    return payload


# =============================================================================
# IDENTITY RESOLUTION
# =============================================================================

@pytest.mark.integration
class TestIdentityResolver:

    def test_resolves_role_and_status(self, manager_factory):
        manager = manager_factory(department='Finance')
        identity = IdentityResolver().resolve(manager.pk)

        assert identity.id == manager.pk
        assert identity.role == 'manager'
        assert identity.status == 'active'
        assert identity.department == 'Finance'

    def test_permissions_follow_role(self, hr_factory):
        seed_roles_and_permissions()
        hr = hr_factory()
        identity = IdentityResolver().resolve(hr.pk)

        assert identity.has_permission('verify_documents')
        assert not identity.has_permission('manage_all')

    @pytest.mark.parametrize('account_status', ['suspended', 'terminated'])
    def test_inactive_principal_rejected(self, user_factory, account_status):
        user = user_factory(status=account_status)
        with pytest.raises(AccountInactive) as excinfo:
            IdentityResolver().resolve(user.pk)
        assert excinfo.value.extra_data['status'] == account_status

    def test_onboarding_principal_resolves(self, user_factory):
        user = user_factory(status='onboarding')
        assert IdentityResolver().resolve(user.pk).status == 'onboarding'

    def test_deleted_principal_not_found(self, user_factory):
        user = user_factory()
        User.all_objects.filter(pk=user.pk).update(is_deleted=True)
        with pytest.raises(NotFound):
            IdentityResolver().resolve(user.pk)

    def test_unknown_principal_not_found(self, db):
        with pytest.raises(NotFound):
            IdentityResolver().resolve(987654)

    def test_records_last_seen(self, user_factory):
        user = user_factory()
        assert user.last_seen is None
        IdentityResolver().resolve(user.pk)
        user.refresh_from_db()
        assert user.last_seen is not None


# =============================================================================
# CREDENTIALS
# =============================================================================

@pytest.mark.unit
class TestCredentialService:

    def test_issue_and_verify_round_trip(self, db):
        service = CredentialService()
        token = service.issue(42, 'employee')
        assert service.verify(token) == 42

    def test_token_carries_role(self, db):
        token = PrincipalAccessToken(CredentialService().issue(42, 'hr'))
        assert token['role'] == 'hr'

    def test_expired_token(self, db):
        token = PrincipalAccessToken.for_principal(42, 'employee')
        token.set_exp(from_time=timezone.now() - timedelta(days=2), lifetime=timedelta(hours=1))
        with pytest.raises(ExpiredCredential) as excinfo:
            CredentialService().verify(str(token))
        assert excinfo.value.code == 'TOKEN_EXPIRED'

    def test_garbage_token(self, db):
        with pytest.raises(InvalidCredential) as excinfo:
            CredentialService().verify('not-a-token')
        assert not isinstance(excinfo.value, ExpiredCredential)


# =============================================================================
# REGISTRATION AND LOGIN SERVICE
# =============================================================================

@pytest.mark.integration
class TestAuthService:

    def test_register_defaults_to_employee(self, db):
        result = AuthService().register(registration_payload())
        assert result.user.role.name == RoleName.EMPLOYEE
        assert result.identity.role == 'employee'
        assert CredentialService().verify(result.token) == result.user.pk

    def test_register_lowercases_email(self, db):
        result = AuthService().register(registration_payload(email='Mixed.Case@Example.com'))
        assert result.user.email == 'mixed.case@example.com'

    def test_duplicate_email_conflicts(self, user_factory):
        user_factory(email='taken@example.com')
        with pytest.raises(Conflict):
            AuthService().register(registration_payload(email='taken@example.com'))

    def test_duplicate_of_deleted_principal_conflicts(self, user_factory):
        user = user_factory(email='gone@example.com')
        User.all_objects.filter(pk=user.pk).update(is_deleted=True)
        with pytest.raises(Conflict):
            AuthService().register(registration_payload(email='gone@example.com'))

    def test_anonymous_cannot_pick_role(self, db):
        with pytest.raises(ValidationError) as excinfo:
            AuthService().register(registration_payload(role='manager'))
        assert excinfo.value.field == 'role'

    def test_hr_cannot_assign_role(self, hr_principal, identity_for):
        with pytest.raises(InsufficientRole):
            AuthService().register(registration_payload(role='manager'), actor=identity_for(hr_principal))

    def test_admin_assigns_role(self, admin_principal, identity_for):
        result = AuthService().register(
            registration_payload(role='hr'), actor=identity_for(admin_principal)
        )
        assert result.user.role.name == RoleName.HR

    def test_login_rejects_wrong_password(self, user_factory):
        user = user_factory()
        with pytest.raises(InvalidCredential) as excinfo:
            AuthService().login(user.email, 'wrong-password')
        assert excinfo.value.code == 'INVALID_CREDENTIALS'

    def test_login_rejects_suspended_account(self, user_factory):
        user = user_factory(status='suspended')
        with pytest.raises(AccountInactive):
            AuthService().login(user.email, 'testpass123')


# =============================================================================
# ENDPOINTS
# =============================================================================

@pytest.mark.api
class TestAuthEndpoints:

    def test_register_login_and_me(self, api_client):
        response = api_client.post(reverse('api_v1:auth:register'), registration_payload(), format='json')
        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['success'] is True
        assert response.data['data']['user']['role'] == 'employee'

        response = api_client.post(
            reverse('api_v1:auth:login'),
            {'email': 'new.hire@example.com', 'password': STRONG_PASSWORD},
            format='json',
        )
        assert response.status_code == status.HTTP_200_OK
        token = response.data['data']['token']

        api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
        response = api_client.get(reverse('api_v1:auth:me'))
        assert response.status_code == status.HTTP_200_OK
        assert response.data['data']['email'] == 'new.hire@example.com'
        assert response.data['data']['status'] == 'active'

    def test_register_duplicate_returns_conflict(self, api_client, user_factory):
        user_factory(email='new.hire@example.com')
        response = api_client.post(reverse('api_v1:auth:register'), registration_payload(), format='json')

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['error']['code'] == 'CONFLICT'

    def test_register_weak_password_rejected(self, api_client):
        response = api_client.post(
            reverse('api_v1:auth:register'), registration_payload(password='123'), format='json'
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error']['code'] == 'VALIDATION_ERROR'

    def test_admin_registers_manager(self, client_for, admin_principal):
        response = client_for(admin_principal).post(
            reverse('api_v1:auth:register'), registration_payload(role='manager'), format='json'
        )
        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['data']['user']['role'] == 'manager'

    def test_login_wrong_password(self, api_client, user_factory):
        user = user_factory()
        response = api_client.post(
            reverse('api_v1:auth:login'), {'email': user.email, 'password': 'nope'}, format='json'
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data['error']['code'] == 'INVALID_CREDENTIALS'

    def test_me_requires_authentication(self, api_client):
        response = api_client.get(reverse('api_v1:auth:me'))
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data['success'] is False

    def test_bearer_token_of_suspended_principal(self, api_client, user_factory):
        user = user_factory()
        token = CredentialService().issue(user.pk, 'employee')
        User.objects.filter(pk=user.pk).update(status='suspended')

        api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
        response = api_client.get(reverse('api_v1:auth:me'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data['error']['code'] == 'ACCOUNT_INACTIVE'

    def test_bearer_token_with_undecodable_bytes(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION='Bearer \xff\xfe')
        response = api_client.get(reverse('api_v1:auth:me'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data['error']['code'] == 'INVALID_TOKEN'

    def test_expired_bearer_token(self, api_client, user_factory):
        user = user_factory()
        token = PrincipalAccessToken.for_principal(user.pk, 'employee')
        token.set_exp(from_time=timezone.now() - timedelta(days=2), lifetime=timedelta(hours=1))

        api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
        response = api_client.get(reverse('api_v1:auth:me'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data['error']['code'] == 'TOKEN_EXPIRED'


# =============================================================================
# SEEDING
# =============================================================================

@pytest.mark.integration
class TestSeeding:

    def test_seed_is_idempotent(self, db):
        first = seed_roles_and_permissions()
        second = seed_roles_and_permissions()

        assert first['permissions'] == 14
        assert second['permissions'] == 0
        assert Role.objects.filter(is_default=True).count() == 4

    def test_admin_role_holds_every_permission(self, db):
        seed_roles_and_permissions()
        admin_role = Role.default_for(RoleName.ADMIN)
        assert 'manage_all' in admin_role.permission_codenames()
        assert len(admin_role.permission_codenames()) == 14

    def test_new_principal_gets_default_role(self, db):
        user = User.objects.create_user(username='plain', email='plain@example.com', password='x')
        assert user.role == Role.default_for(RoleName.EMPLOYEE)


@pytest.mark.integration
class TestManagementCommands:

    def test_init_roles(self, db, capsys):
        call_command('init_roles')
        assert 'Seeded 14 new permissions' in capsys.readouterr().out
        assert Role.objects.filter(is_default=True).count() == 4

    def test_create_admin(self, db):
        call_command('create_admin', email='Root@Example.com', password=STRONG_PASSWORD)

        admin = User.objects.get(email='root@example.com')
        assert admin.role.name == RoleName.ADMIN
        assert admin.is_superuser
        assert admin.check_password(STRONG_PASSWORD)
        assert IdentityResolver().resolve(admin.pk).role == 'admin'

    def test_create_admin_rejects_existing_email(self, user_factory):
        user_factory(email='taken@example.com')
        with pytest.raises(CommandError):
            call_command('create_admin', email='taken@example.com', password=STRONG_PASSWORD)
