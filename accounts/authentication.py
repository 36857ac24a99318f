"""
Accounts Authentication - JWT credentials for principals.

This module implements:
- PrincipalAccessToken: simplejwt access token carrying the role claim
- CredentialService: issue / verify opaque bearer tokens
- PrincipalJWTAuthentication: DRF authentication that resolves the
  principal through the IdentityResolver on every request
"""

import logging
import uuid
from typing import Optional, Tuple

from django.conf import settings
from rest_framework.request import Request
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import AccessToken

from core.exceptions import ExpiredCredential, InvalidCredential

logger = logging.getLogger(__name__)


# =============================================================================
# TOKENS
# =============================================================================

class PrincipalAccessToken(AccessToken):
    """
    Access token with the principal's role as a claim.

    Lifetime comes from ``SIMPLE_JWT['ACCESS_TOKEN_LIFETIME']`` (24 hours
    unless configured otherwise).
    """

    token_type = 'access'

    @classmethod
    def for_principal(cls, principal_id, role: str) -> 'PrincipalAccessToken':
        token = cls()
        token[api_settings.USER_ID_CLAIM] = principal_id
        token['role'] = role
        token['token_id'] = str(uuid.uuid4())
        return token


class CredentialService:
    """Issues and verifies bearer tokens."""

    token_class = PrincipalAccessToken

    def issue(self, principal_id, role: str) -> str:
        return str(self.token_class.for_principal(principal_id, role))

    def verify(self, raw_token: str):
        """
        Return the principal id carried by a token.

        Raises:
            ExpiredCredential: If the token is well-formed but expired.
            InvalidCredential: For any other failure.
        """
        try:
            token = self.token_class(raw_token)
        except TokenError:
            if self._is_expired(raw_token):
                raise ExpiredCredential()
            raise InvalidCredential()

        principal_id = token.get(api_settings.USER_ID_CLAIM)
        if principal_id is None:
            raise InvalidCredential("Token carries no principal.")
        return principal_id

    def _is_expired(self, raw_token: str) -> bool:
        try:
            unverified = self.token_class(raw_token, verify=False)
        except TokenError:
            return False
        try:
            unverified.check_exp()
        except TokenError:
            return True
        return False


# =============================================================================
# DRF AUTHENTICATION
# =============================================================================

class PrincipalJWTAuthentication(JWTAuthentication):
    """
    JWT authentication that resolves the principal's identity.

    Resolution fails for missing, deleted, suspended and terminated
    principals, which stops the request before any view code runs.
    """

    credential_service_class = CredentialService

    def authenticate(self, request: Request) -> Optional[Tuple]:
        from .services import IdentityResolver

        header = self.get_header(request)
        if header is None:
            return None

        raw_token = self.get_raw_token(header)
        if raw_token is None:
            return None

        if isinstance(raw_token, bytes):
            try:
                raw_token = raw_token.decode('utf-8')
            except UnicodeDecodeError:
                raise InvalidCredential()

        principal_id = self.credential_service_class().verify(raw_token)
        identity = IdentityResolver().resolve(principal_id)

        user = self.user_model.objects.select_related('role').get(pk=principal_id)
        user.identity = identity
        return (user, raw_token)

    def authenticate_header(self, request: Request) -> str:
        return f'{api_settings.AUTH_HEADER_TYPES[0]} realm="{getattr(settings, "JWT_REALM", "api")}"'
