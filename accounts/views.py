"""
Accounts Views - registration, login and current principal endpoints.

Endpoints:
- POST /api/v1/auth/register
- POST /api/v1/auth/login
- GET  /api/v1/auth/me
"""

import logging

from rest_framework import permissions, views

from api.base import APIResponse, IdentityViewSetMixin

from .serializers import CurrentUserSerializer, UserLoginSerializer, UserRegistrationSerializer
from .services import AuthService

logger = logging.getLogger(__name__)


class RegisterView(IdentityViewSetMixin, views.APIView):
    """
    User registration endpoint.

    POST: Create a principal and return an access token. Anonymous callers
    always get the default employee role.
    """
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = UserRegistrationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        actor = self.get_identity() if request.user.is_authenticated else None
        result = AuthService().register(dict(serializer.validated_data), actor=actor)

        return APIResponse.created({
            'user': CurrentUserSerializer(result.user).data,
            'token': result.token,
        })


class LoginView(views.APIView):
    """
    User login endpoint.

    POST: Authenticate by email and password and return an access token.
    """
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = UserLoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AuthService().login(
            serializer.validated_data['email'],
            serializer.validated_data['password'],
            request=request,
        )
        return APIResponse.success({
            'user': CurrentUserSerializer(result.user).data,
            'token': result.token,
        })


class CurrentUserView(IdentityViewSetMixin, views.APIView):
    """
    Current authenticated principal.

    GET: role, permissions, status and manager of the caller.
    """
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        self.get_identity()
        serializer = CurrentUserSerializer(request.user, context={'request': request})
        return APIResponse.success(serializer.data)
