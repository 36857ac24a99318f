"""
Accounts Serializers - registration, login and the current principal.
"""

from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.utils.translation import gettext_lazy as _
from rest_framework import serializers

from .models import RoleName

User = get_user_model()


# ==================== USER SERIALIZERS ====================

class BasicUserSerializer(serializers.ModelSerializer):
    """Minimal user information for nested serialization."""

    role = serializers.CharField(source='role.name', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'email', 'first_name', 'last_name', 'role', 'department', 'position']
        read_only_fields = fields


class CurrentUserSerializer(serializers.ModelSerializer):
    """The authenticated principal with role, permissions and status."""

    role = serializers.CharField(source='role.name', read_only=True)
    permissions = serializers.SerializerMethodField()
    manager = BasicUserSerializer(read_only=True)

    class Meta:
        model = User
        fields = [
            'id', 'email', 'first_name', 'last_name', 'role', 'permissions',
            'status', 'department', 'position', 'manager', 'last_seen',
        ]
        read_only_fields = fields

    def get_permissions(self, obj):
        return list(obj.role.permission_codenames())


# ==================== AUTH SERIALIZERS ====================

class UserRegistrationSerializer(serializers.Serializer):
    """Registration payload. Uniqueness is enforced by the service."""

    email = serializers.EmailField()
    password = serializers.CharField(
        write_only=True,
        validators=[validate_password],
        style={'input_type': 'password'}
    )
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150)
    department = serializers.ChoiceField(choices=User.Department.choices, default=User.Department.OTHER)
    position = serializers.CharField(max_length=100, required=False, allow_blank=True)
    role = serializers.ChoiceField(choices=RoleName.choices, required=False)
    manager = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.all(),
        required=False,
        allow_null=True,
    )

    def validate_email(self, value):
        return value.lower()


class UserLoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, style={'input_type': 'password'})

    default_error_messages = {
        'invalid': _('Invalid credentials.'),
    }
