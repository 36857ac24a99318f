"""
HR Core API Serializers - Human Resources REST API Serializers

This module provides DRF serializers for:
- Employee profiles (list, detail, create, update)
- Employment status transitions and history
- Onboarding documents and their verification
"""

from django.contrib.auth import get_user_model
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema_field
from rest_framework import serializers

from accounts.serializers import BasicUserSerializer
from core.validators import PhoneValidator

from ..models import EmployeeDocument, EmployeeProfile, EmploymentStatusChange

User = get_user_model()


# ==================== EMPLOYEE SERIALIZERS ====================

class EmployeeListSerializer(serializers.ModelSerializer):
    """Employee list view with essential fields."""
    user = BasicUserSerializer(read_only=True)
    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = EmployeeProfile
        fields = [
            'id', 'employee_id', 'user', 'full_name', 'designation',
            'employment_type', 'status', 'joining_date', 'is_probation',
        ]
        read_only_fields = fields


class StatusChangeSerializer(serializers.ModelSerializer):
    changed_by = BasicUserSerializer(read_only=True)

    class Meta:
        model = EmploymentStatusChange
        fields = ['id', 'from_status', 'to_status', 'effective_date', 'reason', 'changed_by', 'created_at']
        read_only_fields = fields


class EmployeeDetailSerializer(serializers.ModelSerializer):
    """Full employee profile with status history."""
    user = BasicUserSerializer(read_only=True)
    manager = serializers.SerializerMethodField()
    status_history = StatusChangeSerializer(many=True, read_only=True)
    tenure_years = serializers.FloatField(read_only=True)

    class Meta:
        model = EmployeeProfile
        fields = [
            'id', 'employee_id', 'user', 'manager', 'designation', 'employment_type',
            'status', 'joining_date', 'is_probation', 'probation_end_date',
            'last_working_day', 'date_of_birth', 'gender', 'phone', 'address',
            'emergency_contact', 'skills', 'tenure_years', 'status_history',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields

    @extend_schema_field(OpenApiTypes.OBJECT)
    def get_manager(self, obj):
        manager = obj.user.manager
        if manager is None:
            return None
        return BasicUserSerializer(manager).data


class EmployeeWriteSerializer(serializers.ModelSerializer):
    """Profile fields HR may set. Status is changed through its own endpoint."""
    user = serializers.PrimaryKeyRelatedField(queryset=User.objects.all())
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True, validators=[PhoneValidator()])

    class Meta:
        model = EmployeeProfile
        fields = [
            'user', 'employee_id', 'designation', 'employment_type', 'joining_date',
            'is_probation', 'probation_end_date', 'date_of_birth', 'gender', 'phone',
            'address', 'emergency_contact', 'skills',
        ]

    def validate(self, attrs):
        joining = attrs.get('joining_date', getattr(self.instance, 'joining_date', None))
        probation_end = attrs.get('probation_end_date')
        if joining and probation_end and probation_end < joining:
            raise serializers.ValidationError({
                'probation_end_date': 'Probation end date cannot be before the joining date.'
            })
        return attrs


class EmployeeUpdateSerializer(EmployeeWriteSerializer):
    class Meta(EmployeeWriteSerializer.Meta):
        fields = [f for f in EmployeeWriteSerializer.Meta.fields if f != 'user']


class StatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=EmployeeProfile.EmploymentStatus.choices)
    reason = serializers.CharField(required=False, allow_blank=True, default='')
    effective_date = serializers.DateField(required=False, allow_null=True)


# ==================== DOCUMENT SERIALIZERS ====================

class EmployeeDocumentSerializer(serializers.ModelSerializer):
    verified_by = BasicUserSerializer(read_only=True)

    class Meta:
        model = EmployeeDocument
        fields = [
            'id', 'profile', 'document_type', 'file_id', 'filename', 'description',
            'status', 'uploaded_by', 'verified_by', 'verified_at', 'rejection_reason',
            'created_at',
        ]
        read_only_fields = fields


class EmployeeDocumentUploadSerializer(serializers.Serializer):
    document = serializers.FileField()
    document_type = serializers.ChoiceField(
        choices=EmployeeDocument.DocumentType.choices,
        default=EmployeeDocument.DocumentType.OTHER
    )
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')


class DocumentVerificationSerializer(serializers.Serializer):
    status = serializers.CharField()
    rejection_reason = serializers.CharField(required=False, allow_blank=True, default='')
