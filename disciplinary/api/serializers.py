"""
Disciplinary API Serializers - warnings and their transitions.
"""

from rest_framework import serializers

from accounts.serializers import BasicUserSerializer

from ..models import DisciplinaryWarning


class WarningSerializer(serializers.ModelSerializer):
    """Warning with derived duration fields."""
    created_by = BasicUserSerializer(read_only=True)
    employee_name = serializers.CharField(source='employee.full_name', read_only=True)
    employee_code = serializers.CharField(source='employee.employee_id', read_only=True)
    duration_days = serializers.IntegerField(read_only=True)
    days_remaining = serializers.IntegerField(read_only=True)
    is_expired = serializers.BooleanField(read_only=True)

    class Meta:
        model = DisciplinaryWarning
        fields = [
            'id', 'employee', 'employee_name', 'employee_code', 'type', 'title',
            'description', 'severity', 'status', 'date_issued', 'valid_until',
            'resolved_at', 'resolution_notes', 'escalated', 'escalation_date',
            'escalation_notes', 'duration_days', 'days_remaining', 'is_expired',
            'created_by', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class WarningCreateSerializer(serializers.ModelSerializer):
    date_issued = serializers.DateTimeField(required=False)

    class Meta:
        model = DisciplinaryWarning
        fields = ['type', 'title', 'description', 'severity', 'date_issued', 'valid_until']


class WarningIssueSerializer(WarningCreateSerializer):
    """Create payload for the /warnings collection, which names the employee."""

    class Meta(WarningCreateSerializer.Meta):
        fields = ['employee'] + WarningCreateSerializer.Meta.fields


class WarningUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = DisciplinaryWarning
        fields = ['type', 'title', 'description', 'severity', 'valid_until']


class WarningNotesSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class WarningWithdrawSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='')
