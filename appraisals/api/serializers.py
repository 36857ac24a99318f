"""
Appraisals API Serializers.
"""

from rest_framework import serializers

from accounts.models import User
from accounts.serializers import BasicUserSerializer

from ..models import Appraisal, AppraisalGoal, AppraisalKPI


class AppraisalGoalSerializer(serializers.ModelSerializer):
    class Meta:
        model = AppraisalGoal
        fields = [
            'id', 'title', 'description', 'status', 'weightage', 'rating',
            'comments', 'reviewer_comments',
        ]
        read_only_fields = ['id']


class AppraisalKPISerializer(serializers.ModelSerializer):
    class Meta:
        model = AppraisalKPI
        fields = ['id', 'name', 'target', 'actual', 'comments']
        read_only_fields = ['id']


class AppraisalListSerializer(serializers.ModelSerializer):
    employee = BasicUserSerializer(read_only=True)
    reviewer = BasicUserSerializer(read_only=True)
    days_remaining = serializers.IntegerField(read_only=True)
    is_overdue = serializers.BooleanField(read_only=True)

    class Meta:
        model = Appraisal
        fields = [
            'id', 'employee', 'reviewer', 'cycle', 'appraisal_date', 'due_date',
            'status', 'rating', 'days_remaining', 'is_overdue',
        ]
        read_only_fields = fields


class AppraisalDetailSerializer(AppraisalListSerializer):
    """Full appraisal with goals, KPIs and derived fields."""
    goals = AppraisalGoalSerializer(many=True, read_only=True)
    kpis = AppraisalKPISerializer(many=True, read_only=True)
    overall_rating = serializers.FloatField(read_only=True)
    duration_days = serializers.IntegerField(read_only=True)

    class Meta(AppraisalListSerializer.Meta):
        fields = AppraisalListSerializer.Meta.fields + [
            'self_assessment', 'self_assessment_date', 'review', 'review_date',
            'overall_comments', 'competencies', 'development_needs',
            'career_aspirations', 'completed_at', 'overall_rating',
            'duration_days', 'goals', 'kpis', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class AppraisalCreateSerializer(serializers.ModelSerializer):
    employee = serializers.PrimaryKeyRelatedField(queryset=User.objects.all())
    reviewer = serializers.PrimaryKeyRelatedField(queryset=User.objects.all())
    appraisal_date = serializers.DateField(required=False)
    goals = AppraisalGoalSerializer(many=True, required=False)
    kpis = AppraisalKPISerializer(many=True, required=False)

    class Meta:
        model = Appraisal
        fields = [
            'employee', 'reviewer', 'appraisal_date', 'due_date', 'cycle',
            'overall_comments', 'competencies', 'development_needs',
            'career_aspirations', 'goals', 'kpis',
        ]


class AppraisalUpdateSerializer(serializers.ModelSerializer):
    goals = AppraisalGoalSerializer(many=True, required=False)
    kpis = AppraisalKPISerializer(many=True, required=False)

    class Meta:
        model = Appraisal
        fields = [
            'due_date', 'cycle', 'overall_comments', 'competencies',
            'development_needs', 'career_aspirations', 'goals', 'kpis',
        ]


class SelfAssessmentSerializer(serializers.Serializer):
    self_assessment = serializers.CharField(allow_blank=True)


class ReviewSerializer(serializers.Serializer):
    review = serializers.CharField(allow_blank=True)
    rating = serializers.IntegerField()
    status = serializers.ChoiceField(
        choices=[Appraisal.Status.COMPLETED, Appraisal.Status.NEEDS_REVIEW],
        default=Appraisal.Status.COMPLETED,
    )
    overall_comments = serializers.CharField(required=False, allow_blank=True)


class CancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='')
