"""
Projects API Serializers.
"""

from django.urls import reverse
from rest_framework import serializers

from accounts.models import User
from accounts.serializers import BasicUserSerializer

from ..models import Project, ProjectDocument, ProjectMember, ProjectTask


class ProjectMemberSerializer(serializers.ModelSerializer):
    user = BasicUserSerializer(read_only=True)

    class Meta:
        model = ProjectMember
        fields = ['id', 'user', 'role', 'allocation', 'start_date', 'end_date', 'is_active']
        read_only_fields = fields


class ProjectTaskSerializer(serializers.ModelSerializer):
    assignee = BasicUserSerializer(read_only=True)
    completed_by = BasicUserSerializer(read_only=True)

    class Meta:
        model = ProjectTask
        fields = [
            'id', 'name', 'description', 'status', 'priority', 'due_date',
            'assignee', 'completed_at', 'completed_by', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class ProjectTaskWriteSerializer(serializers.ModelSerializer):
    assignee = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.all(), required=False, allow_null=True
    )

    class Meta:
        model = ProjectTask
        fields = ['name', 'description', 'status', 'priority', 'due_date', 'assignee']


class ProjectTaskUpdateSerializer(ProjectTaskWriteSerializer):
    """Task update payload; also names the task being changed."""
    task = serializers.UUIDField()

    class Meta(ProjectTaskWriteSerializer.Meta):
        fields = ['task'] + ProjectTaskWriteSerializer.Meta.fields


class ProjectListSerializer(serializers.ModelSerializer):
    manager = BasicUserSerializer(read_only=True)
    duration_days = serializers.IntegerField(read_only=True)

    class Meta:
        model = Project
        fields = [
            'id', 'name', 'status', 'priority', 'start_date', 'end_date',
            'budget', 'client', 'manager', 'duration_days', 'created_at',
        ]
        read_only_fields = fields


class ProjectDetailSerializer(ProjectListSerializer):
    """Project with active team, tasks and progress."""
    team = serializers.SerializerMethodField()
    tasks = ProjectTaskSerializer(many=True, read_only=True)
    progress = serializers.IntegerField(read_only=True)
    created_by = BasicUserSerializer(read_only=True)
    updated_by = BasicUserSerializer(read_only=True)

    class Meta(ProjectListSerializer.Meta):
        fields = ProjectListSerializer.Meta.fields + [
            'description', 'settings', 'team', 'tasks', 'progress',
            'created_by', 'updated_by', 'updated_at',
        ]
        read_only_fields = fields

    def get_team(self, obj):
        members = obj.members.filter(is_active=True).select_related('user', 'user__role')
        return ProjectMemberSerializer(members, many=True).data


class ProjectCreateSerializer(serializers.ModelSerializer):
    manager = serializers.PrimaryKeyRelatedField(queryset=User.objects.all(), required=False)

    class Meta:
        model = Project
        fields = [
            'name', 'description', 'status', 'priority', 'start_date', 'end_date',
            'budget', 'client', 'manager', 'settings',
        ]

    def validate(self, attrs):
        start, end = attrs.get('start_date'), attrs.get('end_date')
        if start and end and end < start:
            raise serializers.ValidationError({'end_date': 'End date must be after start date.'})
        return attrs


class ProjectUpdateSerializer(serializers.ModelSerializer):
    # Accepted so the service can reject manager changes explicitly
    manager = serializers.IntegerField(required=False)

    class Meta:
        model = Project
        fields = [
            'name', 'description', 'status', 'priority', 'start_date', 'end_date',
            'budget', 'client', 'settings', 'manager',
        ]


class ManagerAssignSerializer(serializers.Serializer):
    manager = serializers.IntegerField()


class TeamMemberAddSerializer(serializers.Serializer):
    user = serializers.IntegerField()
    role = serializers.ChoiceField(
        choices=ProjectMember.Role.choices,
        default=ProjectMember.Role.DEVELOPER,
    )
    allocation = serializers.IntegerField(default=100)


class TeamMemberUpdateSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=ProjectMember.Role.choices, required=False)
    allocation = serializers.IntegerField(required=False)


class ProjectDocumentSerializer(serializers.ModelSerializer):
    """Attached document with the download link the team reads it through."""
    document = serializers.UUIDField(source='document_id', read_only=True)
    filename = serializers.CharField(source='document.filename', read_only=True)
    mimetype = serializers.CharField(source='document.mimetype', read_only=True)
    size = serializers.IntegerField(source='document.size', read_only=True)
    document_type = serializers.CharField(source='document.document_type', read_only=True)
    added_by = BasicUserSerializer(read_only=True)
    url = serializers.SerializerMethodField()

    class Meta:
        model = ProjectDocument
        fields = [
            'id', 'document', 'filename', 'mimetype', 'size', 'document_type',
            'description', 'added_by', 'url', 'created_at',
        ]
        read_only_fields = fields

    def get_url(self, obj):
        return reverse('api_v1:documents:document-download', kwargs={'pk': obj.document_id})


class ProjectDocumentAttachSerializer(serializers.Serializer):
    document = serializers.UUIDField()
    description = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')
