"""
Documents API Serializers.
"""

from django.urls import reverse
from rest_framework import serializers

from accounts.models import User
from accounts.serializers import BasicUserSerializer

from ..models import Document, DocumentShare


class DocumentShareSerializer(serializers.ModelSerializer):
    user = BasicUserSerializer(read_only=True)
    shared_by = BasicUserSerializer(read_only=True)

    class Meta:
        model = DocumentShare
        fields = ['user', 'permission', 'shared_at', 'shared_by']
        read_only_fields = fields


class DocumentSerializer(serializers.ModelSerializer):
    """Document metadata with grants and its download link."""
    uploaded_by = BasicUserSerializer(read_only=True)
    shares = DocumentShareSerializer(many=True, read_only=True)
    url = serializers.SerializerMethodField()

    class Meta:
        model = Document
        fields = [
            'id', 'filename', 'mimetype', 'size', 'document_type', 'description',
            'is_public', 'department', 'tags', 'version', 'uploaded_by', 'shares',
            'url', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_url(self, obj):
        return reverse('api_v1:documents:document-download', kwargs={'pk': obj.pk})


class DocumentUploadSerializer(serializers.Serializer):
    """Multipart upload; the file goes in the ``file`` field."""
    file = serializers.FileField()
    document_type = serializers.ChoiceField(
        choices=Document.DocumentType.choices,
        default=Document.DocumentType.OTHER,
    )
    description = serializers.CharField(required=False, allow_blank=True, max_length=1000, default='')
    is_public = serializers.BooleanField(required=False, default=False)
    department = serializers.ChoiceField(choices=User.Department.choices, required=False)
    tags = serializers.ListField(child=serializers.CharField(max_length=50), required=False, default=list)


class DocumentUpdateSerializer(serializers.Serializer):
    filename = serializers.CharField(required=False, max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, max_length=1000)
    document_type = serializers.ChoiceField(choices=Document.DocumentType.choices, required=False)
    is_public = serializers.BooleanField(required=False)
    department = serializers.ChoiceField(choices=User.Department.choices, required=False)
    tags = serializers.ListField(child=serializers.CharField(max_length=50), required=False)
    version = serializers.IntegerField(required=False, min_value=1, help_text="Version the change is based on")


class DocumentShareRequestSerializer(serializers.Serializer):
    """Grant access to one or more principals."""
    users = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)
    permission = serializers.ChoiceField(
        choices=DocumentShare.Permission.choices,
        default=DocumentShare.Permission.VIEW,
    )


class DocumentShareUpdateSerializer(serializers.Serializer):
    """Change the level of one existing grant."""
    user = serializers.IntegerField()
    permission = serializers.ChoiceField(choices=DocumentShare.Permission.choices)
