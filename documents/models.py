"""
Documents Models - stored files with sharing and versioning.

This module implements:
- Document: metadata of a stored blob, versioned and soft-deletable
- DocumentShare: grant of view/comment/edit access to one principal

The bytes live in the blob store under ``file_id``. Soft deleting a
document keeps its blob.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from core.access import SHARE_LEVELS
from core.db.models import BaseModel, VersionedSoftDeleteModel


class Document(VersionedSoftDeleteModel):
    """Stored document with ownership, department and sharing."""

    class DocumentType(models.TextChoices):
        CONTRACT = 'contract', _('Contract')
        RESUME = 'resume', _('Resume')
        ID_PROOF = 'id_proof', _('ID Proof')
        ADDRESS_PROOF = 'address_proof', _('Address Proof')
        CERTIFICATE = 'certificate', _('Certificate')
        OFFER_LETTER = 'offer_letter', _('Offer Letter')
        NDA = 'nda', _('NDA')
        POLICY = 'policy', _('Policy')
        REPORT = 'report', _('Report')
        PRESENTATION = 'presentation', _('Presentation')
        OTHER = 'other', _('Other')

    file_id = models.CharField(max_length=64, db_index=True)
    filename = models.CharField(max_length=255)
    mimetype = models.CharField(max_length=100)
    size = models.PositiveBigIntegerField()
    document_type = models.CharField(
        max_length=20,
        choices=DocumentType.choices,
        default=DocumentType.OTHER,
        db_index=True,
    )
    description = models.TextField(max_length=1000, blank=True)
    is_public = models.BooleanField(default=False)
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='uploaded_documents'
    )
    department = models.CharField(max_length=20, db_index=True)
    tags = models.JSONField(default=list, blank=True)

    class Meta:
        verbose_name = _('Document')
        verbose_name_plural = _('Documents')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['uploaded_by', 'is_deleted'], name='document_uploader_idx'),
            models.Index(fields=['document_type', 'is_deleted'], name='document_type_idx'),
        ]

    def __str__(self):
        return self.filename

    @property
    def is_image(self) -> bool:
        return self.mimetype.startswith('image/')

    def share_map(self):
        """Principal id to share level."""
        return dict(self.shares.values_list('user_id', 'permission'))

    def project_team_ids(self) -> frozenset:
        """Managers and active members of the live projects this document is attached to."""
        links = self.project_links.filter(project__is_deleted=False)
        managers = links.values_list('project__manager_id', flat=True)
        members = links.filter(project__members__is_active=True).values_list(
            'project__members__user_id', flat=True
        )
        return frozenset(managers) | frozenset(members)


class DocumentShare(BaseModel):
    """Access grant on a document for one principal."""

    class Permission(models.TextChoices):
        VIEW = SHARE_LEVELS[0], _('View')
        COMMENT = SHARE_LEVELS[1], _('Comment')
        EDIT = SHARE_LEVELS[2], _('Edit')

    document = models.ForeignKey(Document, on_delete=models.CASCADE, related_name='shares')
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='document_shares'
    )
    permission = models.CharField(
        max_length=10,
        choices=Permission.choices,
        default=Permission.VIEW,
    )
    shared_at = models.DateTimeField(default=timezone.now)
    shared_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='granted_document_shares'
    )

    class Meta:
        verbose_name = _('Document Share')
        verbose_name_plural = _('Document Shares')
        ordering = ['shared_at']
        constraints = [
            models.UniqueConstraint(
                fields=['document', 'user'],
                name='documents_share_unique_per_user',
            ),
        ]

    def __str__(self):
        return f"{self.document} -> {self.user} ({self.permission})"
