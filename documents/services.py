"""
Documents Services - upload, download, edits and sharing.

Every successful change to a document's stored fields or its shares moves
``version`` forward by exactly one through a version-checked conditional
UPDATE. Validation runs before any write, so a rejected request leaves the
version untouched.

Sharing a document with principals who already hold a grant skips them;
changing the level of an existing grant goes through ``update_share``.
"""

import logging
import mimetypes
from typing import Any, Dict, Iterable, Optional

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Q, QuerySet
from django.utils import timezone

from core.access import (
    ADMIN, DOCUMENT_RESOURCE, HR, MANAGER, SHARE_LEVELS,
    Identity, ResourceContext, ensure_can_perform,
)
from core.db.exceptions import ConcurrentModificationError
from core.exceptions import Conflict, NotFound, ValidationError
from core.storage import BlobObject, BlobStore
from core.validators import validate_file_upload

from .models import Document, DocumentShare

logger = logging.getLogger(__name__)

User = get_user_model()

UPDATABLE_FIELDS = ('filename', 'description', 'document_type', 'is_public', 'department', 'tags')

# Fields that widen who can see the document; changing them needs the share right
AUDIENCE_FIELDS = ('is_public', 'department')


def document_context(document: Document) -> ResourceContext:
    """Access snapshot of a document with its current grants and project teams."""
    return ResourceContext(
        resource_type=DOCUMENT_RESOURCE,
        owner_id=document.uploaded_by_id,
        department=document.department,
        is_public=document.is_public,
        shares=document.share_map(),
        member_ids=document.project_team_ids(),
    )


def _validate_level(level: str) -> None:
    if level not in SHARE_LEVELS:
        raise ValidationError(
            f"Permission must be one of: {', '.join(SHARE_LEVELS)}.",
            field='permission',
        )


class DocumentService:
    """
    Service for stored documents.

    Args:
        blob_store: Open blob store holding the document bytes.
    """

    def __init__(self, blob_store: Optional[BlobStore] = None):
        self.blob_store = blob_store

    @staticmethod
    def _load(document_id, for_update: bool = False) -> Document:
        queryset = Document.objects.all()
        if for_update:
            queryset = queryset.select_for_update()
        document = queryset.filter(pk=document_id).first()
        if document is None:
            raise NotFound('Document', document_id)
        return document

    @staticmethod
    def _bump(document: Document, expected_version: Optional[int] = None, **fields) -> int:
        try:
            return document.versioned_update(expected_version=expected_version, **fields)
        except ConcurrentModificationError as exc:
            raise Conflict(
                "Document was modified by someone else. Reload and try again.",
                extra_data={
                    'expected_version': exc.expected_version,
                    'actual_version': exc.actual_version,
                },
            ) from exc

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def visible_documents(self, identity: Identity) -> QuerySet:
        """
        Documents the caller may list.

        Admin and HR see all; others see public documents, their uploads,
        documents shared with them and documents attached to live projects
        they manage or work on. Managers also see their department's.
        """
        ensure_can_perform(identity, 'list', DOCUMENT_RESOURCE)
        queryset = Document.objects.select_related('uploaded_by')
        if identity.role in (ADMIN, HR):
            return queryset

        scope = (
            Q(is_public=True)
            | Q(uploaded_by_id=identity.id)
            | Q(shares__user_id=identity.id)
            | Q(project_links__project__is_deleted=False, project_links__project__manager_id=identity.id)
            | Q(
                project_links__project__is_deleted=False,
                project_links__project__members__user_id=identity.id,
                project_links__project__members__is_active=True,
            )
        )
        if identity.role == MANAGER and identity.department:
            scope |= Q(department=identity.department)
        return queryset.filter(scope).distinct()

    def get_document(self, identity: Identity, document_id) -> Document:
        document = self._load(document_id)
        ensure_can_perform(identity, 'view', DOCUMENT_RESOURCE, document_context(document))
        return document

    def open_for_download(self, identity: Identity, document_id):
        """
        Return the document and an open stream of its bytes.

        The caller owns the stream and must close it.
        """
        document = self._load(document_id)
        ensure_can_perform(identity, 'download', DOCUMENT_RESOURCE, document_context(document))
        blob: BlobObject = self.blob_store.get(document.file_id)
        logger.info("Document %s downloaded by %s", document.pk, identity.id)
        return document, blob

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def upload(self, identity: Identity, file, data: Dict[str, Any]) -> Document:
        """
        Validate and store an uploaded file.

        The department defaults to the uploader's.

        Raises:
            ValidationError: Missing file, size over the limit or a
                disallowed extension. Nothing is stored in that case.
        """
        ensure_can_perform(identity, 'upload', DOCUMENT_RESOURCE)
        validate_file_upload(file, field='file')

        data = dict(data)
        department = data.pop('department', None) or identity.department
        if not department:
            raise ValidationError("Department is required.", field='department')
        mimetype = (
            getattr(file, 'content_type', None)
            or mimetypes.guess_type(file.name)[0]
            or 'application/octet-stream'
        )

        file_id = self.blob_store.put(file, {
            'filename': file.name,
            'content_type': mimetype,
            'uploaded_by': identity.id,
        })
        try:
            document = Document.objects.create(
                file_id=file_id,
                filename=file.name,
                mimetype=mimetype,
                size=file.size,
                uploaded_by_id=identity.id,
                department=department,
                **data
            )
        except Exception:
            self.blob_store.delete(file_id)
            raise
        logger.info("Document %s uploaded by %s (%s bytes)", document.pk, identity.id, document.size)
        return document

    @transaction.atomic
    def update(
        self,
        identity: Identity,
        document_id,
        data: Dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> Document:
        """
        Update descriptive fields with an optimistic version check.

        ``is_public`` and ``department`` are limited to callers who may also
        share the document.

        Raises:
            ValidationError: Unknown or empty field set. The version is not
                changed.
            Forbidden: An edit grantee tried to change the audience.
            Conflict: ``expected_version`` no longer matches.
        """
        document = self._load(document_id)
        context = document_context(document)
        ensure_can_perform(identity, 'update', DOCUMENT_RESOURCE, context)

        data = dict(data)
        if any(name in data for name in AUDIENCE_FIELDS):
            ensure_can_perform(identity, 'share', DOCUMENT_RESOURCE, context)
        unknown = set(data) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(
                f"These fields cannot be updated: {', '.join(sorted(unknown))}.",
                field=sorted(unknown)[0],
            )
        if not data:
            raise ValidationError("No fields to update.")
        if 'filename' in data and not (data['filename'] or '').strip():
            raise ValidationError("Filename cannot be blank.", field='filename')
        if 'document_type' in data and data['document_type'] not in Document.DocumentType.values:
            raise ValidationError("Unknown document type.", field='document_type')

        version = self._bump(document, expected_version, **data)
        logger.info("Document %s updated by %s (version %d)", document.pk, identity.id, version)
        return document

    @transaction.atomic
    def share(
        self,
        identity: Identity,
        document_id,
        user_ids: Iterable,
        permission: str = DocumentShare.Permission.VIEW,
    ) -> Document:
        """
        Grant each listed principal access to the document.

        Principals who already hold a grant keep it unchanged. The version
        moves once when at least one grant was added.

        Raises:
            ValidationError: Empty user list or unknown level.
            NotFound: A listed principal does not exist. Nothing is granted.
        """
        document = self._load(document_id, for_update=True)
        ensure_can_perform(identity, 'share', DOCUMENT_RESOURCE, document_context(document))
        _validate_level(permission)

        user_ids = list(dict.fromkeys(user_ids or ()))
        if not user_ids:
            raise ValidationError("Provide at least one user to share with.", field='users')
        found = set(User.objects.filter(pk__in=user_ids).values_list('pk', flat=True))
        for user_id in user_ids:
            if user_id not in found:
                raise NotFound('User', user_id)

        existing = set(
            DocumentShare.objects.filter(document=document, user_id__in=user_ids)
            .values_list('user_id', flat=True)
        )
        now = timezone.now()
        new_shares = [
            DocumentShare(
                document=document,
                user_id=user_id,
                permission=permission,
                shared_by_id=identity.id,
                shared_at=now,
            )
            for user_id in user_ids
            if user_id not in existing
        ]
        if new_shares:
            DocumentShare.objects.bulk_create(new_shares)
            self._bump(document)
            logger.info(
                "Document %s shared with %d principal(s) (%s) by %s",
                document.pk, len(new_shares), permission, identity.id
            )
        if existing:
            logger.info("Document %s already shared with %s; grants left unchanged", document.pk, sorted(existing))
        return document

    @transaction.atomic
    def update_share(self, identity: Identity, document_id, user_id, permission: str) -> Document:
        """Change the level of an existing grant."""
        document = self._load(document_id, for_update=True)
        ensure_can_perform(identity, 'share', DOCUMENT_RESOURCE, document_context(document))
        _validate_level(permission)

        updated = DocumentShare.objects.filter(document=document, user_id=user_id).exclude(
            permission=permission
        ).update(permission=permission, shared_by_id=identity.id, updated_at=timezone.now())
        if not updated:
            if not DocumentShare.objects.filter(document=document, user_id=user_id).exists():
                raise NotFound('Share', user_id)
            return document

        self._bump(document)
        logger.info("Share of document %s for %s changed to %s", document.pk, user_id, permission)
        return document

    @transaction.atomic
    def delete(self, identity: Identity, document_id) -> None:
        """Soft delete. The blob is kept."""
        document = self._load(document_id, for_update=True)
        ensure_can_perform(identity, 'delete', DOCUMENT_RESOURCE, document_context(document))
        document.delete(user_id=identity.id)
        logger.info("Document %s deleted by %s", document.pk, identity.id)
