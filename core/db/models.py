"""
Abstract models shared by the resource apps.

- BaseModel: UUID key plus created/updated timestamps
- SoftDeleteModel: rows are flagged, never removed, and remember who
  deleted them
- VersionedSoftDeleteModel: adds a version counter moved forward only by
  conditional UPDATEs
"""

import uuid
from typing import Optional

from django.conf import settings
from django.db import models
from django.db.models import F
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from core.db.exceptions import ConcurrentModificationError
from core.db.managers import SoftDeleteManager


class BaseModel(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, verbose_name=_('ID'))
    created_at = models.DateTimeField(auto_now_add=True, db_index=True, verbose_name=_('Created at'))
    updated_at = models.DateTimeField(auto_now=True, verbose_name=_('Updated at'))

    class Meta:
        abstract = True
        ordering = ['-created_at']


class SoftDeleteModel(BaseModel):
    """
    Soft-deletable resource.

    ``objects`` hides deleted rows, ``all_objects`` sees everything.
    Instances are deleted through ``delete(user_id=...)``, which flags the
    row with a single UPDATE.
    """

    is_deleted = models.BooleanField(default=False, db_index=True, verbose_name=_('Is deleted'))
    deleted_at = models.DateTimeField(null=True, blank=True, verbose_name=_('Deleted at'))
    deleted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='%(app_label)s_%(class)s_deleted',
        verbose_name=_('Deleted by'),
    )

    objects = SoftDeleteManager()
    all_objects = SoftDeleteManager(alive_only=False)

    class Meta:
        abstract = True

    def delete(self, using=None, keep_parents=False, user_id=None):
        """Flag the row as deleted by ``user_id``. Returns True if it was live."""
        flagged = type(self).all_objects.filter(pk=self.pk).soft_delete(user_id=user_id)
        if flagged:
            self.is_deleted = True
            self.deleted_at = timezone.now()
            self.deleted_by_id = user_id
        return bool(flagged)


class VersionedSoftDeleteModel(SoftDeleteModel):
    """
    Soft-deletable resource with an optimistic version.

    Soft deletion does not touch the version; every other change goes
    through ``versioned_update``.
    """

    version = models.PositiveIntegerField(
        default=1,
        verbose_name=_('Version'),
        help_text=_('Record version for optimistic locking.'),
    )

    class Meta:
        abstract = True

    def versioned_update(self, expected_version: Optional[int] = None, **fields) -> int:
        """
        Write ``fields`` and move the version forward by exactly one.

        The UPDATE only matches while the stored version still equals
        ``expected_version`` (by default the version this instance was
        loaded with).

        Returns:
            The new version.

        Raises:
            ConcurrentModificationError: Another writer got there first.
        """
        model = type(self)
        if expected_version is None:
            expected_version = self.version

        fields['updated_at'] = timezone.now()
        matched = model.all_objects.filter(pk=self.pk, version=expected_version).update(
            version=F('version') + 1, **fields
        )
        if not matched:
            raise ConcurrentModificationError(
                model_name=model.__name__,
                object_id=self.pk,
                expected_version=expected_version,
                actual_version=model.all_objects.filter(pk=self.pk).values_list('version', flat=True).first(),
            )

        for name, value in fields.items():
            setattr(self, name, value)
        self.version = expected_version + 1
        return self.version
