"""
Soft-delete managers.

Deleted rows stay in the table with ``is_deleted`` set. The default manager
of every soft-deletable model applies ``alive()`` to the querysets it hands
out; ``all_objects`` skips it and is meant for duplicate checks and audits.
"""

import logging

from django.db import models
from django.db.models import QuerySet
from django.utils import timezone

logger = logging.getLogger(__name__)


class SoftDeleteQuerySet(QuerySet):

    def alive(self):
        return self.filter(is_deleted=False)

    def deleted(self):
        return self.filter(is_deleted=True)

    def soft_delete(self, user_id=None) -> int:
        """
        Flag every live row in the queryset as deleted by ``user_id``.

        Returns the number of rows flagged. Rows already deleted keep their
        original timestamp and actor.
        """
        count = self.alive().update(
            is_deleted=True,
            deleted_at=timezone.now(),
            deleted_by_id=user_id,
            updated_at=timezone.now(),
        )
        if count:
            logger.info("Soft deleted %d %s row(s) by %s", count, self.model._meta.label, user_id)
        return count

    def delete(self):
        # Row removal always goes through soft_delete()
        raise TypeError(
            f"{self.model._meta.label} rows are soft deleted; use soft_delete(user_id=...)."
        )


class SoftDeleteManager(models.Manager.from_queryset(SoftDeleteQuerySet)):
    """
    Manager for soft-deletable models.

    Usage:
        objects = SoftDeleteManager()
        all_objects = SoftDeleteManager(alive_only=False)
    """

    def __init__(self, *args, alive_only: bool = True, **kwargs):
        self.alive_only = alive_only
        super().__init__(*args, **kwargs)

    def get_queryset(self) -> SoftDeleteQuerySet:
        queryset = super().get_queryset()
        return queryset.alive() if self.alive_only else queryset
