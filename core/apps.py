"""
Core App Configuration
"""

import logging

from django.apps import AppConfig

logger = logging.getLogger(__name__)


class CoreConfig(AppConfig):
    """Configuration for the core application."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'core'
    verbose_name = 'Core Infrastructure'

    blob_store = None

    def ready(self):
        """Open the process-wide blob store client."""
        from core.storage import BlobStore

        self.blob_store = BlobStore.from_settings()
        self.blob_store.open()
        logger.debug("Blob store opened at startup")
