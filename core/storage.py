"""
Blob Store - opaque file identifiers over a Django storage backend.

The store is an explicitly constructed client. Components that need file
bytes receive an instance through their constructor; nothing reaches for
a module-level handle.

Usage:
    from core.storage import BlobStore

    with BlobStore(storage=FileSystemStorage(location=tmpdir)) as store:
        file_id = store.put(b'...', {'filename': 'a.pdf'})
        blob = store.get(file_id)
        data = blob.stream.read()

Configuration:
    Set in settings.py:
    - WORKFORCE_BLOB_STORAGE_LOCATION: Directory for the filesystem backend.
      When empty, Django's default storage is used.
    - WORKFORCE_BLOB_PREFIX: Path prefix for stored blobs (default: "blobs")
"""

import json
import logging
import uuid
from dataclasses import dataclass, field
from typing import IO, Any, Dict, Optional, Union

from django.conf import settings
from django.core.files import File
from django.core.files.base import ContentFile
from django.core.files.storage import FileSystemStorage, Storage, default_storage

from core.exceptions import NotFound

logger = logging.getLogger(__name__)


class BlobStoreClosedError(RuntimeError):
    """Raised when a blob store is used outside its open/close window."""


@dataclass
class BlobObject:
    """A stored blob: its identifier, a readable stream and its metadata."""
    file_id: str
    stream: IO[bytes]
    metadata: Dict[str, Any] = field(default_factory=dict)


class BlobStore:
    """
    Content store keyed by opaque file identifiers.

    Bytes live at ``<prefix>/<file_id>`` and metadata in a JSON sidecar at
    ``<prefix>/<file_id>.json``.
    """

    def __init__(self, storage: Optional[Storage] = None, prefix: str = 'blobs'):
        self._configured_storage = storage
        self._storage: Optional[Storage] = None
        self.prefix = prefix.strip('/')

    @classmethod
    def from_settings(cls) -> 'BlobStore':
        """Build an unopened store from Django settings."""
        location = getattr(settings, 'WORKFORCE_BLOB_STORAGE_LOCATION', '')
        prefix = getattr(settings, 'WORKFORCE_BLOB_PREFIX', 'blobs')
        storage = FileSystemStorage(location=location) if location else None
        return cls(storage=storage, prefix=prefix)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def open(self) -> 'BlobStore':
        if self._storage is None:
            self._storage = self._configured_storage or default_storage
            logger.info("BlobStore opened with backend %s", type(self._storage).__name__)
        return self

    def close(self) -> None:
        if self._storage is not None:
            logger.info("BlobStore closed")
        self._storage = None

    @property
    def is_open(self) -> bool:
        return self._storage is not None

    def __enter__(self) -> 'BlobStore':
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def storage(self) -> Storage:
        if self._storage is None:
            raise BlobStoreClosedError("Blob store is not open.")
        return self._storage

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def _blob_path(self, file_id: str) -> str:
        return f"{self.prefix}/{file_id}"

    def _meta_path(self, file_id: str) -> str:
        return f"{self.prefix}/{file_id}.json"

    def put(self, content: Union[bytes, IO[bytes], File], metadata: Optional[Dict[str, Any]] = None) -> str:
        """
        Store bytes and return a new opaque file identifier.

        Args:
            content: Raw bytes, an open binary file, or a Django File.
            metadata: JSON-serializable metadata kept alongside the bytes.
        """
        storage = self.storage
        file_id = uuid.uuid4().hex

        if isinstance(content, bytes):
            payload = ContentFile(content)
        elif isinstance(content, File):
            payload = content
        else:
            payload = File(content)

        storage.save(self._blob_path(file_id), payload)
        storage.save(
            self._meta_path(file_id),
            ContentFile(json.dumps(metadata or {}, default=str).encode('utf-8'))
        )
        logger.info("Stored blob %s (%s bytes)", file_id, getattr(payload, 'size', '?'))
        return file_id

    def get(self, file_id: str) -> BlobObject:
        """
        Open a stored blob for reading.

        Raises:
            NotFound: If no blob exists under ``file_id``.
        """
        storage = self.storage
        path = self._blob_path(file_id)
        if not file_id or not storage.exists(path):
            raise NotFound('File', file_id)

        metadata: Dict[str, Any] = {}
        meta_path = self._meta_path(file_id)
        if storage.exists(meta_path):
            with storage.open(meta_path, 'rb') as fh:
                metadata = json.loads(fh.read().decode('utf-8'))

        return BlobObject(file_id=file_id, stream=storage.open(path, 'rb'), metadata=metadata)

    def exists(self, file_id: str) -> bool:
        return bool(file_id) and self.storage.exists(self._blob_path(file_id))

    def delete(self, file_id: str) -> None:
        """Remove a blob and its metadata. Missing blobs are ignored."""
        storage = self.storage
        for path in (self._blob_path(file_id), self._meta_path(file_id)):
            if storage.exists(path):
                storage.delete(path)
        logger.info("Deleted blob %s", file_id)
