"""
Tests for the blob store.

This module tests:
- Open/close lifecycle and use outside it
- put/get/exists/delete against a filesystem backend
"""

import io

import pytest
from django.core.files.base import ContentFile
from django.core.files.storage import FileSystemStorage

from core.exceptions import NotFound
from core.storage import BlobStore, BlobStoreClosedError


@pytest.mark.unit
class TestBlobStoreLifecycle:

    def test_unopened_store_refuses_work(self, tmp_path):
        store = BlobStore(storage=FileSystemStorage(location=str(tmp_path)))
        assert not store.is_open
        with pytest.raises(BlobStoreClosedError):
            store.put(b'data')

    def test_closed_store_refuses_work(self, tmp_path):
        store = BlobStore(storage=FileSystemStorage(location=str(tmp_path))).open()
        file_id = store.put(b'data')
        store.close()

        with pytest.raises(BlobStoreClosedError):
            store.get(file_id)

    def test_context_manager(self, tmp_path):
        with BlobStore(storage=FileSystemStorage(location=str(tmp_path))) as store:
            assert store.is_open
        assert not store.is_open

    def test_reopen(self, tmp_path):
        store = BlobStore(storage=FileSystemStorage(location=str(tmp_path)))
        store.open()
        file_id = store.put(b'kept')
        store.close()
        store.open()
        assert store.exists(file_id)

    def test_from_settings(self, settings, tmp_path):
        settings.WORKFORCE_BLOB_STORAGE_LOCATION = str(tmp_path)
        settings.WORKFORCE_BLOB_PREFIX = 'files/'
        store = BlobStore.from_settings()

        assert store.prefix == 'files'
        assert not store.is_open


@pytest.mark.unit
class TestBlobStoreOperations:

    def test_put_and_get_bytes(self, blob_store):
        file_id = blob_store.put(b'hello', {'filename': 'hello.txt', 'uploaded_by': 7})
        blob = blob_store.get(file_id)

        with blob.stream as stream:
            assert stream.read() == b'hello'
        assert blob.file_id == file_id
        assert blob.metadata == {'filename': 'hello.txt', 'uploaded_by': 7}

    def test_put_file_like(self, blob_store):
        file_id = blob_store.put(io.BytesIO(b'stream body'))
        with blob_store.get(file_id).stream as stream:
            assert stream.read() == b'stream body'

    def test_put_django_file(self, blob_store):
        file_id = blob_store.put(ContentFile(b'django file', name='notes.txt'))
        with blob_store.get(file_id).stream as stream:
            assert stream.read() == b'django file'

    def test_identifiers_are_unique(self, blob_store):
        assert blob_store.put(b'same') != blob_store.put(b'same')

    def test_blobs_live_under_prefix(self, blob_store, tmp_path):
        file_id = blob_store.put(b'x')
        assert (tmp_path / 'blobs' / file_id).read_bytes() == b'x'

    def test_missing_metadata_is_empty(self, blob_store):
        file_id = blob_store.put(b'x')
        blob_store.storage.delete(f'blobs/{file_id}.json')

        blob = blob_store.get(file_id)
        blob.stream.close()
        assert blob.metadata == {}

    @pytest.mark.parametrize('file_id', ['', 'does-not-exist'])
    def test_get_unknown(self, blob_store, file_id):
        with pytest.raises(NotFound):
            blob_store.get(file_id)

    def test_delete(self, blob_store):
        file_id = blob_store.put(b'gone soon', {'filename': 'a.txt'})
        blob_store.delete(file_id)

        assert not blob_store.exists(file_id)
        with pytest.raises(NotFound):
            blob_store.get(file_id)

    def test_delete_missing_is_ignored(self, blob_store):
        blob_store.delete('never-stored')
