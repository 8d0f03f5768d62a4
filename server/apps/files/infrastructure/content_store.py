"""Content stores: opaque blob get/put/delete keyed by a storage ref."""

import logging
import threading
import uuid
from collections.abc import Iterator
from datetime import datetime
from typing import Protocol, final

from django.core.files.base import ContentFile
from django.core.files.storage import Storage, default_storage
from django.utils import timezone

from server.apps.files.exceptions import StorageError

logger = logging.getLogger(__name__)


class ContentStore(Protocol):
    """Protocol for blob storage backends (filesystem, S3, memory)."""

    def put(self, content: bytes, name: str) -> str:
        """Store a new blob and return its ref.

        ``name`` is a suggested key; the store may alter it to avoid
        overwriting an existing blob.
        """
        ...

    def get(self, ref: str) -> bytes:
        """Read the whole blob."""
        ...

    def delete(self, ref: str) -> None:
        """Remove a blob. No-op if it does not exist."""
        ...

    def exists(self, ref: str) -> bool:
        """Check whether a blob is present."""
        ...

    def iter_refs(self, older_than: datetime | None = None) -> Iterator[str]:
        """Iterate over stored refs, filtered by write time if given."""
        ...


@final
class StorageContentStore:
    """Content store backed by a Django storage backend.

    Works with ``FileSystemStorage`` and the S3 ``FileStorage``; every
    backend failure surfaces as ``StorageError`` without leaking paths.
    """

    def __init__(self, storage: Storage | None = None) -> None:
        """Initialize the store.

        Args:
            storage: Storage backend, ``default_storage`` when omitted.
        """
        self._storage = storage if storage is not None else default_storage

    def put(self, content: bytes, name: str) -> str:
        """Write content under a fresh name.

        Args:
            content: Raw bytes to store.
            name: Suggested storage name.

        Returns:
            Ref the blob was saved under.

        Raises:
            StorageError: If the backend write fails.
        """
        try:
            ref = self._storage.save(name, ContentFile(content))
        except Exception as error:
            logger.exception('Failed to write blob: %s', name)
            raise StorageError('Failed to store file content') from error
        logger.info('Stored blob %s (%d bytes)', ref, len(content))
        return ref

    def get(self, ref: str) -> bytes:
        """Read a blob.

        Args:
            ref: Blob ref.

        Returns:
            Blob bytes.

        Raises:
            StorageError: If the backend read fails.
        """
        try:
            with self._storage.open(ref, 'rb') as blob:
                return blob.read()
        except Exception as error:
            logger.exception('Failed to read blob: %s', ref)
            raise StorageError('Failed to read file content') from error

    def delete(self, ref: str) -> None:
        """Delete a blob.

        Args:
            ref: Blob ref.

        Raises:
            StorageError: If the backend delete fails.
        """
        try:
            self._storage.delete(ref)
        except Exception as error:
            logger.exception('Failed to delete blob: %s', ref)
            raise StorageError('Failed to delete file content') from error
        logger.info('Deleted blob %s', ref)

    def exists(self, ref: str) -> bool:
        """Check whether a blob is present.

        Args:
            ref: Blob ref.

        Returns:
            True if the backend has the blob.

        Raises:
            StorageError: If the backend lookup fails.
        """
        try:
            return self._storage.exists(ref)
        except Exception as error:
            logger.exception('Failed to look up blob: %s', ref)
            raise StorageError('Failed to access file content') from error

    def iter_refs(self, older_than: datetime | None = None) -> Iterator[str]:
        """Iterate over stored refs.

        Uses the backend's flat listing when it has one, otherwise
        walks ``listdir`` recursively.

        Args:
            older_than: Only yield blobs last written before this moment.

        Yields:
            Blob refs.

        Raises:
            StorageError: If listing or reading write times fails.
        """
        iter_names = getattr(self._storage, 'iter_names', None)
        refs = iter_names() if iter_names is not None else self._walk('')
        try:
            for ref in refs:
                if older_than is None or self._modified_at(ref) < older_than:
                    yield ref
        except StorageError:
            raise
        except Exception as error:
            logger.exception('Failed to list blobs')
            raise StorageError('Failed to list file content') from error

    def _modified_at(self, ref: str) -> datetime:
        try:
            return self._storage.get_modified_time(ref)
        except Exception as error:
            logger.exception('Failed to read blob write time: %s', ref)
            raise StorageError('Failed to access file content') from error

    def _walk(self, folder: str) -> Iterator[str]:
        try:
            directories, files = self._storage.listdir(folder)
        except FileNotFoundError:
            # Storage root not created yet
            return
        for filename in files:
            yield f'{folder}/{filename}' if folder else filename
        for directory in directories:
            yield from self._walk(
                f'{folder}/{directory}' if folder else directory,
            )


@final
class InMemoryContentStore:
    """Thread-safe content store kept in a dictionary."""

    def __init__(self) -> None:
        """Initialize an empty store."""
        self._blobs: dict[str, tuple[bytes, datetime]] = {}
        self._lock = threading.Lock()

    def put(self, content: bytes, name: str) -> str:
        """Store content, suffixing the name if it is taken."""
        with self._lock:
            ref = name
            while ref in self._blobs:
                ref = f'{name}_{uuid.uuid4().hex[:7]}'
            self._blobs[ref] = (bytes(content), timezone.now())
        return ref

    def get(self, ref: str) -> bytes:
        """Read a blob, raising ``StorageError`` if it is missing."""
        with self._lock:
            try:
                content, _ = self._blobs[ref]
            except KeyError as error:
                raise StorageError('Failed to read file content') from error
        return content

    def delete(self, ref: str) -> None:
        """Remove a blob if present."""
        with self._lock:
            self._blobs.pop(ref, None)

    def exists(self, ref: str) -> bool:
        """Check whether a blob is present."""
        with self._lock:
            return ref in self._blobs

    def iter_refs(self, older_than: datetime | None = None) -> Iterator[str]:
        """Iterate over a snapshot of stored refs."""
        with self._lock:
            refs = [
                ref
                for ref, (_, written_at) in self._blobs.items()
                if older_than is None or written_at < older_than
            ]
        yield from refs
