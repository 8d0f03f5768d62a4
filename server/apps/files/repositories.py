"""Metadata repositories: persistence for FileRecord values.

``DjangoMetadataRepository`` is the durable implementation over the
``StoredFile`` model. ``InMemoryMetadataRepository`` keeps records in a
dictionary and is used by tests and embedded tooling. Both enforce the
``(owner_id, name)`` uniqueness constraint and optimistic versioning, so
the services never rely on their own pre-checks for correctness.
"""

import dataclasses
import logging
import threading
from typing import Any, Protocol, final

from django.db import DatabaseError, transaction
from django.db import IntegrityError as DatabaseIntegrityError

from server.apps.files.exceptions import (
    ConflictError,
    NotFoundError,
    StorageError,
)
from server.apps.files.models import StoredFile
from server.apps.files.records import FileRecord

logger = logging.getLogger(__name__)

_MODIFIED_CONCURRENTLY = 'File was modified by another request'


def _duplicate_name(name: str) -> ConflictError:
    return ConflictError(f'A file named "{name}" already exists')


class MetadataRepository(Protocol):
    """Protocol for FileRecord persistence."""

    def insert(self, record: FileRecord) -> FileRecord:
        """Persist a new record and return it with its assigned id."""
        ...

    def find_by_id(self, file_id: int) -> FileRecord | None:
        """Return the record or None."""
        ...

    def exists_by_owner_and_name(self, owner_id: int, name: str) -> bool:
        """Check whether the owner already has a file with this name."""
        ...

    def find_by_owner(self, owner_id: int) -> list[FileRecord]:
        """Return the owner's records in repository order."""
        ...

    def find_all(self) -> list[FileRecord]:
        """Return every record in repository order."""
        ...

    def update(self, record: FileRecord, expected_version: int) -> FileRecord:
        """Commit changes if the stored version still matches."""
        ...

    def delete(self, file_id: int) -> FileRecord | None:
        """Remove the record and return it, or None if it was already gone."""
        ...

    def content_refs(self) -> set[str]:
        """Return every content ref referenced by a record."""
        ...


def _mutable_fields(record: FileRecord) -> dict[str, Any]:
    return {
        'name': record.name,
        'extension': record.extension,
        'size_bytes': record.size,
        'content_ref': record.content_ref,
        'modified_at': record.modified_at,
        'editor_id': record.editor_id,
        'editor_name': record.editor_name,
    }


@final
class DjangoMetadataRepository:
    """Repository over the ``StoredFile`` model."""

    def insert(self, record: FileRecord) -> FileRecord:
        """Insert a new row.

        Args:
            record: Record without an id.

        Returns:
            Persisted record with its id.

        Raises:
            ConflictError: If the owner already has a file with this name.
            StorageError: If the database write fails.
        """
        try:
            with transaction.atomic():
                row = StoredFile.objects.create(
                    created_at=record.created_at,
                    owner_id=record.owner_id,
                    owner_name=record.owner_name,
                    version=record.version,
                    **_mutable_fields(record),
                )
        except DatabaseIntegrityError as error:
            logger.warning(
                'Duplicate name rejected by database: owner=%d name=%s',
                record.owner_id,
                record.name,
            )
            raise _duplicate_name(record.name) from error
        except DatabaseError as error:
            logger.exception('Failed to insert file metadata: %s', record.name)
            raise StorageError('Failed to save file metadata') from error

        logger.info('File record created: %s (ID: %d)', row.name, row.pk)
        return row.to_record()

    def find_by_id(self, file_id: int) -> FileRecord | None:
        """Look up a record by id.

        Args:
            file_id: Record id.

        Returns:
            FileRecord or None if it does not exist.
        """
        row = self._query(lambda: StoredFile.objects.filter(pk=file_id).first())
        return row.to_record() if row is not None else None

    def exists_by_owner_and_name(self, owner_id: int, name: str) -> bool:
        """Check whether the owner has a file with this name."""
        return self._query(
            lambda: StoredFile.objects.filter(
                owner_id=owner_id,
                name=name,
            ).exists(),
        )

    def find_by_owner(self, owner_id: int) -> list[FileRecord]:
        """Return the owner's records ordered by id."""
        rows = self._query(
            lambda: list(
                StoredFile.objects.filter(owner_id=owner_id).order_by('id'),
            ),
        )
        return [row.to_record() for row in rows]

    def find_all(self) -> list[FileRecord]:
        """Return every record ordered by id."""
        rows = self._query(lambda: list(StoredFile.objects.order_by('id')))
        return [row.to_record() for row in rows]

    def update(self, record: FileRecord, expected_version: int) -> FileRecord:
        """Commit record changes under an optimistic version check.

        The row is locked for the duration of the transaction where the
        database supports it; the version filter on the UPDATE is the
        guard everywhere else.

        Args:
            record: Record carrying the new field values.
            expected_version: Version the caller read before changing it.

        Returns:
            Committed record with the bumped version.

        Raises:
            NotFoundError: If the row no longer exists.
            ConflictError: If the row changed since it was read, or the
                new name collides with another of the owner's files.
            StorageError: If the database write fails.
        """
        new_version = expected_version + 1
        try:
            with transaction.atomic():
                locked = (
                    StoredFile.objects.select_for_update()
                    .filter(pk=record.id)
                    .only('version')
                    .first()
                )
                if locked is None:
                    raise NotFoundError(record.id)
                updated = StoredFile.objects.filter(
                    pk=record.id,
                    version=expected_version,
                ).update(version=new_version, **_mutable_fields(record))
                if updated == 0:
                    logger.warning(
                        'Stale update rejected: ID=%d expected v%d, found v%d',
                        record.id,
                        expected_version,
                        locked.version,
                    )
                    raise ConflictError(_MODIFIED_CONCURRENTLY)
        except DatabaseIntegrityError as error:
            raise _duplicate_name(record.name) from error
        except DatabaseError as error:
            logger.exception('Failed to update file metadata: ID=%d', record.id)
            raise StorageError('Failed to save file metadata') from error

        logger.info('File record updated: ID=%d v%d', record.id, new_version)
        return dataclasses.replace(record, version=new_version)

    def delete(self, file_id: int) -> FileRecord | None:
        """Delete a row.

        The row is locked and read inside the same transaction, so the
        returned content ref is the one current at deletion time.

        Args:
            file_id: Record id.

        Returns:
            The deleted record, or None if it was already gone.

        Raises:
            StorageError: If the database delete fails.
        """
        try:
            with transaction.atomic():
                row = (
                    StoredFile.objects.select_for_update()
                    .filter(pk=file_id)
                    .first()
                )
                if row is None:
                    return None
                removed = row.to_record()
                row.delete()
        except DatabaseError as error:
            logger.exception('Failed to delete file metadata: ID=%d', file_id)
            raise StorageError('Failed to delete file metadata') from error

        logger.info('File record deleted: ID=%d', file_id)
        return removed

    def content_refs(self) -> set[str]:
        """Return every content ref referenced by a row."""
        return self._query(
            lambda: set(
                StoredFile.objects.values_list('content_ref', flat=True),
            ),
        )

    def _query(self, query: Any) -> Any:
        try:
            return query()
        except DatabaseError as error:
            logger.exception('File metadata query failed')
            raise StorageError('Failed to read file metadata') from error


@final
class InMemoryMetadataRepository:
    """Thread-safe repository kept in a dictionary.

    Ids are assigned from a counter, so iteration order is insertion
    order, the same as the primary-key order of the database version.
    """

    def __init__(self) -> None:
        """Initialize an empty repository."""
        self._records: dict[int, FileRecord] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def insert(self, record: FileRecord) -> FileRecord:
        """Insert a record, assigning the next id."""
        with self._lock:
            if self._name_taken(record.owner_id, record.name, exclude_id=None):
                raise _duplicate_name(record.name)
            stored = dataclasses.replace(record, id=self._next_id)
            self._records[stored.id] = stored
            self._next_id += 1
        return stored

    def find_by_id(self, file_id: int) -> FileRecord | None:
        """Return the record or None."""
        with self._lock:
            return self._records.get(file_id)

    def exists_by_owner_and_name(self, owner_id: int, name: str) -> bool:
        """Check whether the owner has a file with this name."""
        with self._lock:
            return self._name_taken(owner_id, name, exclude_id=None)

    def find_by_owner(self, owner_id: int) -> list[FileRecord]:
        """Return the owner's records in insertion order."""
        with self._lock:
            return [
                record
                for record in self._records.values()
                if record.owner_id == owner_id
            ]

    def find_all(self) -> list[FileRecord]:
        """Return every record in insertion order."""
        with self._lock:
            return list(self._records.values())

    def update(self, record: FileRecord, expected_version: int) -> FileRecord:
        """Replace the stored record if its version still matches."""
        with self._lock:
            current = self._records.get(record.id)
            if current is None:
                raise NotFoundError(record.id)
            if current.version != expected_version:
                raise ConflictError(_MODIFIED_CONCURRENTLY)
            if self._name_taken(record.owner_id, record.name, record.id):
                raise _duplicate_name(record.name)
            stored = dataclasses.replace(record, version=expected_version + 1)
            self._records[record.id] = stored
        return stored

    def delete(self, file_id: int) -> FileRecord | None:
        """Remove a record and return it."""
        with self._lock:
            return self._records.pop(file_id, None)

    def content_refs(self) -> set[str]:
        """Return every content ref referenced by a record."""
        with self._lock:
            return {record.content_ref for record in self._records.values()}

    def _name_taken(
        self,
        owner_id: int,
        name: str,
        exclude_id: int | None,
    ) -> bool:
        return any(
            record.owner_id == owner_id
            and record.name == name
            and record.id != exclude_id
            for record in self._records.values()
        )
