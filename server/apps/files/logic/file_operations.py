"""Business logic for file operations.

``FileService`` keeps the content store and the metadata repository
consistent: every record points at exactly one existing blob whose
length equals the record's size. Public operations never raise the
file error taxonomy; they return ``Success`` or ``Failure`` values.
"""

import dataclasses
import logging
from collections.abc import Callable
from datetime import datetime
from typing import Final, final

from django.conf import settings
from django.utils import timezone
from returns.result import safe

from server.apps.files.exceptions import (
    ConflictError,
    FileOperationError,
    IntegrityError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from server.apps.files.identity import Identity
from server.apps.files.infrastructure.content_store import (
    ContentStore,
    StorageContentStore,
)
from server.apps.files.infrastructure.metadata import (
    build_storage_name,
    calculate_checksum,
    get_file_extension,
)
from server.apps.files.models import MAX_EXTENSION_LENGTH, MAX_NAME_LENGTH
from server.apps.files.records import FileRecord
from server.apps.files.repositories import (
    DjangoMetadataRepository,
    MetadataRepository,
)

logger = logging.getLogger(__name__)

_DEFAULT_MAX_UPLOAD_BYTES: Final = 50 * 1024 * 1024

# Turns raised file errors into Failure values, anything else propagates
_file_result = safe((FileOperationError,))


@final
class FileService:
    """Upload, replace, fetch and delete files.

    Mutations order their steps so that a failure at any point leaves
    the record pointing at working content:

    - upload: write blob -> insert record (blob removed if insert fails)
    - replace: write new blob -> update record -> delete old blob
    - delete: delete record -> delete blob

    A crash can at worst leave an unreferenced blob behind, which the
    ``cleanup_orphans`` command reclaims.
    """

    def __init__(
        self,
        content_store: ContentStore,
        repository: MetadataRepository,
        max_upload_bytes: int = _DEFAULT_MAX_UPLOAD_BYTES,
        clock: Callable[[], datetime] = timezone.now,
    ) -> None:
        """Initialize the service.

        Args:
            content_store: Where blobs live.
            repository: Where records live.
            max_upload_bytes: Largest accepted content length.
            clock: Source of timestamps.
        """
        self._content_store = content_store
        self._repository = repository
        self._max_upload_bytes = max_upload_bytes
        self._clock = clock

    @_file_result
    def upload(
        self,
        content: bytes,
        original_name: str,
        owner: Identity,
    ) -> FileRecord:
        """Store a new file for the owner.

        Args:
            content: File bytes, must not be empty.
            original_name: Display name, must have an extension.
            owner: Authenticated uploader.

        Returns:
            Success with the persisted record, or Failure with
            ValidationError, ConflictError or StorageError.
        """
        extension = self._validate(content, original_name)

        # Fast path only: the repository's unique constraint decides races
        if self._repository.exists_by_owner_and_name(
            owner.user_id,
            original_name,
        ):
            logger.warning(
                'Upload rejected, name taken: owner=%d name=%s',
                owner.user_id,
                original_name,
            )
            raise ConflictError(
                f'A file named "{original_name}" already exists',
            )

        logger.info(
            'Uploading file %s for owner %d (%d bytes, sha256=%s)',
            original_name,
            owner.user_id,
            len(content),
            calculate_checksum(content),
        )
        content_ref = self._content_store.put(
            content,
            build_storage_name(owner.user_id, original_name),
        )

        now = self._clock()
        record = FileRecord(
            name=original_name,
            extension=extension,
            size=len(content),
            content_ref=content_ref,
            created_at=now,
            modified_at=now,
            owner_id=owner.user_id,
            owner_name=owner.user_name,
            editor_id=owner.user_id,
            editor_name=owner.user_name,
        )
        try:
            return self._repository.insert(record)
        except FileOperationError:
            logger.warning('Insert failed, rolling back blob: %s', content_ref)
            self._discard(content_ref)
            raise

    @_file_result
    def replace(
        self,
        file_id: int,
        content: bytes,
        filename: str,
        editor: Identity,
    ) -> FileRecord:
        """Replace a file's content and name.

        The old blob is removed only after the record points at the
        new one. ``created_at`` and the owner never change.

        Args:
            file_id: Record to replace.
            content: New bytes, must not be empty.
            filename: New display name, must have an extension.
            editor: Authenticated user performing the replace.

        Returns:
            Success with the updated record, or Failure with
            NotFoundError, ValidationError, ConflictError or StorageError.
        """
        current = self._get_record(file_id)
        extension = self._validate(content, filename)

        if filename != current.name and (
            self._repository.exists_by_owner_and_name(
                current.owner_id,
                filename,
            )
        ):
            raise ConflictError(f'A file named "{filename}" already exists')

        logger.info(
            'Replacing file ID=%d: %s -> %s (%d bytes) by %s',
            file_id,
            current.name,
            filename,
            len(content),
            editor.user_name,
        )
        new_ref = self._content_store.put(
            content,
            build_storage_name(current.owner_id, filename),
        )

        changed = dataclasses.replace(
            current,
            name=filename,
            extension=extension,
            size=len(content),
            content_ref=new_ref,
            modified_at=max(self._clock(), current.modified_at),
            editor_id=editor.user_id,
            editor_name=editor.user_name,
        )
        try:
            updated = self._repository.update(
                changed,
                expected_version=current.version,
            )
        except FileOperationError:
            logger.warning('Update failed, rolling back blob: %s', new_ref)
            self._discard(new_ref)
            raise

        self._discard(current.content_ref)
        return updated

    @_file_result
    def fetch(self, file_id: int) -> tuple[FileRecord, bytes]:
        """Read a file's record and full content.

        Args:
            file_id: Record to read.

        Returns:
            Success with (record, content), or Failure with
            NotFoundError, IntegrityError or StorageError.
        """
        record = self._get_record(file_id)
        try:
            return record, self._read_content(record)
        except IntegrityError:
            # A concurrent replace may have swapped the blob under us
            latest = self._get_record(file_id)
            if latest.content_ref == record.content_ref:
                raise
            return latest, self._read_content(latest)

    @_file_result
    def delete(self, file_id: int) -> None:
        """Delete a file's record and blob.

        Args:
            file_id: Record to delete.

        Returns:
            Success(None), or Failure with NotFoundError or StorageError.
        """
        removed = self._repository.delete(file_id)
        if removed is None:
            raise NotFoundError(file_id)
        logger.info('Deleted file ID=%d: %s', file_id, removed.name)
        self._discard(removed.content_ref)

    @_file_result
    def get_metadata(self, file_id: int) -> FileRecord:
        """Read a file's record.

        Args:
            file_id: Record to read.

        Returns:
            Success with the record, or Failure with NotFoundError.
        """
        return self._get_record(file_id)

    def _get_record(self, file_id: int) -> FileRecord:
        record = self._repository.find_by_id(file_id)
        if record is None:
            logger.info('File not found: ID=%d', file_id)
            raise NotFoundError(file_id)
        return record

    def _validate(self, content: bytes, filename: str) -> str:
        if not content:
            raise ValidationError('No file provided')
        if len(content) > self._max_upload_bytes:
            raise ValidationError(
                f'File exceeds the maximum size of '
                f'{self._max_upload_bytes} bytes',
            )
        if len(filename) > MAX_NAME_LENGTH:
            raise ValidationError(
                f'File name exceeds {MAX_NAME_LENGTH} characters',
            )
        extension = get_file_extension(filename)
        if not extension:
            raise ValidationError('File must have an extension')
        if len(extension) > MAX_EXTENSION_LENGTH:
            raise ValidationError(
                f'File extension exceeds {MAX_EXTENSION_LENGTH} characters',
            )
        return extension

    def _read_content(self, record: FileRecord) -> bytes:
        if not self._content_store.exists(record.content_ref):
            logger.error(
                'Blob missing for file ID=%s: %s',
                record.id,
                record.content_ref,
            )
            raise IntegrityError(record.id, record.content_ref)

        try:
            content = self._content_store.get(record.content_ref)
        except StorageError as error:
            # Superseded or deleted by a concurrent request after the check
            if self._content_store.exists(record.content_ref):
                raise
            raise IntegrityError(record.id, record.content_ref) from error
        if len(content) != record.size:
            logger.error(
                'Blob size mismatch for file ID=%s: expected %d, got %d',
                record.id,
                record.size,
                len(content),
            )
            raise IntegrityError(record.id, record.content_ref)
        return content

    def _discard(self, content_ref: str) -> None:
        # Best effort: the operation already succeeded or is failing anyway
        try:
            self._content_store.delete(content_ref)
        except StorageError:
            logger.warning('Blob left orphaned: %s', content_ref)


def get_file_service() -> FileService:
    """Build the service over the configured durable backends.

    Returns:
        FileService using ``default_storage`` and the database.
    """
    return FileService(
        content_store=StorageContentStore(),
        repository=DjangoMetadataRepository(),
        max_upload_bytes=getattr(
            settings,
            'FILE_MAX_UPLOAD_BYTES',
            _DEFAULT_MAX_UPLOAD_BYTES,
        ),
    )


def find_orphaned_refs(
    content_store: ContentStore,
    repository: MetadataRepository,
    older_than: datetime | None = None,
) -> list[str]:
    """List blobs that no record references.

    Only blobs written before ``older_than`` are considered, so uploads
    still between their blob write and metadata insert are left alone.

    Args:
        content_store: Store to scan.
        repository: Source of referenced refs.
        older_than: Write-time cutoff.

    Returns:
        Sorted list of unreferenced refs.
    """
    referenced = repository.content_refs()
    return sorted(
        ref
        for ref in content_store.iter_refs(older_than=older_than)
        if ref not in referenced
    )
