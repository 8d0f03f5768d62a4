"""Database models for files app."""

from typing import Final, final

from typing_extensions import override

from django.db import models

from server.apps.files.records import FileRecord

# Constants for field max lengths
MAX_NAME_LENGTH: Final = 255
MAX_EXTENSION_LENGTH: Final = 32
_CONTENT_REF_MAX_LENGTH: Final = 500
_USER_NAME_MAX_LENGTH: Final = 150


@final
class StoredFile(models.Model):
    """Metadata row for a file whose bytes live in the content store.

    Owner and editor are denormalized (id + name) because users belong
    to the external identity provider, not to this app.
    """

    name = models.CharField(
        max_length=MAX_NAME_LENGTH,
        help_text='Display name, unique per owner',
    )

    extension = models.CharField(
        max_length=MAX_EXTENSION_LENGTH,
        help_text='Lower-cased suffix of the name, without dot',
    )

    size_bytes = models.BigIntegerField(
        help_text='File size in bytes',
    )

    content_ref = models.CharField(
        max_length=_CONTENT_REF_MAX_LENGTH,
        help_text='Content store key: {owner_id}/{random}_{name}',
    )

    created_at = models.DateTimeField()
    modified_at = models.DateTimeField()

    owner_id = models.BigIntegerField(db_index=True)
    owner_name = models.CharField(max_length=_USER_NAME_MAX_LENGTH)

    editor_id = models.BigIntegerField()
    editor_name = models.CharField(max_length=_USER_NAME_MAX_LENGTH)

    # Optimistic concurrency token, bumped on every replace
    version = models.PositiveIntegerField(default=1)

    class Meta:
        """Model metadata."""

        verbose_name = 'Stored file'  # type: ignore[mutable-override]
        verbose_name_plural = 'Stored files'  # type: ignore[mutable-override]
        ordering = ['id']

        indexes = [
            models.Index(
                fields=['owner_id', 'extension'],
                name='files_owner_extension_idx',
            ),
        ]

        constraints = [
            # Authoritative guard against concurrent duplicate uploads
            models.UniqueConstraint(
                fields=['owner_id', 'name'],
                name='files_owner_name_unique',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.owner_name}:{self.name}'

    def to_record(self) -> FileRecord:
        """Convert to the plain record used by the services.

        Returns:
            FileRecord with the row's current values.
        """
        return FileRecord(
            id=self.pk,
            name=self.name,
            extension=self.extension,
            size=self.size_bytes,
            content_ref=self.content_ref,
            created_at=self.created_at,
            modified_at=self.modified_at,
            owner_id=self.owner_id,
            owner_name=self.owner_name,
            editor_id=self.editor_id,
            editor_name=self.editor_name,
            version=self.version,
        )
