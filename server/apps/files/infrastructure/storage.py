"""Custom storage backend for S3-compatible storage."""

import logging
from collections.abc import Iterator
from typing import Any, final

from typing_extensions import override

from storages.backends.s3 import S3Storage

logger = logging.getLogger(__name__)


@final
class FileStorage(S3Storage):
    """S3 storage backend for file content blobs.

    Extends django-storages S3Storage with:
    - Flat key listing for orphan cleanup
    - Error logging
    """

    @override
    def save(  # noqa: WPS211
        self,
        name: str,
        content: Any,
        max_length: int | None = None,
    ) -> str:
        """Save blob to S3 with error logging.

        Args:
            name: Storage key for the blob.
            content: File content (file-like object).
            max_length: Optional maximum length for the key.

        Returns:
            Actual key used (may differ from name if conflicts).

        Raises:
            Exception: If S3 upload fails.
        """
        try:
            saved_name = super().save(name, content, max_length)
        except Exception:
            logger.exception('Failed to upload blob to S3: %s', name)
            raise
        else:
            logger.debug('Uploaded blob to S3: %s', saved_name)
            return saved_name

    def iter_names(self, prefix: str = '') -> Iterator[str]:
        """Iterate over every key in the bucket.

        S3 has no real directories, so a single paginated listing
        replaces a recursive ``listdir`` walk.

        Args:
            prefix: Only yield keys starting with this prefix.

        Yields:
            Storage keys relative to the configured location.
        """
        location = self.location.strip('/')
        full_prefix = f'{location}/{prefix}' if location else prefix
        for obj in self.bucket.objects.filter(Prefix=full_prefix):
            key = obj.key
            if location:
                key = key[len(location) + 1:]
            yield key
