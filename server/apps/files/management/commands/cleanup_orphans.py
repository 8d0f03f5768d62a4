"""Management command to delete blobs no file record references."""

import logging
from datetime import timedelta
from typing import Any, Final, final

from typing_extensions import override

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from server.apps.files.exceptions import StorageError
from server.apps.files.infrastructure.content_store import StorageContentStore
from server.apps.files.logic.file_operations import find_orphaned_refs
from server.apps.files.repositories import DjangoMetadataRepository

_DEFAULT_MIN_AGE_MINUTES: Final = 60
_DEFAULT_BATCH_SIZE: Final = 1000

logger = logging.getLogger(__name__)


@final
class Command(BaseCommand):
    """Reclaim blobs left behind by crashes or failed cleanups."""

    help = 'Delete stored blobs that no file record references'

    @override
    def add_arguments(self, parser: Any) -> None:
        """Add command line arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be deleted without deleting',
        )
        parser.add_argument(
            '--batch-size',
            type=int,
            default=_DEFAULT_BATCH_SIZE,
            help=f'Max blobs to process (default: {_DEFAULT_BATCH_SIZE})',
        )
        parser.add_argument(
            '--min-age-minutes',
            type=int,
            default=_DEFAULT_MIN_AGE_MINUTES,
            help=(
                'Skip blobs written more recently than this, so in-flight '
                f'uploads survive (default: {_DEFAULT_MIN_AGE_MINUTES})'
            ),
        )

    @override
    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the cleanup command.

        Args:
            args: Positional arguments (unused).
            options: Command options.
        """
        dry_run = options['dry_run']
        batch_size = options['batch_size']
        cutoff = timezone.now() - timedelta(
            minutes=options['min_age_minutes'],
        )

        self.stdout.write(f'Looking for unreferenced blobs written before {cutoff}')

        content_store = StorageContentStore()
        try:
            orphans = find_orphaned_refs(
                content_store,
                DjangoMetadataRepository(),
                older_than=cutoff,
            )[:batch_size]
        except StorageError as exc:
            raise CommandError(f'Cannot list stored blobs: {exc.message}') from exc

        count = 0
        failed = 0

        for ref in orphans:
            if dry_run:
                self.stdout.write(f'Would delete: {ref}')
                count += 1
                continue

            try:
                content_store.delete(ref)
            except StorageError as exc:
                self.stderr.write(f'Failed to delete {ref}: {exc}')
                failed += 1
            else:
                logger.info('Purged orphaned blob: %s', ref)
                count += 1

        if dry_run:
            self.stdout.write(
                self.style.SUCCESS(f'Would purge {count} orphaned blobs'),
            )
        else:
            self.stdout.write(
                self.style.SUCCESS(
                    f'Purged {count} orphaned blobs, {failed} failed',
                ),
            )
