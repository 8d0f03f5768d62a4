"""Management command to sync a local folder with a user's files."""

from pathlib import Path
from typing import Any, final

from typing_extensions import override

from django.core.management.base import BaseCommand, CommandError

from server.apps.files.identity import Identity
from server.apps.files.logic.file_operations import get_file_service
from server.apps.files.logic.folder_sync import sync_folder
from server.apps.files.repositories import DjangoMetadataRepository


@final
class Command(BaseCommand):
    """Upload local-only files and download remote-only files."""

    help = 'Sync the files of a local folder with a user\'s stored files'

    @override
    def add_arguments(self, parser: Any) -> None:
        """Add command arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument('user_id', type=int, help='Owner user ID')
        parser.add_argument('user_name', type=str, help='Owner user name')
        parser.add_argument('folder', type=Path, help='Local folder')
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Only print the sync plan',
        )

    @override
    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the command.

        Args:
            args: Positional arguments.
            options: Keyword arguments from command line.
        """
        identity = Identity(
            user_id=options['user_id'],
            user_name=options['user_name'],
        )
        try:
            report = sync_folder(
                get_file_service(),
                DjangoMetadataRepository(),
                identity,
                options['folder'],
                dry_run=options['dry_run'],
            )
        except NotADirectoryError as exc:
            raise CommandError(str(exc)) from exc

        for name in sorted(report.plan.to_upload):
            self.stdout.write(f'Upload: {name}')
        for name in sorted(report.plan.to_download):
            self.stdout.write(f'Download: {name}')
        for name, reason in sorted(report.failed.items()):
            self.stderr.write(f'Failed {name}: {reason}')

        if options['dry_run']:
            self.stdout.write(
                self.style.SUCCESS(
                    f'Would upload {len(report.plan.to_upload)}, '
                    f'download {len(report.plan.to_download)}',
                ),
            )
        else:
            self.stdout.write(
                self.style.SUCCESS(
                    f'Uploaded {len(report.uploaded)}, '
                    f'downloaded {len(report.downloaded)}, '
                    f'{len(report.failed)} failed',
                ),
            )
