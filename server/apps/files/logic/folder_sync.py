"""Two-way folder sync driven by the name-based sync plan.

Mirrors what a desktop client does against the API: list the names in
a local folder, compare them with the owner's remote files, upload
what only exists locally and download what only exists remotely.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final, final

from returns.pipeline import is_successful

from server.apps.files.identity import Identity
from server.apps.files.logic.file_operations import FileService
from server.apps.files.logic.sort_filter import list_for_owner
from server.apps.files.logic.sync_operations import SyncPlan, compare
from server.apps.files.repositories import MetadataRepository

logger = logging.getLogger(__name__)

_SPECIAL_NAMES: Final = frozenset(('.', '..'))


@final
@dataclass
class SyncReport:
    """Outcome of one folder sync run."""

    plan: SyncPlan
    uploaded: list[str] = field(default_factory=list)
    downloaded: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)


def list_folder_names(folder: Path) -> set[str]:
    """Collect names of regular files directly inside a folder.

    Args:
        folder: Local folder.

    Returns:
        Set of file names (subfolders are ignored).

    Raises:
        NotADirectoryError: If ``folder`` is not a directory.
    """
    if not folder.is_dir():
        raise NotADirectoryError(f'Folder not found: {folder}')
    return {entry.name for entry in folder.iterdir() if entry.is_file()}


def sync_folder(  # noqa: WPS211
    service: FileService,
    repository: MetadataRepository,
    identity: Identity,
    folder: Path,
    dry_run: bool = False,
) -> SyncReport:
    """Synchronize a local folder with the identity's remote files.

    Per-file failures are recorded in the report and do not stop the
    remaining transfers.

    Args:
        service: File service performing uploads and fetches.
        repository: Source of the remote listing.
        identity: Owner of the remote files.
        folder: Local folder to sync.
        dry_run: Only compute the plan.

    Returns:
        SyncReport with the plan and per-file outcomes.
    """
    plan = compare(repository, identity.user_id, list_folder_names(folder))
    report = SyncReport(plan=plan)
    if dry_run:
        return report

    for name in sorted(plan.to_upload):
        _upload_one(service, identity, folder, name, report)

    remote_ids = {
        record.name: record.id
        for record in list_for_owner(repository, identity.user_id)
    }
    for name in sorted(plan.to_download):
        _download_one(service, folder, name, remote_ids.get(name), report)

    logger.info(
        'Folder sync for %s: %d uploaded, %d downloaded, %d failed',
        identity.user_name,
        len(report.uploaded),
        len(report.downloaded),
        len(report.failed),
    )
    return report


def _upload_one(
    service: FileService,
    identity: Identity,
    folder: Path,
    name: str,
    report: SyncReport,
) -> None:
    try:
        content = folder.joinpath(name).read_bytes()
    except OSError as error:
        logger.exception('Failed to read local file: %s', name)
        report.failed[name] = str(error)
        return

    result = service.upload(content, name, identity)
    if is_successful(result):
        report.uploaded.append(name)
    else:
        report.failed[name] = result.failure().message


def _download_one(
    service: FileService,
    folder: Path,
    name: str,
    file_id: int | None,
    report: SyncReport,
) -> None:
    if Path(name).name != name or name in _SPECIAL_NAMES:
        report.failed[name] = 'Name is not a plain file name'
        return
    if file_id is None:
        report.failed[name] = 'File not found'
        return

    result = service.fetch(file_id)
    if not is_successful(result):
        report.failed[name] = result.failure().message
        return

    _, content = result.unwrap()
    target = folder.joinpath(name)
    try:
        target.write_bytes(content)
    except OSError as error:
        logger.exception('Failed to write local file: %s', target)
        report.failed[name] = str(error)
        return
    report.downloaded.append(name)
