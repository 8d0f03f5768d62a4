"""Name-based sync reconciliation between a client folder and the server."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import final

from server.apps.files.logic.sort_filter import list_for_owner
from server.apps.files.repositories import MetadataRepository

logger = logging.getLogger(__name__)


@final
@dataclass(frozen=True, slots=True)
class SyncPlan:
    """Names missing on each side.

    Only names are compared: two files with the same name count as in
    sync whatever their content.
    """

    to_upload: frozenset[str]
    to_download: frozenset[str]

    @property
    def is_empty(self) -> bool:
        """Whether both sides already hold the same names."""
        return not self.to_upload and not self.to_download


def compare(
    repository: MetadataRepository,
    owner_id: int,
    local_names: Iterable[str],
) -> SyncPlan:
    """Compute which names to upload and which to download.

    Args:
        repository: Source of the owner's remote records.
        owner_id: Owner whose files are compared.
        local_names: Names present on the client, duplicates allowed.

    Returns:
        SyncPlan with ``local - remote`` to upload and
        ``remote - local`` to download.
    """
    local = frozenset(local_names)
    remote = frozenset(
        record.name for record in list_for_owner(repository, owner_id)
    )
    plan = SyncPlan(to_upload=local - remote, to_download=remote - local)
    logger.info(
        'Sync compare for owner %d: %d local, %d remote, '
        '%d to upload, %d to download',
        owner_id,
        len(local),
        len(remote),
        len(plan.to_upload),
        len(plan.to_download),
    )
    return plan
