"""Ordered and type-filtered views over stored file records."""

import logging
from collections.abc import Collection, Sequence
from operator import attrgetter

from server.apps.files.records import FileRecord
from server.apps.files.repositories import MetadataRepository

logger = logging.getLogger(__name__)

_by_extension = attrgetter('extension')


def list_sorted(
    repository: MetadataRepository,
    ascending: bool | None = None,
) -> list[FileRecord]:
    """List all records, optionally ordered by extension.

    Python's sort is stable in both directions, so records with equal
    extensions keep their repository order.

    Args:
        repository: Record source.
        ascending: True/False to sort by extension, None for
            repository order.

    Returns:
        List of records.
    """
    records = repository.find_all()
    if ascending is None:
        return records
    return sorted(records, key=_by_extension, reverse=not ascending)


def filter_by_type(
    records: Sequence[FileRecord],
    types: Collection[str] | None,
) -> list[FileRecord]:
    """Keep records whose extension is one of ``types``.

    An empty or missing ``types`` means no filtering.

    Args:
        records: Records to filter.
        types: Accepted extensions, without dots.

    Returns:
        Matching records in their original order.
    """
    if not types:
        return list(records)
    accepted = frozenset(types)
    return [record for record in records if record.extension in accepted]


def sort_and_filter(
    repository: MetadataRepository,
    ascending: bool | None = None,
    types: Collection[str] | None = None,
) -> list[FileRecord]:
    """Sort all records, then filter the sorted list by type.

    Args:
        repository: Record source.
        ascending: Sort direction, None for repository order.
        types: Accepted extensions, empty or None for all.

    Returns:
        Sorted, filtered list of records.
    """
    logger.debug('Listing files: ascending=%s types=%s', ascending, types)
    return filter_by_type(list_sorted(repository, ascending), types)


def list_for_owner(
    repository: MetadataRepository,
    owner_id: int,
) -> list[FileRecord]:
    """List the owner's records in repository order."""
    return repository.find_by_owner(owner_id)
