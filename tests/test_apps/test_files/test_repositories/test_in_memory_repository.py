"""Tests for the in-memory metadata repository."""

import dataclasses
from datetime import UTC, datetime

import pytest

from server.apps.files.exceptions import ConflictError, NotFoundError
from server.apps.files.records import FileRecord
from server.apps.files.repositories import InMemoryMetadataRepository

_NOW = datetime(2024, 1, 1, tzinfo=UTC)


def _record(name, owner_id=1):
    return FileRecord(
        name=name,
        extension=name.rpartition('.')[2],
        size=1,
        content_ref=f'{owner_id}/{name}',
        created_at=_NOW,
        modified_at=_NOW,
        owner_id=owner_id,
        owner_name='owner',
        editor_id=owner_id,
        editor_name='owner',
    )


def test_insert_assigns_sequential_ids(repository):
    """Test ids follow insertion order."""
    first = repository.insert(_record('a.txt'))
    second = repository.insert(_record('b.txt'))

    assert (first.id, second.id) == (1, 2)
    assert repository.find_all() == [first, second]


def test_insert_duplicate_conflicts(repository):
    """Test the per-owner name constraint."""
    repository.insert(_record('a.txt'))

    with pytest.raises(ConflictError):
        repository.insert(_record('a.txt'))
    repository.insert(_record('a.txt', owner_id=2))


def test_update_version_check(repository):
    """Test the optimistic version guard."""
    stored = repository.insert(_record('a.txt'))

    updated = repository.update(
        dataclasses.replace(stored, size=2),
        expected_version=1,
    )
    assert updated.version == 2

    with pytest.raises(ConflictError):
        repository.update(stored, expected_version=1)


def test_update_missing(repository):
    """Test updating an unknown id."""
    with pytest.raises(NotFoundError):
        repository.update(
            dataclasses.replace(_record('a.txt'), id=42),
            expected_version=1,
        )


def test_update_rename_to_taken_name(repository):
    """Test renames respect the name constraint."""
    repository.insert(_record('a.txt'))
    second = repository.insert(_record('b.txt'))

    with pytest.raises(ConflictError):
        repository.update(
            dataclasses.replace(second, name='a.txt'),
            expected_version=1,
        )


def test_delete_returns_record(repository):
    """Test delete returns the removed record once."""
    stored = repository.insert(_record('a.txt'))

    assert repository.delete(stored.id) == stored
    assert repository.delete(stored.id) is None
    assert repository.content_refs() == set()


def test_repository_is_isolated_instance():
    """Test separate instances share no state."""
    first = InMemoryMetadataRepository()
    first.insert(_record('a.txt'))

    assert InMemoryMetadataRepository().find_all() == []
