"""Tests for the database-backed metadata repository."""

import dataclasses

import pytest
from django.utils import timezone

from server.apps.files.exceptions import ConflictError, NotFoundError
from server.apps.files.models import StoredFile
from server.apps.files.records import FileRecord
from server.apps.files.repositories import DjangoMetadataRepository


def _record(name='notes.txt', owner_id=1, content_ref='1/x_notes.txt'):
    now = timezone.now()
    return FileRecord(
        name=name,
        extension=name.rpartition('.')[2],
        size=5,
        content_ref=content_ref,
        created_at=now,
        modified_at=now,
        owner_id=owner_id,
        owner_name=f'user{owner_id}',
        editor_id=owner_id,
        editor_name=f'user{owner_id}',
    )


@pytest.fixture
def django_repository(db):
    """Repository over the test database."""
    return DjangoMetadataRepository()


@pytest.mark.django_db
class TestInsert:
    """Tests for inserting records."""

    def test_assigns_id(self, django_repository):
        """Test insert returns the record with an id."""
        stored = django_repository.insert(_record())

        assert stored.id is not None
        assert stored.version == 1
        assert StoredFile.objects.filter(pk=stored.id).exists()

    def test_duplicate_name_for_owner_conflicts(self, django_repository):
        """Test the unique constraint surfaces as ConflictError."""
        django_repository.insert(_record())

        with pytest.raises(ConflictError):
            django_repository.insert(_record(content_ref='1/y_notes.txt'))

        assert StoredFile.objects.count() == 1

    def test_same_name_for_other_owner_allowed(self, django_repository):
        """Test names are unique per owner only."""
        django_repository.insert(_record(owner_id=1))
        django_repository.insert(_record(owner_id=2))

        assert StoredFile.objects.count() == 2


@pytest.mark.django_db
class TestQueries:
    """Tests for lookups."""

    def test_find_by_id_missing(self, django_repository):
        """Test a missing id returns None."""
        assert django_repository.find_by_id(999) is None

    def test_find_by_owner_in_id_order(self, django_repository):
        """Test owner listing is ordered and isolated."""
        first = django_repository.insert(_record('b.txt', owner_id=1))
        django_repository.insert(_record('c.txt', owner_id=2))
        second = django_repository.insert(_record('a.txt', owner_id=1))

        names = [record.name for record in django_repository.find_by_owner(1)]

        assert names == [first.name, second.name]

    def test_find_all_in_id_order(self, django_repository):
        """Test full listing keeps insertion order."""
        for name in ('z.txt', 'a.md', 'm.kt'):
            django_repository.insert(_record(name))

        names = [record.name for record in django_repository.find_all()]

        assert names == ['z.txt', 'a.md', 'm.kt']

    def test_exists_by_owner_and_name(self, django_repository):
        """Test the name lookup is scoped to the owner."""
        django_repository.insert(_record('a.txt', owner_id=1))

        assert django_repository.exists_by_owner_and_name(1, 'a.txt')
        assert not django_repository.exists_by_owner_and_name(2, 'a.txt')

    def test_content_refs(self, django_repository):
        """Test every referenced blob is reported."""
        django_repository.insert(_record('a.txt', content_ref='1/a'))
        django_repository.insert(_record('b.txt', content_ref='1/b'))

        assert django_repository.content_refs() == {'1/a', '1/b'}


@pytest.mark.django_db
class TestUpdate:
    """Tests for optimistic updates."""

    def test_bumps_version(self, django_repository):
        """Test a current-version update commits and bumps the version."""
        stored = django_repository.insert(_record())
        changed = dataclasses.replace(stored, name='renamed.md', extension='md')

        updated = django_repository.update(changed, expected_version=1)

        assert updated.version == 2
        row = StoredFile.objects.get(pk=stored.id)
        assert row.name == 'renamed.md'
        assert row.version == 2

    def test_stale_version_conflicts(self, django_repository):
        """Test a stale expected version is rejected."""
        stored = django_repository.insert(_record())
        django_repository.update(stored, expected_version=1)

        with pytest.raises(ConflictError):
            django_repository.update(
                dataclasses.replace(stored, size=99),
                expected_version=1,
            )

        assert StoredFile.objects.get(pk=stored.id).size_bytes == 5

    def test_missing_row(self, django_repository):
        """Test updating a deleted record raises NotFoundError."""
        stored = django_repository.insert(_record())
        StoredFile.objects.filter(pk=stored.id).delete()

        with pytest.raises(NotFoundError):
            django_repository.update(stored, expected_version=1)

    def test_rename_to_taken_name_conflicts(self, django_repository):
        """Test the unique constraint also guards renames."""
        django_repository.insert(_record('a.txt'))
        second = django_repository.insert(_record('b.txt'))

        with pytest.raises(ConflictError):
            django_repository.update(
                dataclasses.replace(second, name='a.txt'),
                expected_version=1,
            )


@pytest.mark.django_db
class TestDelete:
    """Tests for deleting records."""

    def test_returns_removed_record(self, django_repository):
        """Test delete hands back the record it removed."""
        stored = django_repository.insert(_record())

        removed = django_repository.delete(stored.id)

        assert removed == stored
        assert not StoredFile.objects.exists()

    def test_missing_returns_none(self, django_repository):
        """Test deleting twice is not an error at this layer."""
        assert django_repository.delete(999) is None
