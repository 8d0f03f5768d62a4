"""Shared fixtures for files app tests."""

from datetime import datetime, timedelta

import boto3
import pytest
from django.contrib.auth import get_user_model
from django.core.files.storage import FileSystemStorage
from django.utils import timezone
from moto import mock_aws

from server.apps.files.identity import Identity
from server.apps.files.infrastructure.content_store import (
    InMemoryContentStore,
    StorageContentStore,
)
from server.apps.files.logic.file_operations import FileService
from server.apps.files.repositories import (
    DjangoMetadataRepository,
    InMemoryMetadataRepository,
)

User = get_user_model()


class FakeClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


@pytest.fixture(autouse=True)
def local_storage(settings, tmp_path):
    """Point default storage at a temporary folder.

    Returns:
        Path of the storage root.
    """
    root = tmp_path / 'blobs'
    settings.STORAGES = {
        'default': {
            'BACKEND': 'django.core.files.storage.FileSystemStorage',
            'OPTIONS': {'location': str(root)},
        },
        'staticfiles': {
            'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage',
        },
    }
    return root


@pytest.fixture
def user(db):
    """Create test user.

    Returns:
        User instance for testing.
    """
    return User.objects.create_user(
        username='testuser',
        password='testpass123',
        email='test@example.com',
    )


@pytest.fixture
def other_user(db):
    """Create second test user for isolation tests.

    Returns:
        Second user instance.
    """
    return User.objects.create_user(
        username='otheruser',
        password='testpass123',
        email='other@example.com',
    )


@pytest.fixture
def alice():
    """Identity of the first file owner."""
    return Identity(user_id=1, user_name='alice')


@pytest.fixture
def bob():
    """Identity of a second file owner."""
    return Identity(user_id=2, user_name='bob')


@pytest.fixture
def clock():
    """Clock that ticks forward on every call."""
    return FakeClock(timezone.now())


@pytest.fixture
def content_store():
    """Empty in-memory content store."""
    return InMemoryContentStore()


@pytest.fixture
def repository():
    """Empty in-memory metadata repository."""
    return InMemoryMetadataRepository()


@pytest.fixture
def service(content_store, repository, clock):
    """File service over in-memory backends with a 1 KiB upload limit."""
    return FileService(
        content_store,
        repository,
        max_upload_bytes=1024,
        clock=clock,
    )


@pytest.fixture
def django_service(db, tmp_path, clock):
    """File service over the database and a filesystem content store."""
    storage = FileSystemStorage(location=str(tmp_path / 'service-blobs'))
    return FileService(
        StorageContentStore(storage),
        DjangoMetadataRepository(),
        max_upload_bytes=1024,
        clock=clock,
    )


@pytest.fixture
def mock_s3():
    """Mock S3 service with file-manager bucket.

    Yields:
        boto3 S3 resource with file-manager bucket created.
    """
    with mock_aws():
        conn = boto3.resource('s3', region_name='us-east-1')
        conn.create_bucket(Bucket='file-manager')
        yield conn
