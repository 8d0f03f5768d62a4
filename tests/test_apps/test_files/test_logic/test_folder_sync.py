"""Tests for local folder synchronization."""

import pytest

from server.apps.files.logic.folder_sync import list_folder_names, sync_folder


@pytest.fixture
def folder(tmp_path):
    """Local folder with one shared and one local-only file."""
    local = tmp_path / 'local'
    local.mkdir()
    local.joinpath('both.kt').write_bytes(b'local copy')
    local.joinpath('localOnly.png').write_bytes(b'png bytes')
    local.joinpath('nested').mkdir()
    return local


def test_list_folder_names_skips_folders(folder):
    """Test only regular files are listed."""
    assert list_folder_names(folder) == {'both.kt', 'localOnly.png'}


def test_list_folder_names_missing(tmp_path):
    """Test a missing folder is reported."""
    with pytest.raises(NotADirectoryError):
        list_folder_names(tmp_path / 'missing')


def test_sync_transfers_both_ways(service, repository, folder, alice):
    """Test local-only files upload and remote-only files download."""
    service.upload(b'server copy', 'both.kt', alice).unwrap()
    service.upload(b'console.log(1)', 'serverOnly.js', alice).unwrap()

    report = sync_folder(service, repository, alice, folder)

    assert report.uploaded == ['localOnly.png']
    assert report.downloaded == ['serverOnly.js']
    assert report.failed == {}
    assert folder.joinpath('serverOnly.js').read_bytes() == b'console.log(1)'
    # Same name means in sync, content is not compared
    assert folder.joinpath('both.kt').read_bytes() == b'local copy'
    names = {record.name for record in repository.find_by_owner(alice.user_id)}
    assert names == {'both.kt', 'serverOnly.js', 'localOnly.png'}


def test_dry_run_changes_nothing(service, repository, folder, alice):
    """Test a dry run only reports the plan."""
    service.upload(b'x', 'serverOnly.js', alice).unwrap()

    report = sync_folder(service, repository, alice, folder, dry_run=True)

    assert report.plan.to_upload == {'both.kt', 'localOnly.png'}
    assert report.plan.to_download == {'serverOnly.js'}
    assert report.uploaded == []
    assert not folder.joinpath('serverOnly.js').exists()
    assert len(repository.find_all()) == 1


def test_failures_are_collected(service, repository, folder, alice):
    """Test a failing upload does not stop the other transfers."""
    folder.joinpath('noextension').write_bytes(b'data')
    service.upload(b'x', 'serverOnly.js', alice).unwrap()

    report = sync_folder(service, repository, alice, folder)

    assert report.failed == {'noextension': 'File must have an extension'}
    assert sorted(report.uploaded) == ['both.kt', 'localOnly.png']
    assert report.downloaded == ['serverOnly.js']


def test_unsafe_remote_names_not_written(service, repository, tmp_path, alice):
    """Test remote names cannot escape the target folder."""
    local = tmp_path / 'local'
    local.mkdir()
    service.upload(b'x', 'a/../../escape.txt', alice).unwrap()

    report = sync_folder(service, repository, alice, local)

    assert report.downloaded == []
    assert 'a/../../escape.txt' in report.failed
    assert not tmp_path.joinpath('escape.txt').exists()
