"""Tests for metadata utilities."""

import pytest

from server.apps.files.infrastructure.metadata import (
    build_storage_name,
    calculate_checksum,
    detect_content_type,
    get_file_extension,
)


@pytest.mark.parametrize(('filename', 'expected'), [
    ('document.PDF', 'pdf'),
    ('Main.kt', 'kt'),
    ('archive.tar.gz', 'gz'),
    ('.bashrc', 'bashrc'),
    ('README', ''),
    ('file.', ''),
    ('', ''),
])
def test_get_file_extension(filename, expected):
    """Test extension is the lower-cased text after the last dot."""
    assert get_file_extension(filename) == expected


def test_detect_content_type():
    """Test MIME type lookup by extension."""
    assert detect_content_type('pdf') == 'application/pdf'
    assert detect_content_type('txt') == 'text/plain'
    assert detect_content_type('kt') == 'text/plain'
    assert detect_content_type('jpg') == 'image/jpeg'
    assert detect_content_type('PNG') == 'image/png'


def test_detect_content_type_unknown():
    """Test unknown extensions fall back to octet-stream."""
    assert detect_content_type('xyz') == 'application/octet-stream'
    assert detect_content_type('') == 'application/octet-stream'


def test_calculate_checksum():
    """Test SHA256 checksum calculation."""
    checksum = calculate_checksum(b'test content')

    # Should be 64 character hex string
    assert len(checksum) == 64
    assert all(char in '0123456789abcdef' for char in checksum)

    assert calculate_checksum(b'test content') == checksum
    assert calculate_checksum(b'other content') != checksum


def test_build_storage_name():
    """Test storage names are prefixed by owner and unique."""
    first = build_storage_name(7, 'notes.txt')
    second = build_storage_name(7, 'notes.txt')

    assert first.startswith('7/')
    assert first.endswith('_notes.txt')
    assert first != second


def test_build_storage_name_strips_separators():
    """Test path separators in names cannot create subfolders."""
    name = build_storage_name(1, '../x\\y.txt')

    owner, _, blob = name.partition('/')
    assert owner == '1'
    assert '/' not in blob
    assert '\\' not in blob


def test_build_storage_name_keeps_tail_of_long_names():
    """Test long names are shortened from the front, keeping the extension."""
    name = build_storage_name(7, 'a' * 300 + '.txt')

    _, _, blob = name.partition('/')
    assert name.endswith('a.txt')
    assert len(blob) == 33 + 50
