"""Metadata extraction utilities for files."""

import hashlib
import uuid
from typing import Final

_DEFAULT_CONTENT_TYPE: Final = 'application/octet-stream'

# Keeps storage names under the 255 byte filename limit of common
# filesystems even for 4-byte UTF-8 characters and collision suffixes
_STORAGE_NAME_TAIL_LENGTH: Final = 50

# Static table: extension -> MIME type served on download
_CONTENT_TYPES: Final = {
    'jpg': 'image/jpeg',
    'jpeg': 'image/jpeg',
    'png': 'image/png',
    'gif': 'image/gif',
    'kt': 'text/plain',
    'txt': 'text/plain',
    'md': 'text/markdown',
    'js': 'text/javascript',
    'json': 'application/json',
    'pdf': 'application/pdf',
    'zip': 'application/zip',
}


def get_file_extension(filename: str) -> str:
    """Get file extension from filename.

    The extension is the text after the last dot. A name without a dot,
    or ending in a dot, has no extension.

    Args:
        filename: Filename (e.g., 'document.PDF').

    Returns:
        Extension without dot, lowercase (e.g., 'pdf').
        Returns empty string if no extension.
    """
    _, dot, extension = filename.rpartition('.')
    if not dot:
        return ''
    return extension.lower()


def detect_content_type(extension: str) -> str:
    """Map a stored extension to the MIME type used for downloads.

    Args:
        extension: Extension without dot.

    Returns:
        MIME type string (e.g., 'image/png').
        Returns 'application/octet-stream' for unknown extensions.
    """
    return _CONTENT_TYPES.get(extension.lower(), _DEFAULT_CONTENT_TYPE)


def calculate_checksum(content: bytes) -> str:
    """Calculate SHA256 checksum of content.

    Args:
        content: Raw file bytes.

    Returns:
        Hex-encoded SHA256 hash string.
    """
    return hashlib.sha256(content).hexdigest()


def build_storage_name(owner_id: int, filename: str) -> str:
    """Generate a collision-free content store name.

    Example: (7, 'notes.txt') -> '7/3f2a...c1_notes.txt'

    Only the last characters of long names are kept, so the extension
    survives while the name stays short enough for any backend.

    Args:
        owner_id: Owner's user ID, used as the top-level prefix.
        filename: Display name of the file.

    Returns:
        Storage name embedding the owner and a random component.
    """
    safe_name = filename.replace('/', '_').replace('\\', '_')
    safe_name = safe_name[-_STORAGE_NAME_TAIL_LENGTH:]
    return f'{owner_id}/{uuid.uuid4().hex}_{safe_name}'
