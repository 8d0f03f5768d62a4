"""File manager settings."""

from server.settings.components import config

# Largest accepted upload or replacement, 50 MiB by default
FILE_MAX_UPLOAD_BYTES = config(
    'FILE_MAX_UPLOAD_BYTES',
    cast=int,
    default=50 * 1024 * 1024,
)

# Uploads larger than this are streamed to a temporary file
FILE_UPLOAD_MAX_MEMORY_SIZE = config(
    'FILE_UPLOAD_MAX_MEMORY_SIZE',
    cast=int,
    default=5 * 1024 * 1024,
)
