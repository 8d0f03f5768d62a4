"""Django storage configuration for file content.

Blobs go either to the local filesystem under ``FILE_STORAGE_ROOT``
or to an S3-compatible bucket (MinIO, Cloudflare R2, AWS) through
django-storages. Select with ``FILE_STORAGE_BACKEND=local|s3``.
"""

from typing import Any, Final

from server.settings.components import BASE_DIR, config

FILE_STORAGE_BACKEND: Final = config('FILE_STORAGE_BACKEND', default='local')

FILE_STORAGE_ROOT: Final = config(
    'FILE_STORAGE_ROOT',
    default=str(BASE_DIR.joinpath('uploads')),
)

if FILE_STORAGE_BACKEND == 's3':
    _default_storage: dict[str, Any] = {
        'BACKEND': 'server.apps.files.infrastructure.storage.FileStorage',
        'OPTIONS': {
            'bucket_name': config('AWS_STORAGE_BUCKET_NAME'),
            'access_key': config('AWS_ACCESS_KEY_ID'),
            'secret_key': config('AWS_SECRET_ACCESS_KEY'),
            'endpoint_url': config(
                'AWS_S3_ENDPOINT_URL',
                default=None,
            ),
            'region_name': config(
                'AWS_S3_REGION_NAME',
                default='auto',
            ),
            'file_overwrite': False,  # Prevent accidental overwrites
            'default_acl': None,  # Inherit bucket ACL
        },
    }
else:
    _default_storage = {
        'BACKEND': 'django.core.files.storage.FileSystemStorage',
        'OPTIONS': {
            'location': FILE_STORAGE_ROOT,
        },
    }

STORAGES: Final[dict[str, dict[str, Any]]] = {
    'default': _default_storage,
    'staticfiles': {
        # Keep static files separate from user files
        'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage',
    },
}
