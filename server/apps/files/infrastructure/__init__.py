"""Infrastructure layer for files app.

This package contains integrations with external systems:
- Content stores over Django storage backends (filesystem, S3/MinIO/R2)
- Custom S3 storage backend with logging and flat key listing
- Metadata extraction (extension, content type, checksum)

Keep infrastructure concerns separate from business logic.
"""
