"""Django admin configuration for files app."""

from typing_extensions import override

from django.contrib import admin
from django.http import HttpRequest

from server.apps.files.models import StoredFile


def _format_bytes(size_bytes: int) -> str:
    """Format bytes in human-readable format.

    Args:
        size_bytes: Size in bytes.

    Returns:
        Formatted size string (e.g., '1.5 MB', '234 KB').
    """
    if size_bytes < 1024:
        return f'{size_bytes} B'
    if size_bytes < 1024 * 1024:  # noqa: WPS531
        return f'{size_bytes / 1024:.1f} KB'
    if size_bytes < 1024 * 1024 * 1024:  # noqa: WPS531
        return f'{size_bytes / (1024 * 1024):.1f} MB'
    return f'{size_bytes / (1024 * 1024 * 1024):.1f} GB'


@admin.register(StoredFile)
class StoredFileAdmin(admin.ModelAdmin[StoredFile]):
    """Read-only admin for stored files.

    Edits must go through the file service so content and metadata stay
    consistent, so the admin only browses records.
    """

    list_display = [
        'name',
        'extension',
        'size_display',
        'owner_name',
        'editor_name',
        'modified_at',
        'version',
    ]

    list_filter = [
        'extension',
        'modified_at',
    ]

    search_fields = [
        'name',
        'owner_name',
        'content_ref',
    ]

    fieldsets = (
        ('File Information', {
            'fields': ('name', 'extension', 'size_bytes', 'content_ref'),
        }),
        ('Ownership', {
            'fields': ('owner_id', 'owner_name', 'editor_id', 'editor_name'),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'modified_at', 'version'),
        }),
    )

    def size_display(self, obj: StoredFile) -> str:
        """Display file size in human-readable format.

        Args:
            obj: StoredFile instance.

        Returns:
            Formatted size string.
        """
        return _format_bytes(obj.size_bytes)
    size_display.short_description = 'Size'  # type: ignore[attr-defined]

    @override
    def has_add_permission(self, request: HttpRequest) -> bool:
        return False

    @override
    def has_change_permission(
        self,
        request: HttpRequest,
        obj: StoredFile | None = None,
    ) -> bool:
        return False

    @override
    def has_delete_permission(
        self,
        request: HttpRequest,
        obj: StoredFile | None = None,
    ) -> bool:
        return False
