"""Plain value types shared by the core services."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, final


@final
@dataclass(frozen=True, slots=True)
class FileRecord:
    """Metadata describing one stored file.

    ``content_ref`` points at the blob holding the current bytes, and
    ``size`` always equals that blob's length. ``version`` grows by one
    on every replace and guards against lost updates.
    """

    name: str
    extension: str
    size: int
    content_ref: str
    created_at: datetime
    modified_at: datetime
    owner_id: int
    owner_name: str
    editor_id: int
    editor_name: str
    id: int | None = None
    version: int = 1

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON responses.

        The storage reference stays internal.

        Returns:
            Dictionary with public fields.
        """
        return {
            'id': self.id,
            'name': self.name,
            'type': self.extension,
            'size': self.size,
            'created_at': self.created_at.isoformat(),
            'modified_at': self.modified_at.isoformat(),
            'owner_id': self.owner_id,
            'owner_name': self.owner_name,
            'editor_id': self.editor_id,
            'editor_name': self.editor_name,
        }
