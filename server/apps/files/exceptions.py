"""Exceptions for files app."""


class FileOperationError(Exception):
    """Base class for all file operation failures."""

    def __init__(self, message: str) -> None:
        """Initialize FileOperationError.

        Args:
            message: Description safe to show to API clients.
        """
        self.message = message
        super().__init__(message)


class ValidationError(FileOperationError):
    """Raised for malformed input: empty content, missing extension."""


class ConflictError(FileOperationError):
    """Raised when a name is taken or a record changed concurrently."""


class NotFoundError(FileOperationError):
    """Raised when no file record exists for the given id."""

    def __init__(self, file_id: int | None, message: str = 'File not found') -> None:
        """Initialize NotFoundError.

        Args:
            file_id: Requested file id.
            message: Description safe to show to API clients.
        """
        self.file_id = file_id
        super().__init__(message)


class IntegrityError(NotFoundError):
    """Raised when a record exists but its content blob does not match."""

    def __init__(self, file_id: int | None, content_ref: str) -> None:
        """Initialize IntegrityError.

        Args:
            file_id: Id of the damaged record.
            content_ref: Blob reference the record points at.
        """
        self.content_ref = content_ref
        super().__init__(file_id, 'File data not found in storage')


class StorageError(FileOperationError):
    """Raised when blob I/O or a metadata commit fails."""
