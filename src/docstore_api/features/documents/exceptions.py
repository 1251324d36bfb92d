"""Domain errors raised by the documents feature."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from uuid import UUID


class DocumentValidationError(Exception):
    """Raised when client-supplied input fails validation.

    ``errors`` maps each offending field to its human-readable messages.
    """

    def __init__(
        self,
        errors: Mapping[str, Sequence[str]],
        *,
        message: str = "Validation failed",
    ) -> None:
        super().__init__(message)
        self.errors: dict[str, list[str]] = {
            field: list(messages) for field, messages in errors.items()
        }


class DocumentTooLargeError(DocumentValidationError):
    """Raised when an uploaded document exceeds the configured size limit."""

    def __init__(self, *, limit: int, received: int) -> None:
        message = (
            f"Uploaded file is {received:,} bytes which exceeds the allowed "
            f"maximum of {limit:,} bytes."
        )
        super().__init__({"file": [message]}, message=message)
        self.limit = limit
        self.received = received


class DocumentNotFoundError(Exception):
    """Raised when a document lookup does not yield a live record."""

    def __init__(self, document_id: UUID | str) -> None:
        doc_id = str(document_id)
        super().__init__(f"Document {doc_id!r} not found")
        self.document_id = doc_id


class DocumentFileMissingError(Exception):
    """Raised when a stored document file cannot be located on disk."""

    def __init__(self, *, document_id: UUID | str, file_path: str | None) -> None:
        doc_id = str(document_id)
        message = f"Stored file for document {doc_id!r} was not found at {file_path!r}."
        super().__init__(message)
        self.document_id = doc_id
        self.file_path = file_path


class DocumentPermissionDeniedError(Exception):
    """Raised by an authorization policy that refuses an action."""

    def __init__(self, *, action: str, document_id: UUID | str | None = None) -> None:
        target = f" on document {str(document_id)!r}" if document_id is not None else ""
        super().__init__(f"Not permitted to {action} documents{target}.")
        self.action = action
        self.document_id = str(document_id) if document_id is not None else None


class StorageWriteError(Exception):
    """Raised when uploaded bytes could not be persisted."""

    def __init__(self, *, file_path: str, reason: str) -> None:
        super().__init__(f"Failed to store file at {file_path!r}: {reason}")
        self.file_path = file_path
        self.reason = reason


class StorageDeleteError(Exception):
    """Raised when a stored file exists but could not be removed."""

    def __init__(
        self,
        *,
        file_path: str,
        reason: str,
        document_id: UUID | str | None = None,
    ) -> None:
        owner = f" for document {str(document_id)!r}" if document_id is not None else ""
        super().__init__(f"Failed to delete stored file{owner} at {file_path!r}: {reason}")
        self.document_id = str(document_id) if document_id is not None else None
        self.file_path = file_path
        self.reason = reason


class DocumentPersistenceError(Exception):
    """Raised when document metadata could not be written to the database."""

    def __init__(self, *, reason: str) -> None:
        super().__init__(f"Failed to save document metadata: {reason}")
        self.reason = reason


__all__ = [
    "DocumentFileMissingError",
    "DocumentNotFoundError",
    "DocumentPermissionDeniedError",
    "DocumentPersistenceError",
    "DocumentTooLargeError",
    "DocumentValidationError",
    "StorageDeleteError",
    "StorageWriteError",
]
