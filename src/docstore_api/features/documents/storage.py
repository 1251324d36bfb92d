"""Document blob storage built on the filesystem storage adapter."""

from __future__ import annotations

import logging
import mimetypes
import re
import uuid
from collections.abc import AsyncIterator
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import BinaryIO

from docstore_api.common.logging import log_context
from docstore_api.common.time import utc_now
from docstore_api.infra.storage import (
    FilesystemStorage,
    StorageError,
    StorageLimitError,
    StoredObject,
)

from .exceptions import DocumentTooLargeError, StorageDeleteError, StorageWriteError
from .models import DEFAULT_MIME_TYPE

_DEFAULT_CHUNK_SIZE = 1024 * 1024  # 1 MiB default chunk size for streaming
_DEFAULT_PREFIX = "documents"
_EXTENSION_SANITIZER = re.compile(r"[^a-z0-9]")
_MAX_MIME_LENGTH = 100

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class StoredDocument:
    """Metadata captured after writing a document blob to disk."""

    file_path: str
    byte_size: int
    mime_type: str

    @classmethod
    def from_stored_object(cls, obj: StoredObject, *, mime_type: str) -> StoredDocument:
        """Convert a storage adapter descriptor into a ``StoredDocument``."""

        return cls(file_path=obj.uri, byte_size=obj.byte_size, mime_type=mime_type)


def extract_extension(file_name: str | None) -> str:
    """Return the lower-cased extension of ``file_name`` (empty when absent)."""

    if not file_name:
        return ""
    # Client names may carry either separator; only the final segment counts.
    base = PurePosixPath(file_name.replace("\\", "/")).name
    suffix = PurePosixPath(base).suffix.lower().lstrip(".")
    return _EXTENSION_SANITIZER.sub("", suffix)


def detect_mime_type(content_type: str | None, file_name: str | None) -> str:
    """Return the MIME type to record for an upload.

    The client-declared content type wins; otherwise the type is guessed from
    the file name, falling back to ``application/octet-stream``.
    """

    if content_type:
        candidate = content_type.split(";", 1)[0].strip().lower()
        if candidate and len(candidate) <= _MAX_MIME_LENGTH:
            return candidate
    if file_name:
        guessed, _ = mimetypes.guess_type(file_name, strict=False)
        if guessed:
            return guessed
    return DEFAULT_MIME_TYPE


class DocumentStorage:
    """Confine document blob access to the configured storage root."""

    def __init__(self, base_dir: Path, *, prefix: str = _DEFAULT_PREFIX) -> None:
        self._adapter = FilesystemStorage(base_dir)
        self._prefix = prefix.strip("/") or _DEFAULT_PREFIX

    @property
    def base_dir(self) -> Path:
        return self._adapter.base_dir

    def generate_path(self, original_name: str | None, *, now: datetime | None = None) -> str:
        """Return a fresh relative path ``documents/YYYY/MM/DD/<uuid>.<ext>``.

        The date partition uses the UTC upload date; the extension is taken
        from ``original_name`` and omitted when it has none.
        """

        moment = now or utc_now()
        extension = extract_extension(original_name)
        name = uuid.uuid4().hex
        if extension:
            name = f"{name}.{extension}"
        return f"{self._prefix}/{moment:%Y/%m/%d}/{name}"

    def path_for(self, file_path: str) -> Path:
        """Return the absolute path for ``file_path`` within the storage root."""

        try:
            return self._adapter.path_for(file_path)
        except StorageError as exc:
            raise ValueError(str(exc)) from exc

    def resolve_absolute_path(self, file_path: str | None) -> Path | None:
        """Return the absolute location of ``file_path``, or ``None`` when unset."""

        if not file_path:
            return None
        return self.path_for(file_path)

    async def exists(self, file_path: str | None) -> bool:
        """Return whether a blob is stored at ``file_path``."""

        if not file_path:
            return False
        try:
            return await self._adapter.exists(file_path)
        except StorageError:
            logger.warning(
                "document.storage.invalid_path",
                extra=log_context(file_path=file_path),
            )
            return False

    async def write(
        self,
        file_path: str,
        stream: BinaryIO,
        *,
        content_type: str | None = None,
        max_bytes: int | None = None,
    ) -> StoredDocument:
        """Persist ``stream`` to ``file_path`` returning metadata about the write."""

        try:
            stored = await self._adapter.write(file_path, stream, max_bytes=max_bytes)
        except StorageLimitError as exc:
            raise DocumentTooLargeError(limit=exc.limit, received=exc.received) from exc
        except StorageError as exc:
            raise StorageWriteError(file_path=file_path, reason=str(exc)) from exc
        except OSError as exc:
            raise StorageWriteError(
                file_path=file_path,
                reason=exc.strerror or type(exc).__name__,
            ) from exc

        mime_type = detect_mime_type(content_type, file_path)
        return StoredDocument.from_stored_object(stored, mime_type=mime_type)

    async def stream(
        self,
        file_path: str,
        *,
        chunk_size: int = _DEFAULT_CHUNK_SIZE,
    ) -> AsyncIterator[bytes]:
        """Yield the bytes stored at ``file_path`` in ``chunk_size`` chunks."""

        async for chunk in self._adapter.stream(file_path, chunk_size=chunk_size):
            yield chunk

    async def delete(self, file_path: str, *, document_id: uuid.UUID | None = None) -> bool:
        """Remove ``file_path`` from disk; ``False`` when nothing was stored there."""

        try:
            return await self._adapter.delete(file_path)
        except StorageError as exc:
            raise StorageDeleteError(
                file_path=file_path, reason=str(exc), document_id=document_id
            ) from exc
        except OSError as exc:
            raise StorageDeleteError(
                file_path=file_path,
                reason=exc.strerror or type(exc).__name__,
                document_id=document_id,
            ) from exc


__all__ = [
    "DocumentStorage",
    "StoredDocument",
    "detect_mime_type",
    "extract_extension",
]
