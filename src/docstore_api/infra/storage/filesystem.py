"""Local filesystem-backed storage adapter."""

from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path
from typing import BinaryIO

from fastapi.concurrency import run_in_threadpool

from .base import StorageAdapter, StorageError, StorageLimitError, StoredObject

_DEFAULT_CHUNK_SIZE = 1024 * 1024  # 1 MiB


class FilesystemStorage(StorageAdapter):
    """Store objects on the local filesystem within a configured base directory."""

    def __init__(self, base_dir: Path) -> None:
        self._base_dir = Path(base_dir).expanduser().resolve()
        self._base_dir.mkdir(parents=True, exist_ok=True)

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def path_for(self, uri: str) -> Path:
        """Return the absolute filesystem path for ``uri``."""

        relative = uri.lstrip("/")
        if not relative:
            raise StorageError("Storage URI must not be empty.")
        candidate = (self._base_dir / relative).resolve()
        try:
            candidate.relative_to(self._base_dir)
        except ValueError as exc:
            raise StorageError("Storage URI escapes the configured base directory.") from exc
        if candidate == self._base_dir:
            raise StorageError("Storage URI must name a file below the base directory.")
        return candidate

    async def write(
        self,
        uri: str,
        stream: BinaryIO,
        *,
        max_bytes: int | None = None,
    ) -> StoredObject:
        """Persist ``stream`` to storage returning metadata about the write."""

        destination = self.path_for(uri)

        def _write() -> StoredObject:
            rewind = getattr(stream, "seek", None)
            if callable(rewind):
                try:
                    rewind(0)
                except (OSError, ValueError):
                    pass

            size = 0
            destination.parent.mkdir(parents=True, exist_ok=True)

            # Exclusive create: an existing object is never overwritten.
            target = destination.open("xb")
            success = False
            try:
                with target:
                    while True:
                        chunk = stream.read(_DEFAULT_CHUNK_SIZE)
                        if not chunk:
                            break
                        size += len(chunk)
                        if max_bytes is not None and size > max_bytes:
                            raise StorageLimitError(limit=max_bytes, received=size)
                        target.write(chunk)
                success = True
            finally:
                if not success:
                    destination.unlink(missing_ok=True)

            return StoredObject(uri=uri, byte_size=size)

        return await run_in_threadpool(_write)

    async def exists(self, uri: str) -> bool:
        """Return whether ``uri`` points at a regular file."""

        path = self.path_for(uri)
        return await run_in_threadpool(path.is_file)

    async def stream(
        self,
        uri: str,
        *,
        chunk_size: int = _DEFAULT_CHUNK_SIZE,
    ) -> AsyncIterator[bytes]:
        """Yield chunks for ``uri``."""

        path = self.path_for(uri)
        exists = await run_in_threadpool(path.is_file)
        if not exists:
            raise FileNotFoundError(uri)

        source = await run_in_threadpool(path.open, "rb")
        try:
            while True:
                chunk = await run_in_threadpool(source.read, chunk_size)
                if not chunk:
                    break
                yield chunk
        finally:
            await run_in_threadpool(source.close)

    async def delete(self, uri: str) -> bool:
        """Delete ``uri`` if it exists; return whether a file was removed."""

        path = self.path_for(uri)

        def _remove() -> bool:
            try:
                path.unlink()
            except FileNotFoundError:
                return False
            return True

        return await run_in_threadpool(_remove)
