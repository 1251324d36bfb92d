"""Storage adapters."""

from .base import StorageAdapter, StorageError, StorageLimitError, StoredObject
from .filesystem import FilesystemStorage

__all__ = [
    "FilesystemStorage",
    "StorageAdapter",
    "StorageError",
    "StorageLimitError",
    "StoredObject",
]
