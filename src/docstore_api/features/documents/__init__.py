"""Documents feature: upload, storage, listing, soft delete and download."""

from .models import Document, DocumentStatus
from .service import DocumentDownload, DocumentsService
from .storage import DocumentStorage, StoredDocument

__all__ = [
    "Document",
    "DocumentDownload",
    "DocumentStatus",
    "DocumentStorage",
    "DocumentsService",
    "StoredDocument",
]
