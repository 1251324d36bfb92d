"""Service layer for document upload, retrieval and removal."""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass
from typing import Any, TypeVar
from uuid import UUID

from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from docstore_api.common.ids import generate_uuid7
from docstore_api.common.logging import log_context
from docstore_api.common.pagination import paginate
from docstore_api.common.time import utc_now
from docstore_api.common.validators import errors_by_field
from docstore_api.settings import Settings

from .exceptions import (
    DocumentFileMissingError,
    DocumentNotFoundError,
    DocumentPersistenceError,
    DocumentTooLargeError,
    DocumentValidationError,
    StorageDeleteError,
)
from .models import Document, DocumentStatus
from .policy import AllowAllPolicy, AuthorizationPolicy, DocumentAction
from .repository import DocumentsRepository
from .schemas import (
    DocumentCreateFields,
    DocumentListQuery,
    DocumentOut,
    DocumentPage,
    DocumentUpdateRequest,
)
from .storage import DocumentStorage

logger = logging.getLogger(__name__)

_FALLBACK_FILENAME = "upload"
_MAX_FILENAME_LENGTH = 255

_ModelT = TypeVar("_ModelT", bound=BaseModel)


@dataclass(slots=True)
class DocumentDownload:
    """Everything the HTTP layer needs to stream a stored file."""

    document: DocumentOut
    stream: AsyncIterator[bytes]
    media_type: str
    file_size: int
    file_name: str


class DocumentsService:
    """Manage document metadata and backing file storage."""

    def __init__(
        self,
        *,
        session: AsyncSession,
        settings: Settings,
        storage: DocumentStorage | None = None,
        policy: AuthorizationPolicy | None = None,
    ) -> None:
        self._session = session
        self._settings = settings
        self._storage = storage or DocumentStorage(settings.storage_dir)
        self._policy = policy or AllowAllPolicy()
        self._repository = DocumentsRepository(session)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def list_documents(
        self,
        *,
        page: Any = None,
        per_page: Any = None,
        category: Any = None,
        status: Any = None,
    ) -> DocumentPage:
        """Return a page of live documents, newest first."""

        await self._policy.authorize(DocumentAction.LIST)
        query = self._validate(
            DocumentListQuery,
            {"page": page, "per_page": per_page, "category": category, "status": status},
            context={
                "default_page_size": self._settings.default_page_size,
                "max_page_size": self._settings.max_page_size,
            },
        )

        logger.debug(
            "document.list.start",
            extra=log_context(
                page=query.page,
                per_page=query.per_page,
                category=query.category,
                status=query.status.value if query.status else None,
            ),
        )

        stmt = self._repository.filtered_query(category=query.category, status=query.status)
        result = await paginate(
            self._session,
            stmt,
            page=query.page,
            per_page=query.per_page,
            order_by=(Document.created_at.desc(), Document.id.desc()),
        )

        page_result = DocumentPage(
            data=[self._to_out(document) for document in result["items"]],
            current_page=result["current_page"],
            last_page=result["last_page"],
            per_page=result["per_page"],
            total=result["total"],
        )

        logger.info(
            "document.list.success",
            extra=log_context(
                page=page_result.current_page,
                per_page=page_result.per_page,
                count=len(page_result.data),
                total=page_result.total,
            ),
        )
        return page_result

    async def get_document(self, *, document_id: UUID) -> DocumentOut:
        """Return document metadata for ``document_id``."""

        await self._policy.authorize(DocumentAction.READ, document_id=document_id)
        document = await self._require_document(document_id)
        return self._to_out(document)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def create_document(
        self,
        *,
        title: str | None,
        upload: UploadFile | None,
        description: str | None = None,
        category: str | None = None,
        uploaded_by: str | None = None,
    ) -> DocumentOut:
        """Persist ``upload`` to storage and insert the matching metadata record.

        Validation happens before any side effect. When the database insert
        fails, the freshly written blob is removed again.
        """

        await self._policy.authorize(DocumentAction.CREATE)
        logger.debug(
            "document.create.start",
            extra=log_context(
                upload_filename=upload.filename if upload is not None else None,
                content_type=upload.content_type if upload is not None else None,
            ),
        )

        errors: dict[str, list[str]] = {}
        fields: DocumentCreateFields | None = None
        try:
            fields = DocumentCreateFields.model_validate(
                {
                    "title": title,
                    "description": description,
                    "category": category,
                    "uploaded_by": uploaded_by,
                }
            )
        except ValidationError as exc:
            errors.update(errors_by_field(exc.errors()))

        limit = self._settings.storage_upload_max_bytes
        size: int | None = None
        if upload is None or upload.file is None:
            errors.setdefault("file", []).append("The file field is required.")
        else:
            size = await self._upload_size(upload)
            if size == 0:
                errors.setdefault("file", []).append("The uploaded file must not be empty.")
            if upload.filename and len(upload.filename) > _MAX_FILENAME_LENGTH:
                errors.setdefault("file", []).append(
                    f"The file name may not be greater than {_MAX_FILENAME_LENGTH} characters."
                )

        if size is not None and size > limit:
            too_large = DocumentTooLargeError(limit=limit, received=size)
            if not errors:
                raise too_large
            errors.setdefault("file", []).extend(too_large.errors["file"])

        if errors or fields is None or upload is None:
            logger.info(
                "document.create.invalid",
                extra=log_context(fields=",".join(sorted(errors))),
            )
            raise DocumentValidationError(errors)

        file_name = upload.filename or _FALLBACK_FILENAME
        file_path = self._storage.generate_path(file_name)
        stored = await self._storage.write(
            file_path,
            upload.file,
            content_type=upload.content_type,
            max_bytes=limit,
        )

        document = Document(
            id=generate_uuid7(),
            title=fields.title,
            description=fields.description,
            file_name=file_name,
            file_path=stored.file_path,
            file_size=stored.byte_size,
            mime_type=stored.mime_type,
            category=fields.category,
            status=DocumentStatus.ACTIVE,
            uploaded_by=fields.uploaded_by,
        )
        self._session.add(document)
        try:
            await self._session.flush()
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self._session.rollback()
            logger.error(
                "document.create.persist_failed",
                extra=log_context(file_path=file_path, error=type(exc).__name__),
            )
            await self._discard_blob(file_path)
            raise DocumentPersistenceError(reason=type(exc).__name__) from exc

        logger.info(
            "document.create.success",
            extra=log_context(
                document_id=document.id,
                file_path=document.file_path,
                file_size=document.file_size,
                mime_type=document.mime_type,
            ),
        )
        return self._to_out(document)

    async def update_document(
        self,
        *,
        document_id: UUID,
        changes: Mapping[str, Any],
    ) -> DocumentOut:
        """Apply a partial metadata update; file attributes never change."""

        await self._policy.authorize(DocumentAction.UPDATE, document_id=document_id)
        document = await self._require_document(document_id)
        payload = self._validate(DocumentUpdateRequest, changes)

        applied: list[str] = []
        if "title" in payload.model_fields_set and payload.title is not None:
            document.title = payload.title
            applied.append("title")
        if "description" in payload.model_fields_set:
            document.description = payload.description
            applied.append("description")
        if "category" in payload.model_fields_set and payload.category is not None:
            document.category = payload.category
            applied.append("category")
        if "status" in payload.model_fields_set and payload.status is not None:
            document.status = DocumentStatus(payload.status)
            applied.append("status")

        if applied:
            await self._session.flush()
            await self._session.commit()

        logger.info(
            "document.update.success",
            extra=log_context(document_id=document_id, fields=",".join(applied) or None),
        )
        return self._to_out(document)

    async def delete_document(self, *, document_id: UUID, remove_file: bool = False) -> None:
        """Soft delete ``document_id``, optionally purging its stored file first.

        When ``remove_file`` is set, a missing blob or a failed removal aborts
        the operation and the record stays live. A failed commit after the blob
        was removed leaves the record live without its file.
        """

        await self._policy.authorize(DocumentAction.DELETE, document_id=document_id)
        logger.debug(
            "document.delete.start",
            extra=log_context(document_id=document_id, remove_file=remove_file),
        )
        document = await self._require_document(document_id)

        if remove_file:
            exists = await self._storage.exists(document.file_path)
            removed = exists and await self._storage.delete(
                document.file_path, document_id=document.id
            )
            if not removed:
                logger.warning(
                    "document.delete.blob_missing",
                    extra=log_context(document_id=document_id, file_path=document.file_path),
                )
                raise DocumentFileMissingError(
                    document_id=document_id,
                    file_path=document.file_path,
                )

        document.deleted_at = utc_now()
        try:
            await self._session.flush()
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self._session.rollback()
            logger.error(
                "document.delete.persist_failed",
                extra=log_context(
                    document_id=document_id,
                    file_removed=remove_file,
                    error=type(exc).__name__,
                ),
            )
            raise DocumentPersistenceError(reason=type(exc).__name__) from exc

        logger.info(
            "document.delete.success",
            extra=log_context(
                document_id=document_id,
                file_path=document.file_path,
                file_removed=remove_file,
            ),
        )

    async def download_document(self, *, document_id: UUID) -> DocumentDownload:
        """Return the record plus an async iterator over its stored bytes."""

        await self._policy.authorize(DocumentAction.DOWNLOAD, document_id=document_id)
        logger.debug("document.download.start", extra=log_context(document_id=document_id))

        document = await self._require_document(document_id)
        if not await self._storage.exists(document.file_path):
            logger.warning(
                "document.download.missing_file",
                extra=log_context(document_id=document_id, file_path=document.file_path),
            )
            raise DocumentFileMissingError(
                document_id=document_id,
                file_path=document.file_path,
            )

        stream = self._storage.stream(document.file_path)
        file_path = document.file_path

        async def _guarded() -> AsyncIterator[bytes]:
            try:
                async for chunk in stream:
                    yield chunk
            except FileNotFoundError as exc:
                logger.warning(
                    "document.download.file_lost_during_stream",
                    extra=log_context(document_id=document_id, file_path=file_path),
                )
                raise DocumentFileMissingError(
                    document_id=document_id,
                    file_path=file_path,
                ) from exc

        logger.info(
            "document.download.ready",
            extra=log_context(
                document_id=document_id,
                file_size=document.file_size,
                mime_type=document.mime_type,
            ),
        )
        return DocumentDownload(
            document=self._to_out(document),
            stream=_guarded(),
            media_type=document.mime_type or "application/octet-stream",
            file_size=document.file_size,
            file_name=document.file_name,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _require_document(self, document_id: UUID) -> Document:
        document = await self._repository.get_document(document_id)
        if document is None:
            logger.info("document.not_found", extra=log_context(document_id=document_id))
            raise DocumentNotFoundError(document_id)
        return document

    def _to_out(self, document: Document) -> DocumentOut:
        payload = DocumentOut.model_validate(document)
        payload.download_url = self.download_url_for(document.id)
        return payload

    def download_url_for(self, document_id: UUID) -> str:
        """Return the absolute download URL for ``document_id``."""

        base = f"{self._settings.server_public_url}{self._settings.api_prefix}"
        return f"{base}/documents/{document_id}/download"

    async def _discard_blob(self, file_path: str) -> None:
        """Best-effort removal of a blob whose record could not be saved."""

        try:
            await self._storage.delete(file_path)
        except StorageDeleteError:
            logger.exception(
                "document.create.orphan_blob",
                extra=log_context(file_path=file_path),
            )

    @staticmethod
    def _validate(
        model: type[_ModelT],
        data: Mapping[str, Any],
        *,
        context: dict[str, Any] | None = None,
    ) -> _ModelT:
        try:
            return model.model_validate(dict(data), context=context)
        except ValidationError as exc:
            raise DocumentValidationError(errors_by_field(exc.errors())) from exc

    @staticmethod
    async def _upload_size(upload: UploadFile) -> int:
        if upload.size is not None:
            return upload.size

        def _measure() -> int:
            handle = upload.file
            handle.seek(0, os.SEEK_END)
            size = handle.tell()
            handle.seek(0)
            return size

        return await run_in_threadpool(_measure)


__all__ = ["DocumentDownload", "DocumentsService"]
