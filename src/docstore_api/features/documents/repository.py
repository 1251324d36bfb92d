"""Data access helpers for documents."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Document, DocumentStatus


class DocumentsRepository:
    """Query helpers that only ever see live (not soft-deleted) rows."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    def base_query(self) -> Select[tuple[Document]]:
        return select(Document).where(Document.deleted_at.is_(None))

    def filtered_query(
        self,
        *,
        category: str | None = None,
        status: DocumentStatus | None = None,
    ) -> Select[tuple[Document]]:
        stmt = self.base_query()
        if category is not None:
            stmt = stmt.where(Document.category == category)
        if status is not None:
            stmt = stmt.where(Document.status == status)
        return stmt

    async def get_document(self, document_id: UUID) -> Document | None:
        stmt = self.base_query().where(Document.id == document_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()


__all__ = ["DocumentsRepository"]
