"""ORM model for uploaded documents."""

from __future__ import annotations

from enum import Enum

from sqlalchemy import BigInteger, Index, String, Text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from docstore_api.db import (
    Base,
    SoftDeleteMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
    enum_values,
)

DEFAULT_CATEGORY = "general"
DEFAULT_MIME_TYPE = "application/octet-stream"


class DocumentStatus(str, Enum):
    """Free-form lifecycle labels; any value may move to any other."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    PROCESSING = "processing"


class Document(UUIDPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin, Base):
    """Document metadata paired with a blob under the private storage root."""

    __tablename__ = "documents"

    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_path: Mapped[str] = mapped_column(String(512), nullable=False, unique=True)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    mime_type: Mapped[str] = mapped_column(
        String(100), nullable=False, default=DEFAULT_MIME_TYPE
    )
    category: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=DEFAULT_CATEGORY,
        server_default=DEFAULT_CATEGORY,
        index=True,
    )
    status: Mapped[DocumentStatus] = mapped_column(
        SAEnum(
            DocumentStatus,
            name="document_status",
            native_enum=False,
            length=20,
            values_callable=enum_values,
        ),
        nullable=False,
        default=DocumentStatus.ACTIVE,
        server_default=DocumentStatus.ACTIVE.value,
        index=True,
    )
    uploaded_by: Mapped[str | None] = mapped_column(String(255), nullable=True)

    __table_args__ = (
        Index("documents_status_category_idx", "status", "category"),
        Index("documents_created_at_status_idx", "created_at", "status"),
    )

    def __repr__(self) -> str:
        return f"Document(id={self.id!s}, title={self.title!r}, status={self.status!r})"


__all__ = [
    "DEFAULT_CATEGORY",
    "DEFAULT_MIME_TYPE",
    "Document",
    "DocumentStatus",
]
