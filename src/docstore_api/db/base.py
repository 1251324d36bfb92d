"""Declarative base + naming convention + common mixins."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from docstore_api.common.ids import generate_uuid7
from docstore_api.common.time import utc_now

from .types import UTCDateTime, UUIDType

__all__ = [
    "NAMING_CONVENTION",
    "metadata",
    "Base",
    "enum_values",
    "UUIDPrimaryKeyMixin",
    "TimestampMixin",
    "SoftDeleteMixin",
]

NAMING_CONVENTION: dict[str, str] = {
    "ix": "%(table_name)s_%(column_0_name)s_idx",
    "uq": "%(table_name)s_%(column_0_name)s_key",
    "ck": "%(table_name)s_%(constraint_name)s_check",
    "fk": "%(table_name)s_%(column_0_name)s_fkey",
    "pk": "%(table_name)s_pkey",
}

metadata = MetaData(naming_convention=NAMING_CONVENTION)


class Base(DeclarativeBase):
    """Declarative base using the global naming convention."""

    metadata = metadata


def enum_values(enum_cls: type[Enum]) -> list[str]:
    """Return the list of values for ``enum_cls`` suitable for SAEnum."""

    return [member.value for member in enum_cls]


class UUIDPrimaryKeyMixin:
    """Standard UUID primary key (v7 when the interpreter provides it)."""

    id: Mapped[uuid.UUID] = mapped_column(UUIDType(), primary_key=True, default=generate_uuid7)


class TimestampMixin:
    """App-managed UTC timestamps.

    Keeps behavior consistent across backends without relying on DB triggers.
    """

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utc_now, onupdate=utc_now
    )


class SoftDeleteMixin:
    """Nullable ``deleted_at`` marker; set rows are hidden from reads."""

    deleted_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
