"""Database primitives: declarative base, column types, engine and sessions."""

from .base import (
    NAMING_CONVENTION,
    Base,
    SoftDeleteMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
    enum_values,
    metadata,
)
from .types import UTCDateTime, UUIDType

__all__ = [
    "NAMING_CONVENTION",
    "Base",
    "SoftDeleteMixin",
    "TimestampMixin",
    "UTCDateTime",
    "UUIDPrimaryKeyMixin",
    "UUIDType",
    "enum_values",
    "metadata",
]
