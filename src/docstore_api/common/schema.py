"""Shared Pydantic schema utilities."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Base class for all API schemas."""

    model_config = ConfigDict(
        populate_by_name=True,
        from_attributes=True,
        extra="forbid",
        use_enum_values=True,
    )


class MessageResponse(BaseSchema):
    """Plain ``{"message": ...}`` acknowledgement payload."""

    message: str


class ErrorMessage(BaseSchema):
    """Standard error envelope mirroring FastAPI's ``{"detail": ...}`` payload."""

    detail: str | dict[str, Any]


__all__ = ["BaseSchema", "ErrorMessage", "MessageResponse"]
