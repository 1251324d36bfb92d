"""Pydantic schemas for the documents module."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    computed_field,
    field_validator,
)
from pydantic_core import PydanticCustomError

from docstore_api.common.ids import UUIDStr
from docstore_api.common.schema import BaseSchema, MessageResponse
from docstore_api.settings import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

from .models import DEFAULT_CATEGORY, DocumentStatus

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


def human_file_size(size: int) -> str:
    """Render ``size`` bytes using 1024-based units (``1536000`` -> ``1.46 MB``)."""

    value = float(size)
    unit = 0
    while value > 1024 and unit < len(_SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    rounded = round(value, 2)
    text = str(int(rounded)) if rounded.is_integer() else str(rounded)
    return f"{text} {_SIZE_UNITS[unit]}"


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class DocumentOut(BaseSchema):
    """Serialized representation of a live document record."""

    id: UUIDStr
    title: str
    description: str | None = None
    file_name: str
    file_size: int = Field(ge=0, description="Byte size of the stored file.")
    mime_type: str
    category: str
    status: DocumentStatus
    uploaded_by: str | None = None
    download_url: str | None = Field(
        default=None,
        description="Absolute URL that streams the stored file.",
    )
    created_at: datetime
    updated_at: datetime

    @computed_field  # type: ignore[prop-decorator]
    @property
    def file_size_human(self) -> str:
        return human_file_size(self.file_size)


class DocumentPage(BaseSchema):
    """Page envelope returned by the list endpoint."""

    data: list[DocumentOut] = Field(default_factory=list)
    current_page: int = Field(ge=1)
    last_page: int = Field(ge=1)
    per_page: int = Field(ge=1)
    total: int = Field(ge=0)


class DocumentCreateFields(BaseModel):
    """Metadata fields accepted alongside an uploaded file."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    title: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=1000)
    category: str = Field(default=DEFAULT_CATEGORY, min_length=1, max_length=50)
    uploaded_by: str | None = Field(default=None, max_length=255)

    @field_validator("title", mode="before")
    @classmethod
    def _v_title(cls, v: Any) -> Any:
        if v is None:
            raise PydanticCustomError("missing", "The title field is required.")
        return v

    @field_validator("description", "uploaded_by", mode="before")
    @classmethod
    def _v_optional_text(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("category", mode="before")
    @classmethod
    def _v_category(cls, v: Any) -> Any:
        return DEFAULT_CATEGORY if _blank_to_none(v) is None else v


class DocumentListQuery(BaseModel):
    """Validated listing parameters.

    ``per_page`` falls back to ``default_page_size`` and is capped by
    ``max_page_size`` when the validation context provides them.
    """

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    page: int = Field(default=1, ge=1)
    per_page: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    category: str | None = Field(default=None, max_length=50)
    status: DocumentStatus | None = None

    @field_validator("page", "per_page", mode="before")
    @classmethod
    def _v_defaults(cls, v: Any, info: ValidationInfo) -> Any:
        if v is None:
            if info.field_name == "page":
                return 1
            return (info.context or {}).get("default_page_size", DEFAULT_PAGE_SIZE)
        return v

    @field_validator("per_page")
    @classmethod
    def _v_per_page_cap(cls, v: int, info: ValidationInfo) -> int:
        limit = (info.context or {}).get("max_page_size")
        if limit is not None and v > limit:
            raise PydanticCustomError(
                "less_than_equal",
                "Input should be less than or equal to {le}",
                {"le": limit},
            )
        return v

    @field_validator("category", "status", mode="before")
    @classmethod
    def _v_blank_filters(cls, v: Any) -> Any:
        return _blank_to_none(v)


class DocumentUpdateRequest(BaseModel):
    """Partial metadata update; unknown keys (including file fields) are ignored."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=1000)
    category: str | None = Field(default=None, min_length=1, max_length=50)
    status: DocumentStatus | None = None

    @field_validator("title", "category", "status", mode="before")
    @classmethod
    def _v_not_null(cls, v: Any, info: ValidationInfo) -> Any:
        if v is None:
            raise PydanticCustomError(
                "not_null",
                "The {field} field may not be null.",
                {"field": info.field_name},
            )
        return v

    @field_validator("description", mode="before")
    @classmethod
    def _v_description(cls, v: Any) -> Any:
        return _blank_to_none(v)


class DocumentDeleteResponse(MessageResponse):
    """Acknowledgement returned after a soft delete."""


__all__ = [
    "DocumentCreateFields",
    "DocumentDeleteResponse",
    "DocumentListQuery",
    "DocumentOut",
    "DocumentPage",
    "DocumentUpdateRequest",
    "human_file_size",
]
