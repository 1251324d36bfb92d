"""Pydantic schemas for the health module."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field

from docstore_api.common.schema import BaseSchema


class HealthCheckResponse(BaseSchema):
    """Top-level payload returned by the `/health` endpoint."""

    status: Literal["healthy"] = Field(..., description="Overall service health indicator.")
    timestamp: datetime = Field(..., description="UTC timestamp for when the check executed.")
    version: str = Field(..., description="Running API version.")


class ApiInfoResponse(BaseSchema):
    """Discovery payload describing the API surface."""

    name: str
    version: str
    description: str
    endpoints: dict[str, str] = Field(
        default_factory=dict,
        description="Route template keyed by operation name.",
    )
