"""Operational liveness and discovery endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from docstore_api.api.deps import SettingsDep
from docstore_api.common.time import utc_now
from docstore_api.settings import Settings

from .schemas import ApiInfoResponse, HealthCheckResponse

router = APIRouter(tags=["health"])


def _endpoints(settings: Settings) -> dict[str, str]:
    documents = f"{settings.api_prefix}/documents"
    return {
        "documents": f"GET {documents}",
        "create_document": f"POST {documents}",
        "show_document": f"GET {documents}/{{id}}",
        "update_document": f"PUT {documents}/{{id}}",
        "delete_document": f"DELETE {documents}/{{id}}",
        "download_document": f"GET {documents}/{{id}}/download",
        "health": f"GET {settings.api_prefix}/health",
    }


@router.get(
    "/health",
    response_model=HealthCheckResponse,
    status_code=status.HTTP_200_OK,
    summary="Service liveness check",
)
async def read_health(settings: SettingsDep) -> HealthCheckResponse:
    """Return liveness status without touching the database."""

    return HealthCheckResponse(
        status="healthy",
        timestamp=utc_now(),
        version=settings.app_version,
    )


@router.get(
    "/info",
    response_model=ApiInfoResponse,
    status_code=status.HTTP_200_OK,
    summary="Describe the API",
)
async def read_info(settings: SettingsDep) -> ApiInfoResponse:
    return ApiInfoResponse(
        name=settings.app_name,
        version=settings.app_version,
        description=settings.app_description,
        endpoints=_endpoints(settings),
    )


__all__ = ["router"]
