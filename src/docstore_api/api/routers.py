"""Aggregate feature routers mounted under the API prefix."""

from __future__ import annotations

from fastapi import APIRouter

from docstore_api.features.documents.router import router as documents_router
from docstore_api.features.health.router import router as health_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(documents_router)

__all__ = ["api_router"]
