"""FastAPI lifespan helpers for the Document Store application."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from starlette.types import Lifespan

from docstore_api.db.engine import dispose_engine, init_db
from docstore_api.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def ensure_runtime_dirs(settings: Settings | None = None) -> None:
    """Create runtime directories required by the application."""

    resolved = settings or get_settings()
    resolved.storage_dir.mkdir(parents=True, exist_ok=True)


def create_application_lifespan(*, settings: Settings) -> Lifespan[FastAPI]:
    """Return the lifespan context manager bound to ``settings``."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        active = getattr(app.state, "settings", None) or settings
        ensure_runtime_dirs(active)
        await init_db(active)
        logger.info(
            "docstore.startup",
            extra={
                "version": active.app_version,
                "environment": active.environment,
                "storage_dir": str(active.storage_dir),
            },
        )
        try:
            yield
        finally:
            await dispose_engine()
            logger.info("docstore.shutdown")

    return lifespan


__all__ = ["create_application_lifespan", "ensure_runtime_dirs"]
