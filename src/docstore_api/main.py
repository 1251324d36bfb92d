"""Document Store FastAPI application entry point."""

from __future__ import annotations

import logging

from fastapi import FastAPI

from .api.routers import api_router
from .app.lifecycles import create_application_lifespan
from .common.exceptions import register_exception_handlers
from .common.logging import setup_logging
from .common.middleware import register_middleware
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Return a configured FastAPI application.

    Explicit ``settings`` also override the ``get_settings`` dependency so
    request handlers see the same configuration as the lifespan.
    """

    explicit = settings is not None
    settings = settings or get_settings()
    setup_logging(settings)

    docs_url = settings.docs_url if settings.api_docs_enabled else None
    redoc_url = settings.redoc_url if settings.api_docs_enabled else None
    openapi_url = settings.openapi_url if settings.api_docs_enabled else None

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description=settings.app_description,
        docs_url=docs_url,
        redoc_url=redoc_url,
        openapi_url=openapi_url,
        debug=settings.is_development,
        lifespan=create_application_lifespan(settings=settings),
    )

    app.state.settings = settings
    if explicit:
        app.dependency_overrides[get_settings] = lambda: settings
    if settings.is_development:
        logger.warning(
            "Development mode enabled; server error details are returned to clients.",
            extra={"environment": settings.environment},
        )

    register_middleware(app, settings)
    register_exception_handlers(app)
    app.include_router(api_router, prefix=settings.api_prefix)
    return app


__all__ = ["create_app"]
