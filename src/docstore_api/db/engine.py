"""Async engine management for the Document Store."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from sqlalchemy import event, text
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

from docstore_api.settings import Settings, get_settings

from .base import Base

_ENGINE: AsyncEngine | None = None
_ENGINE_KEY: tuple[Any, ...] | None = None
_INITIALISED_URLS: set[str] = set()

logger = logging.getLogger(__name__)


def build_database_url(settings: Settings) -> URL:
    if not settings.database_dsn:
        raise RuntimeError("DOCSTORE_DATABASE_DSN is not configured")
    return make_url(settings.database_dsn)


def _cache_key(settings: Settings) -> tuple[Any, ...]:
    url = build_database_url(settings)
    return (
        url.render_as_string(hide_password=False),
        settings.database_echo,
        settings.database_pool_size,
        settings.database_max_overflow,
        settings.database_pool_timeout,
    )


def is_sqlite_memory_url(url: URL) -> bool:
    database = (url.database or "").strip()
    if not database or database == ":memory:":
        return True
    if database.startswith("file:"):
        query = dict(url.query or {})
        if query.get("mode") == "memory":
            return True
    return False


def ensure_sqlite_database_directory(url: URL) -> None:
    """Ensure a filesystem-backed SQLite database can be created."""

    database = (url.database or "").strip()
    if not database or database == ":memory:" or database.startswith("file:"):
        return
    path = Path(database)
    if not path.is_absolute():
        path = Path.cwd() / path
    path.parent.mkdir(parents=True, exist_ok=True)


def _create_engine(settings: Settings) -> AsyncEngine:
    url = build_database_url(settings)
    connect_args: dict[str, Any] = {}
    engine_kwargs: dict[str, Any] = {
        "echo": settings.database_echo,
        "pool_pre_ping": True,
    }

    if url.get_backend_name() == "sqlite":
        connect_args["check_same_thread"] = False
        connect_args["timeout"] = settings.database_pool_timeout
        if is_sqlite_memory_url(url):
            engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs["poolclass"] = NullPool
            ensure_sqlite_database_directory(url)
    else:
        engine_kwargs["pool_size"] = settings.database_pool_size
        engine_kwargs["max_overflow"] = settings.database_max_overflow
        engine_kwargs["pool_timeout"] = settings.database_pool_timeout

    if connect_args:
        engine_kwargs["connect_args"] = connect_args

    engine = create_async_engine(url.render_as_string(hide_password=False), **engine_kwargs)

    if url.get_backend_name() == "sqlite":

        @event.listens_for(engine.sync_engine, "connect")
        def _set_sqlite_pragma(dbapi_connection, _connection_record) -> None:
            cursor = dbapi_connection.cursor()
            try:
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.execute("PRAGMA busy_timeout=30000")
            finally:
                cursor.close()

    return engine


def get_engine(settings: Settings | None = None) -> AsyncEngine:
    """Return a cached async engine matching the active settings."""

    global _ENGINE, _ENGINE_KEY
    settings = settings or get_settings()
    key = _cache_key(settings)
    if _ENGINE is None or _ENGINE_KEY != key:
        if _ENGINE is not None:
            _ENGINE.sync_engine.dispose()
        _ENGINE = _create_engine(settings)
        _ENGINE_KEY = key
    return _ENGINE


async def init_db(settings: Settings | None = None) -> None:
    """Create any missing tables for the configured database."""

    resolved = settings or get_settings()
    url_key = _cache_key(resolved)[0]
    if url_key in _INITIALISED_URLS:
        return

    # Import models so their tables are registered on the metadata.
    from docstore_api.features.documents import models  # noqa: F401

    engine = get_engine(resolved)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
    _INITIALISED_URLS.add(url_key)
    logger.info(
        "database.init.success",
        extra={"backend": build_database_url(resolved).get_backend_name()},
    )


async def check_database_ready(settings: Settings | None = None) -> None:
    """Verify database connectivity."""

    resolved = settings or get_settings()
    engine = get_engine(resolved)
    try:
        async with engine.connect() as connection:
            await connection.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("database.readiness.failed", exc_info=exc)
        raise


async def dispose_engine() -> None:
    """Dispose the cached engine's connection pool, keeping the cache entry."""

    if _ENGINE is not None:
        await _ENGINE.dispose()
    # In-memory databases do not survive disposal.
    _INITIALISED_URLS.clear()


def engine_cache_key(settings: Settings) -> tuple[Any, ...]:
    """Expose the cache key used for engine/session reuse."""

    return _cache_key(settings)


def reset_database_state() -> None:
    """Dispose cached engine and associated session factories."""

    global _ENGINE, _ENGINE_KEY
    if _ENGINE is not None:
        _ENGINE.sync_engine.dispose()
    _ENGINE = None
    _ENGINE_KEY = None
    _INITIALISED_URLS.clear()

    from . import session as session_module

    session_module.reset_session_state()


__all__ = [
    "build_database_url",
    "check_database_ready",
    "dispose_engine",
    "engine_cache_key",
    "ensure_sqlite_database_directory",
    "get_engine",
    "init_db",
    "is_sqlite_memory_url",
    "reset_database_state",
]
