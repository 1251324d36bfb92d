"""Logging configuration and helpers for the Document Store API.

This module configures console-style logging for the entire process and exposes
helpers for:

* binding a request-scoped correlation ID, and
* building consistent `extra` payloads for structured logs.

Everything uses the standard :mod:`logging` library. The only customization is
the formatter, which renders one human-readable line per log record, including
timestamp, level, logger name, correlation ID, and any `extra` fields as
``key=value`` pairs.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from docstore_api.settings import Settings

# ---------------------------------------------------------------------------
# Context and constants
# ---------------------------------------------------------------------------

# Request-scoped correlation ID, set/cleared by RequestContextMiddleware.
_CORRELATION_ID: ContextVar[str | None] = ContextVar(
    "docstore_correlation_id",
    default=None,
)

# Attributes already handled by logging; never copied into the key=value list.
_STANDARD_ATTRS: set[str] = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "message",
    "asctime",
    "correlation_id",
    "taskName",
    "color_message",
}

_CONFIGURED_FLAG = "_docstore_configured"


# ---------------------------------------------------------------------------
# Formatter
# ---------------------------------------------------------------------------


class ConsoleLogFormatter(logging.Formatter):
    """Render log records as single-line console output.

    Example line:

        2025-11-27T02:57:00.302Z INFO  docstore_api.features.documents.service
        [cid=1234abcd] document.create.success document_id=... file_size=2048
    """

    _time_format = "%Y-%m-%dT%H:%M:%S"

    def __init__(self) -> None:
        fmt = "%(asctime)s %(levelname)-5s %(name)s [cid=%(correlation_id)s] %(message)s"
        super().__init__(fmt=fmt, datefmt=self._time_format)

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        dt = datetime.fromtimestamp(record.created, tz=UTC)
        pattern = datefmt or self._time_format
        base = dt.strftime(pattern)
        return f"{base}.{int(record.msecs):03d}Z"

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - std signature
        cid = getattr(record, "correlation_id", None) or _CORRELATION_ID.get() or "-"
        record.correlation_id = cid

        base = super().format(record)

        extras: list[str] = []
        for key, value in record.__dict__.items():
            if key in _STANDARD_ATTRS or key.startswith("_"):
                continue
            extras.append(f"{key}={_format_extra_value(value)}")

        if extras:
            return f"{base} " + " ".join(extras)
        return base


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


def setup_logging(settings: Settings) -> None:
    """Configure root logging for the API process.

    Installs a single console-style StreamHandler and sets the root log level
    from ``settings.logging_level`` (env: ``DOCSTORE_LOGGING_LEVEL``). Uvicorn
    and SQLAlchemy loggers propagate into the same root logger so that all
    output shares one format.
    """
    root_logger = logging.getLogger()

    level_name = settings.logging_level.upper()
    level = getattr(logging, level_name, logging.INFO)

    # Only fully configure once per process; later calls just adjust the level.
    if getattr(root_logger, _CONFIGURED_FLAG, False):
        root_logger.setLevel(level)
        return

    handler = logging.StreamHandler()
    handler.setFormatter(ConsoleLogFormatter())

    root_logger.handlers = [handler]
    root_logger.setLevel(level)

    for name in (
        "uvicorn",
        "uvicorn.error",
        "uvicorn.access",
        "sqlalchemy",
    ):
        logger = logging.getLogger(name)
        logger.handlers.clear()
        logger.propagate = True

    setattr(root_logger, _CONFIGURED_FLAG, True)


# ---------------------------------------------------------------------------
# Context helpers
# ---------------------------------------------------------------------------


def bind_request_context(correlation_id: str | None) -> None:
    """Bind a correlation ID to the logging context for the current request."""
    _CORRELATION_ID.set(correlation_id)


def clear_request_context() -> None:
    """Clear the request-scoped logging context."""
    _CORRELATION_ID.set(None)


def current_correlation_id() -> str | None:
    """Return the correlation ID bound to the current context, if any."""
    return _CORRELATION_ID.get()


def log_context(
    *,
    document_id: UUID | str | None = None,
    action: str | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """Build a consistent `extra` payload for structured logs.

    Example:
        logger.info(
            "document.create.success",
            extra=log_context(document_id=document.id, file_size=document.file_size),
        )
    """
    ctx: dict[str, Any] = {}

    if document_id is not None:
        ctx["document_id"] = str(document_id)
    if action is not None:
        ctx["action"] = action

    for key, value in extra.items():
        ctx[key] = value

    return ctx


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _format_extra_value(value: Any) -> str:
    """Format an `extra` value for console output."""
    if isinstance(value, (int, float, bool)):
        return str(value)
    if value is None:
        return "null"
    return str(value)


__all__ = [
    "ConsoleLogFormatter",
    "bind_request_context",
    "clear_request_context",
    "current_correlation_id",
    "log_context",
    "setup_logging",
]
