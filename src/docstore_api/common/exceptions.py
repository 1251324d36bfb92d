"""Centralized FastAPI exception handlers with structured logging."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from docstore_api.common.logging import log_context
from docstore_api.common.validators import errors_by_field

_UNHANDLED_LOGGER = logging.getLogger("docstore_api.errors")
_HTTP_LOGGER = logging.getLogger("docstore_api.http")

VALIDATION_FAILED_MESSAGE = "Validation failed"


def validation_detail(errors: dict[str, list[str]]) -> dict[str, object]:
    """Return the body used for every 400 validation response."""

    return {"message": VALIDATION_FAILED_MESSAGE, "errors": errors}


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected exceptions.

    Registered as the ``Exception`` handler. Any unhandled error results in a
    JSON 500 response and an ERROR log carrying the stack trace.
    """
    _UNHANDLED_LOGGER.exception(
        "unhandled_exception",
        extra=log_context(
            path=str(request.url.path),
            method=request.method,
            exception_type=type(exc).__name__,
            detail=str(exc),
        ),
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Handler for HTTPException instances.

    4xx responses are returned without logging; 5xx responses are logged at
    ERROR level with structured metadata.
    """
    if exc.status_code >= 500:
        _HTTP_LOGGER.error(
            "http_exception",
            extra=log_context(
                path=str(request.url.path),
                method=request.method,
                status_code=exc.status_code,
                detail=exc.detail,
            ),
        )

    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def request_validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed requests as 400 with per-field messages."""

    errors = errors_by_field(exc.errors())
    _HTTP_LOGGER.debug(
        "request.validation_failed",
        extra=log_context(
            path=str(request.url.path),
            method=request.method,
            fields=",".join(sorted(errors)),
        ),
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": validation_detail(errors)},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the shared exception handlers to ``app``."""

    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


__all__ = [
    "VALIDATION_FAILED_MESSAGE",
    "http_exception_handler",
    "register_exception_handlers",
    "request_validation_exception_handler",
    "unhandled_exception_handler",
    "validation_detail",
]
