"""Helpers shared by unit and integration tests."""

from __future__ import annotations

import io
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from asgi_lifespan import LifespanManager
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from starlette.datastructures import Headers, UploadFile


def make_upload(
    payload: bytes,
    *,
    filename: str = "report.pdf",
    content_type: str | None = "application/pdf",
) -> UploadFile:
    """Build an ``UploadFile`` as the multipart parser would."""

    headers = Headers({"content-type": content_type}) if content_type else Headers({})
    return UploadFile(
        file=io.BytesIO(payload),
        size=len(payload),
        filename=filename,
        headers=headers,
    )


async def upload_document(
    client: AsyncClient,
    *,
    title: str = "Quarterly report",
    payload: bytes = b"%PDF-1.4 quarterly numbers",
    filename: str = "report.pdf",
    content_type: str = "application/pdf",
    **fields: Any,
) -> dict[str, Any]:
    """POST a multipart upload and return the created document payload."""

    data = {"title": title, **{key: value for key, value in fields.items() if value is not None}}
    response = await client.post(
        "/api/documents",
        data=data,
        files={"file": (filename, payload, content_type)},
    )
    assert response.status_code == 201, response.text
    return response.json()


@asynccontextmanager
async def client_for(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Run ``app`` with its lifespan and yield a client bound to it."""

    async with LifespanManager(app) as manager:
        transport = ASGITransport(app=manager.app)
        async with AsyncClient(transport=transport, base_url="http://testserver") as client:
            yield client
