"""Fixtures that run the ASGI application in-process."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import AsyncClient

from docstore_api.main import create_app
from docstore_api.settings import Settings
from tests.utils import client_for


@pytest.fixture()
def app(settings: Settings) -> FastAPI:
    return create_app(settings)


@pytest_asyncio.fixture()
async def async_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Yield an HTTPX client bound to the app with its lifespan running."""

    async with client_for(app) as client:
        yield client
