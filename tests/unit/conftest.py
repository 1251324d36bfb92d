"""Fixtures for service and storage unit tests."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from docstore_api.db.engine import dispose_engine, init_db
from docstore_api.db.session import get_sessionmaker
from docstore_api.features.documents.service import DocumentsService
from docstore_api.features.documents.storage import DocumentStorage
from docstore_api.settings import Settings


@pytest_asyncio.fixture()
async def session(settings: Settings) -> AsyncIterator[AsyncSession]:
    """Yield a session bound to a freshly created SQLite schema."""

    await init_db(settings)
    factory = get_sessionmaker(settings)
    async with factory() as db_session:
        yield db_session
    await dispose_engine()


@pytest_asyncio.fixture()
async def storage(settings: Settings) -> DocumentStorage:
    return DocumentStorage(settings.storage_dir)


@pytest_asyncio.fixture()
async def service(
    session: AsyncSession,
    settings: Settings,
    storage: DocumentStorage,
) -> DocumentsService:
    return DocumentsService(session=session, settings=settings, storage=storage)
