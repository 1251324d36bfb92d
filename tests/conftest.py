"""Shared pytest fixtures for Document Store tests."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from docstore_api.db.engine import reset_database_state
from docstore_api.settings import Settings, reload_settings

_ENV_VARS = (
    "DOCSTORE_APP_NAME",
    "DOCSTORE_APP_VERSION",
    "DOCSTORE_ENVIRONMENT",
    "DOCSTORE_API_DOCS_ENABLED",
    "DOCSTORE_API_PREFIX",
    "DOCSTORE_LOGGING_LEVEL",
    "DOCSTORE_SERVER_PUBLIC_URL",
    "DOCSTORE_SERVER_CORS_ORIGINS",
    "DOCSTORE_STORAGE_DIR",
    "DOCSTORE_STORAGE_UPLOAD_MAX_BYTES",
    "DOCSTORE_DATABASE_DSN",
    "DOCSTORE_DATABASE_ECHO",
    "DOCSTORE_DEFAULT_PAGE_SIZE",
    "DOCSTORE_MAX_PAGE_SIZE",
)


def pytest_collection_modifyitems(config, items) -> None:
    for item in items:
        path_str = str(Path(str(item.fspath)))
        if "/tests/integration/" in path_str:
            item.add_marker(pytest.mark.integration)
        elif "/tests/unit/" in path_str:
            item.add_marker(pytest.mark.unit)


@pytest.fixture(autouse=True)
def _isolated_environment(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> Iterator[None]:
    """Keep host env vars, stray .env files and cached engines out of each test."""

    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    reload_settings()
    reset_database_state()
    yield
    reset_database_state()
    monkeypatch.undo()
    reload_settings()


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """Settings pointing storage and the SQLite database at ``tmp_path``."""

    return Settings(
        environment="test",
        server_public_url="http://testserver",
        storage_dir=tmp_path / "storage",
        database_dsn=f"sqlite+aiosqlite:///{(tmp_path / 'docstore.sqlite').as_posix()}",
    )
