"""Document Store settings (conventional Pydantic v2)."""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, Literal
from urllib.parse import urlparse

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from sqlalchemy.engine import make_url

# ---- Defaults ---------------------------------------------------------------

DEFAULT_DATA_ROOT = Path("./data")  # resolve later
DEFAULT_STORAGE_DIR = DEFAULT_DATA_ROOT / "storage"
DEFAULT_DB_FILENAME = "docstore.sqlite"
DEFAULT_SQLITE_PATH = DEFAULT_DATA_ROOT / "db" / DEFAULT_DB_FILENAME
DEFAULT_PUBLIC_URL = "http://localhost:8000"
DEFAULT_CORS_ORIGINS: list[str] = []
DEFAULT_API_PREFIX = "/api"

DEFAULT_PAGE_SIZE = 15
MAX_PAGE_SIZE = 100
DEFAULT_UPLOAD_MAX_BYTES = 10 * 1024 * 1024  # 10 MiB


# ---- Helpers ----------------------------------------------------------------

def _list_from_env(value: Any, *, default: list[str]) -> list[str]:
    """JSON array or comma string; strip empties; dedupe preserving order."""
    if value in (None, "", []):
        items = list(default)
    elif isinstance(value, str):
        s = value.strip()
        if not s:
            items = list(default)
        elif s.startswith("["):
            try:
                parsed = json.loads(s)
            except json.JSONDecodeError as exc:
                raise ValueError("Expected a JSON array") from exc
            if not isinstance(parsed, list):
                raise ValueError("Expected a JSON array")
            items = [str(x).strip() for x in parsed if str(x).strip()]
        else:
            items = [seg.strip() for seg in s.split(",") if seg.strip()]
    elif isinstance(value, (list, tuple, set)):
        items = [str(x).strip() for x in value if str(x).strip()]
    else:
        raise TypeError("Expected string or list")

    seen, out = set(), []
    for x in items:
        if x not in seen:
            seen.add(x)
            out.append(x)
    return out


def _resolve_path(value: Path | str | None, *, default: Path) -> Path:
    """Expand, absolutize, and resolve a configurable path."""

    if value in (None, ""):
        candidate = default
    elif isinstance(value, Path):
        candidate = value
    else:
        candidate = Path(str(value).strip())
    return candidate.expanduser().resolve()


# ---- Settings ---------------------------------------------------------------

class Settings(BaseSettings):
    """FastAPI settings loaded from DOCSTORE_* environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="DOCSTORE_",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True,
    )

    # Core
    app_name: str = "Document Store API"
    app_version: str = "1.0.0"
    app_description: str = "API for managing documents with file upload and storage"
    environment: Literal["development", "production", "test"] = "production"
    api_docs_enabled: bool = False
    docs_url: str = "/docs"
    redoc_url: str = "/redoc"
    openapi_url: str = "/openapi.json"
    logging_level: str = "INFO"

    # Server
    server_public_url: str = DEFAULT_PUBLIC_URL
    server_cors_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_CORS_ORIGINS)
    )
    api_prefix: str = DEFAULT_API_PREFIX

    # Storage
    storage_dir: Path = Field(default=DEFAULT_STORAGE_DIR)
    storage_upload_max_bytes: int = Field(DEFAULT_UPLOAD_MAX_BYTES, gt=0)

    # Database
    database_dsn: str | None = None
    database_echo: bool = False
    database_pool_size: int = Field(5, ge=1)  # ignored by sqlite
    database_max_overflow: int = Field(10, ge=0)
    database_pool_timeout: int = Field(30, gt=0)

    # Listing
    default_page_size: int = Field(DEFAULT_PAGE_SIZE, ge=1)
    max_page_size: int = Field(MAX_PAGE_SIZE, ge=1)

    # ---- Validators ----

    @field_validator("server_public_url", mode="before")
    @classmethod
    def _v_public_url(cls, v: Any) -> str:
        s = str(v).strip()
        p = urlparse(s)
        if p.scheme not in {"http", "https"} or not p.netloc:
            raise ValueError("DOCSTORE_SERVER_PUBLIC_URL must be an http(s) URL")
        return s.rstrip("/")

    @field_validator("logging_level", mode="before")
    @classmethod
    def _v_log_level(cls, v: Any) -> str:
        s = ("" if v is None else str(v).strip()).upper()
        return s or "INFO"

    @field_validator("environment", mode="before")
    @classmethod
    def _v_environment(cls, v: Any) -> str:
        s = ("" if v is None else str(v).strip()).lower()
        return s or "production"

    @field_validator("server_cors_origins", mode="before")
    @classmethod
    def _v_cors(cls, v: Any) -> list[str]:
        return _list_from_env(v, default=DEFAULT_CORS_ORIGINS)

    @field_validator("api_prefix", mode="before")
    @classmethod
    def _v_api_prefix(cls, v: Any) -> str:
        s = ("" if v is None else str(v).strip()).strip("/")
        return f"/{s}" if s else ""

    # ---- Finalize: resolve paths & database URL ----

    @model_validator(mode="after")
    def _finalize(self) -> Settings:
        self.storage_dir = _resolve_path(self.storage_dir, default=DEFAULT_STORAGE_DIR)

        if self.default_page_size > self.max_page_size:
            raise ValueError("DOCSTORE_DEFAULT_PAGE_SIZE must not exceed DOCSTORE_MAX_PAGE_SIZE")

        if not self.database_dsn:
            sqlite = _resolve_path(DEFAULT_SQLITE_PATH, default=DEFAULT_SQLITE_PATH)
            self.database_dsn = f"sqlite+aiosqlite:///{sqlite.as_posix()}"

        url = make_url(self.database_dsn)
        if url.get_backend_name() == "sqlite" and url.drivername == "sqlite":
            url = url.set(drivername="sqlite+aiosqlite")
        self.database_dsn = url.render_as_string(hide_password=False)

        return self

    # ---- Convenience ----

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


@lru_cache(maxsize=1)
def _build_settings() -> Settings:
    return Settings()


def get_settings() -> Settings:
    return _build_settings()


def reload_settings() -> Settings:
    _build_settings.cache_clear()
    return _build_settings()


__all__ = [
    "DEFAULT_API_PREFIX",
    "DEFAULT_CORS_ORIGINS",
    "DEFAULT_PUBLIC_URL",
    "Settings",
    "get_settings",
    "reload_settings",
]
