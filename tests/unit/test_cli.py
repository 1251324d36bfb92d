from __future__ import annotations

import sqlite3
from pathlib import Path

from typer.testing import CliRunner

from docstore_api import cli
from docstore_api.settings import reload_settings

runner = CliRunner()


def test_init_db_creates_database_and_storage(monkeypatch, tmp_path: Path) -> None:
    db_path = tmp_path / "db" / "cli.sqlite"
    storage_dir = tmp_path / "blobs"
    monkeypatch.setenv("DOCSTORE_DATABASE_DSN", f"sqlite:///{db_path.as_posix()}")
    monkeypatch.setenv("DOCSTORE_STORAGE_DIR", str(storage_dir))
    reload_settings()

    result = runner.invoke(cli.app, ["init-db"])

    assert result.exit_code == 0, result.output
    assert "database ready: sqlite+aiosqlite:///" in result.output
    assert db_path.is_file()
    assert storage_dir.is_dir()


def test_start_runs_uvicorn_factory(monkeypatch) -> None:
    captured: dict[str, object] = {}

    def _fake_run(target, **kwargs):
        captured["target"] = target
        captured.update(kwargs)

    monkeypatch.setattr(cli.uvicorn, "run", _fake_run)

    result = runner.invoke(cli.app, ["start", "--port", "9001"])

    assert result.exit_code == 0, result.output
    assert captured["target"] == "docstore_api.main:create_app"
    assert captured["factory"] is True
    assert captured["port"] == 9001
    assert captured["host"] == "127.0.0.1"


def test_no_command_prints_help() -> None:
    result = runner.invoke(cli.app, [])

    assert result.exit_code == 0
    assert "init-db" in result.output
    assert "seed" in result.output


def test_seed_inserts_sample_documents(monkeypatch, tmp_path: Path) -> None:
    db_path = tmp_path / "db" / "seed.sqlite"
    storage_dir = tmp_path / "blobs"
    monkeypatch.setenv("DOCSTORE_DATABASE_DSN", f"sqlite:///{db_path.as_posix()}")
    monkeypatch.setenv("DOCSTORE_STORAGE_DIR", str(storage_dir))
    reload_settings()

    result = runner.invoke(cli.app, ["seed"])

    assert result.exit_code == 0, result.output
    assert "created 10 sample documents" in result.output
    with sqlite3.connect(db_path) as conn:
        (count,) = conn.execute("SELECT COUNT(*) FROM documents").fetchone()
    assert count == 10
    assert len([path for path in storage_dir.rglob("*") if path.is_file()]) == 10
