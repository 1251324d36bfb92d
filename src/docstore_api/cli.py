"""`docstore` command line interface."""

from __future__ import annotations

import asyncio
from typing import Annotated

import typer
import uvicorn
from sqlalchemy.engine import make_url

from docstore_api.app.lifecycles import ensure_runtime_dirs
from docstore_api.db.engine import dispose_engine, init_db
from docstore_api.db.session import get_sessionmaker
from docstore_api.features.documents.seed import seed_documents
from docstore_api.features.documents.service import DocumentsService
from docstore_api.settings import get_settings

app = typer.Typer(
    add_completion=False,
    invoke_without_command=True,
    help="Document Store API CLI (start, init-db, seed).",
)


@app.callback()
def _main(ctx: typer.Context) -> None:
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())


@app.command(name="start", help="Serve the API with uvicorn.")
def start(
    host: Annotated[str, typer.Option("--host", help="Interface to bind.")] = "127.0.0.1",
    port: Annotated[int, typer.Option("--port", help="Port to listen on.")] = 8000,
    reload: Annotated[
        bool, typer.Option("--reload", help="Restart on source changes (development).")
    ] = False,
) -> None:
    settings = get_settings()
    uvicorn.run(
        "docstore_api.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_config=None,
        log_level=settings.logging_level.lower(),
    )


@app.command(name="init-db", help="Create storage directories and database tables.")
def init_database() -> None:
    settings = get_settings()
    ensure_runtime_dirs(settings)

    async def _run() -> None:
        try:
            await init_db(settings)
        finally:
            await dispose_engine()

    asyncio.run(_run())
    dsn = make_url(settings.database_dsn).render_as_string(hide_password=True)
    typer.echo(f"database ready: {dsn}")
    typer.echo(f"storage ready: {settings.storage_dir}")


@app.command(name="seed", help="Insert sample documents with placeholder files.")
def seed() -> None:
    settings = get_settings()
    ensure_runtime_dirs(settings)

    async def _run() -> int:
        try:
            await init_db(settings)
            session_factory = get_sessionmaker(settings)
            async with session_factory() as session:
                service = DocumentsService(session=session, settings=settings)
                created = await seed_documents(service)
            return len(created)
        finally:
            await dispose_engine()

    count = asyncio.run(_run())
    typer.echo(f"created {count} sample documents")


__all__ = ["app"]
