# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Database management commands."""

from __future__ import annotations

import typer

from riskwatch.cli.session import run

app = typer.Typer()


@app.command()
def init() -> None:
    """Create the SQLite database and its schema."""
    run(_init_db())


async def _init_db() -> None:
    from riskwatch.core.config import get_settings
    from riskwatch.storage.database import close_db, init_db

    settings = get_settings()
    typer.echo(f"Initializing database at {settings.db_path}...")
    await init_db(settings.db_path, auto_create_schema=True)
    await close_db()
    typer.echo("Database initialized.")


@app.command()
def stats() -> None:
    """Show row counts per table."""
    run(_show_stats())


async def _show_stats() -> None:
    from riskwatch.core.config import get_settings
    from riskwatch.storage.database import close_db, init_db
    from riskwatch.storage.schema import TABLE_NAMES

    settings = get_settings()
    db = await init_db(settings.db_path)
    try:
        typer.echo(f"Database: {settings.db_path}")
        typer.echo()
        for table in TABLE_NAMES:
            cursor = await db.execute(f"SELECT COUNT(*) FROM {table}")  # noqa: S608
            row = await cursor.fetchone()
            count = row[0] if row else 0
            typer.echo(f"  {table}: {count} rows")
    finally:
        await close_db()
