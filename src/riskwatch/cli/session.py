# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Shared plumbing for CLI commands: engine lifecycle and error reporting."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Coroutine
from contextlib import asynccontextmanager
from typing import Any, TypeVar

import typer

from riskwatch.core.exceptions import RiskWatchError

T = TypeVar("T")


@asynccontextmanager
async def engine_session() -> AsyncIterator[Any]:
    """Open the configured database and yield a :class:`RiskEngine` bound to it."""
    from riskwatch.core.config import get_settings
    from riskwatch.engine.service import RiskEngine
    from riskwatch.storage.database import close_db, init_db

    settings = get_settings()
    db = await init_db(settings.db_path, auto_create_schema=settings.auto_create_schema)
    try:
        yield RiskEngine(db, settings)
    finally:
        await close_db()


def run(coro: Coroutine[Any, Any, T]) -> T:
    """Run *coro*, turning domain errors into a one-line message and exit code 1."""
    try:
        return asyncio.run(coro)
    except RiskWatchError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1) from exc
