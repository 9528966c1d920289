# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""SQLite connection management.

Every task shares one connection, and SQLite has one transaction per
connection.  Writers therefore go through :func:`transaction`, which holds
a per-connection lock from the first statement to the commit or rollback.
"""

from __future__ import annotations

import asyncio
import weakref
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from riskwatch.core.exceptions import StorageError
from riskwatch.storage.schema import create_schema

_db: aiosqlite.Connection | None = None


class _WriteGate:
    """Write lock for one connection, re-entrant for the task that holds it."""

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.owner: asyncio.Task | None = None


_gates: weakref.WeakKeyDictionary[aiosqlite.Connection, _WriteGate] = (
    weakref.WeakKeyDictionary()
)


def _gate_for(db: aiosqlite.Connection) -> _WriteGate:
    gate = _gates.get(db)
    if gate is None:
        gate = _gates[db] = _WriteGate()
    return gate


@asynccontextmanager
async def transaction(db: aiosqlite.Connection) -> AsyncIterator[aiosqlite.Connection]:
    """Run the enclosed writes as one unit of work on *db*.

    Commits on normal exit and rolls back if the block raises.  A nested
    ``transaction`` in the same task joins the outer one; the outermost
    block decides the outcome.
    """
    gate = _gate_for(db)
    task = asyncio.current_task()
    if task is not None and gate.owner is task:
        yield db
        return

    async with gate.lock:
        gate.owner = task
        try:
            yield db
        except BaseException:
            await db.rollback()
            raise
        else:
            await db.commit()
        finally:
            gate.owner = None


async def init_db(
    db_path: Path | str = "riskwatch.db",
    *,
    auto_create_schema: bool = True,
) -> aiosqlite.Connection:
    """Open the database connection, create the schema, and return the connection.

    Enables WAL mode and foreign keys.  Calling this again while a connection
    is open returns the existing connection.
    """
    global _db

    if _db is not None:
        return _db

    try:
        _db = await aiosqlite.connect(str(db_path))
        _db.row_factory = aiosqlite.Row

        await _db.execute("PRAGMA journal_mode=WAL")
        await _db.execute("PRAGMA foreign_keys=ON")

        if auto_create_schema:
            await create_schema(_db)

        return _db
    except Exception as exc:
        if _db is not None:
            await _db.close()
        _db = None
        msg = f"Failed to initialize database at {db_path}: {exc}"
        raise StorageError(msg) from exc


async def get_db() -> aiosqlite.Connection:
    """Get the active database connection.

    Raises StorageError if the database has not been initialized.
    """
    if _db is None:
        raise StorageError("Database not initialized. Call init_db() first.")
    return _db


async def close_db() -> None:
    """Close the database connection."""
    global _db

    if _db is not None:
        await _db.close()
        _db = None
