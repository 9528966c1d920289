# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Shared test fixtures and configuration."""

from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def settings():
    """Settings isolated from any local .env file and without an API key."""
    from riskwatch.core.config import Settings

    return Settings(_env_file=None, anthropic_api_key="", internal_domains="corp.example")


@pytest.fixture
async def db():
    """Create an in-memory database with the full schema, yield, then close."""
    # Reset the module-level _db so init_db creates a fresh connection
    import riskwatch.storage.database as db_mod
    from riskwatch.storage.database import close_db, init_db

    db_mod._db = None

    conn = await init_db(":memory:")
    yield conn
    await close_db()
