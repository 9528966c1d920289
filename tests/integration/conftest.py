# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Fixtures that load the sample categories, employees and communications."""

from __future__ import annotations

import pytest

from riskwatch.categories.loader import load_categories_file
from riskwatch.engine.service import RiskEngine
from riskwatch.models.communication import Communication
from riskwatch.models.employee import Employee


def _read_jsonl(path, model):
    return [model.model_validate_json(line) for line in path.read_text().splitlines() if line.strip()]


@pytest.fixture
async def engine(db, settings, fixtures_dir):
    """A RiskEngine over an in-memory database seeded from tests/fixtures."""
    engine = RiskEngine(db, settings)
    for category in load_categories_file(fixtures_dir / "categories.yaml"):
        await engine.categories.create(category)
    await engine.employees.upsert_many(_read_jsonl(fixtures_dir / "employees.jsonl", Employee))
    await engine.communications.create_many(
        _read_jsonl(fixtures_dir / "communications.jsonl", Communication)
    )
    return engine
