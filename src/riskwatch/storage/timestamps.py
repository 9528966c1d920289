# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Timestamp conversion for TEXT columns.

All datetimes are stored as UTC ISO-8601 strings so that lexical order in
SQL matches chronological order.
"""

from __future__ import annotations

from datetime import UTC, datetime


def to_db(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat()


def from_db(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)
