# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Repository for daily per-employee activity metrics."""

from __future__ import annotations

from datetime import date

import aiosqlite

from riskwatch.storage.database import transaction


class MetricsRepository:
    """One row per (employee, day)."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def upsert_daily(
        self,
        rows: list[tuple[str, date, int, int]],
    ) -> None:
        """Write ``(employee_id, day, email_volume, after_hours_activity)`` rows."""
        async with transaction(self._db):
            await self._db.executemany(
                """
                INSERT INTO employee_metrics (
                    employee_id, metric_date, email_volume, after_hours_activity
                ) VALUES (?, ?, ?, ?)
                ON CONFLICT(employee_id, metric_date) DO UPDATE SET
                    email_volume = excluded.email_volume,
                    after_hours_activity = excluded.after_hours_activity
                """,
                [(emp, day.isoformat(), volume, after) for emp, day, volume, after in rows],
            )

    async def list_since(self, since: date) -> list[tuple[str, date, int, int]]:
        cursor = await self._db.execute(
            """
            SELECT employee_id, metric_date, email_volume, after_hours_activity
            FROM employee_metrics WHERE metric_date >= ?
            ORDER BY employee_id, metric_date
            """,
            (since.isoformat(),),
        )
        return [
            (
                row["employee_id"],
                date.fromisoformat(row["metric_date"]),
                int(row["email_volume"]),
                int(row["after_hours_activity"]),
            )
            for row in await cursor.fetchall()
        ]
