# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Repository for employees and their risk profile columns."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

import aiosqlite

from riskwatch.core.exceptions import NotFoundError
from riskwatch.models.employee import Employee, EmployeeRiskProfile
from riskwatch.storage.database import transaction
from riskwatch.storage.timestamps import from_db, to_db


class EmployeeRepository:
    """Directory facts come from the connector; risk columns from the aggregator."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def upsert(self, employee: Employee) -> None:
        async with transaction(self._db):
            await self._upsert(employee)

    async def upsert_many(self, employees: Iterable[Employee]) -> int:
        count = 0
        async with transaction(self._db):
            for employee in employees:
                await self._upsert(employee)
                count += 1
        return count

    async def get(self, employee_id: str) -> Employee | None:
        cursor = await self._db.execute(
            "SELECT * FROM employees WHERE id = ?", (employee_id,)
        )
        row = await cursor.fetchone()
        return self._row_to_employee(row) if row else None

    async def list_active_ids(self) -> list[str]:
        cursor = await self._db.execute(
            "SELECT id FROM employees WHERE is_active = 1 ORDER BY id"
        )
        return [row["id"] for row in await cursor.fetchall()]

    async def list_by_risk(self, limit: int = 50) -> list[Employee]:
        cursor = await self._db.execute(
            "SELECT * FROM employees ORDER BY risk_score DESC, id LIMIT ?", (limit,)
        )
        return [self._row_to_employee(row) for row in await cursor.fetchall()]

    async def list_risk_spikes(
        self, min_score: float, since: datetime
    ) -> list[tuple[Employee, int]]:
        """Active employees scored above *min_score* since *since*.

        Each employee comes with the number of violations raised against
        them since *since*.  Highest risk first.
        """
        cursor = await self._db.execute(
            """
            SELECT e.*, COUNT(v.id) AS recent_violations
            FROM employees e
            LEFT JOIN violations v
                ON v.employee_id = e.id AND v.created_at >= ?
            WHERE e.is_active = 1 AND e.risk_score > ? AND e.risk_updated_at >= ?
            GROUP BY e.id
            ORDER BY e.risk_score DESC, recent_violations DESC, e.id
            """,
            (to_db(since), min_score, to_db(since)),
        )
        return [
            (self._row_to_employee(row), int(row["recent_violations"]))
            for row in await cursor.fetchall()
        ]

    async def update_risk(self, profile: EmployeeRiskProfile) -> None:
        async with transaction(self._db):
            cursor = await self._db.execute(
                "UPDATE employees SET risk_score = ?, risk_level = ?, risk_updated_at = ? "
                "WHERE id = ?",
                (
                    profile.risk_score,
                    str(profile.risk_level),
                    to_db(profile.last_updated),
                    profile.employee_id,
                ),
            )
        if cursor.rowcount == 0:
            raise NotFoundError("employee", profile.employee_id)

    async def _upsert(self, employee: Employee) -> None:
        # Risk columns are owned by the aggregator and survive re-imports.
        await self._db.execute(
            """
            INSERT INTO employees (id, name, email, department, timezone, is_active)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name = excluded.name,
                email = excluded.email,
                department = excluded.department,
                timezone = excluded.timezone,
                is_active = excluded.is_active
            """,
            (
                employee.id,
                employee.name,
                employee.email,
                employee.department,
                employee.timezone,
                int(employee.is_active),
            ),
        )

    @staticmethod
    def _row_to_employee(row: aiosqlite.Row) -> Employee:
        data = dict(row)
        return Employee(
            id=data["id"],
            name=data["name"],
            email=data["email"],
            department=data["department"],
            timezone=data["timezone"],
            is_active=bool(data["is_active"]),
            risk_score=data["risk_score"],
            risk_level=data["risk_level"],
            risk_updated_at=from_db(data["risk_updated_at"]),
        )
