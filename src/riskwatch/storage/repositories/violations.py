# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Repository for violations and their append-only status history."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

import aiosqlite

from riskwatch.core.constants import AIValidationStatus, Severity, ViolationStatus
from riskwatch.models.violation import Violation, ViolationStatusHistory
from riskwatch.storage.database import transaction
from riskwatch.storage.timestamps import from_db, to_db

_INSERT_VIOLATION = """
INSERT {or_ignore} INTO violations (
    employee_id, communication_id, category_id, violation_type, severity, status,
    description, evidence, structured_evidence, ai_validation_status, metadata,
    version, created_at, updated_at, resolved_at
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""


class ViolationRepository:
    """Violations are never deleted; status columns change only via versioned updates."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def create(self, violation: Violation) -> Violation:
        async with transaction(self._db):
            cursor = await self._db.execute(
                _INSERT_VIOLATION.format(or_ignore=""), self._insert_params(violation)
            )
        return violation.model_copy(update={"id": cursor.lastrowid})

    async def create_if_absent(self, violation: Violation) -> Violation | None:
        """Insert unless a violation already exists for the same (communication, category)."""
        async with transaction(self._db):
            cursor = await self._db.execute(
                _INSERT_VIOLATION.format(or_ignore="OR IGNORE"), self._insert_params(violation)
            )
        if cursor.rowcount == 0:
            return None
        return violation.model_copy(update={"id": cursor.lastrowid})

    async def get(self, violation_id: int) -> Violation | None:
        cursor = await self._db.execute(
            "SELECT * FROM violations WHERE id = ?", (violation_id,)
        )
        row = await cursor.fetchone()
        return self._row_to_violation(row) if row else None

    async def list_violations(
        self,
        *,
        employee_id: str | None = None,
        status: ViolationStatus | None = None,
        limit: int = 100,
    ) -> list[Violation]:
        clauses: list[str] = []
        params: list[Any] = []
        if employee_id is not None:
            clauses.append("employee_id = ?")
            params.append(employee_id)
        if status is not None:
            clauses.append("status = ?")
            params.append(str(status))

        query = "SELECT * FROM violations"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY created_at DESC, id DESC LIMIT ?"
        params.append(limit)

        cursor = await self._db.execute(query, params)
        return [self._row_to_violation(row) for row in await cursor.fetchall()]

    async def active_severities(self, employee_id: str) -> list[Severity]:
        cursor = await self._db.execute(
            "SELECT severity FROM violations WHERE employee_id = ? AND status = ?",
            (employee_id, str(ViolationStatus.ACTIVE)),
        )
        return [Severity(row["severity"]) for row in await cursor.fetchall()]

    async def update_status(
        self,
        violation_id: int,
        *,
        expected_version: int,
        status: ViolationStatus,
        metadata: dict[str, Any],
        updated_at: datetime,
        resolved_at: datetime | None,
    ) -> bool:
        """Compare-and-set on ``version``; returns False if another writer won.

        Call inside the caller's :func:`transaction` so the history row
        commits together with the status change.
        """
        async with transaction(self._db):
            cursor = await self._db.execute(
                """
                UPDATE violations SET
                    status = ?, metadata = ?, updated_at = ?, resolved_at = ?,
                    version = version + 1
                WHERE id = ? AND version = ?
                """,
                (
                    str(status),
                    json.dumps(metadata, default=str),
                    to_db(updated_at),
                    to_db(resolved_at),
                    violation_id,
                    expected_version,
                ),
            )
        return cursor.rowcount == 1

    async def update_ai_validation(
        self,
        violation_id: int,
        *,
        status: AIValidationStatus,
        score: float | None = None,
        reasoning: str | None = None,
        recommended_status: ViolationStatus | None = None,
        validated_at: datetime | None = None,
        metadata_updates: dict[str, Any] | None = None,
    ) -> bool:
        """Write the AI validation columns; returns False if the violation is gone.

        *metadata_updates* is merged into the stored metadata inside the
        UPDATE, so keys written by a concurrent transition are kept.  Neither
        ``version`` nor ``status`` changes.
        """
        fields = [
            "ai_validation_status = ?",
            "ai_validation_score = ?",
            "ai_validation_reasoning = ?",
            "ai_recommended_status = ?",
            "ai_validated_at = ?",
        ]
        params: list[Any] = [
            str(status),
            score,
            reasoning,
            str(recommended_status) if recommended_status else None,
            to_db(validated_at),
        ]
        if metadata_updates:
            fields.append("metadata = json_patch(metadata, ?)")
            params.append(json.dumps(metadata_updates, default=str))
        params.append(violation_id)

        set_clause = ", ".join(fields)
        async with transaction(self._db):
            cursor = await self._db.execute(
                f"UPDATE violations SET {set_clause} WHERE id = ?",  # noqa: S608
                params,
            )
        return cursor.rowcount == 1

    async def add_history(self, entry: ViolationStatusHistory) -> ViolationStatusHistory:
        """Append a history row, inside the caller's transaction when there is one."""
        async with transaction(self._db):
            cursor = await self._db.execute(
                """
                INSERT INTO violation_status_history (
                    violation_id, previous_status, new_status, reason, changed_by,
                    ai_assisted, ai_confidence, metadata, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.violation_id,
                    str(entry.previous_status),
                    str(entry.new_status),
                    entry.reason,
                    entry.changed_by,
                    int(entry.ai_assisted),
                    entry.ai_confidence,
                    json.dumps(entry.metadata, default=str),
                    to_db(entry.created_at),
                ),
            )
        return entry.model_copy(update={"id": cursor.lastrowid})

    async def history(self, violation_id: int) -> list[ViolationStatusHistory]:
        cursor = await self._db.execute(
            "SELECT * FROM violation_status_history WHERE violation_id = ? ORDER BY id",
            (violation_id,),
        )
        return [self._row_to_history(row) for row in await cursor.fetchall()]

    @staticmethod
    def _insert_params(violation: Violation) -> tuple[Any, ...]:
        return (
            violation.employee_id,
            violation.communication_id,
            violation.category_id,
            violation.violation_type,
            str(violation.severity),
            str(violation.status),
            violation.description,
            json.dumps(violation.evidence),
            json.dumps(violation.structured_evidence, default=str)
            if violation.structured_evidence is not None
            else None,
            str(violation.ai_validation_status),
            json.dumps(violation.metadata, default=str),
            violation.version,
            to_db(violation.created_at),
            to_db(violation.updated_at),
            to_db(violation.resolved_at),
        )

    @staticmethod
    def _row_to_violation(row: aiosqlite.Row) -> Violation:
        data = dict(row)
        return Violation(
            id=data["id"],
            employee_id=data["employee_id"],
            communication_id=data["communication_id"],
            category_id=data["category_id"],
            violation_type=data["violation_type"],
            severity=data["severity"],
            status=data["status"],
            description=data["description"],
            evidence=json.loads(data["evidence"]),
            structured_evidence=json.loads(data["structured_evidence"])
            if data["structured_evidence"]
            else None,
            ai_validation_status=data["ai_validation_status"],
            ai_validation_score=data["ai_validation_score"],
            ai_validation_reasoning=data["ai_validation_reasoning"],
            ai_recommended_status=data["ai_recommended_status"],
            ai_validated_at=from_db(data["ai_validated_at"]),
            metadata=json.loads(data["metadata"]),
            version=data["version"],
            created_at=from_db(data["created_at"]),
            updated_at=from_db(data["updated_at"]),
            resolved_at=from_db(data["resolved_at"]),
        )

    @staticmethod
    def _row_to_history(row: aiosqlite.Row) -> ViolationStatusHistory:
        data = dict(row)
        return ViolationStatusHistory(
            id=data["id"],
            violation_id=data["violation_id"],
            previous_status=data["previous_status"],
            new_status=data["new_status"],
            reason=data["reason"],
            changed_by=data["changed_by"],
            ai_assisted=bool(data["ai_assisted"]),
            ai_confidence=data["ai_confidence"],
            metadata=json.loads(data["metadata"]),
            created_at=from_db(data["created_at"]),
        )
