# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Repository for append-only detection results."""

from __future__ import annotations

import json
from collections.abc import Sequence

import aiosqlite

from riskwatch.models.detection import DetectionResult
from riskwatch.storage.database import transaction
from riskwatch.storage.timestamps import from_db, to_db


class DetectionRepository:
    """Insert and read operations for detection_results; rows are never updated."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def add_many(self, results: Sequence[DetectionResult]) -> None:
        async with transaction(self._db):
            await self._db.executemany(
                """
                INSERT INTO detection_results (
                    communication_id, category_id, category_name, matched_keywords,
                    pattern_matches, confidence, risk_score, final_risk_score,
                    applied_multipliers, triggers_alert, triggers_investigation,
                    triggers_critical, analysis_method, reasoning, recommendations,
                    degraded, degradation_reason, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        r.communication_id,
                        r.category_id,
                        r.category_name,
                        json.dumps([m.model_dump() for m in r.matched_keywords]),
                        json.dumps(r.pattern_matches),
                        r.confidence,
                        r.risk_score,
                        r.final_risk_score,
                        json.dumps({str(k): v for k, v in r.applied_multipliers.items()}),
                        int(r.triggers_alert),
                        int(r.triggers_investigation),
                        int(r.triggers_critical),
                        str(r.analysis_method),
                        r.reasoning,
                        json.dumps(r.recommendations),
                        int(r.degraded),
                        r.degradation_reason,
                        to_db(r.created_at),
                    )
                    for r in results
                ],
            )

    async def list_for_communication(self, communication_id: str) -> list[DetectionResult]:
        """All results ever recorded for a communication, oldest first."""
        cursor = await self._db.execute(
            "SELECT * FROM detection_results WHERE communication_id = ? ORDER BY id",
            (communication_id,),
        )
        return [self._row_to_result(row) for row in await cursor.fetchall()]

    async def count(self) -> int:
        cursor = await self._db.execute("SELECT COUNT(*) FROM detection_results")
        row = await cursor.fetchone()
        return int(row[0]) if row else 0

    @staticmethod
    def _row_to_result(row: aiosqlite.Row) -> DetectionResult:
        data = dict(row)
        return DetectionResult(
            id=data["id"],
            communication_id=data["communication_id"],
            category_id=data["category_id"],
            category_name=data["category_name"],
            matched_keywords=json.loads(data["matched_keywords"]),
            pattern_matches=json.loads(data["pattern_matches"]),
            confidence=data["confidence"],
            risk_score=data["risk_score"],
            final_risk_score=data["final_risk_score"],
            applied_multipliers=json.loads(data["applied_multipliers"]),
            triggers_alert=bool(data["triggers_alert"]),
            triggers_investigation=bool(data["triggers_investigation"]),
            triggers_critical=bool(data["triggers_critical"]),
            analysis_method=data["analysis_method"],
            reasoning=data["reasoning"],
            recommendations=json.loads(data["recommendations"]),
            degraded=bool(data["degraded"]),
            degradation_reason=data["degradation_reason"],
            created_at=from_db(data["created_at"]),
        )
