# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Repository for communications and their analysis overlay."""

from __future__ import annotations

import json
from collections.abc import Iterable
from datetime import datetime

import aiosqlite

from riskwatch.core.exceptions import StorageError
from riskwatch.models.communication import Communication, CommunicationOverlay
from riskwatch.storage.database import transaction
from riskwatch.storage.timestamps import from_db, to_db


class CommunicationRepository:
    """Immutable facts are written once; only overlay columns are updated."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def create(self, communication: Communication) -> bool:
        """Insert a communication; returns False if the id already exists."""
        return await self.create_many([communication]) == 1

    async def create_many(self, communications: Iterable[Communication]) -> int:
        """Insert in one transaction; returns how many ids were new."""
        inserted = 0
        try:
            async with transaction(self._db):
                for communication in communications:
                    inserted += int(await self._insert(communication))
        except aiosqlite.Error as exc:
            raise StorageError(f"Failed to store communications: {exc}") from exc
        return inserted

    async def get(self, communication_id: str) -> Communication | None:
        cursor = await self._db.execute(
            "SELECT * FROM communications WHERE id = ?", (communication_id,)
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_communication(row)

    async def list_ids_for_employee(
        self, employee_id: str, limit: int, *, unanalyzed_only: bool = False
    ) -> list[str]:
        """Most recent communication ids for an employee, newest first."""
        query = "SELECT id FROM communications WHERE employee_id = ?"
        if unanalyzed_only:
            query += " AND is_analyzed = 0"
        query += " ORDER BY sent_at DESC, id LIMIT ?"
        cursor = await self._db.execute(query, (employee_id, limit))
        return [row["id"] for row in await cursor.fetchall()]

    async def list_unanalyzed_ids(self, limit: int) -> list[str]:
        cursor = await self._db.execute(
            "SELECT id FROM communications WHERE is_analyzed = 0 "
            "ORDER BY sent_at, id LIMIT ?",
            (limit,),
        )
        return [row["id"] for row in await cursor.fetchall()]

    async def update_overlay(
        self,
        communication_id: str,
        overlay: CommunicationOverlay,
    ) -> None:
        async with transaction(self._db):
            await self._db.execute(
                """
                UPDATE communications SET
                    risk_score = ?, risk_flags = ?, category = ?, category_id = ?,
                    is_flagged = ?, is_analyzed = ?, analyzed_at = ?, analyzer_version = ?
                WHERE id = ?
                """,
                (
                    overlay.risk_score,
                    json.dumps([f.model_dump(mode="json") for f in overlay.risk_flags]),
                    overlay.category,
                    overlay.category_id,
                    int(overlay.is_flagged),
                    int(overlay.is_analyzed),
                    to_db(overlay.analyzed_at),
                    overlay.analyzer_version,
                    communication_id,
                ),
            )

    async def scored_history(
        self, employee_id: str, since: datetime
    ) -> list[tuple[datetime, float]]:
        """(sent_at, risk_score) for analyzed communications sent at or after *since*."""
        cursor = await self._db.execute(
            """
            SELECT sent_at, risk_score FROM communications
            WHERE employee_id = ? AND is_analyzed = 1 AND sent_at >= ?
            ORDER BY sent_at
            """,
            (employee_id, to_db(since)),
        )
        return [
            (from_db(row["sent_at"]), float(row["risk_score"]))  # type: ignore[misc]
            for row in await cursor.fetchall()
        ]

    async def count_from_sender(self, sender: str, start: datetime, end: datetime) -> int:
        """Communications from *sender* with ``start <= sent_at <= end``."""
        cursor = await self._db.execute(
            "SELECT COUNT(*) FROM communications WHERE sender = ? AND sent_at >= ? AND sent_at <= ?",
            (sender, to_db(start), to_db(end)),
        )
        row = await cursor.fetchone()
        return int(row[0]) if row else 0

    async def sent_times(
        self, employee_id: str, since: datetime
    ) -> list[tuple[datetime, str | None]]:
        """(sent_at, sender_timezone) for an employee's communications since *since*."""
        cursor = await self._db.execute(
            "SELECT sent_at, sender_timezone FROM communications "
            "WHERE employee_id = ? AND sent_at >= ? ORDER BY sent_at",
            (employee_id, to_db(since)),
        )
        return [
            (from_db(row["sent_at"]), row["sender_timezone"])  # type: ignore[misc]
            for row in await cursor.fetchall()
        ]

    async def _insert(self, communication: Communication) -> bool:
        cursor = await self._db.execute(
            """
            INSERT OR IGNORE INTO communications (
                id, employee_id, sender, recipients, subject, body, attachments,
                sent_at, is_external, channel, sender_timezone, context_flags
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                communication.id,
                communication.employee_id,
                communication.sender,
                json.dumps(communication.recipients),
                communication.subject,
                communication.body,
                json.dumps([a.model_dump() for a in communication.attachments]),
                to_db(communication.sent_at),
                int(communication.is_external),
                communication.channel,
                communication.sender_timezone,
                json.dumps([str(f) for f in communication.context_flags]),
            ),
        )
        return cursor.rowcount == 1

    @staticmethod
    def _row_to_communication(row: aiosqlite.Row) -> Communication:
        data = dict(row)
        overlay = None
        if data["is_analyzed"]:
            overlay = CommunicationOverlay(
                risk_score=data["risk_score"],
                risk_flags=json.loads(data["risk_flags"] or "[]"),
                category=data["category"],
                category_id=data["category_id"],
                is_flagged=bool(data["is_flagged"]),
                is_analyzed=True,
                analyzed_at=from_db(data["analyzed_at"]),
                analyzer_version=data["analyzer_version"] or "",
            )
        return Communication(
            id=data["id"],
            employee_id=data["employee_id"],
            sender=data["sender"],
            recipients=json.loads(data["recipients"]),
            subject=data["subject"],
            body=data["body"],
            attachments=json.loads(data["attachments"]),
            sent_at=from_db(data["sent_at"]),
            is_external=bool(data["is_external"]),
            channel=data["channel"],
            sender_timezone=data["sender_timezone"],
            context_flags=json.loads(data["context_flags"]),
            overlay=overlay,
        )
