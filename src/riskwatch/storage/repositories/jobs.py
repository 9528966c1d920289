# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Repository for persisted analysis job records."""

from __future__ import annotations

import json

import aiosqlite

from riskwatch.models.job import AnalysisJob, BatchSummary
from riskwatch.storage.database import transaction
from riskwatch.storage.timestamps import from_db, to_db


class JobRepository:
    """CRUD operations for the analysis_jobs table."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def create(self, job: AnalysisJob) -> None:
        async with transaction(self._db):
            await self._db.execute(
                """
                INSERT INTO analysis_jobs (
                    id, kind, target, status, summary, error, created_at, completed_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    job.id,
                    job.kind,
                    job.target,
                    str(job.status),
                    job.summary.model_dump_json() if job.summary else None,
                    job.error,
                    to_db(job.created_at),
                    to_db(job.completed_at),
                ),
            )

    async def update(self, job: AnalysisJob) -> None:
        async with transaction(self._db):
            await self._db.execute(
                "UPDATE analysis_jobs SET status = ?, summary = ?, error = ?, completed_at = ? "
                "WHERE id = ?",
                (
                    str(job.status),
                    job.summary.model_dump_json() if job.summary else None,
                    job.error,
                    to_db(job.completed_at),
                    job.id,
                ),
            )

    async def get(self, job_id: str) -> AnalysisJob | None:
        cursor = await self._db.execute(
            "SELECT * FROM analysis_jobs WHERE id = ?", (job_id,)
        )
        row = await cursor.fetchone()
        return self._row_to_job(row) if row else None

    async def list_recent(self, limit: int = 20) -> list[AnalysisJob]:
        cursor = await self._db.execute(
            "SELECT * FROM analysis_jobs ORDER BY created_at DESC LIMIT ?", (limit,)
        )
        return [self._row_to_job(row) for row in await cursor.fetchall()]

    @staticmethod
    def _row_to_job(row: aiosqlite.Row) -> AnalysisJob:
        data = dict(row)
        return AnalysisJob(
            id=data["id"],
            kind=data["kind"],
            target=data["target"],
            status=data["status"],
            summary=BatchSummary.model_validate(json.loads(data["summary"]))
            if data["summary"]
            else None,
            error=data["error"],
            created_at=from_db(data["created_at"]),
            completed_at=from_db(data["completed_at"]),
        )
