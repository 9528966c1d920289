# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""JobRunner -- tracked background batch analyses keyed by job id.

Each submitted batch gets a persisted ``analysis_jobs`` row whose status
moves from ``running`` to ``completed``, ``cancelled`` or ``failed``; the
batch itself runs as an asyncio task that can be cancelled between items.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime

from riskwatch.core.constants import JobStatus
from riskwatch.core.exceptions import NotFoundError
from riskwatch.engine.service import RiskEngine
from riskwatch.models.job import AnalysisJob
from riskwatch.storage.repositories.jobs import JobRepository

logger = logging.getLogger("riskwatch.engine.jobs")


class JobRunner:
    """Runs batch analyses in the background and records their outcome."""

    def __init__(self, engine: RiskEngine, repo: JobRepository) -> None:
        self._engine = engine
        self._repo = repo
        self._tasks: dict[str, asyncio.Task[AnalysisJob]] = {}
        self._cancel_events: dict[str, asyncio.Event] = {}

    async def submit(
        self, communication_ids: list[str], *, kind: str = "batch", target: str = ""
    ) -> AnalysisJob:
        """Start analyzing *communication_ids* and return the running job record."""
        job = AnalysisJob(kind=kind, target=target)
        await self._repo.create(job)

        cancel_event = asyncio.Event()
        self._cancel_events[job.id] = cancel_event
        self._tasks[job.id] = asyncio.create_task(
            self._run(job, communication_ids, cancel_event)
        )
        logger.info("Submitted %s job %s (%d items)", kind, job.id, len(communication_ids))
        return job

    async def submit_employee(self, employee_id: str, limit: int | None = None) -> AnalysisJob:
        ids = await self._engine.employee_communication_ids(employee_id, limit)
        return await self.submit(ids, kind="employee", target=employee_id)

    async def submit_all_active(self, limit_per_employee: int | None = None) -> AnalysisJob:
        ids = await self._engine.collect_active_ids(limit_per_employee)
        return await self.submit(ids, kind="all_active")

    def cancel(self, job_id: str) -> bool:
        """Request cancellation; the batch stops at the next item boundary."""
        event = self._cancel_events.get(job_id)
        task = self._tasks.get(job_id)
        if event is None or task is None or task.done():
            return False
        event.set()
        return True

    async def status(self, job_id: str) -> AnalysisJob:
        job = await self._repo.get(job_id)
        if job is None:
            raise NotFoundError("job", job_id)
        return job

    async def wait(self, job_id: str) -> AnalysisJob:
        """Block until the job finishes; finished jobs are read back from storage."""
        task = self._tasks.get(job_id)
        if task is None:
            return await self.status(job_id)
        return await task

    async def _run(
        self, job: AnalysisJob, communication_ids: list[str], cancel_event: asyncio.Event
    ) -> AnalysisJob:
        try:
            try:
                summary = await self._engine.analyze_batch(
                    communication_ids, cancel_event=cancel_event
                )
                job.summary = summary
                job.status = (
                    JobStatus.CANCELLED if summary.was_cancelled else JobStatus.COMPLETED
                )
            except Exception as exc:
                job.status = JobStatus.FAILED
                job.error = f"{type(exc).__name__}: {exc}"
                logger.error("Job %s failed: %s", job.id, exc)

            job.completed_at = datetime.now(UTC)
            await self._repo.update(job)
            logger.info("Job %s finished with status %s", job.id, job.status)
            return job
        finally:
            self._cancel_events.pop(job.id, None)
            self._tasks.pop(job.id, None)
