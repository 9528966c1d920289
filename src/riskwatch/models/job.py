# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Batch summaries and persisted analysis job records."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from pydantic import BaseModel, Field

from riskwatch.core.constants import JobStatus


class BatchSummary(BaseModel):
    """Per-item success/failure tally for one batch analysis."""

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    cancelled: int = 0
    failures: dict[str, str] = Field(default_factory=dict)
    employees_refreshed: list[str] = Field(default_factory=list)

    @property
    def was_cancelled(self) -> bool:
        return self.cancelled > 0


class AnalysisJob(BaseModel):
    """A tracked batch analysis with its persisted status."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    kind: str
    target: str = ""
    status: JobStatus = JobStatus.RUNNING
    summary: BatchSummary | None = None
    error: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    completed_at: datetime | None = None
