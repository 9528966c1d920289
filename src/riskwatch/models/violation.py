# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Violation, status-history, and AI-validation models."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field

from riskwatch.core.constants import AIValidationStatus, Severity, ViolationStatus


class Violation(BaseModel):
    """An analyst-trackable security concern raised for one employee."""

    id: int | None = None
    employee_id: str
    communication_id: str | None = None
    category_id: int | None = None
    violation_type: str
    severity: Severity
    status: ViolationStatus = ViolationStatus.ACTIVE
    description: str = ""
    evidence: list[str] = Field(default_factory=list)
    structured_evidence: dict[str, Any] | None = None
    ai_validation_status: AIValidationStatus = AIValidationStatus.PENDING
    ai_validation_score: float | None = None
    ai_validation_reasoning: str | None = None
    ai_recommended_status: ViolationStatus | None = None
    ai_validated_at: datetime | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    version: int = 1
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    resolved_at: datetime | None = None


class ViolationStatusHistory(BaseModel):
    """One append-only audit row per status transition."""

    id: int | None = None
    violation_id: int
    previous_status: ViolationStatus
    new_status: ViolationStatus
    reason: str
    changed_by: str
    ai_assisted: bool = False
    ai_confidence: float | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class TransitionResult(BaseModel):
    """The updated violation together with the history row just appended."""

    violation: Violation
    history: ViolationStatusHistory


class AIValidationResult(BaseModel):
    """Advisory verdict returned by the AI validation side channel."""

    confidence_score: float = Field(ge=0.0, le=100.0)
    reasoning: str
    recommended_status: ViolationStatus
    additional_evidence_needed: list[str] = Field(default_factory=list)
