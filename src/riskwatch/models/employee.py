# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Employee and employee risk profile models."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field

from riskwatch.core.constants import RiskLevel


class Employee(BaseModel):
    """An employee record as provided by the directory connector."""

    id: str
    name: str
    email: str
    department: str = ""
    timezone: str | None = None
    is_active: bool = True
    risk_score: int = Field(default=0, ge=0, le=100)
    risk_level: RiskLevel = RiskLevel.LOW
    risk_updated_at: datetime | None = None


class EmployeeRiskProfile(BaseModel):
    """Aggregated employee-level risk posture."""

    employee_id: str
    risk_score: int = Field(ge=0, le=100)
    risk_level: RiskLevel
    communication_component: float | None = None
    violation_component: float = 0.0
    communication_count: int = 0
    active_violation_count: int = 0
    last_updated: datetime = Field(default_factory=lambda: datetime.now(UTC))
