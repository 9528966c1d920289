# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Statistical anomaly records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel

from riskwatch.core.constants import AnomalyMetric, RiskLevel


@dataclass(frozen=True, slots=True)
class MetricSeries:
    """Historical baseline and current value for one employee metric."""

    employee_id: str
    metric: AnomalyMetric
    history: tuple[float, ...]
    current: float


class Anomaly(BaseModel):
    """An employee metric whose current value deviates from its baseline."""

    employee_id: str
    metric: AnomalyMetric
    current_value: float
    historical_mean: float
    historical_stddev: float
    z_score: float

    @property
    def direction(self) -> str:
        return "spike" if self.z_score > 0 else "drop"


class RiskSpike(BaseModel):
    """An active employee whose stored risk score is above the spike threshold."""

    employee_id: str
    name: str
    department: str = ""
    risk_score: int
    risk_level: RiskLevel
    risk_updated_at: datetime
    recent_violations: int = 0
