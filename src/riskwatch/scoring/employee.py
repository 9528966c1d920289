# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Employee-level risk aggregation."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime, timedelta

from riskwatch.core.constants import (
    RISK_LEVEL_CRITICAL,
    RISK_LEVEL_HIGH,
    RISK_LEVEL_MEDIUM,
    VIOLATION_SEVERITY_SCORES,
    RiskLevel,
    Severity,
)
from riskwatch.models.employee import EmployeeRiskProfile
from riskwatch.scoring.aggregation import round_half_up


def risk_level_for(score: float) -> RiskLevel:
    if score >= RISK_LEVEL_CRITICAL:
        return RiskLevel.CRITICAL
    if score >= RISK_LEVEL_HIGH:
        return RiskLevel.HIGH
    if score >= RISK_LEVEL_MEDIUM:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def communication_component(
    history: Iterable[tuple[datetime, float]],
    *,
    now: datetime,
    window_days: int,
) -> tuple[float | None, int]:
    """Linearly age-weighted mean of communication scores inside the window.

    Weight is ``max(1, window_days - age_in_days)``.  Returns ``(None, 0)``
    when no communication falls inside the window.
    """
    cutoff = now - timedelta(days=window_days)
    weighted = 0.0
    total_weight = 0
    count = 0
    for sent_at, score in history:
        if sent_at < cutoff:
            continue
        age_days = max(0, (now - sent_at).days)
        weight = max(1, window_days - age_days)
        weighted += weight * score
        total_weight += weight
        count += 1

    if count == 0:
        return None, 0
    return weighted / total_weight, count


def violation_component(active_severities: Iterable[Severity]) -> float:
    scores = [VIOLATION_SEVERITY_SCORES[s] for s in active_severities]
    return sum(scores) / len(scores) if scores else 0.0


def compute_employee_risk(
    employee_id: str,
    history: Iterable[tuple[datetime, float]],
    active_severities: Iterable[Severity],
    *,
    now: datetime | None = None,
    window_days: int = 30,
    communication_weight: float = 0.6,
    violation_weight: float = 0.4,
) -> EmployeeRiskProfile:
    """Combine recent communication risk with active-violation severity."""
    now = now or datetime.now(UTC)
    severities = list(active_severities)
    comm, comm_count = communication_component(history, now=now, window_days=window_days)
    viol = violation_component(severities)

    if comm is None:
        combined = viol
    else:
        combined = communication_weight * comm + violation_weight * viol

    score = min(100, max(0, round_half_up(combined)))
    return EmployeeRiskProfile(
        employee_id=employee_id,
        risk_score=score,
        risk_level=risk_level_for(score),
        communication_component=comm,
        violation_component=viol,
        communication_count=comm_count,
        active_violation_count=len(severities),
        last_updated=now,
    )
