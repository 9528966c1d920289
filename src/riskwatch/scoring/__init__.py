# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Risk scoring and aggregation."""

from riskwatch.scoring.aggregation import (
    CommunicationVerdict,
    aggregate_communication,
    round_half_up,
)
from riskwatch.scoring.anomaly import build_metric_series, detect_anomalies
from riskwatch.scoring.employee import compute_employee_risk, risk_level_for
from riskwatch.scoring.scorer import RiskScorer

__all__ = [
    "CommunicationVerdict",
    "RiskScorer",
    "aggregate_communication",
    "build_metric_series",
    "compute_employee_risk",
    "detect_anomalies",
    "risk_level_for",
    "round_half_up",
]
