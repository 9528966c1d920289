# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Domain models for riskwatch."""

from riskwatch.models.anomaly import Anomaly, MetricSeries, RiskSpike
from riskwatch.models.category import (
    CategoryKeyword,
    CategorySnapshot,
    ThreatCategory,
    parse_category,
)
from riskwatch.models.communication import (
    Attachment,
    Communication,
    CommunicationOverlay,
    RiskFlag,
)
from riskwatch.models.detection import DetectionResult, KeywordMatch
from riskwatch.models.employee import Employee, EmployeeRiskProfile
from riskwatch.models.job import AnalysisJob, BatchSummary
from riskwatch.models.violation import (
    AIValidationResult,
    TransitionResult,
    Violation,
    ViolationStatusHistory,
)

__all__ = [
    "AIValidationResult",
    "AnalysisJob",
    "Anomaly",
    "Attachment",
    "BatchSummary",
    "CategoryKeyword",
    "CategorySnapshot",
    "Communication",
    "CommunicationOverlay",
    "DetectionResult",
    "Employee",
    "EmployeeRiskProfile",
    "KeywordMatch",
    "MetricSeries",
    "RiskFlag",
    "RiskSpike",
    "ThreatCategory",
    "TransitionResult",
    "Violation",
    "ViolationStatusHistory",
    "parse_category",
]
