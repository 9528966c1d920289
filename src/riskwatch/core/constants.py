# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Enumerations, severity scores, and threshold constants."""

import re
from enum import StrEnum

_CAMEL_BOUNDARY_RE = re.compile(r"(?<!^)(?=[A-Z])")


class _SnakeCaseEnum(StrEnum):
    """StrEnum that also accepts the camelCase spelling of a member value."""

    @classmethod
    def _missing_(cls, value: object):  # type: ignore[override]
        if isinstance(value, str):
            snake = _CAMEL_BOUNDARY_RE.sub("_", value.strip()).lower()
            for member in cls:
                if member.value == snake:
                    return member
        return None


class Severity(StrEnum):
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class RiskLevel(StrEnum):
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class CategoryType(StrEnum):
    PREDEFINED = "predefined"
    CUSTOM = "custom"
    INDUSTRY_SPECIFIC = "industry_specific"


class PatternGroup(_SnakeCaseEnum):
    EMAIL = "email_patterns"
    BEHAVIORAL = "behavioral_patterns"
    TIME = "time_patterns"
    ATTACHMENT = "attachment_patterns"
    ACCESS = "access_patterns"
    COMMUNICATION = "communication_patterns"
    COMPLIANCE = "compliance_patterns"
    DOCUMENT = "document_patterns"
    SYSTEM = "system_patterns"
    PAYMENT = "payment_patterns"


class RiskFactor(_SnakeCaseEnum):
    AFTER_HOURS = "after_hours"
    EXTERNAL_RECIPIENT = "external_recipient"
    LARGE_ATTACHMENT = "large_attachment"
    FREQUENCY = "frequency"
    COMPETITOR_CONTACT = "competitor_contact"
    EXTERNAL_CONTACT = "external_contact"
    BULK_EXPORT = "bulk_export"
    PERSONAL_EMAIL = "personal_email"
    WEEKEND_SUBMISSION = "weekend_submission"
    ROUND_NUMBERS = "round_numbers"
    DUPLICATE_VENDOR = "duplicate_vendor"
    URGENT_PROCESSING = "urgent_processing"


class AnalysisMethod(StrEnum):
    KEYWORD = "keyword"
    LLM = "llm"


class ViolationStatus(StrEnum):
    ACTIVE = "Active"
    INVESTIGATING = "Investigating"
    FALSE_POSITIVE = "False Positive"
    RESOLVED = "Resolved"


class AIValidationStatus(StrEnum):
    PENDING = "pending"
    VALIDATED = "validated"
    REJECTED = "rejected"
    MANUAL_OVERRIDE = "manual_override"


class TriggerLevel(StrEnum):
    NONE = "none"
    ALERT = "alert"
    INVESTIGATION = "investigation"
    CRITICAL = "critical"


class JobStatus(StrEnum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class AnomalyMetric(StrEnum):
    EMAIL_VOLUME = "email_volume"
    AFTER_HOURS_ACTIVITY = "after_hours_activity"


INDUSTRIES: tuple[str, ...] = (
    "Technology",
    "Healthcare",
    "Finance",
    "Manufacturing",
    "Retail",
    "Government",
    "Education",
    "Energy",
    "Transportation",
    "Legal",
    "Real Estate",
    "Media",
    "Hospitality",
    "All",
)

# Tie-break order when two categories reach the same communication score.
SEVERITY_RANK: dict[Severity, int] = {
    Severity.CRITICAL: 4,
    Severity.HIGH: 3,
    Severity.MEDIUM: 2,
    Severity.LOW: 1,
}

VIOLATION_SEVERITY_SCORES: dict[Severity, int] = {
    Severity.CRITICAL: 90,
    Severity.HIGH: 70,
    Severity.MEDIUM: 50,
    Severity.LOW: 30,
}

RISK_LEVEL_CRITICAL = 80
RISK_LEVEL_HIGH = 60
RISK_LEVEL_MEDIUM = 40

# Category write-time limits
MAX_CATEGORY_NAME_LENGTH = 255
MAX_DESCRIPTION_LENGTH = 2000
MAX_KEYWORDS_PER_CATEGORY = 50
MAX_KEYWORD_LENGTH = 255
KEYWORD_WEIGHT_MIN = 0.1
KEYWORD_WEIGHT_MAX = 5.0
MULTIPLIER_MIN = 0.1
MULTIPLIER_MAX = 10.0

DEFAULT_BASE_RISK_SCORE = 50
DEFAULT_ALERT_THRESHOLD = 70
DEFAULT_INVESTIGATION_THRESHOLD = 85
DEFAULT_CRITICAL_THRESHOLD = 95
