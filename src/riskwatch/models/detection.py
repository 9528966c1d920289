# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Detection results produced per (communication, category) evaluation."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field

from riskwatch.core.constants import AnalysisMethod, RiskFactor


class KeywordMatch(BaseModel):
    """A keyword that matched, with the weight it contributed."""

    keyword: str
    weight: float
    is_phrase: bool = False


class DetectionResult(BaseModel):
    """Finalized outcome of evaluating one communication against one category."""

    id: int | None = None
    communication_id: str
    category_id: int
    category_name: str
    matched_keywords: list[KeywordMatch] = Field(default_factory=list)
    pattern_matches: list[str] = Field(default_factory=list)
    confidence: float = Field(ge=0.0, le=100.0)
    risk_score: float = Field(ge=0.0, le=100.0)
    final_risk_score: float = Field(ge=0.0, le=100.0)
    applied_multipliers: dict[RiskFactor, float] = Field(default_factory=dict)
    triggers_alert: bool = False
    triggers_investigation: bool = False
    triggers_critical: bool = False
    analysis_method: AnalysisMethod = AnalysisMethod.KEYWORD
    reasoning: str = ""
    recommendations: list[str] = Field(default_factory=list)
    degraded: bool = False
    degradation_reason: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
