# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Risk scorer: base score x match confidence x contextual multipliers."""

from __future__ import annotations

import math

from riskwatch.core.config import Settings, get_settings
from riskwatch.core.constants import AnalysisMethod, RiskFactor
from riskwatch.detectors.context import CommunicationContext
from riskwatch.detectors.keyword_detector import CategoryMatch
from riskwatch.models.category import ThreatCategory
from riskwatch.models.detection import DetectionResult

_FACTOR_RECOMMENDATIONS: dict[RiskFactor, str] = {
    RiskFactor.EXTERNAL_RECIPIENT: "Review external recipients and verify business purpose",
    RiskFactor.PERSONAL_EMAIL: "Confirm that transfer to a personal account was authorized",
    RiskFactor.COMPETITOR_CONTACT: "Review the relationship with the competitor domain",
    RiskFactor.LARGE_ATTACHMENT: "Inspect attachment contents for sensitive data",
    RiskFactor.BULK_EXPORT: "Inspect attachment contents for sensitive data",
    RiskFactor.AFTER_HOURS: "Monitor the employee for unusual work patterns",
    RiskFactor.FREQUENCY: "Check the sender's recent message volume",
    RiskFactor.DUPLICATE_VENDOR: "Verify the vendor record against the approved vendor list",
    RiskFactor.ROUND_NUMBERS: "Verify supporting documentation for the amounts involved",
}


def clamp_score(value: float) -> float:
    return max(0.0, min(100.0, value))


class RiskScorer:
    """Turns a :class:`CategoryMatch` into a finalized :class:`DetectionResult`."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()

    def raw_score(self, match: CategoryMatch, category: ThreatCategory) -> float:
        if match.analysis_method == AnalysisMethod.LLM:
            return category.base_risk_score * match.confidence / 100.0
        scale = min(1.0, match.match_weight / self._settings.keyword_calibration)
        return category.base_risk_score * scale

    def score(
        self,
        communication_id: str,
        match: CategoryMatch,
        category: ThreatCategory,
        context: CommunicationContext,
    ) -> DetectionResult:
        raw = self.raw_score(match, category)
        applied = {
            factor: multiplier
            for factor, multiplier in sorted(category.risk_multipliers.items())
            if context.has(factor)
        }
        final = clamp_score(raw * math.prod(applied.values()))

        triggers_alert = final >= category.alert_threshold
        triggers_investigation = final >= category.investigation_threshold
        triggers_critical = final >= category.critical_threshold

        result = DetectionResult(
            communication_id=communication_id,
            category_id=match.category_id,
            category_name=category.name,
            matched_keywords=list(match.matched_keywords),
            pattern_matches=list(match.pattern_matches),
            confidence=clamp_score(match.confidence),
            risk_score=clamp_score(raw),
            final_risk_score=final,
            applied_multipliers=applied,
            triggers_alert=triggers_alert,
            triggers_investigation=triggers_investigation,
            triggers_critical=triggers_critical,
            analysis_method=match.analysis_method,
            degraded=match.degraded,
            degradation_reason=match.degradation_reason,
        )
        return result.model_copy(
            update={
                "reasoning": _build_reasoning(result, match, category),
                "recommendations": _build_recommendations(result, context),
            }
        )


def _build_reasoning(
    result: DetectionResult, match: CategoryMatch, category: ThreatCategory
) -> str:
    parts: list[str] = []
    if match.analysis_method == AnalysisMethod.LLM:
        parts.append(f"Language-model assessment: {match.reasoning or 'no reasoning given'}.")
    elif match.matched:
        if match.matched_keywords:
            words = ", ".join(m.keyword for m in match.matched_keywords)
            parts.append(f"Matched keywords: {words}.")
        if match.pattern_matches:
            parts.append(f"Matched pattern groups: {', '.join(match.pattern_matches)}.")
    else:
        parts.append("No keywords or patterns matched.")

    if match.degraded:
        parts.append(f"Fallback unavailable ({match.degradation_reason}).")

    parts.append(
        f"Confidence {result.confidence:.1f}; base score {category.base_risk_score:g} "
        f"scaled to {result.risk_score:.1f}."
    )
    if result.applied_multipliers:
        applied = ", ".join(f"{f} x{m:g}" for f, m in result.applied_multipliers.items())
        parts.append(f"Multipliers applied: {applied}.")

    if result.triggers_critical:
        level = "critical"
    elif result.triggers_investigation:
        level = "investigation"
    elif result.triggers_alert:
        level = "alert"
    else:
        level = ""
    if level:
        parts.append(f"Final score {result.final_risk_score:.1f} reaches the {level} threshold.")
    else:
        parts.append(f"Final score {result.final_risk_score:.1f} is below the alert threshold.")
    return " ".join(parts)


def _build_recommendations(
    result: DetectionResult, context: CommunicationContext
) -> list[str]:
    recommendations: list[str] = []
    if result.degraded:
        recommendations.append("Re-run analysis when the language-model classifier is available")
    if not result.triggers_alert:
        return recommendations

    if result.triggers_critical:
        recommendations.append("Escalate to the security team immediately")
    if result.triggers_investigation:
        recommendations.append("Open an investigation and preserve related communications")
        recommendations.append("Consider blocking similar communications pending investigation")
    else:
        recommendations.append("Review the communication and monitor the sender")

    for factor in sorted(context.factors):
        text = _FACTOR_RECOMMENDATIONS.get(factor)
        if text and text not in recommendations:
            recommendations.append(text)
    return recommendations
