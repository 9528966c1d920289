# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Reduce per-category detection results to one communication verdict."""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime

from riskwatch.core.constants import SEVERITY_RANK, RiskFactor, Severity
from riskwatch.core.exceptions import InvariantViolation
from riskwatch.models.communication import CommunicationOverlay, RiskFlag
from riskwatch.models.detection import DetectionResult


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for non-negative input."""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True, slots=True)
class CommunicationVerdict:
    """The communication-level outcome of one analysis pass."""

    risk_score: float
    primary_category_id: int | None
    primary_category_name: str | None
    flagged: bool
    results: tuple[DetectionResult, ...]

    @property
    def degraded(self) -> bool:
        return any(r.degraded for r in self.results)

    def to_overlay(
        self,
        analyzer_version: str,
        factors: frozenset[RiskFactor] = frozenset(),
        analyzed_at: datetime | None = None,
    ) -> CommunicationOverlay:
        flags = [
            RiskFlag(
                category_id=r.category_id,
                category_name=r.category_name,
                final_risk_score=r.final_risk_score,
                analysis_method=r.analysis_method,
                triggers_alert=r.triggers_alert,
                triggers_investigation=r.triggers_investigation,
                triggers_critical=r.triggers_critical,
                factors=sorted(r.applied_multipliers),
            )
            for r in self.results
            if r.final_risk_score > 0
        ]
        flags.sort(key=lambda f: (-f.final_risk_score, f.category_id))
        return CommunicationOverlay(
            risk_score=round_half_up(self.risk_score),
            risk_flags=flags,
            category=self.primary_category_name,
            category_id=self.primary_category_id,
            is_flagged=self.flagged,
            is_analyzed=True,
            analyzed_at=analyzed_at or datetime.now(UTC),
            analyzer_version=analyzer_version,
        )


def aggregate_communication(
    results: Sequence[DetectionResult],
    severities: Mapping[int, Severity],
) -> CommunicationVerdict:
    """Max-score rule with a severity-then-id tie-break.

    Args:
        results: One result per active category.
        severities: Category id to severity, used to break ties.

    Raises:
        InvariantViolation: If *results* is empty; an empty category set must
            never read as "no risk".
    """
    if not results:
        raise InvariantViolation("Cannot aggregate an empty set of detection results")

    ordered = sorted(
        results,
        key=lambda r: (
            -r.final_risk_score,
            -SEVERITY_RANK.get(severities.get(r.category_id, Severity.LOW), 0),
            r.category_id,
        ),
    )
    top = ordered[0]
    has_risk = top.final_risk_score > 0

    return CommunicationVerdict(
        risk_score=top.final_risk_score,
        primary_category_id=top.category_id if has_risk else None,
        primary_category_name=top.category_name if has_risk else None,
        flagged=any(r.triggers_alert for r in results),
        results=tuple(sorted(results, key=lambda r: r.category_id)),
    )
