# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Per-communication evaluation: detect, score, and aggregate."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass

from riskwatch.core.config import Settings, get_settings
from riskwatch.core.exceptions import InvariantViolation
from riskwatch.detectors.classifier.base import TextClassifier
from riskwatch.detectors.context import CommunicationContext, build_context
from riskwatch.detectors.keyword_detector import CategoryDetector
from riskwatch.models.category import CategorySnapshot, ThreatCategory
from riskwatch.models.communication import Communication
from riskwatch.models.detection import DetectionResult
from riskwatch.scoring.aggregation import CommunicationVerdict, aggregate_communication
from riskwatch.scoring.scorer import RiskScorer

logger = logging.getLogger("riskwatch.engine.pipeline")

# Version of the detection/scoring algorithm recorded on every overlay.
ANALYZER_VERSION = "riskwatch-analyzer/1.0"


@dataclass(frozen=True, slots=True)
class CommunicationAnalysis:
    """Everything one evaluation pass produced for a communication."""

    communication_id: str
    verdict: CommunicationVerdict
    context: CommunicationContext
    snapshot_fingerprint: str
    duration_ms: int

    @property
    def results(self) -> tuple[DetectionResult, ...]:
        return self.verdict.results


class AnalysisPipeline:
    """Stateless evaluation of one communication against a category snapshot.

    Categories are independent, so they are evaluated concurrently (bounded
    by ``category_concurrency``) and combined with the deterministic max rule.
    Nothing here touches storage.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        classifier: TextClassifier | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._detector = CategoryDetector(self._settings, classifier)
        self._scorer = RiskScorer(self._settings)

    async def evaluate(
        self,
        communication: Communication,
        snapshot: CategorySnapshot,
        *,
        sender_recent_count: int = 0,
        employee_timezone: str | None = None,
    ) -> CommunicationAnalysis:
        """Evaluate *communication* against every category in *snapshot*.

        Raises:
            InvariantViolation: If the snapshot holds no active categories.
        """
        if not snapshot.categories:
            raise InvariantViolation("No active categories to evaluate against")

        start = time.monotonic()
        context = build_context(
            communication,
            self._settings,
            sender_recent_count=sender_recent_count,
            employee_timezone=employee_timezone,
        )

        semaphore = asyncio.Semaphore(self._settings.category_concurrency)

        async def _one(category: ThreatCategory) -> DetectionResult:
            async with semaphore:
                match = await self._detector.detect(communication, category)
            return self._scorer.score(communication.id, match, category, context)

        results = await asyncio.gather(*(_one(c) for c in snapshot.categories))
        verdict = aggregate_communication(
            results, {c.id: c.severity for c in snapshot.categories if c.id is not None}
        )
        elapsed_ms = int((time.monotonic() - start) * 1000)

        logger.info(
            "Communication %s analyzed: risk=%.1f category=%s flagged=%s degraded=%s duration=%dms",
            communication.id,
            verdict.risk_score,
            verdict.primary_category_name,
            verdict.flagged,
            verdict.degraded,
            elapsed_ms,
        )
        return CommunicationAnalysis(
            communication_id=communication.id,
            verdict=verdict,
            context=context,
            snapshot_fingerprint=snapshot.fingerprint,
            duration_ms=elapsed_ms,
        )
