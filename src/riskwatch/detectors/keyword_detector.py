# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Match a communication against one category's keywords and patterns."""

from __future__ import annotations

import asyncio
import functools
import logging
import math
import re
from dataclasses import dataclass

from riskwatch.core.config import Settings, get_settings
from riskwatch.core.constants import AnalysisMethod, PatternGroup
from riskwatch.core.exceptions import InvariantViolation, LLMError
from riskwatch.detectors.classifier.base import (
    CategoryHint,
    NullClassifier,
    TextClassifier,
)
from riskwatch.models.category import CategoryKeyword, ThreatCategory
from riskwatch.models.communication import Communication
from riskwatch.models.detection import KeywordMatch

logger = logging.getLogger("riskwatch.detectors.keyword")


@dataclass(frozen=True, slots=True)
class CategoryMatch:
    """Detector output for one category, before scoring."""

    category_id: int
    matched_keywords: tuple[KeywordMatch, ...]
    pattern_matches: tuple[str, ...]
    match_weight: float
    confidence: float
    analysis_method: AnalysisMethod = AnalysisMethod.KEYWORD
    reasoning: str = ""
    degraded: bool = False
    degradation_reason: str | None = None

    @property
    def matched(self) -> bool:
        return bool(self.matched_keywords or self.pattern_matches)


@functools.lru_cache(maxsize=2048)
def _phrase_regex(text: str) -> re.Pattern[str]:
    """Any run of whitespace in a keyword matches any run in the text."""
    tokens = text.lower().split()
    return re.compile(r"\s+".join(re.escape(t) for t in tokens))


@functools.lru_cache(maxsize=2048)
def _pattern_regex(pattern: str) -> re.Pattern[str]:
    """``bulk_download`` matches "bulk download", "bulk-download" and "bulk_download"."""
    tokens = [t for t in re.split(r"[\s_\-]+", pattern.lower()) if t]
    return re.compile(r"[\s_\-]+".join(re.escape(t) for t in tokens))


def saturating_confidence(weight_sum: float, saturation: float) -> float:
    """Confidence in [0, 100) that grows with diminishing returns."""
    if weight_sum <= 0:
        return 0.0
    return 100.0 * (1.0 - math.exp(-weight_sum / saturation))


def match_keywords(text: str, keywords: list[CategoryKeyword]) -> list[KeywordMatch]:
    """Return the keywords found in lowercased *text*."""
    matches: list[KeywordMatch] = []
    for kw in keywords:
        if not _phrase_regex(kw.keyword).search(text):
            continue
        if kw.required_context and not _phrase_regex(kw.required_context).search(text):
            continue
        matches.append(
            KeywordMatch(keyword=kw.keyword, weight=kw.weight, is_phrase=kw.is_phrase)
        )
    return matches


def match_patterns(
    text: str, detection_patterns: dict[PatternGroup, list[str]]
) -> tuple[list[str], int]:
    """Return matched group names (in enum order) and the number of matched patterns."""
    groups: list[str] = []
    hits = 0
    for group in PatternGroup:
        patterns = detection_patterns.get(group, [])
        group_hits = sum(1 for p in patterns if _pattern_regex(p).search(text))
        if group_hits:
            groups.append(str(group))
            hits += group_hits
    return groups, hits


class CategoryDetector:
    """Evaluates communications against a single category at a time."""

    def __init__(
        self,
        settings: Settings | None = None,
        classifier: TextClassifier | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._classifier = classifier or NullClassifier()

    def match(self, communication: Communication, category: ThreatCategory) -> CategoryMatch:
        """Keyword and pattern matching only; never calls the classifier."""
        text = communication.searchable_text
        keywords = match_keywords(text, category.keywords)
        groups, pattern_hits = match_patterns(text, category.detection_patterns)

        weight = sum(k.weight for k in keywords) + pattern_hits * self._settings.pattern_weight
        return CategoryMatch(
            category_id=_require_id(category),
            matched_keywords=tuple(keywords),
            pattern_matches=tuple(groups),
            match_weight=weight,
            confidence=saturating_confidence(weight, self._settings.confidence_saturation),
        )

    async def detect(
        self, communication: Communication, category: ThreatCategory
    ) -> CategoryMatch:
        """Match, deferring to the classifier when nothing matched and fallback is allowed."""
        result = self.match(communication, category)
        if (
            result.matched
            or not category.llm_fallback
            or not self._settings.llm_fallback_enabled
            or not self._classifier.available
        ):
            return result

        hint = CategoryHint.from_category(category)
        try:
            verdict = await asyncio.wait_for(
                self._classifier.classify(communication.searchable_text, hint),
                timeout=self._settings.llm_timeout,
            )
        except TimeoutError:
            reason = f"classifier timed out after {self._settings.llm_timeout}s"
        except LLMError as exc:
            reason = f"classifier failed: {exc}"
        except Exception as exc:
            logger.exception("Unexpected classifier error for category %s", category.name)
            reason = f"unexpected classifier error: {exc}"
        else:
            return CategoryMatch(
                category_id=result.category_id,
                matched_keywords=(),
                pattern_matches=verdict.indicators,
                match_weight=0.0,
                confidence=verdict.risk_score,
                analysis_method=AnalysisMethod.LLM,
                reasoning=verdict.reasoning,
            )

        logger.warning(
            "LLM fallback degraded for communication %s / %s: %s",
            communication.id,
            category.name,
            reason,
        )
        return CategoryMatch(
            category_id=result.category_id,
            matched_keywords=(),
            pattern_matches=(),
            match_weight=0.0,
            confidence=0.0,
            degraded=True,
            degradation_reason=reason,
        )


def _require_id(category: ThreatCategory) -> int:
    if category.id is None:
        msg = f"Category {category.name!r} has not been persisted"
        raise InvariantViolation(msg)
    return category.id
