# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Public SDK interface for evaluating communications without a database.

Usage::

    from riskwatch import evaluate, evaluate_sync

    # Synchronous (blocking), against the bundled predefined categories
    analysis = evaluate_sync({"id": "m1", "sender": "a@corp.com", "body": "..."})
    print(analysis.verdict.risk_score, analysis.verdict.primary_category_name)

    # Async, with explicit categories
    analysis = await evaluate(communication, categories=my_categories)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from riskwatch.categories.loader import load_predefined_categories
from riskwatch.core.config import Settings, get_settings
from riskwatch.detectors.classifier import build_classifier
from riskwatch.detectors.classifier.base import TextClassifier
from riskwatch.engine.pipeline import AnalysisPipeline, CommunicationAnalysis
from riskwatch.models.category import CategorySnapshot, ThreatCategory, parse_category
from riskwatch.models.communication import Communication

logger = logging.getLogger("riskwatch.sdk")


def _with_ids(
    categories: Iterable[Mapping[str, Any] | ThreatCategory],
) -> list[ThreatCategory]:
    """Validate *categories* and give transient ids to those without one."""
    parsed = [parse_category(c) for c in categories]
    next_id = max((c.id for c in parsed if c.id is not None), default=0) + 1
    result: list[ThreatCategory] = []
    for category in parsed:
        if category.id is None:
            category = category.model_copy(update={"id": next_id})
            next_id += 1
        result.append(category)
    return result


# ---------------------------------------------------------------------------
# Public async API
# ---------------------------------------------------------------------------


async def evaluate(
    communication: Communication | Mapping[str, Any],
    categories: Iterable[Mapping[str, Any] | ThreatCategory] | None = None,
    *,
    settings: Settings | None = None,
    classifier: TextClassifier | None = None,
) -> CommunicationAnalysis:
    """Evaluate one communication and return its per-category results and verdict.

    Parameters
    ----------
    communication:
        A :class:`Communication` or a mapping that validates as one.
    categories:
        Category definitions to evaluate against.  Defaults to the bundled
        predefined templates.  Inactive categories are ignored.
    settings:
        Optional ``Settings`` override; falls back to ``get_settings()``.
    classifier:
        Optional LLM fallback classifier; built from settings when omitted.

    Raises
    ------
    InvariantViolation
        If no active category remains to evaluate against.
    """
    settings = settings or get_settings()
    if not isinstance(communication, Communication):
        communication = Communication.model_validate(dict(communication))

    source = load_predefined_categories() if categories is None else categories
    snapshot = CategorySnapshot.from_categories(_with_ids(source))
    logger.debug("Evaluating %s against %d categories", communication.id, len(snapshot))

    pipeline = AnalysisPipeline(settings, classifier or build_classifier(settings))
    return await pipeline.evaluate(communication, snapshot)


def evaluate_sync(
    communication: Communication | Mapping[str, Any],
    categories: Iterable[Mapping[str, Any] | ThreatCategory] | None = None,
    *,
    settings: Settings | None = None,
    classifier: TextClassifier | None = None,
) -> CommunicationAnalysis:
    """Blocking wrapper around :func:`evaluate`."""
    return asyncio.run(
        evaluate(communication, categories, settings=settings, classifier=classifier)
    )
