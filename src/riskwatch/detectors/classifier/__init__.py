# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Pluggable text classification used when keyword matching finds nothing."""

from __future__ import annotations

from riskwatch.cache.memory import MemoryCacheBackend
from riskwatch.core.config import Settings
from riskwatch.detectors.classifier.base import (
    CategoryHint,
    ClassificationResult,
    NullClassifier,
    TextClassifier,
)
from riskwatch.detectors.classifier.cache import CachedClassifier
from riskwatch.detectors.classifier.llm import LlmClassifier


def build_classifier(settings: Settings) -> TextClassifier:
    """Return the classifier the settings call for, or a :class:`NullClassifier`."""
    if not settings.llm_fallback_enabled or not settings.anthropic_api_key:
        return NullClassifier()
    return CachedClassifier(
        LlmClassifier(settings),
        MemoryCacheBackend(),
        ttl=settings.llm_cache_ttl,
    )


__all__ = [
    "CachedClassifier",
    "CategoryHint",
    "ClassificationResult",
    "LlmClassifier",
    "NullClassifier",
    "TextClassifier",
    "build_classifier",
]
