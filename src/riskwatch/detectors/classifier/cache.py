# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Caching wrapper around a text classifier."""

from __future__ import annotations

import hashlib
import json
import logging

from riskwatch.cache.base import CacheBackend
from riskwatch.detectors.classifier.base import (
    CategoryHint,
    ClassificationResult,
    TextClassifier,
)

logger = logging.getLogger("riskwatch.detectors.classifier.cache")


def classification_cache_key(text: str, hint: CategoryHint) -> str:
    digest = hashlib.sha256(text.encode("utf-8")).hexdigest()
    return f"classify:{hint.fingerprint()[:16]}:{digest}"


class CachedClassifier(TextClassifier):
    """Serves repeated (text, category) classifications from a cache.

    Failures are never cached.
    """

    def __init__(self, inner: TextClassifier, backend: CacheBackend, ttl: int) -> None:
        self._inner = inner
        self._backend = backend
        self._ttl = ttl

    @property
    def available(self) -> bool:
        return self._inner.available

    async def classify(self, text: str, hint: CategoryHint) -> ClassificationResult:
        key = classification_cache_key(text, hint)
        cached = await self._backend.get(key)
        if cached is not None:
            data = json.loads(cached)
            logger.debug("Classification cache hit for %s", hint.name)
            return ClassificationResult(
                risk_score=data["risk_score"],
                reasoning=data["reasoning"],
                indicators=tuple(data["indicators"]),
            )

        result = await self._inner.classify(text, hint)
        payload = {
            "risk_score": result.risk_score,
            "reasoning": result.reasoning,
            "indicators": list(result.indicators),
        }
        await self._backend.set(key, json.dumps(payload), ttl=self._ttl)
        return result
