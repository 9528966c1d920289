# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Text classification capability used as the keyword fallback."""

from __future__ import annotations

import abc
import hashlib
from dataclasses import dataclass

from riskwatch.core.exceptions import LLMError
from riskwatch.models.category import ThreatCategory


@dataclass(frozen=True, slots=True)
class CategoryHint:
    """What the classifier is told about the category being evaluated."""

    name: str
    description: str
    examples: tuple[str, ...] = ()
    keywords: tuple[str, ...] = ()

    @classmethod
    def from_category(cls, category: ThreatCategory) -> CategoryHint:
        return cls(
            name=category.name,
            description=category.description,
            examples=tuple(category.examples),
            keywords=tuple(kw.keyword for kw in category.keywords),
        )

    def fingerprint(self) -> str:
        joined = "\x1f".join([self.name, self.description, *self.examples, *self.keywords])
        return hashlib.sha256(joined.encode("utf-8")).hexdigest()


@dataclass(frozen=True, slots=True)
class ClassificationResult:
    """Risk verdict for one text against one category hint."""

    risk_score: float
    reasoning: str
    indicators: tuple[str, ...] = ()


class TextClassifier(abc.ABC):
    """classify(text, hint) -> score and reasoning."""

    @property
    @abc.abstractmethod
    def available(self) -> bool:
        """Whether :meth:`classify` can be called at all."""

    @abc.abstractmethod
    async def classify(self, text: str, hint: CategoryHint) -> ClassificationResult:
        """Score *text* against *hint*.

        Raises:
            LLMError: If the classification could not be produced.
        """


class NullClassifier(TextClassifier):
    """No-op classifier for keyword-only deployments."""

    @property
    def available(self) -> bool:
        return False

    async def classify(self, text: str, hint: CategoryHint) -> ClassificationResult:
        raise LLMError("No text classifier is configured")
