# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Anthropic-backed text classifier."""

from __future__ import annotations

import logging

import anthropic

from riskwatch.core.config import Settings, get_settings
from riskwatch.core.exceptions import LLMError
from riskwatch.detectors.classifier.base import (
    CategoryHint,
    ClassificationResult,
    TextClassifier,
)
from riskwatch.detectors.classifier.parser import parse_classification
from riskwatch.detectors.classifier.prompts import (
    SYSTEM_PROMPT,
    build_classification_prompt,
)

logger = logging.getLogger("riskwatch.detectors.classifier.llm")


async def complete_text(
    client: anthropic.AsyncAnthropic,
    settings: Settings,
    system: str,
    prompt: str,
) -> str:
    """Send one message and return the concatenated text blocks.

    Raises:
        LLMError: On any API failure or an empty reply.
    """
    try:
        response = await client.messages.create(
            model=settings.llm_model,
            max_tokens=settings.llm_max_tokens,
            temperature=settings.llm_temperature,
            system=system,
            messages=[{"role": "user", "content": prompt}],
        )
    except anthropic.APIError as exc:
        raise LLMError(f"Anthropic API error: {exc}") from exc

    response_text = ""
    for block in response.content:
        if block.type == "text":
            response_text += block.text

    if not response_text:
        raise LLMError("LLM returned empty response")
    return response_text


class LlmClassifier(TextClassifier):
    """Classifies communications against a category with Claude."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()
        self._client: anthropic.AsyncAnthropic | None = None

    @property
    def available(self) -> bool:
        return bool(self._settings.anthropic_api_key)

    def _get_client(self) -> anthropic.AsyncAnthropic:
        if self._client is None:
            self._client = anthropic.AsyncAnthropic(
                api_key=self._settings.anthropic_api_key,
                timeout=self._settings.llm_timeout,
            )
        return self._client

    async def classify(self, text: str, hint: CategoryHint) -> ClassificationResult:
        if not self.available:
            raise LLMError("Anthropic API key not configured")

        prompt = build_classification_prompt(text, hint)
        response_text = await complete_text(
            self._get_client(), self._settings, SYSTEM_PROMPT, prompt
        )
        result = parse_classification(response_text)

        logger.debug(
            "Classified text against %s: score=%.1f indicators=%d",
            hint.name,
            result.risk_score,
            len(result.indicators),
        )
        return result
