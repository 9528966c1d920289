# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Parse LLM JSON responses into typed results."""

from __future__ import annotations

import json
import re
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from riskwatch.core.exceptions import LLMError
from riskwatch.detectors.classifier.base import ClassificationResult

_JSON_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?```", re.DOTALL)


class LlmClassification(BaseModel):
    """Schema of the classification response."""

    risk_score: float = Field(ge=0.0, le=100.0)
    reasoning: str = ""
    indicators: list[str] = Field(default_factory=list)


def extract_json_object(response_text: str) -> dict[str, Any]:
    """Pull the JSON object out of an LLM reply.

    Handles raw JSON, JSON inside markdown code fences, and prose before or
    after the object.
    """
    text = response_text.strip()

    fence_match = _JSON_FENCE_RE.search(text)
    if fence_match:
        text = fence_match.group(1).strip()

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        raise LLMError(f"No JSON object found in LLM response: {response_text[:200]}")

    try:
        data = json.loads(text[start : end + 1])
    except json.JSONDecodeError as exc:
        raise LLMError(f"Invalid JSON in LLM response: {exc}") from exc

    if not isinstance(data, dict):
        raise LLMError("LLM response JSON is not an object")
    return data


def parse_classification(response_text: str) -> ClassificationResult:
    """Parse a classification reply into a :class:`ClassificationResult`."""
    data = extract_json_object(response_text)
    try:
        parsed = LlmClassification.model_validate(data)
    except ValidationError as exc:
        raise LLMError(f"LLM response does not match expected schema: {exc}") from exc

    return ClassificationResult(
        risk_score=parsed.risk_score,
        reasoning=parsed.reasoning,
        indicators=tuple(i for i in parsed.indicators if i),
    )
