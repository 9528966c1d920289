# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Prompt templates for category classification."""

from __future__ import annotations

from riskwatch.detectors.classifier.base import CategoryHint

SYSTEM_PROMPT = """\
You are an insider-threat analyst reviewing employee communications for a \
corporate security team. You are given one communication and one threat \
category. Decide how strongly the communication exhibits that category.

Respond with ONLY a JSON object of the form:
{
  "risk_score": <number 0-100>,
  "reasoning": "<one or two sentences>",
  "indicators": ["<short phrase describing each indicator found>"]
}

Score 0 when the communication is ordinary business traffic. Do not guess \
intent beyond what the text supports."""

# Longer bodies are truncated; the tail of an e-mail is mostly signatures and quotes.
MAX_TEXT_CHARS = 8000


def build_classification_prompt(text: str, hint: CategoryHint) -> str:
    """Build the user message for one classification request.

    Parameters
    ----------
    text:
        The communication's searchable text (subject, body, attachment names).
    hint:
        The category being evaluated.

    Returns
    -------
    str
        The formatted prompt.
    """
    lines = [f"## Threat category: {hint.name}"]
    if hint.description:
        lines.append(hint.description)
    if hint.examples:
        lines.append("")
        lines.append("Examples of communications in this category:")
        lines.extend(f"- {example}" for example in hint.examples)
    if hint.keywords:
        lines.append("")
        lines.append(f"Typical vocabulary: {', '.join(hint.keywords)}")

    lines.append("")
    lines.append("## Communication")
    lines.append(text[:MAX_TEXT_CHARS])
    return "\n".join(lines)
