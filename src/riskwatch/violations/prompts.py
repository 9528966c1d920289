# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Prompt templates for AI-assisted violation validation."""

from __future__ import annotations

from riskwatch.core.constants import ViolationStatus
from riskwatch.models.violation import Violation

SYSTEM_PROMPT = f"""\
You are an experienced insider-threat investigator validating a security \
violation raised by an automated monitoring system. Judge whether the \
evidence supports the violation.

Respond with ONLY a JSON object of the form:
{{
  "confidence_score": <number 0-100, how strongly the evidence supports the violation>,
  "reasoning": "<short explanation>",
  "recommended_status": "<one of: {', '.join(s.value for s in ViolationStatus)}>",
  "additional_evidence_needed": ["<item>", ...]
}}"""


def build_validation_prompt(violation: Violation) -> str:
    lines = [
        f"Violation type: {violation.violation_type}",
        f"Severity: {violation.severity}",
        f"Current status: {violation.status}",
        f"Description: {violation.description or '(none)'}",
        "",
        "Evidence:",
    ]
    if violation.evidence:
        lines.extend(f"- {item}" for item in violation.evidence)
    else:
        lines.append("- (no evidence recorded)")
    if violation.structured_evidence:
        lines.append("")
        lines.append("Structured evidence:")
        lines.extend(f"- {k}: {v}" for k, v in violation.structured_evidence.items())
    return "\n".join(lines)
