# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Advisory AI validation of violation evidence.

The validator scores evidence and recommends a status but never performs
a transition.  Any failure marks the violation ``manual_override``.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime

import anthropic
from pydantic import ValidationError

from riskwatch.core.config import Settings, get_settings
from riskwatch.core.constants import AIValidationStatus
from riskwatch.core.exceptions import LLMError, NotFoundError
from riskwatch.detectors.classifier.llm import complete_text
from riskwatch.detectors.classifier.parser import extract_json_object
from riskwatch.models.violation import AIValidationResult
from riskwatch.storage.repositories.violations import ViolationRepository
from riskwatch.violations.prompts import SYSTEM_PROMPT, build_validation_prompt

logger = logging.getLogger("riskwatch.violations.validator")

VALIDATOR_VERSION = "2.0.0"


class ViolationValidator:
    """Runs the AI validation side channel for one violation at a time."""

    def __init__(
        self,
        repo: ViolationRepository,
        settings: Settings | None = None,
    ) -> None:
        self._repo = repo
        self._settings = settings or get_settings()
        self._client: anthropic.AsyncAnthropic | None = None

    @property
    def available(self) -> bool:
        return bool(self._settings.anthropic_api_key)

    async def validate(self, violation_id: int) -> AIValidationResult | None:
        """Score a violation's evidence and store the advisory overlay.

        Returns the result, or ``None`` when validation could not run (the
        violation is then marked ``manual_override``).

        Raises:
            NotFoundError: The violation does not exist.
        """
        violation = await self._repo.get(violation_id)
        if violation is None:
            raise NotFoundError("violation", violation_id)

        try:
            result = await asyncio.wait_for(
                self._request(build_validation_prompt(violation)),
                timeout=self._settings.llm_timeout,
            )
        except (LLMError, TimeoutError) as exc:
            reason = str(exc) or "AI validation timed out"
            logger.warning("AI validation failed for violation %s: %s", violation_id, reason)
            await self._repo.update_ai_validation(
                violation_id,
                status=AIValidationStatus.MANUAL_OVERRIDE,
                reasoning=f"AI validation unavailable: {reason}",
                validated_at=datetime.now(UTC),
                metadata_updates={"ai_validation_error": reason},
            )
            return None

        # Transitions may have committed during the call; merge, never overwrite.
        await self._repo.update_ai_validation(
            violation_id,
            status=AIValidationStatus.VALIDATED,
            score=result.confidence_score,
            reasoning=result.reasoning,
            recommended_status=result.recommended_status,
            validated_at=datetime.now(UTC),
            metadata_updates={
                "ai_validator_version": VALIDATOR_VERSION,
                "additional_evidence_needed": result.additional_evidence_needed,
            },
        )
        logger.info(
            "Violation %s validated: confidence=%.1f recommended=%s",
            violation_id,
            result.confidence_score,
            result.recommended_status,
        )
        return result

    async def _request(self, prompt: str) -> AIValidationResult:
        if not self.available:
            raise LLMError("Anthropic API key not configured")
        if self._client is None:
            self._client = anthropic.AsyncAnthropic(
                api_key=self._settings.anthropic_api_key,
                timeout=self._settings.llm_timeout,
            )
        response_text = await complete_text(
            self._client, self._settings, SYSTEM_PROMPT, prompt
        )
        data = extract_json_object(response_text)
        try:
            return AIValidationResult.model_validate(data)
        except ValidationError as exc:
            raise LLMError(f"LLM response does not match expected schema: {exc}") from exc
