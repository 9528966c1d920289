# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Violation lifecycle transitions with an append-only audit trail.

Any of the four statuses may move to any other; every move needs a reason,
bumps the row version, and appends exactly one history row in the same
transaction.  Writers racing on one violation are serialized in-process by
the connection write lock and across processes by the version
compare-and-set.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

import aiosqlite

from riskwatch.core.constants import ViolationStatus
from riskwatch.core.exceptions import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    StorageError,
)
from riskwatch.models.violation import TransitionResult, ViolationStatusHistory
from riskwatch.storage.database import transaction
from riskwatch.storage.repositories.violations import ViolationRepository

logger = logging.getLogger("riskwatch.violations.state_machine")


def _coerce_status(value: ViolationStatus | str) -> ViolationStatus:
    try:
        return ViolationStatus(value)
    except ValueError:
        valid = ", ".join(s.value for s in ViolationStatus)
        msg = f"Unknown violation status {value!r}; expected one of: {valid}"
        raise InvalidTransitionError(msg) from None


class ViolationStateMachine:
    """Serialized, audited status changes for violations."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db
        self._repo = ViolationRepository(db)

    async def transition(
        self,
        violation_id: int,
        target: ViolationStatus | str,
        reason: str,
        *,
        actor: str = "system",
        ai_assisted: bool = False,
        ai_confidence: float | None = None,
        expected_version: int | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> TransitionResult:
        """Move a violation to *target*.

        Raises:
            InvalidTransitionError: Blank reason, unknown or unchanged status,
                or an AI confidence outside [0, 100].
            NotFoundError: The violation does not exist.
            ConflictError: The violation changed since *expected_version* or a
                concurrent writer committed first.
        """
        new_status = _coerce_status(target)
        reason = (reason or "").strip()
        if not reason:
            raise InvalidTransitionError("A reason is required for every status change")
        if ai_confidence is not None and not 0 <= ai_confidence <= 100:
            msg = f"ai_confidence must be between 0 and 100, got {ai_confidence}"
            raise InvalidTransitionError(msg)
        if ai_assisted and ai_confidence is None:
            raise InvalidTransitionError("AI-assisted transitions must carry a confidence")

        try:
            async with transaction(self._db):
                violation = await self._repo.get(violation_id)
                if violation is None:
                    raise NotFoundError("violation", violation_id)
                if expected_version is not None and violation.version != expected_version:
                    msg = (
                        f"Violation {violation_id} is at version {violation.version}, "
                        f"expected {expected_version}"
                    )
                    raise ConflictError(msg)
                if violation.status == new_status:
                    msg = f"Violation {violation_id} is already {new_status}"
                    raise InvalidTransitionError(msg)

                now = datetime.now(UTC)
                if new_status == ViolationStatus.RESOLVED:
                    resolved_at = now
                else:
                    resolved_at = None

                annotations = {
                    "changed_by": actor,
                    "change_reason": reason,
                    "ai_assisted": ai_assisted,
                    "status_change_timestamp": now.isoformat(),
                }
                new_metadata = {**violation.metadata, **(metadata or {}), **annotations}

                updated = await self._repo.update_status(
                    violation_id,
                    expected_version=violation.version,
                    status=new_status,
                    metadata=new_metadata,
                    updated_at=now,
                    resolved_at=resolved_at,
                )
                if not updated:
                    msg = f"Violation {violation_id} was modified concurrently"
                    raise ConflictError(msg)
                entry = await self._repo.add_history(
                    ViolationStatusHistory(
                        violation_id=violation_id,
                        previous_status=violation.status,
                        new_status=new_status,
                        reason=reason,
                        changed_by=actor,
                        ai_assisted=ai_assisted,
                        ai_confidence=ai_confidence,
                        metadata=metadata or {},
                        created_at=now,
                    )
                )
        except aiosqlite.Error as exc:
            msg = f"Failed to transition violation {violation_id}: {exc}"
            raise StorageError(msg) from exc

        logger.info(
            "Violation %s: %s -> %s by %s (ai_assisted=%s)",
            violation_id,
            violation.status,
            new_status,
            actor,
            ai_assisted,
        )
        return TransitionResult(
            violation=violation.model_copy(
                update={
                    "status": new_status,
                    "metadata": new_metadata,
                    "updated_at": now,
                    "resolved_at": resolved_at,
                    "version": violation.version + 1,
                }
            ),
            history=entry,
        )
