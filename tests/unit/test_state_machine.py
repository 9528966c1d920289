# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Tests for violation status transitions and their audit trail."""

from __future__ import annotations

import asyncio
import itertools

import pytest

from riskwatch.core.constants import Severity, ViolationStatus
from riskwatch.core.exceptions import ConflictError, InvalidTransitionError, NotFoundError
from riskwatch.models.employee import Employee
from riskwatch.models.violation import Violation
from riskwatch.storage.repositories import EmployeeRepository, ViolationRepository
from riskwatch.violations.state_machine import ViolationStateMachine


async def _make_violation(db, status: ViolationStatus = ViolationStatus.ACTIVE) -> Violation:
    await EmployeeRepository(db).upsert(
        Employee(id="emp-1", name="Ada Park", email="ada@corp.example")
    )
    return await ViolationRepository(db).create(
        Violation(
            employee_id="emp-1",
            violation_type="Data Exfiltration",
            severity=Severity.HIGH,
            status=status,
            metadata={"source": "analysis"},
        )
    )


class TestTransitions:
    async def test_resolve_then_reopen(self, db):
        violation = await _make_violation(db)
        machine = ViolationStateMachine(db)

        resolved = await machine.transition(
            violation.id, ViolationStatus.RESOLVED, "confirmed false alarm", actor="analyst-7"
        )
        assert resolved.violation.status == ViolationStatus.RESOLVED
        assert resolved.violation.resolved_at is not None
        assert resolved.violation.version == 2

        reopened = await machine.transition(
            violation.id, ViolationStatus.ACTIVE, "new evidence", actor="analyst-7"
        )
        assert reopened.violation.resolved_at is None
        assert reopened.violation.version == 3

        history = await ViolationRepository(db).history(violation.id)
        assert [(h.previous_status, h.new_status) for h in history] == [
            (ViolationStatus.ACTIVE, ViolationStatus.RESOLVED),
            (ViolationStatus.RESOLVED, ViolationStatus.ACTIVE),
        ]
        assert history[0].reason == "confirmed false alarm"

        stored = await ViolationRepository(db).get(violation.id)
        assert stored.status == ViolationStatus.ACTIVE
        assert stored.resolved_at is None
        assert stored.version == 3

    @pytest.mark.parametrize(
        ("source", "target"),
        [(a, b) for a, b in itertools.permutations(ViolationStatus, 2)],
    )
    async def test_every_status_reachable(self, db, source, target):
        violation = await _make_violation(db, status=source)
        result = await ViolationStateMachine(db).transition(violation.id, target, "review")
        assert result.violation.status == target
        assert result.history.previous_status == source

    async def test_string_status_accepted(self, db):
        violation = await _make_violation(db)
        result = await ViolationStateMachine(db).transition(
            violation.id, "False Positive", "benign context"
        )
        assert result.violation.status == ViolationStatus.FALSE_POSITIVE

    async def test_metadata_annotations(self, db):
        violation = await _make_violation(db)
        result = await ViolationStateMachine(db).transition(
            violation.id,
            ViolationStatus.INVESTIGATING,
            "escalated",
            actor="analyst-7",
            metadata={"ticket": "SEC-12"},
        )
        metadata = (await ViolationRepository(db).get(violation.id)).metadata
        assert metadata["source"] == "analysis"
        assert metadata["ticket"] == "SEC-12"
        assert metadata["changed_by"] == "analyst-7"
        assert metadata["change_reason"] == "escalated"
        assert metadata["ai_assisted"] is False
        assert "status_change_timestamp" in metadata
        assert result.history.metadata == {"ticket": "SEC-12"}

    async def test_ai_assisted_transition(self, db):
        violation = await _make_violation(db)
        result = await ViolationStateMachine(db).transition(
            violation.id,
            ViolationStatus.INVESTIGATING,
            "validator recommendation",
            ai_assisted=True,
            ai_confidence=82.5,
        )
        assert result.history.ai_assisted is True
        assert result.history.ai_confidence == 82.5


class TestRejectedTransitions:
    async def test_blank_reason(self, db):
        violation = await _make_violation(db)
        with pytest.raises(InvalidTransitionError, match="reason"):
            await ViolationStateMachine(db).transition(violation.id, ViolationStatus.RESOLVED, "  ")
        assert await ViolationRepository(db).history(violation.id) == []

    async def test_same_status(self, db):
        violation = await _make_violation(db)
        with pytest.raises(InvalidTransitionError, match="already"):
            await ViolationStateMachine(db).transition(violation.id, ViolationStatus.ACTIVE, "x")

    async def test_unknown_status(self, db):
        violation = await _make_violation(db)
        with pytest.raises(InvalidTransitionError, match="Unknown violation status"):
            await ViolationStateMachine(db).transition(violation.id, "Closed", "x")

    async def test_missing_violation(self, db):
        with pytest.raises(NotFoundError):
            await ViolationStateMachine(db).transition(999, ViolationStatus.RESOLVED, "x")

    @pytest.mark.parametrize("confidence", [-1.0, 100.5])
    async def test_confidence_out_of_range(self, db, confidence):
        violation = await _make_violation(db)
        with pytest.raises(InvalidTransitionError, match="between 0 and 100"):
            await ViolationStateMachine(db).transition(
                violation.id, ViolationStatus.RESOLVED, "x", ai_confidence=confidence
            )

    async def test_ai_assisted_requires_confidence(self, db):
        violation = await _make_violation(db)
        with pytest.raises(InvalidTransitionError, match="confidence"):
            await ViolationStateMachine(db).transition(
                violation.id, ViolationStatus.RESOLVED, "x", ai_assisted=True
            )

    async def test_stale_expected_version(self, db):
        violation = await _make_violation(db)
        machine = ViolationStateMachine(db)
        await machine.transition(violation.id, ViolationStatus.INVESTIGATING, "triage")

        with pytest.raises(ConflictError):
            await machine.transition(
                violation.id, ViolationStatus.RESOLVED, "done", expected_version=1
            )
        stored = await ViolationRepository(db).get(violation.id)
        assert stored.status == ViolationStatus.INVESTIGATING
        assert len(await ViolationRepository(db).history(violation.id)) == 1

    async def test_concurrent_writers_with_same_version(self, db):
        violation = await _make_violation(db)
        machine = ViolationStateMachine(db)

        results = await asyncio.gather(
            machine.transition(
                violation.id, ViolationStatus.RESOLVED, "closing", expected_version=1
            ),
            machine.transition(
                violation.id, ViolationStatus.FALSE_POSITIVE, "benign", expected_version=1
            ),
            return_exceptions=True,
        )

        conflicts = [r for r in results if isinstance(r, ConflictError)]
        assert len(conflicts) == 1
        assert len(await ViolationRepository(db).history(violation.id)) == 1
        assert (await ViolationRepository(db).get(violation.id)).version == 2
