# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""End-to-end tests for the risk engine over a seeded SQLite database."""

from __future__ import annotations

import asyncio
from datetime import UTC, date, datetime, timedelta

import pytest

from riskwatch.core.constants import (
    AnalysisMethod,
    AnomalyMetric,
    RiskLevel,
    Severity,
    ViolationStatus,
)
from riskwatch.core.exceptions import ConflictError, InvariantViolation, NotFoundError
from riskwatch.detectors.classifier.base import (
    CategoryHint,
    ClassificationResult,
    TextClassifier,
)
from riskwatch.engine.jobs import JobRunner
from riskwatch.engine.service import RiskEngine
from riskwatch.storage.repositories import JobRepository

pytestmark = pytest.mark.integration


class _FixedClassifier(TextClassifier):
    @property
    def available(self) -> bool:
        return True

    async def classify(self, text: str, hint: CategoryHint) -> ClassificationResult:
        return ClassificationResult(risk_score=50.0, reasoning="ambiguous wording", indicators=())


# ---------------------------------------------------------------------------
# Communication analysis
# ---------------------------------------------------------------------------


class TestCommunicationAnalysis:
    async def test_overlay_and_results_persisted(self, engine):
        analysis = await engine.analyze_communication("msg-001")
        assert analysis.verdict.risk_score == pytest.approx(96.0)

        stored = await engine.communications.get("msg-001")
        assert stored.overlay.risk_score == 96
        assert stored.overlay.category == "Source Code Leak"
        assert stored.overlay.is_flagged is True
        assert stored.overlay.analyzer_version.startswith("riskwatch-analyzer/")
        assert stored.body.startswith("Sending the repository")

        results = await engine.detections.list_for_communication("msg-001")
        assert sorted(r.category_name for r in results) == ["Gift Card Fraud", "Source Code Leak"]

    async def test_reanalysis_appends_results(self, engine):
        await engine.analyze_communication("msg-001")
        await engine.analyze_communication("msg-001")
        assert len(await engine.detections.list_for_communication("msg-001")) == 4

    async def test_automatic_violation_raised_once(self, engine):
        await engine.analyze_communication("msg-001")
        await engine.analyze_communication("msg-001")

        violations = await engine.violations.list_violations(employee_id="emp-001")
        assert len(violations) == 1
        v = violations[0]
        assert v.severity == Severity.CRITICAL
        assert v.violation_type == "Source Code Leak"
        assert v.communication_id == "msg-001"
        assert "keyword: repository" in v.evidence
        assert v.structured_evidence["final_risk_score"] == pytest.approx(96.0)

    async def test_clean_message_raises_nothing(self, engine):
        analysis = await engine.analyze_communication("msg-002")
        assert analysis.verdict.risk_score == 0.0
        assert (await engine.communications.get("msg-002")).overlay.category is None
        assert await engine.violations.list_violations() == []

    async def test_disabled_category_skipped(self, engine):
        gift_card = await engine.categories.get_by_name("Gift Card Fraud")
        await engine.categories.set_active(gift_card.id, False)

        analysis = await engine.analyze_communication("msg-003")
        assert [r.category_name for r in analysis.results] == ["Source Code Leak"]
        assert analysis.verdict.risk_score == 0.0

    async def test_no_active_categories(self, engine):
        for category in await engine.categories.list_all():
            await engine.categories.set_active(category.id, False)
        with pytest.raises(InvariantViolation):
            await engine.analyze_communication("msg-001")
        assert (await engine.communications.get("msg-001")).overlay is None

    async def test_unknown_communication(self, engine):
        with pytest.raises(NotFoundError):
            await engine.analyze_communication("msg-404")

    async def test_language_model_fallback(self, db, settings, engine):
        fallback_engine = RiskEngine(db, settings, classifier=_FixedClassifier())
        analysis = await fallback_engine.analyze_communication("msg-002")

        assert {r.analysis_method for r in analysis.results} == {AnalysisMethod.LLM}
        assert analysis.verdict.risk_score == pytest.approx(40.0)
        assert analysis.verdict.primary_category_name == "Source Code Leak"
        assert analysis.verdict.flagged is False


# ---------------------------------------------------------------------------
# Batches
# ---------------------------------------------------------------------------


class TestBatchAnalysis:
    async def test_failures_are_tallied(self, engine):
        summary = await engine.analyze_batch(["msg-001", "msg-404", "msg-003"])

        assert summary.total == 3
        assert summary.succeeded == 2
        assert summary.failed == 1
        assert summary.failures["msg-404"].startswith("NotFoundError")
        assert summary.employees_refreshed == ["emp-001", "emp-002"]

    async def test_cancellation_before_start(self, engine):
        cancel = asyncio.Event()
        cancel.set()
        summary = await engine.analyze_batch(["msg-001", "msg-002"], cancel_event=cancel)

        assert summary.cancelled == 2
        assert summary.succeeded == 0
        assert summary.was_cancelled
        assert (await engine.communications.get("msg-001")).overlay is None

    async def test_all_active_skips_analyzed(self, engine):
        first = await engine.analyze_all_active()
        assert first.total == 3
        second = await engine.analyze_all_active()
        assert second.total == 0
        third = await engine.analyze_all_active(unanalyzed_only=False)
        assert third.total == 3

    async def test_inactive_employee_excluded(self, engine):
        assert "emp-003" not in await engine.employees.list_active_ids()
        assert await engine.collect_active_ids() == ["msg-002", "msg-001", "msg-003"]

    async def test_analyze_employee(self, engine):
        summary = await engine.analyze_employee("emp-002")
        assert summary.succeeded == 1
        assert summary.employees_refreshed == ["emp-002"]

        with pytest.raises(NotFoundError):
            await engine.analyze_employee("emp-404")


# ---------------------------------------------------------------------------
# Employee risk and violations
# ---------------------------------------------------------------------------


class TestEmployeeRisk:
    async def test_recent_activity_blends_components(self, engine):
        await engine.analyze_all_active()

        profile = await engine.refresh_employee_risk(
            "emp-001", now=datetime(2026, 3, 5, tzinfo=UTC)
        )
        # communications (96 + 0) / 2 = 48; one Critical violation = 90
        assert profile.communication_component == pytest.approx(48.0)
        assert profile.risk_score == 65
        assert profile.risk_level == RiskLevel.HIGH

    async def test_violation_only_after_window(self, engine):
        await engine.analyze_all_active()

        profile = await engine.refresh_employee_risk(
            "emp-001", now=datetime(2026, 6, 1, tzinfo=UTC)
        )
        assert profile.communication_component is None
        assert profile.risk_score == 90
        assert profile.risk_level == RiskLevel.CRITICAL

        stored = await engine.employees.get("emp-001")
        assert stored.risk_score == 90

    async def test_resolving_violation_lowers_risk(self, engine):
        await engine.analyze_communication("msg-003")
        violation = (await engine.violations.list_violations(employee_id="emp-002"))[0]

        await engine.transition_violation(
            violation.id, ViolationStatus.RESOLVED, "confirmed false alarm"
        )
        profile = await engine.refresh_employee_risk(
            "emp-002", now=datetime(2026, 6, 1, tzinfo=UTC)
        )
        assert profile.active_violation_count == 0
        assert profile.risk_score == 0

        history = await engine.violation_history(violation.id)
        assert [h.new_status for h in history] == [ViolationStatus.RESOLVED]

    async def test_manual_violation(self, engine):
        violation = await engine.create_violation(
            "emp-002", "Policy Breach", "High", evidence=["shared badge"], actor="analyst-3"
        )
        assert violation.status == ViolationStatus.ACTIVE
        assert violation.metadata == {"source": "manual", "created_by": "analyst-3"}
        assert (await engine.employees.get("emp-002")).risk_updated_at is not None

        with pytest.raises(NotFoundError):
            await engine.create_violation("emp-404", "x", "Low")

    async def test_history_of_unknown_violation(self, engine):
        with pytest.raises(NotFoundError):
            await engine.violation_history(12345)


# ---------------------------------------------------------------------------
# Activity metrics and anomalies
# ---------------------------------------------------------------------------


class TestAnomalies:
    async def test_daily_metrics_from_communications(self, engine):
        rows = await engine.record_daily_metrics("emp-001", today=date(2026, 3, 5), days=3)
        assert rows == 3

        stored = await engine.metrics.list_since(date(2026, 3, 1))
        assert ("emp-001", date(2026, 3, 4), 2, 0) in stored
        assert ("emp-001", date(2026, 3, 5), 0, 0) in stored

    async def test_volume_spike_detected(self, engine):
        today = date(2026, 3, 31)
        baseline = [
            ("emp-001", today - timedelta(days=d), [8, 10, 12][d % 3], 0) for d in range(7, 37)
        ]
        recent = [("emp-001", today - timedelta(days=d), 20, 0) for d in range(7)]
        await engine.metrics.upsert_daily(baseline + recent)

        anomalies = await engine.detect_anomalies(today=today)

        assert len(anomalies) == 1
        a = anomalies[0]
        assert a.employee_id == "emp-001"
        assert a.metric == AnomalyMetric.EMAIL_VOLUME
        assert a.current_value == 20.0
        assert a.historical_mean == pytest.approx(10.0)
        assert a.z_score > 2.0

    async def test_flat_activity_is_not_anomalous(self, engine):
        today = date(2026, 3, 31)
        rows = [("emp-002", today - timedelta(days=d), 5, 1) for d in range(37)]
        await engine.metrics.upsert_daily(rows)
        assert await engine.detect_anomalies(today=today) == []

    async def test_risk_spike_after_critical_detection(self, engine):
        await engine.analyze_communication("msg-001")

        spikes = await engine.detect_risk_spikes()

        assert [(s.employee_id, s.recent_violations) for s in spikes] == [("emp-001", 1)]
        assert spikes[0].risk_score > 75
        assert spikes[0].name
        assert await engine.detect_risk_spikes(threshold=99) == []

    async def test_stale_risk_score_is_not_a_spike(self, engine):
        await engine.analyze_communication("msg-001")
        later = datetime.now(UTC) + timedelta(days=30)
        assert await engine.detect_risk_spikes(now=later) == []


# ---------------------------------------------------------------------------
# Concurrent writers on the shared connection
# ---------------------------------------------------------------------------


class TestConcurrentWriters:
    async def test_rejected_transition_keeps_pending_analysis(self, engine, monkeypatch):
        violation = await engine.create_violation("emp-002", "Policy Breach", "High")
        add_many = engine.detections.add_many
        detections_written = asyncio.Event()

        async def add_many_then_yield(results):
            await add_many(results)
            detections_written.set()
            await asyncio.sleep(0.01)

        monkeypatch.setattr(engine.detections, "add_many", add_many_then_yield)

        async def stale_transition():
            await detections_written.wait()
            with pytest.raises(ConflictError):
                await engine.transition_violation(
                    violation.id, ViolationStatus.RESOLVED, "closing", expected_version=7
                )

        await asyncio.gather(engine.analyze_communication("msg-001"), stale_transition())

        assert len(await engine.detections.list_for_communication("msg-001")) == 2
        assert (await engine.communications.get("msg-001")).overlay.risk_score == 96
        stored = await engine.violations.get(violation.id)
        assert stored.status == ViolationStatus.ACTIVE
        assert await engine.violation_history(violation.id) == []

    async def test_transition_waits_for_running_job(self, engine, db):
        violation = await engine.create_violation("emp-001", "Policy Breach", "Low")
        runner = JobRunner(engine, JobRepository(db))
        job = await runner.submit(["msg-001", "msg-002", "msg-003"])

        result = await engine.transition_violation(
            violation.id, ViolationStatus.INVESTIGATING, "triage"
        )
        finished = await runner.wait(job.id)

        assert result.violation.version == 2
        assert finished.summary.succeeded == 3
        assert len(await engine.detections.list_for_communication("msg-001")) == 2
