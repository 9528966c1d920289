# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Risk engine service: analysis passes with persistence and follow-up work."""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, date, datetime, time, timedelta
from typing import Any

import aiosqlite

from riskwatch.core.config import Settings, get_settings
from riskwatch.core.constants import Severity, TriggerLevel, ViolationStatus
from riskwatch.core.exceptions import InvariantViolation, NotFoundError, StorageError
from riskwatch.detectors.classifier import build_classifier
from riskwatch.detectors.classifier.base import TextClassifier
from riskwatch.detectors.context import is_after_hours, resolve_timezone
from riskwatch.engine.pipeline import ANALYZER_VERSION, AnalysisPipeline, CommunicationAnalysis
from riskwatch.models.anomaly import Anomaly, RiskSpike
from riskwatch.models.category import CategorySnapshot
from riskwatch.models.communication import Communication
from riskwatch.models.detection import DetectionResult
from riskwatch.models.employee import EmployeeRiskProfile
from riskwatch.models.job import BatchSummary
from riskwatch.models.violation import (
    AIValidationResult,
    TransitionResult,
    Violation,
    ViolationStatusHistory,
)
from riskwatch.scoring.anomaly import build_metric_series, detect_anomalies
from riskwatch.scoring.employee import compute_employee_risk
from riskwatch.storage.database import transaction
from riskwatch.storage.repositories import (
    CategoryRepository,
    CommunicationRepository,
    DetectionRepository,
    EmployeeRepository,
    MetricsRepository,
    ViolationRepository,
)
from riskwatch.violations.state_machine import ViolationStateMachine
from riskwatch.violations.validator import ViolationValidator

logger = logging.getLogger("riskwatch.engine.service")


def meets_trigger(result: DetectionResult, level: TriggerLevel) -> bool:
    if level == TriggerLevel.ALERT:
        return result.triggers_alert
    if level == TriggerLevel.INVESTIGATION:
        return result.triggers_investigation
    if level == TriggerLevel.CRITICAL:
        return result.triggers_critical
    return False


class RiskEngine:
    """Coordinates analysis, violations, employee risk, and anomaly scans."""

    def __init__(
        self,
        db: aiosqlite.Connection,
        settings: Settings | None = None,
        *,
        classifier: TextClassifier | None = None,
        validator: ViolationValidator | None = None,
    ) -> None:
        self._db = db
        self._settings = settings or get_settings()
        self.categories = CategoryRepository(db)
        self.communications = CommunicationRepository(db)
        self.detections = DetectionRepository(db)
        self.employees = EmployeeRepository(db)
        self.violations = ViolationRepository(db)
        self.metrics = MetricsRepository(db)
        self._pipeline = AnalysisPipeline(
            self._settings, classifier or build_classifier(self._settings)
        )
        self._state_machine = ViolationStateMachine(db)
        self._validator = validator or ViolationValidator(self.violations, self._settings)

    async def snapshot(self) -> CategorySnapshot:
        return await self.categories.snapshot()

    # ------------------------------------------------------------------
    # Communication analysis
    # ------------------------------------------------------------------

    async def analyze_communication(
        self,
        communication_id: str,
        snapshot: CategorySnapshot | None = None,
    ) -> CommunicationAnalysis:
        """Analyze one communication synchronously and refresh its employee's risk."""
        snapshot = snapshot or await self.snapshot()
        analysis, communication = await self._analyze_one(communication_id, snapshot)
        if communication.employee_id:
            await self.refresh_employee_risk(communication.employee_id)
        return analysis

    async def analyze_batch(
        self,
        communication_ids: list[str],
        snapshot: CategorySnapshot | None = None,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> BatchSummary:
        """Analyze communications one by one, tallying per-item failures.

        Storage failures abort the batch.  Cancellation is honoured between
        items; overlays already written stay valid.  Employee risk is
        recomputed once, after every overlay in the batch is persisted.
        """
        snapshot = snapshot or await self.snapshot()
        if not snapshot.categories:
            raise InvariantViolation("No active categories to evaluate against")

        summary = BatchSummary(total=len(communication_ids))
        touched: set[str] = set()

        for index, communication_id in enumerate(communication_ids):
            if cancel_event is not None and cancel_event.is_set():
                summary.cancelled = len(communication_ids) - index
                logger.info(
                    "Batch cancelled after %d of %d communications",
                    index,
                    len(communication_ids),
                )
                break
            try:
                _, communication = await self._analyze_one(communication_id, snapshot)
            except (StorageError, aiosqlite.Error):
                raise
            except Exception as exc:
                summary.failed += 1
                summary.failures[communication_id] = f"{type(exc).__name__}: {exc}"
                logger.error("Analysis failed for communication %s: %s", communication_id, exc)
                continue

            summary.succeeded += 1
            if communication.employee_id:
                touched.add(communication.employee_id)

        for employee_id in sorted(touched):
            await self.refresh_employee_risk(employee_id)
        summary.employees_refreshed = sorted(touched)

        logger.info(
            "Batch complete: total=%d succeeded=%d failed=%d cancelled=%d",
            summary.total,
            summary.succeeded,
            summary.failed,
            summary.cancelled,
        )
        return summary

    async def analyze_employee(
        self,
        employee_id: str,
        limit: int | None = None,
        *,
        unanalyzed_only: bool = False,
        cancel_event: asyncio.Event | None = None,
    ) -> BatchSummary:
        """Analyze an employee's most recent communications."""
        ids = await self.employee_communication_ids(
            employee_id, limit, unanalyzed_only=unanalyzed_only
        )
        if not ids:
            await self.refresh_employee_risk(employee_id)
            return BatchSummary(employees_refreshed=[employee_id])
        return await self.analyze_batch(ids, cancel_event=cancel_event)

    async def analyze_all_active(
        self,
        limit_per_employee: int | None = None,
        *,
        unanalyzed_only: bool = True,
        cancel_event: asyncio.Event | None = None,
    ) -> BatchSummary:
        """Bulk-evaluate recent communications of every active employee."""
        ids = await self.collect_active_ids(
            limit_per_employee, unanalyzed_only=unanalyzed_only
        )
        return await self.analyze_batch(ids, cancel_event=cancel_event)

    async def employee_communication_ids(
        self, employee_id: str, limit: int | None = None, *, unanalyzed_only: bool = False
    ) -> list[str]:
        if await self.employees.get(employee_id) is None:
            raise NotFoundError("employee", employee_id)
        return await self.communications.list_ids_for_employee(
            employee_id,
            limit or self._settings.batch_max_items,
            unanalyzed_only=unanalyzed_only,
        )

    async def collect_active_ids(
        self, limit_per_employee: int | None = None, *, unanalyzed_only: bool = True
    ) -> list[str]:
        limit = limit_per_employee or self._settings.batch_max_items
        ids: list[str] = []
        for employee_id in await self.employees.list_active_ids():
            ids.extend(
                await self.communications.list_ids_for_employee(
                    employee_id, limit, unanalyzed_only=unanalyzed_only
                )
            )
        return ids

    async def _analyze_one(
        self, communication_id: str, snapshot: CategorySnapshot
    ) -> tuple[CommunicationAnalysis, Communication]:
        communication = await self.communications.get(communication_id)
        if communication is None:
            raise NotFoundError("communication", communication_id)

        employee_timezone = None
        if communication.employee_id:
            employee = await self.employees.get(communication.employee_id)
            employee_timezone = employee.timezone if employee else None

        window_start = communication.sent_at - timedelta(
            hours=self._settings.frequency_window_hours
        )
        recent = await self.communications.count_from_sender(
            communication.sender, window_start, communication.sent_at
        )

        analysis = await self._pipeline.evaluate(
            communication,
            snapshot,
            sender_recent_count=recent,
            employee_timezone=employee_timezone,
        )
        overlay = analysis.verdict.to_overlay(ANALYZER_VERSION, analysis.context.factors)

        try:
            async with transaction(self._db):
                await self.detections.add_many(analysis.results)
                await self.communications.update_overlay(communication_id, overlay)
        except aiosqlite.Error as exc:
            msg = f"Failed to persist analysis of communication {communication_id}: {exc}"
            raise StorageError(msg) from exc

        await self._raise_automatic_violations(communication, analysis, snapshot)
        return analysis, communication

    async def _raise_automatic_violations(
        self,
        communication: Communication,
        analysis: CommunicationAnalysis,
        snapshot: CategorySnapshot,
    ) -> list[Violation]:
        level = self._settings.auto_violation_trigger
        if level == TriggerLevel.NONE or not communication.employee_id:
            return []

        created: list[Violation] = []
        for result in analysis.results:
            if not meets_trigger(result, level):
                continue
            category = snapshot.get(result.category_id)
            if category is None:
                continue
            severity = Severity.CRITICAL if result.triggers_critical else category.severity
            evidence = [f"keyword: {m.keyword}" for m in result.matched_keywords]
            evidence.extend(f"pattern: {p}" for p in result.pattern_matches)
            violation = Violation(
                employee_id=communication.employee_id,
                communication_id=communication.id,
                category_id=result.category_id,
                violation_type=category.name,
                severity=severity,
                description=result.reasoning,
                evidence=evidence,
                structured_evidence={
                    "final_risk_score": result.final_risk_score,
                    "confidence": result.confidence,
                    "analysis_method": str(result.analysis_method),
                    "applied_multipliers": {str(k): v for k, v in result.applied_multipliers.items()},
                },
                metadata={"source": "automatic_detection", "analyzer_version": ANALYZER_VERSION},
            )
            stored = await self.violations.create_if_absent(violation)
            if stored is not None:
                logger.info(
                    "Raised %s violation %s for employee %s from communication %s",
                    severity,
                    stored.id,
                    communication.employee_id,
                    communication.id,
                )
                created.append(stored)
        return created

    # ------------------------------------------------------------------
    # Employee risk
    # ------------------------------------------------------------------

    async def refresh_employee_risk(
        self, employee_id: str, *, now: datetime | None = None
    ) -> EmployeeRiskProfile:
        """Recompute and store an employee's risk score and level."""
        if await self.employees.get(employee_id) is None:
            raise NotFoundError("employee", employee_id)

        now = now or datetime.now(UTC)
        window = self._settings.employee_window_days
        history = await self.communications.scored_history(
            employee_id, now - timedelta(days=window)
        )
        severities = await self.violations.active_severities(employee_id)
        profile = compute_employee_risk(
            employee_id,
            history,
            severities,
            now=now,
            window_days=window,
            communication_weight=self._settings.communication_weight,
            violation_weight=self._settings.violation_weight,
        )
        await self.employees.update_risk(profile)
        logger.info(
            "Employee %s risk updated: score=%d level=%s",
            employee_id,
            profile.risk_score,
            profile.risk_level,
        )
        return profile

    # ------------------------------------------------------------------
    # Violations
    # ------------------------------------------------------------------

    async def create_violation(
        self,
        employee_id: str,
        violation_type: str,
        severity: Severity | str,
        *,
        description: str = "",
        evidence: list[str] | None = None,
        structured_evidence: dict[str, Any] | None = None,
        actor: str = "analyst",
    ) -> Violation:
        """Record a manually reported violation in the ``Active`` state."""
        if await self.employees.get(employee_id) is None:
            raise NotFoundError("employee", employee_id)

        violation = await self.violations.create(
            Violation(
                employee_id=employee_id,
                violation_type=violation_type,
                severity=Severity(severity),
                description=description,
                evidence=evidence or [],
                structured_evidence=structured_evidence,
                metadata={"source": "manual", "created_by": actor},
            )
        )
        await self.refresh_employee_risk(employee_id)
        return violation

    async def transition_violation(
        self,
        violation_id: int,
        target: ViolationStatus | str,
        reason: str,
        *,
        actor: str = "analyst",
        ai_assisted: bool = False,
        ai_confidence: float | None = None,
        expected_version: int | None = None,
    ) -> TransitionResult:
        result = await self._state_machine.transition(
            violation_id,
            target,
            reason,
            actor=actor,
            ai_assisted=ai_assisted,
            ai_confidence=ai_confidence,
            expected_version=expected_version,
        )
        await self.refresh_employee_risk(result.violation.employee_id)
        return result

    async def violation_history(self, violation_id: int) -> list[ViolationStatusHistory]:
        if await self.violations.get(violation_id) is None:
            raise NotFoundError("violation", violation_id)
        return await self.violations.history(violation_id)

    async def request_ai_validation(self, violation_id: int) -> AIValidationResult | None:
        return await self._validator.validate(violation_id)

    # ------------------------------------------------------------------
    # Activity metrics and anomalies
    # ------------------------------------------------------------------

    async def record_daily_metrics(
        self,
        employee_id: str,
        *,
        today: date | None = None,
        days: int | None = None,
    ) -> int:
        """Derive daily e-mail volume and after-hours counts from stored communications.

        Days without any communication are written as zero.  Returns the
        number of daily rows written.
        """
        employee = await self.employees.get(employee_id)
        if employee is None:
            raise NotFoundError("employee", employee_id)

        today = today or datetime.now(UTC).date()
        days = days or self._settings.anomaly_window_days + self._settings.anomaly_recent_days
        first_day = today - timedelta(days=days - 1)
        counts = {first_day + timedelta(days=i): [0, 0] for i in range(days)}

        # One day of padding covers senders west of UTC.
        since = datetime.combine(first_day, time.min, UTC) - timedelta(days=1)
        for sent_at, tz_name in await self.communications.sent_times(employee_id, since):
            local = sent_at.astimezone(resolve_timezone(tz_name or employee.timezone, self._settings))
            bucket = counts.get(local.date())
            if bucket is None:
                continue
            bucket[0] += 1
            if is_after_hours(local, self._settings):
                bucket[1] += 1

        rows = [(employee_id, day, volume, after) for day, (volume, after) in sorted(counts.items())]
        await self.metrics.upsert_daily(rows)
        return len(rows)

    async def record_all_daily_metrics(self, *, today: date | None = None) -> int:
        total = 0
        for employee_id in await self.employees.list_active_ids():
            total += await self.record_daily_metrics(employee_id, today=today)
        return total

    async def detect_anomalies(
        self,
        threshold: float | None = None,
        *,
        today: date | None = None,
    ) -> list[Anomaly]:
        """Z-score scan of stored daily metrics against each employee's baseline."""
        today = today or datetime.now(UTC).date()
        window = self._settings.anomaly_window_days
        recent = self._settings.anomaly_recent_days
        rows = await self.metrics.list_since(today - timedelta(days=window + recent))
        series = build_metric_series(rows, today=today, window_days=window, recent_days=recent)
        return detect_anomalies(
            series,
            threshold if threshold is not None else self._settings.anomaly_z_threshold,
        )

    async def detect_risk_spikes(
        self,
        threshold: float | None = None,
        *,
        now: datetime | None = None,
    ) -> list[RiskSpike]:
        """Active employees whose risk score rose above *threshold* recently.

        "Recently" is the anomaly scan's current period: the score must have
        been refreshed within the last ``anomaly_recent_days``.  Each spike
        carries the count of violations raised in the same period.
        """
        now = now or datetime.now(UTC)
        threshold = threshold if threshold is not None else self._settings.risk_spike_threshold
        since = now - timedelta(days=self._settings.anomaly_recent_days)
        spikes = [
            RiskSpike(
                employee_id=employee.id,
                name=employee.name,
                department=employee.department,
                risk_score=employee.risk_score,
                risk_level=employee.risk_level,
                risk_updated_at=employee.risk_updated_at,
                recent_violations=recent_violations,
            )
            for employee, recent_violations in await self.employees.list_risk_spikes(
                threshold, since
            )
        ]
        logger.info("Risk spike scan found %d employees (threshold=%.1f)", len(spikes), threshold)
        return spikes
