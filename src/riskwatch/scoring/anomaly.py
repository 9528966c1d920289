# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Z-score anomaly detection over per-employee daily activity."""

from __future__ import annotations

import logging
import statistics
from collections import defaultdict
from collections.abc import Iterable
from datetime import date, timedelta

from riskwatch.core.constants import AnomalyMetric
from riskwatch.models.anomaly import Anomaly, MetricSeries

logger = logging.getLogger("riskwatch.scoring.anomaly")

# Sample standard deviation needs at least two observations.
MIN_BASELINE_POINTS = 2


def detect_anomalies(
    series: Iterable[MetricSeries], threshold: float = 2.0
) -> list[Anomaly]:
    """Return series whose |z| exceeds *threshold*, largest first.

    Series with fewer than two baseline points or a zero standard deviation
    are skipped.
    """
    anomalies: list[Anomaly] = []
    for s in series:
        if len(s.history) < MIN_BASELINE_POINTS:
            continue
        stddev = statistics.stdev(s.history)
        if stddev == 0:
            continue
        mean = statistics.fmean(s.history)
        z = (s.current - mean) / stddev
        if abs(z) > threshold:
            anomalies.append(
                Anomaly(
                    employee_id=s.employee_id,
                    metric=s.metric,
                    current_value=s.current,
                    historical_mean=mean,
                    historical_stddev=stddev,
                    z_score=z,
                )
            )

    anomalies.sort(key=lambda a: (-abs(a.z_score), a.employee_id, a.metric))
    logger.info("Anomaly scan found %d anomalies (threshold=%.2f)", len(anomalies), threshold)
    return anomalies


def build_metric_series(
    rows: Iterable[tuple[str, date, int, int]],
    *,
    today: date,
    window_days: int = 30,
    recent_days: int = 7,
) -> list[MetricSeries]:
    """Split daily metric rows into baseline history and a current value.

    Args:
        rows: ``(employee_id, day, email_volume, after_hours_activity)``.
        today: Last day of the current period.
        window_days: Length of the baseline window preceding the current period.
        recent_days: Length of the current period; its daily values are averaged.

    Days inside the current period are kept out of the baseline so a spike
    does not inflate its own reference.
    """
    recent_start = today - timedelta(days=recent_days - 1)
    baseline_start = recent_start - timedelta(days=window_days)

    baseline: dict[tuple[str, AnomalyMetric], list[float]] = defaultdict(list)
    recent: dict[tuple[str, AnomalyMetric], list[float]] = defaultdict(list)

    for employee_id, day, email_volume, after_hours in rows:
        if day > today or day < baseline_start:
            continue
        bucket = recent if day >= recent_start else baseline
        bucket[(employee_id, AnomalyMetric.EMAIL_VOLUME)].append(float(email_volume))
        bucket[(employee_id, AnomalyMetric.AFTER_HOURS_ACTIVITY)].append(float(after_hours))

    series: list[MetricSeries] = []
    for key in sorted(recent):
        employee_id, metric = key
        series.append(
            MetricSeries(
                employee_id=employee_id,
                metric=metric,
                history=tuple(baseline.get(key, ())),
                current=statistics.fmean(recent[key]),
            )
        )
    return series
