# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Behavioral anomaly scan over stored daily activity metrics."""

from __future__ import annotations

from typing import Annotated

import typer

from riskwatch.cli.session import engine_session, run


def anomalies_command(
    threshold: Annotated[
        float | None,
        typer.Option("--threshold", "-z", help="Absolute z-score above which to report"),
    ] = None,
    refresh_metrics: Annotated[
        bool,
        typer.Option(
            "--refresh-metrics", help="Rebuild daily metrics from stored communications first"
        ),
    ] = False,
) -> None:
    """Report activity outliers and employees whose risk score recently spiked."""
    run(_async_anomalies(threshold, refresh_metrics))


async def _async_anomalies(threshold: float | None, refresh_metrics: bool) -> None:
    from rich.console import Console
    from rich.table import Table

    async with engine_session() as engine:
        if refresh_metrics:
            rows = await engine.record_all_daily_metrics()
            typer.echo(f"Recorded {rows} daily metric rows.")
        found = await engine.detect_anomalies(threshold)
        spikes = await engine.detect_risk_spikes()

    console = Console()
    if not found and not spikes:
        console.print("[dim]No anomalies detected.[/dim]")
        return

    if found:
        table = Table(title="Activity Anomalies")
        table.add_column("Employee", style="cyan")
        table.add_column("Metric")
        table.add_column("Current", justify="right", style="bold")
        table.add_column("Baseline", justify="right")
        table.add_column("Std Dev", justify="right")
        table.add_column("Z", justify="right")
        table.add_column("Direction")

        for anomaly in found:
            table.add_row(
                anomaly.employee_id,
                str(anomaly.metric),
                f"{anomaly.current_value:.1f}",
                f"{anomaly.historical_mean:.1f}",
                f"{anomaly.historical_stddev:.2f}",
                f"{anomaly.z_score:+.2f}",
                anomaly.direction,
            )
        console.print(table)

    if spikes:
        table = Table(title="Risk Spikes")
        table.add_column("Employee", style="cyan")
        table.add_column("Name")
        table.add_column("Department")
        table.add_column("Risk", justify="right", style="bold red")
        table.add_column("Level")
        table.add_column("Recent Violations", justify="right")

        for spike in spikes:
            table.add_row(
                spike.employee_id,
                spike.name,
                spike.department,
                str(spike.risk_score),
                str(spike.risk_level),
                str(spike.recent_violations),
            )
        console.print(table)
