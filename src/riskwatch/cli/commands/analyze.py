# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Analysis commands: single communication, one employee, or every active employee."""

from __future__ import annotations

from typing import Annotated, Any

import typer

from riskwatch.cli.session import engine_session, run

app = typer.Typer()


@app.command()
def communication(
    communication_id: Annotated[str, typer.Argument(help="Communication ID")],
) -> None:
    """Analyze one communication and show the per-category results."""
    run(_async_communication(communication_id))


async def _async_communication(communication_id: str) -> None:
    from rich.console import Console
    from rich.table import Table

    async with engine_session() as engine:
        analysis = await engine.analyze_communication(communication_id)

    verdict = analysis.verdict
    console = Console()
    console.print(
        f"[bold]{communication_id}[/bold]  risk={verdict.risk_score:.1f}  "
        f"category={verdict.primary_category_name or '-'}  "
        f"flagged={'yes' if verdict.flagged else 'no'}"
    )
    if analysis.context.factors:
        console.print(f"[dim]Context: {', '.join(sorted(analysis.context.factors))}[/dim]")

    table = Table(title="Category Results")
    table.add_column("Category", style="cyan")
    table.add_column("Method")
    table.add_column("Confidence", justify="right")
    table.add_column("Raw", justify="right")
    table.add_column("Final", justify="right", style="bold")
    table.add_column("Triggers")
    table.add_column("Notes", style="dim")

    for result in sorted(analysis.results, key=lambda r: -r.final_risk_score):
        triggers = [
            name
            for name, hit in (
                ("alert", result.triggers_alert),
                ("investigation", result.triggers_investigation),
                ("critical", result.triggers_critical),
            )
            if hit
        ]
        table.add_row(
            result.category_name,
            str(result.analysis_method),
            f"{result.confidence:.1f}",
            f"{result.risk_score:.1f}",
            f"{result.final_risk_score:.1f}",
            ", ".join(triggers) or "-",
            result.degradation_reason or "",
        )
    console.print(table)


@app.command()
def employee(
    employee_id: Annotated[str, typer.Argument(help="Employee ID")],
    limit: Annotated[
        int | None, typer.Option("--limit", "-n", help="Most recent communications to analyze")
    ] = None,
    unanalyzed_only: Annotated[
        bool, typer.Option("--unanalyzed-only", help="Skip communications already analyzed")
    ] = False,
) -> None:
    """Analyze an employee's recent communications as a tracked job."""
    run(_async_employee(employee_id, limit, unanalyzed_only))


async def _async_employee(employee_id: str, limit: int | None, unanalyzed_only: bool) -> None:
    async with engine_session() as engine:
        ids = await engine.employee_communication_ids(
            employee_id, limit, unanalyzed_only=unanalyzed_only
        )
        job = await _run_job(engine, ids, kind="employee", target=employee_id)
        if not ids:
            await engine.refresh_employee_risk(employee_id)
    _print_job(job)


@app.command(name="all")
def analyze_all(
    limit_per_employee: Annotated[
        int | None, typer.Option("--limit", "-n", help="Per-employee communication limit")
    ] = None,
    include_analyzed: Annotated[
        bool, typer.Option("--include-analyzed", help="Re-analyze communications already scored")
    ] = False,
) -> None:
    """Analyze recent communications of every active employee as a tracked job."""
    run(_async_all(limit_per_employee, include_analyzed))


async def _async_all(limit_per_employee: int | None, include_analyzed: bool) -> None:
    async with engine_session() as engine:
        ids = await engine.collect_active_ids(
            limit_per_employee, unanalyzed_only=not include_analyzed
        )
        job = await _run_job(engine, ids, kind="all_active")
    _print_job(job)


@app.command()
def pending(
    limit: Annotated[int, typer.Option("--limit", "-n", help="Maximum communications")] = 500,
) -> None:
    """Analyze the oldest communications that have never been analyzed."""
    run(_async_pending(limit))


async def _async_pending(limit: int) -> None:
    async with engine_session() as engine:
        ids = await engine.communications.list_unanalyzed_ids(limit)
        job = await _run_job(engine, ids, kind="pending")
    _print_job(job)


@app.command()
def jobs(
    limit: Annotated[int, typer.Option("--limit", "-n", help="Number of jobs to show")] = 20,
) -> None:
    """List recent analysis jobs."""
    run(_async_jobs(limit))


async def _async_jobs(limit: int) -> None:
    from rich.console import Console
    from rich.table import Table

    from riskwatch.storage.database import get_db
    from riskwatch.storage.repositories.jobs import JobRepository

    async with engine_session():
        recent = await JobRepository(await get_db()).list_recent(limit)

    console = Console()
    if not recent:
        console.print("[dim]No analysis jobs found.[/dim]")
        return

    table = Table(title="Analysis Jobs")
    table.add_column("Job ID", style="dim", no_wrap=True)
    table.add_column("Kind", style="cyan")
    table.add_column("Target")
    table.add_column("Status", style="bold")
    table.add_column("OK/Failed/Cancelled", justify="right")
    table.add_column("Started", style="dim")

    for job in recent:
        summary = job.summary
        counts = (
            f"{summary.succeeded}/{summary.failed}/{summary.cancelled}" if summary else "-"
        )
        table.add_row(
            job.id[:12],
            job.kind,
            job.target or "-",
            str(job.status),
            counts,
            job.created_at.isoformat(timespec="seconds"),
        )
    console.print(table)


async def _run_job(engine: Any, ids: list[str], *, kind: str, target: str = "") -> Any:
    from riskwatch.engine.jobs import JobRunner
    from riskwatch.storage.database import get_db
    from riskwatch.storage.repositories.jobs import JobRepository

    runner = JobRunner(engine, JobRepository(await get_db()))
    job = await runner.submit(ids, kind=kind, target=target)
    return await runner.wait(job.id)


def _print_job(job: Any) -> None:
    typer.echo(f"Job {job.id}: {job.status}")
    if job.error:
        typer.echo(f"  Error: {job.error}", err=True)
        raise typer.Exit(1)
    summary = job.summary
    if summary is None:
        return
    typer.echo(f"  Total:     {summary.total}")
    typer.echo(f"  Succeeded: {summary.succeeded}")
    typer.echo(f"  Failed:    {summary.failed}")
    if summary.cancelled:
        typer.echo(f"  Cancelled: {summary.cancelled}")
    for communication_id, error in summary.failures.items():
        typer.echo(f"    - {communication_id}: {error}", err=True)
    if summary.employees_refreshed:
        typer.echo(f"  Employees refreshed: {', '.join(summary.employees_refreshed)}")
