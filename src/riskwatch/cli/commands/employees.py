# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Employee risk commands."""

from __future__ import annotations

from typing import Annotated

import typer

from riskwatch.cli.session import engine_session, run

app = typer.Typer()

_LEVEL_STYLES = {
    "Critical": "bold red",
    "High": "red",
    "Medium": "yellow",
    "Low": "green",
}


@app.command()
def risk(
    employee_id: Annotated[
        str | None, typer.Argument(help="Recompute and show one employee")
    ] = None,
    limit: Annotated[int, typer.Option("--limit", "-n", help="Employees to list")] = 25,
) -> None:
    """Show employees ranked by risk, or recompute one employee's profile."""
    if employee_id:
        run(_async_refresh(employee_id))
    else:
        run(_async_ranking(limit))


async def _async_refresh(employee_id: str) -> None:
    async with engine_session() as engine:
        profile = await engine.refresh_employee_risk(employee_id)

    typer.echo(f"Employee {profile.employee_id}: {profile.risk_score} ({profile.risk_level})")
    if profile.communication_component is not None:
        typer.echo(
            f"  Communications: {profile.communication_component:.1f} "
            f"over {profile.communication_count} analyzed"
        )
    else:
        typer.echo("  Communications: none in window")
    typer.echo(
        f"  Violations:     {profile.violation_component:.1f} "
        f"from {profile.active_violation_count} active"
    )


async def _async_ranking(limit: int) -> None:
    from rich.console import Console
    from rich.table import Table

    async with engine_session() as engine:
        employees = await engine.employees.list_by_risk(limit)

    console = Console()
    if not employees:
        console.print("[dim]No employees found.[/dim]")
        return

    table = Table(title="Employee Risk")
    table.add_column("Employee", style="cyan")
    table.add_column("Name")
    table.add_column("Department", style="dim")
    table.add_column("Score", justify="right", style="bold")
    table.add_column("Level")
    table.add_column("Updated", style="dim")

    for employee in employees:
        style = _LEVEL_STYLES.get(str(employee.risk_level), "")
        table.add_row(
            employee.id,
            employee.name,
            employee.department or "-",
            str(employee.risk_score),
            f"[{style}]{employee.risk_level}[/{style}]",
            employee.risk_updated_at.isoformat(timespec="seconds")
            if employee.risk_updated_at
            else "never",
        )
    console.print(table)
