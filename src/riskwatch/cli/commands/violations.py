# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Violation commands: manual creation, status transitions, audit history, AI review."""

from __future__ import annotations

from typing import Annotated

import typer

from riskwatch.cli.session import engine_session, run
from riskwatch.core.constants import Severity, ViolationStatus

app = typer.Typer()

_SEVERITY_STYLES = {
    Severity.CRITICAL: "bold red",
    Severity.HIGH: "red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "green",
}


def _parse_choice(value: str, enum: type[Severity] | type[ViolationStatus]) -> str:
    """Accept member values or names in any case, e.g. ``false_positive``."""
    key = value.strip().replace("-", " ").replace("_", " ").casefold()
    for member in enum:
        if key in (member.value.casefold(), member.name.replace("_", " ").casefold()):
            return member.value
    valid = ", ".join(m.value for m in enum)
    typer.echo(f"Invalid value {value!r}; expected one of: {valid}", err=True)
    raise typer.Exit(1)


@app.command()
def create(
    employee_id: Annotated[str, typer.Argument(help="Employee ID")],
    violation_type: Annotated[str, typer.Option("--type", "-t", help="Violation type")],
    severity: Annotated[
        str, typer.Option("--severity", "-s", help="Critical, High, Medium or Low")
    ] = "Medium",
    description: Annotated[str, typer.Option("--description", "-d")] = "",
    evidence: Annotated[
        list[str] | None, typer.Option("--evidence", "-e", help="Evidence item (repeatable)")
    ] = None,
    actor: Annotated[str, typer.Option("--actor", help="Who is reporting")] = "analyst",
) -> None:
    """Record a manually reported violation."""
    level = _parse_choice(severity, Severity)
    run(_async_create(employee_id, violation_type, level, description, evidence or [], actor))


async def _async_create(
    employee_id: str,
    violation_type: str,
    severity: str,
    description: str,
    evidence: list[str],
    actor: str,
) -> None:
    async with engine_session() as engine:
        violation = await engine.create_violation(
            employee_id,
            violation_type,
            severity,
            description=description,
            evidence=evidence,
            actor=actor,
        )
    typer.echo(f"Created violation {violation.id} ({violation.severity}, {violation.status})")


@app.command(name="list")
def list_violations(
    employee_id: Annotated[
        str | None, typer.Option("--employee", "-E", help="Filter by employee")
    ] = None,
    status: Annotated[str | None, typer.Option("--status", help="Filter by status")] = None,
    limit: Annotated[int, typer.Option("--limit", "-n")] = 50,
) -> None:
    """List violations, newest first."""
    parsed = _parse_choice(status, ViolationStatus) if status else None
    run(_async_list(employee_id, parsed, limit))


async def _async_list(employee_id: str | None, status: str | None, limit: int) -> None:
    from rich.console import Console
    from rich.table import Table

    async with engine_session() as engine:
        violations = await engine.violations.list_violations(
            employee_id=employee_id,
            status=ViolationStatus(status) if status else None,
            limit=limit,
        )

    console = Console()
    if not violations:
        console.print("[dim]No violations found.[/dim]")
        return

    table = Table(title="Violations")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Employee", style="cyan")
    table.add_column("Type")
    table.add_column("Severity")
    table.add_column("Status", style="bold")
    table.add_column("AI", style="dim")
    table.add_column("Created", style="dim")

    for violation in violations:
        style = _SEVERITY_STYLES.get(violation.severity, "")
        ai = str(violation.ai_validation_status)
        if violation.ai_validation_score is not None:
            ai += f" ({violation.ai_validation_score:.0f})"
        table.add_row(
            str(violation.id),
            violation.employee_id,
            violation.violation_type,
            f"[{style}]{violation.severity}[/{style}]" if style else str(violation.severity),
            str(violation.status),
            ai,
            violation.created_at.isoformat(timespec="seconds"),
        )
    console.print(table)


@app.command()
def transition(
    violation_id: Annotated[int, typer.Argument(help="Violation ID")],
    status: Annotated[str, typer.Argument(help="Target status")],
    reason: Annotated[str, typer.Option("--reason", "-r", help="Why the status changes")],
    actor: Annotated[str, typer.Option("--actor", help="Who makes the change")] = "analyst",
    ai_confidence: Annotated[
        float | None,
        typer.Option("--ai-confidence", help="Mark as AI-assisted with this confidence (0-100)"),
    ] = None,
    expected_version: Annotated[
        int | None,
        typer.Option("--expected-version", help="Fail if the violation changed since this version"),
    ] = None,
) -> None:
    """Move a violation to a new status, recording an audit entry."""
    target = _parse_choice(status, ViolationStatus)
    run(_async_transition(violation_id, target, reason, actor, ai_confidence, expected_version))


async def _async_transition(
    violation_id: int,
    target: str,
    reason: str,
    actor: str,
    ai_confidence: float | None,
    expected_version: int | None,
) -> None:
    async with engine_session() as engine:
        result = await engine.transition_violation(
            violation_id,
            target,
            reason,
            actor=actor,
            ai_assisted=ai_confidence is not None,
            ai_confidence=ai_confidence,
            expected_version=expected_version,
        )
    entry = result.history
    typer.echo(
        f"Violation {violation_id}: {entry.previous_status} -> {entry.new_status} "
        f"(version {result.violation.version})"
    )


@app.command()
def history(
    violation_id: Annotated[int, typer.Argument(help="Violation ID")],
) -> None:
    """Show the status change history of a violation, oldest first."""
    run(_async_history(violation_id))


async def _async_history(violation_id: int) -> None:
    from rich.console import Console
    from rich.table import Table

    async with engine_session() as engine:
        entries = await engine.violation_history(violation_id)

    console = Console()
    if not entries:
        console.print(f"[dim]No status changes recorded for violation {violation_id}.[/dim]")
        return

    table = Table(title=f"Violation {violation_id} History")
    table.add_column("When", style="dim", no_wrap=True)
    table.add_column("From")
    table.add_column("To", style="bold")
    table.add_column("By", style="yellow")
    table.add_column("AI", justify="right")
    table.add_column("Reason")

    for entry in entries:
        ai = f"{entry.ai_confidence:.0f}" if entry.ai_confidence is not None else "-"
        table.add_row(
            entry.created_at.isoformat(timespec="seconds"),
            str(entry.previous_status),
            str(entry.new_status),
            entry.changed_by,
            ai,
            entry.reason,
        )
    console.print(table)


@app.command()
def validate(
    violation_id: Annotated[int, typer.Argument(help="Violation ID")],
) -> None:
    """Ask the language model to score the violation's evidence (advisory only)."""
    run(_async_validate(violation_id))


async def _async_validate(violation_id: int) -> None:
    async with engine_session() as engine:
        result = await engine.request_ai_validation(violation_id)

    if result is None:
        typer.echo(f"AI validation unavailable for violation {violation_id}; marked for manual review.")
        return
    typer.echo(f"Confidence: {result.confidence_score:.0f}")
    typer.echo(f"Recommended status: {result.recommended_status}")
    typer.echo(f"Reasoning: {result.reasoning}")
    for item in result.additional_evidence_needed:
        typer.echo(f"  - needs: {item}")
