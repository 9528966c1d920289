# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Typer CLI application root."""

from __future__ import annotations

from typing import Annotated

import typer

from riskwatch.cli.commands import analyze, categories, db, employees, ingest, violations
from riskwatch.cli.commands.anomalies import anomalies_command

app = typer.Typer(
    name="riskwatch",
    help="Insider-threat risk detection and scoring engine",
    no_args_is_help=True,
)

app.add_typer(db.app, name="db", help="Database management")
app.add_typer(categories.app, name="categories", help="Manage threat categories")
app.add_typer(ingest.app, name="ingest", help="Import connector exports (JSON Lines)")
app.add_typer(analyze.app, name="analyze", help="Run risk analysis")
app.add_typer(violations.app, name="violations", help="Manage violations")
app.add_typer(employees.app, name="employees", help="Employee risk profiles")

app.command(name="anomalies")(anomalies_command)


@app.callback()
def main(
    log_level: Annotated[
        str | None, typer.Option("--log-level", help="Override RISKWATCH_LOG_LEVEL")
    ] = None,
) -> None:
    """Configure logging from settings before any command runs."""
    from riskwatch.core.config import get_settings
    from riskwatch.core.logging import setup_logging

    settings = get_settings()
    setup_logging(log_level or settings.log_level, settings.log_format)


@app.command()
def version() -> None:
    """Show version information."""
    from riskwatch import __version__

    typer.echo(f"riskwatch v{__version__}")
