# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""CLI commands for loading connector exports (JSON Lines) into the store."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Any

import typer
from pydantic import BaseModel, ValidationError

from riskwatch.cli.session import engine_session, run

app = typer.Typer()


def _read_jsonl(file: Path, model: type[BaseModel]) -> list[Any]:
    """Parse and validate every line of *file*; any bad line aborts the import."""
    if not file.exists():
        typer.echo(f"File not found: {file}", err=True)
        raise typer.Exit(1)

    records: list[Any] = []
    with file.open(encoding="utf-8") as fh:
        for lineno, line in enumerate(fh, start=1):
            if not line.strip():
                continue
            try:
                records.append(model.model_validate(json.loads(line)))
            except (json.JSONDecodeError, ValidationError) as exc:
                typer.echo(f"{file.name}:{lineno}: {exc}", err=True)
                raise typer.Exit(1) from exc
    return records


@app.command()
def communications(
    file: Annotated[Path, typer.Argument(help="JSON Lines file, one communication per line")],
) -> None:
    """Import communications; ids already stored are skipped."""
    from riskwatch.models.communication import Communication

    records = _read_jsonl(file, Communication)
    run(_async_ingest_communications(records))


async def _async_ingest_communications(records: list[Any]) -> None:
    async with engine_session() as engine:
        inserted = await engine.communications.create_many(records)
    typer.echo("Import complete:")
    typer.echo(f"  Communications added:   {inserted}")
    typer.echo(f"  Communications skipped: {len(records) - inserted}")


@app.command()
def employees(
    file: Annotated[Path, typer.Argument(help="JSON Lines file, one employee per line")],
) -> None:
    """Import or update employee directory records."""
    from riskwatch.models.employee import Employee

    records = _read_jsonl(file, Employee)
    run(_async_ingest_employees(records))


async def _async_ingest_employees(records: list[Any]) -> None:
    async with engine_session() as engine:
        count = await engine.employees.upsert_many(records)
    typer.echo(f"Imported {count} employees.")
