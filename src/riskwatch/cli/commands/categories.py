# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Threat category management commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from riskwatch.cli.session import engine_session, run

app = typer.Typer()


@app.command(name="import")
def import_categories(
    file: Annotated[Path, typer.Argument(help="YAML file holding a list of categories")],
) -> None:
    """Validate every category in FILE, then store them all."""
    if not file.exists():
        typer.echo(f"File not found: {file}", err=True)
        raise typer.Exit(1)
    run(_async_import(file))


async def _async_import(file: Path) -> None:
    from riskwatch.categories.loader import load_categories_file
    from riskwatch.core.exceptions import ConfigurationError

    categories = load_categories_file(file)
    async with engine_session() as engine:
        taken = [c.name for c in categories if await engine.categories.get_by_name(c.name)]
        if taken:
            raise ConfigurationError(f"Categories already exist: {', '.join(taken)}")
        for category in categories:
            await engine.categories.create(category)
    typer.echo(f"Imported {len(categories)} categories from {file}")


@app.command()
def seed() -> None:
    """Store the bundled predefined categories, skipping names already present."""
    run(_async_seed())


async def _async_seed() -> None:
    from riskwatch.categories.loader import load_predefined_categories

    added = 0
    async with engine_session() as engine:
        for category in load_predefined_categories():
            if await engine.categories.get_by_name(category.name) is not None:
                typer.echo(f"  skipped {category.name} (exists)")
                continue
            await engine.categories.create(category)
            added += 1
    typer.echo(f"Seeded {added} predefined categories.")


@app.command(name="list")
def list_categories(
    include_inactive: Annotated[
        bool, typer.Option("--all", "-a", help="Include inactive categories")
    ] = False,
) -> None:
    """List stored categories."""
    run(_async_list(include_inactive))


async def _async_list(include_inactive: bool) -> None:
    from rich.console import Console
    from rich.table import Table

    async with engine_session() as engine:
        categories = await engine.categories.list_all(active_only=not include_inactive)

    console = Console()
    if not categories:
        console.print("[dim]No categories found.[/dim]")
        return

    table = Table(title="Threat Categories")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Name", style="cyan")
    table.add_column("Type")
    table.add_column("Severity", style="bold")
    table.add_column("Base", justify="right")
    table.add_column("Thresholds", justify="right")
    table.add_column("Keywords", justify="right")
    table.add_column("Active")

    for category in categories:
        table.add_row(
            str(category.id),
            category.name,
            str(category.type),
            str(category.severity),
            f"{category.base_risk_score:g}",
            f"{category.alert_threshold:g}/{category.investigation_threshold:g}"
            f"/{category.critical_threshold:g}",
            str(len(category.keywords)),
            "yes" if category.is_active else "no",
        )

    console.print(table)


@app.command()
def enable(category_id: Annotated[int, typer.Argument(help="Category ID")]) -> None:
    """Mark a category active."""
    run(_async_set_active(category_id, True))


@app.command()
def disable(category_id: Annotated[int, typer.Argument(help="Category ID")]) -> None:
    """Mark a category inactive; later analysis passes skip it."""
    run(_async_set_active(category_id, False))


async def _async_set_active(category_id: int, active: bool) -> None:
    async with engine_session() as engine:
        await engine.categories.set_active(category_id, active)
    typer.echo(f"Category {category_id} {'enabled' if active else 'disabled'}.")
