"""
Category Commands.

Inspect and reconcile categories in the local store.
"""

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from notesync.cli.runtime import open_container
from notesync.core.exceptions import ApplicationError

app = typer.Typer(help="Local category maintenance")
console = Console()


@app.command("list")
def list_categories() -> None:
    """
    Show local categories in display order.
    """

    async def _list() -> list[tuple[str, ...]]:
        async with open_container() as container:
            return [
                (
                    str(category.pk),
                    category.id or "-",
                    category.name,
                    category.color,
                    category.symbol,
                    str(category.index),
                    "yes" if category.is_builtin else "",
                )
                for category in await container.local.fetch_categories()
            ]

    try:
        rows = asyncio.run(_list())
    except ApplicationError as e:
        console.print(f"[red]{e.code}: {e.message}[/red]")
        raise typer.Exit(1)

    table = Table(title="Categories", show_header=True)
    for column in ("pk", "Identifier", "Name", "Color", "Symbol", "Index", "Built-in"):
        table.add_column(column)
    for row in rows:
        table.add_row(*row)
    console.print(table)


@app.command()
def seed() -> None:
    """
    Create the built-in categories if the store is empty.
    """

    async def _seed() -> int:
        async with open_container() as container:
            return await container.sync.ensure_default_categories()

    try:
        added = asyncio.run(_seed())
    except ApplicationError as e:
        console.print(f"[red]{e.code}: {e.message}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Added {added} categories[/green]" if added else "Store already has categories")


@app.command()
def dedupe(
    repair: bool = typer.Option(True, "--repair/--no-repair", help="Also assign missing identifiers"),
) -> None:
    """
    Merge duplicated built-in categories onto their deterministic identifiers.

    Safe to run repeatedly; a second run changes nothing.
    """

    async def _dedupe() -> tuple:
        async with open_container() as container:
            report = await container.sync.deduplicate_categories()
            repaired = await container.sync.repair_missing_identifiers() if repair else 0
            return report, repaired

    try:
        report, repaired = asyncio.run(_dedupe())
    except ApplicationError as e:
        console.print(f"[red]{e.code}: {e.message}[/red]")
        raise typer.Exit(1)

    table = Table(title="Deduplication", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Count", justify="right")
    table.add_row("Groups merged", str(report.groups_merged))
    table.add_row("Duplicates removed", str(report.duplicates_removed))
    table.add_row("Notes repointed", str(report.notes_repointed))
    table.add_row("Identifiers assigned", str(report.identifiers_assigned))
    table.add_row("Identifiers repaired", str(repaired))
    console.print(table)
