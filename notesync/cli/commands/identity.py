"""
Identity Commands.

Compute deterministic category identifiers without touching any store.
"""

import typer
from rich.console import Console
from rich.table import Table

from notesync.core.identifiers import canonical_key, identifier_for, is_default_identifier
from notesync.core.palette import DEFAULT_CATEGORIES

app = typer.Typer(help="Deterministic category identifiers")
console = Console()


@app.command()
def show(
    name: str = typer.Argument(..., help="Category name"),
    color: str = typer.Argument(..., help="Color token"),
    symbol: str = typer.Argument(..., help="Symbol token"),
) -> None:
    """
    Print the identifier of a category triple.
    """
    identifier = identifier_for(name, color, symbol)
    console.print(f"[bold]{identifier}[/bold]")
    console.print(f"[dim]key: {canonical_key(name, color, symbol)}[/dim]")
    if is_default_identifier(identifier):
        console.print("[green]built-in category[/green]")


@app.command()
def defaults() -> None:
    """
    List the built-in categories with their identifiers.
    """
    table = Table(title="Built-in Categories", show_header=True)
    table.add_column("#", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Color")
    table.add_column("Symbol")
    table.add_column("Identifier")

    for entry in DEFAULT_CATEGORIES:
        table.add_row(
            str(entry.index),
            entry.name,
            entry.color,
            entry.symbol,
            identifier_for(entry.name, entry.color, entry.symbol),
        )

    console.print(table)
