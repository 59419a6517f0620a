"""
notesync CLI.

Operator commands for the sync core.
Built with Typer for type-safe commands and Rich for formatted output.

Usage:
    notesync --help
    notesync identity show Book green book
    notesync identity defaults
    notesync categories list
    notesync categories dedupe
    notesync sync run --user-id USER --token TOKEN
    notesync notes publish NOTE_ID --user-id USER --token TOKEN

Options:
    --verbose, -v     Enable verbose output
    --debug           Enable debug mode (detailed logging)
    --help            Show help message
"""

import typer
from rich.console import Console

from notesync.cli.commands import categories_app, identity_app, notes_app, sync_app
from notesync.core.config import find_project_root

app = typer.Typer(
    name="notesync",
    help="Note sync core - identifiers, category reconciliation, note sync.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()

app.add_typer(identity_app, name="identity")
app.add_typer(categories_app, name="categories")
app.add_typer(sync_app, name="sync")
app.add_typer(notes_app, name="notes")


@app.callback()
def main(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output (INFO level logging)",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        "-d",
        help="Enable debug mode (DEBUG level logging)",
    ),
) -> None:
    """
    notesync CLI.

    Must run inside a project directory (one containing .project_root).
    """
    try:
        find_project_root()
    except RuntimeError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if debug:
        from notesync.core.logging import setup_logging
        setup_logging(level="DEBUG", format_type="console")
        console.print("[dim]Debug mode enabled[/dim]")
    elif verbose:
        from notesync.core.logging import setup_logging
        setup_logging(level="INFO", format_type="console")


if __name__ == "__main__":
    app()
