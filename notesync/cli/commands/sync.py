"""
Sync Commands.

Run a note sync pass against the remote store as a given user.
"""

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from notesync.cli.runtime import open_container
from notesync.core.exceptions import ApplicationError
from notesync.services.sync import SyncReport

app = typer.Typer(help="Note synchronization")
console = Console()


def _print_report(report: SyncReport) -> None:
    table = Table(title="Note Sync", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Uploaded", str(report.uploaded))
    table.add_row("Downloaded", str(report.downloaded))
    table.add_row("Deleted locally", str(report.deleted))
    table.add_row("Unchanged", str(report.unchanged))
    table.add_row("Failed", str(len(report.failures)))
    console.print(table)


@app.command()
def run(
    user_id: str = typer.Option(..., "--user-id", "-u", help="Signed-in user id"),
    token: str = typer.Option(..., "--token", "-t", envvar="NOTESYNC_ACCESS_TOKEN", help="Access token"),
    reconcile: bool = typer.Option(True, "--reconcile/--no-reconcile", help="Dedup and repair categories first"),
) -> None:
    """
    Run one explicit note sync pass. Failures are reported, not swallowed.
    """

    async def _run() -> SyncReport:
        async with open_container(user_id, token) as container:
            if reconcile:
                await container.sync.deduplicate_categories()
                await container.sync.repair_missing_identifiers()
            return await container.sync.sync_notes(explicit=True)

    try:
        report = asyncio.run(_run())
    except ApplicationError as e:
        console.print(f"[red]Sync failed ({e.code}): {e.message}[/red]")
        raise typer.Exit(1)

    _print_report(report)
