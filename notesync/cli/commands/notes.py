"""
Note Commands.

Publish local notes to the public mirror and browse it.
"""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from notesync.cli.runtime import open_container
from notesync.core.exceptions import ApplicationError, NotFoundError
from notesync.schemas.remote import PublicNoteRow

app = typer.Typer(help="Public notes")
console = Console()


@app.command()
def publish(
    note_id: str = typer.Argument(..., help="Local note id"),
    user_id: str = typer.Option(..., "--user-id", "-u", help="Signed-in user id"),
    token: str = typer.Option(..., "--token", "-t", envvar="NOTESYNC_ACCESS_TOKEN", help="Access token"),
) -> None:
    """
    Create or replace the public copy of a local note and mark it public.
    """

    async def _publish() -> None:
        async with open_container(user_id, token) as container:
            note = await container.local.get_note(note_id)
            if note is None:
                raise NotFoundError(f"Note {note_id} not found locally")
            await container.public_notes.upsert_public(note, user_id)
            if not note.is_public:
                note.is_public = True
                await container.local.upsert_note(note)
                await container.local.save()

    try:
        asyncio.run(_publish())
    except ApplicationError as e:
        console.print(f"[red]Publish failed ({e.code}): {e.message}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Published {note_id}[/green]")


@app.command()
def unpublish(
    note_id: str = typer.Argument(..., help="Note id"),
    user_id: str = typer.Option(..., "--user-id", "-u", help="Signed-in user id"),
    token: str = typer.Option(..., "--token", "-t", envvar="NOTESYNC_ACCESS_TOKEN", help="Access token"),
) -> None:
    """
    Remove the public copy of a note. Succeeds when there is none.

    The local note, if any, is marked private.
    """

    async def _unpublish() -> None:
        async with open_container(user_id, token) as container:
            await container.public_notes.delete_public(note_id)
            note = await container.local.get_note(note_id)
            if note is not None and note.is_public:
                note.is_public = False
                await container.local.upsert_note(note)
                await container.local.save()

    try:
        asyncio.run(_unpublish())
    except ApplicationError as e:
        console.print(f"[red]Unpublish failed ({e.code}): {e.message}[/red]")
        raise typer.Exit(1)
    console.print(f"Unpublished {note_id}")


@app.command()
def feed(
    owner_id: Optional[str] = typer.Option(None, "--owner", help="Only notes of this user"),
) -> None:
    """
    List public notes, newest first.
    """

    async def _feed() -> list[PublicNoteRow]:
        async with open_container() as container:
            return await container.public_notes.fetch_all(owner_id=owner_id)

    try:
        rows = asyncio.run(_feed())
    except ApplicationError as e:
        console.print(f"[red]Feed failed ({e.code}): {e.message}[/red]")
        raise typer.Exit(1)

    table = Table(title="Public Notes", show_header=True)
    table.add_column("Id", style="dim")
    table.add_column("Author", style="cyan")
    table.add_column("Date")
    table.add_column("Category")
    table.add_column("Content")
    for row in rows:
        preview = row.content if len(row.content) <= 60 else row.content[:57] + "..."
        table.add_row(
            row.id,
            row.author_name or "anonymous",
            row.date.isoformat() if row.date else "",
            row.symbol,
            preview,
        )
    console.print(table)
