"""Unit tests for the notesync Typer CLI."""

import asyncio
from contextlib import asynccontextmanager
from unittest.mock import patch

import pytest
from rich.console import Console
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from typer.testing import CliRunner

from notesync.cli.main import app
from notesync.codec import RichDocument
from notesync.container import build_container
from notesync.core.database import init_models
from notesync.core.exceptions import TransientError
from notesync.core.identifiers import identifier_for
from notesync.core.session import UserSession
from notesync.models import Note
from notesync.remote.memory import InMemoryRemoteStore
from notesync.repositories.local import SqlLocalStore

runner = CliRunner()


class LocalFile:
    """A SQLite local store file that survives across CLI invocations."""

    def __init__(self, path, remote: InMemoryRemoteStore) -> None:
        self.url = f"sqlite+aiosqlite:///{path}"
        self.remote = remote

    @asynccontextmanager
    async def open_container(self, user_id=None, token=None, remote=None):
        engine = create_async_engine(self.url)
        await init_models(engine)
        factory = async_sessionmaker(engine, expire_on_commit=False)
        try:
            async with factory() as db:
                yield build_container(
                    SqlLocalStore(db),
                    session=UserSession(user_id, token),
                    remote=remote or self.remote,
                )
                await db.commit()
        finally:
            await engine.dispose()

    def run(self, work):
        async def _run():
            async with self.open_container() as container:
                return await work(container.local)

        return asyncio.run(_run())


@pytest.fixture
def remote() -> InMemoryRemoteStore:
    return InMemoryRemoteStore()


@pytest.fixture
def local_file(tmp_path, remote) -> LocalFile:
    return LocalFile(tmp_path / "notes.db", remote)


@pytest.fixture
def wide_console():
    return Console(width=200)


def invoke(local_file, module, *args, console=None):
    targets = [patch(f"notesync.cli.commands.{module}.open_container", local_file.open_container)]
    if console is not None:
        targets.append(patch(f"notesync.cli.commands.{module}.console", console))
    for target in targets:
        target.start()
    try:
        return runner.invoke(app, list(args))
    finally:
        for target in targets:
            target.stop()


class TestIdentityCommands:
    def test_show_builtin(self):
        result = runner.invoke(app, ["identity", "show", "Book", "green", "book"])

        assert result.exit_code == 0
        assert identifier_for("Book", "green", "book") in result.output
        assert "book|green|book" in result.output
        assert "built-in category" in result.output

    def test_show_custom(self):
        result = runner.invoke(app, ["identity", "show", "Trips", "teal", "paperplane"])

        assert result.exit_code == 0
        assert identifier_for("Trips", "teal", "paperplane") in result.output
        assert "built-in" not in result.output

    def test_defaults_table(self, wide_console):
        with patch("notesync.cli.commands.identity.console", wide_console):
            result = runner.invoke(app, ["identity", "defaults"])

        assert result.exit_code == 0
        assert "Cooking" in result.output
        assert identifier_for("List", "gray", "list.bullet") in result.output

    def test_requires_project_root(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(app, ["identity", "defaults"])
        assert result.exit_code == 1


class TestCategoryCommands:
    def test_seed_then_list(self, local_file, wide_console):
        result = invoke(local_file, "categories", "categories", "seed")
        assert result.exit_code == 0
        assert "Added 6 categories" in result.output

        result = invoke(local_file, "categories", "categories", "seed")
        assert "already has categories" in result.output

        result = invoke(local_file, "categories", "categories", "list", console=wide_console)
        assert result.exit_code == 0
        assert identifier_for("Movie", "pink", "movieclapper") in result.output

    def test_dedupe_merges_and_is_repeatable(self, local_file, wide_console):
        async def fork_builtins(local):
            await local.add_category("Book", "green", "book", is_default=True)
            await local.add_category("Book", "green", "book")
            await local.save()

        local_file.run(fork_builtins)

        result = invoke(local_file, "categories", "categories", "dedupe", console=wide_console)
        assert result.exit_code == 0
        assert "Duplicates removed" in result.output

        async def fetch(local):
            return [(c.id, c.is_default) for c in await local.fetch_categories()]

        assert local_file.run(fetch) == [(identifier_for("Book", "green", "book"), True)]

        result = invoke(local_file, "categories", "categories", "dedupe", "--no-repair", console=wide_console)
        assert result.exit_code == 0
        assert local_file.run(fetch) == [(identifier_for("Book", "green", "book"), True)]


class TestSyncCommands:
    def test_run_uploads_local_notes(self, local_file, remote, wide_console):
        async def write_note(local):
            note = Note()
            note.set_document(RichDocument.from_plain_text("from the CLI"))
            await local.upsert_note(note)
            await local.save()

        local_file.run(write_note)

        result = invoke(
            local_file, "sync", "sync", "run", "-u", "user-1", "-t", "token-1", console=wide_console
        )

        assert result.exit_code == 0
        assert "Uploaded" in result.output
        assert [row["content"] for row in remote.rows("synced_notes")] == ["from the CLI"]

    def test_run_reports_failure(self, local_file, remote):
        remote.inject_failure("select", TransientError("offline"))

        result = invoke(local_file, "sync", "sync", "run", "-u", "user-1", "-t", "token-1")

        assert result.exit_code == 1
        assert "SYS_TRANSIENT" in result.output

    def test_run_requires_user(self, local_file):
        result = invoke(local_file, "sync", "sync", "run")
        assert result.exit_code != 0


class TestNoteCommands:
    def test_publish_and_unpublish(self, local_file, remote, wide_console):
        async def write_note(local):
            note = Note()
            note.set_document(RichDocument.from_plain_text("hello world"))
            await local.upsert_note(note)
            await local.save()
            return note.id

        note_id = local_file.run(write_note)

        result = invoke(local_file, "notes", "notes", "publish", note_id, "-u", "user-1", "-t", "tok")
        assert result.exit_code == 0
        assert [row["id"] for row in remote.rows("public_notes")] == [note_id]

        result = invoke(local_file, "notes", "notes", "feed", console=wide_console)
        assert result.exit_code == 0
        assert "hello world" in result.output

        result = invoke(local_file, "notes", "notes", "unpublish", note_id, "-u", "user-1", "-t", "tok")
        assert result.exit_code == 0
        assert remote.rows("public_notes") == []

    def test_publish_missing_note(self, local_file):
        result = invoke(local_file, "notes", "notes", "publish", "nope", "-u", "user-1", "-t", "tok")
        assert result.exit_code == 1
        assert "RES_NOT_FOUND" in result.output

    def test_publish_flag_follows_public_copy(self, local_file, remote):
        async def write_note(local):
            note = Note()
            note.set_document(RichDocument.from_plain_text("private for now"))
            await local.upsert_note(note)
            await local.save()
            return note.id

        note_id = local_file.run(write_note)

        async def is_public(local):
            return (await local.get_note(note_id)).is_public

        invoke(local_file, "notes", "notes", "publish", note_id, "-u", "user-1", "-t", "tok")
        assert local_file.run(is_public) is True

        invoke(local_file, "notes", "notes", "unpublish", note_id, "-u", "user-1", "-t", "tok")
        assert local_file.run(is_public) is False
        assert remote.rows("public_notes") == []
