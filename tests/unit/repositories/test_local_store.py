"""Unit tests for notesync.repositories.local against an in-memory SQLite store."""

from datetime import datetime

import pytest
from sqlalchemy import func, select

from notesync.codec import RichDocument
from notesync.core.exceptions import ConflictError, ValidationError
from notesync.core.identifiers import identifier_for
from notesync.models import Note, NoteImage


class TestAddCategory:
    @pytest.mark.asyncio
    async def test_user_category_gets_random_identifier(self, local_store):
        category = await local_store.add_category("Trips", "teal", "paperplane")
        await local_store.save()

        assert category.id
        assert category.id != identifier_for("Trips", "teal", "paperplane")
        assert not category.is_builtin

    @pytest.mark.asyncio
    async def test_default_category_gets_deterministic_identifier(self, local_store):
        category = await local_store.add_category("Book", "green", "book", is_default=True)
        assert category.id == identifier_for("Book", "green", "book")
        assert category.is_builtin

    @pytest.mark.asyncio
    async def test_indexes_append(self, local_store):
        first = await local_store.add_category("A", "red", "tag")
        second = await local_store.add_category("B", "red", "tag")
        assert (first.index, second.index) == (0, 1)

    @pytest.mark.asyncio
    async def test_palette_is_enforced(self, local_store):
        with pytest.raises(ValidationError) as exc_info:
            await local_store.add_category("X", "chartreuse", "rocket")
        assert set(exc_info.value.details) == {"color", "symbol"}

    @pytest.mark.asyncio
    async def test_duplicate_identifier_conflicts(self, local_store):
        await local_store.add_category("A", "red", "tag", identifier="11111111-1111-1111-1111-111111111111")
        with pytest.raises(ConflictError):
            await local_store.add_category(
                "B", "red", "tag", identifier="11111111-1111-1111-1111-111111111111"
            )

    @pytest.mark.asyncio
    async def test_fetch_orders_by_index_then_insertion(self, local_store):
        await local_store.add_category("Second", "red", "tag", index=1)
        await local_store.add_category("First", "red", "tag", index=0)
        await local_store.add_category("Third", "red", "tag", index=1)
        await local_store.save()

        names = [c.name for c in await local_store.fetch_categories()]
        assert names == ["First", "Second", "Third"]


class TestBuiltinProtection:
    @pytest.mark.asyncio
    async def test_builtin_identity_cannot_change(self, local_store):
        category = await local_store.add_category("Book", "green", "book", is_default=True)
        with pytest.raises(ValidationError):
            await local_store.edit_category(category, name="Novels")
        assert category.name == "Book"

    @pytest.mark.asyncio
    async def test_builtin_can_be_reordered(self, local_store):
        category = await local_store.add_category("Book", "green", "book", is_default=True)
        await local_store.edit_category(category, index=7)
        assert category.index == 7

    @pytest.mark.asyncio
    async def test_user_category_can_be_restyled(self, local_store):
        category = await local_store.add_category("Trips", "teal", "paperplane")
        await local_store.edit_category(category, color="indigo", symbol="star")
        assert (category.color, category.symbol) == ("indigo", "star")

    @pytest.mark.asyncio
    async def test_restyle_checks_palette(self, local_store):
        category = await local_store.add_category("Trips", "teal", "paperplane")
        with pytest.raises(ValidationError):
            await local_store.edit_category(category, color="chartreuse")

    @pytest.mark.asyncio
    async def test_builtin_delete_needs_force(self, local_store):
        category = await local_store.add_category("Book", "green", "book", is_default=True)
        with pytest.raises(ValidationError):
            await local_store.delete_category(category)

        await local_store.delete_category(category, force=True)
        await local_store.save()
        assert await local_store.fetch_categories() == []

    @pytest.mark.asyncio
    async def test_deleting_category_leaves_notes(self, local_store, make_note):
        category = await local_store.add_category("Trips", "teal", "paperplane")
        note = await make_note("Lisbon", category_id=category.id)

        await local_store.delete_category(category)
        await local_store.save()

        kept = await local_store.get_note(note.id)
        assert kept is not None
        assert kept.category_id == category.id


class TestCategoryForNote:
    @pytest.mark.asyncio
    async def test_returns_referenced_category(self, local_store, make_note):
        await local_store.add_category("Book", "green", "book", is_default=True)
        trips = await local_store.add_category("Trips", "teal", "paperplane")
        note = await make_note(category_id=trips.id)
        assert (await local_store.category_for_note(note)).id == trips.id

    @pytest.mark.asyncio
    async def test_orphan_falls_back_to_default(self, local_store, make_note):
        book = await local_store.add_category("Book", "green", "book", is_default=True)
        note = await make_note(category_id="00000000-0000-0000-0000-000000000000")
        assert (await local_store.category_for_note(note)).id == book.id

    @pytest.mark.asyncio
    async def test_no_default_means_none(self, local_store, make_note):
        note = await make_note()
        assert await local_store.category_for_note(note) is None


class TestNotes:
    @pytest.mark.asyncio
    async def test_fetch_filters(self, local_store, make_note):
        first = await make_note("one", category_id="c1")
        second = await make_note("two", category_id="c2")

        assert [n.id for n in await local_store.fetch_notes(category_id="c1")] == [first.id]
        assert {n.id for n in await local_store.fetch_notes(ids=[first.id, second.id])} == {
            first.id,
            second.id,
        }
        assert await local_store.fetch_notes(ids=[]) == []
        assert len(await local_store.fetch_notes()) == 2

    @pytest.mark.asyncio
    async def test_document_round_trip(self, local_store, make_note):
        note = await make_note("Remember the milk")
        stored = await local_store.get_note(note.id)
        assert stored.plain_text == "Remember the milk"

    @pytest.mark.asyncio
    async def test_delete_removes_images(self, local_store, db_session):
        note = Note(images=[NoteImage(position=0, data=b"\xff\xd8jpeg")])
        note.set_document(RichDocument.from_plain_text("with photo"))
        await local_store.upsert_note(note)
        await local_store.save()

        assert await local_store.delete_note(note.id) is True
        await local_store.save()

        remaining = await db_session.execute(select(func.count()).select_from(NoteImage))
        assert remaining.scalar_one() == 0
        assert await local_store.get_note(note.id) is None

    @pytest.mark.asyncio
    async def test_delete_missing_note(self, local_store):
        assert await local_store.delete_note("nope") is False

    @pytest.mark.asyncio
    async def test_reassign_notes(self, local_store, make_note):
        await make_note("a", category_id="old")
        await make_note("b", category_id="old")
        await make_note("c", category_id="other")

        assert await local_store.reassign_notes("old", "new") == 2
        assert await local_store.reassign_notes("same", "same") == 0
        assert len(await local_store.fetch_notes(category_id="new")) == 2
        assert await local_store.fetch_notes(category_id="old") == []


T0 = datetime(2024, 1, 1, 12, 0, 0)
T1 = datetime(2024, 6, 1, 12, 0, 0)


class TestModificationClock:
    @pytest.mark.asyncio
    async def test_edit_advances_clock(self, local_store, make_note):
        note = await make_note("first draft", last_modified=T0)

        note.set_document(RichDocument.from_plain_text("second draft"))
        await local_store.upsert_note(note)
        await local_store.save()

        stored = await local_store.get_note(note.id)
        assert stored.last_modified > T0

    @pytest.mark.asyncio
    async def test_explicit_clock_is_kept(self, local_store, make_note):
        note = await make_note("first draft", last_modified=T0)

        note.set_document(RichDocument.from_plain_text("second draft"))
        note.last_modified = T1
        await local_store.upsert_note(note)
        await local_store.save()

        assert (await local_store.get_note(note.id)).last_modified == T1

    @pytest.mark.asyncio
    async def test_untouched_upsert_keeps_clock(self, local_store, make_note):
        note = await make_note("from another device", last_modified=T0)

        note.set_document(RichDocument.from_plain_text("downloaded text"))
        await local_store.upsert_note(note, touch=False)
        await local_store.save()

        assert (await local_store.get_note(note.id)).last_modified == T0

    @pytest.mark.asyncio
    async def test_new_note_gets_clock(self, local_store):
        note = Note()
        note.set_document(RichDocument.from_plain_text("fresh"))

        await local_store.upsert_note(note)

        assert note.last_modified is not None


class TestPendingDeletes:
    @pytest.mark.asyncio
    async def test_delete_queues_tombstone(self, local_store, make_note):
        note = await make_note("gone soon")

        await local_store.delete_note(note.id)
        await local_store.save()

        assert await local_store.fetch_pending_deletes() == [note.id]

    @pytest.mark.asyncio
    async def test_unrecorded_delete_is_not_queued(self, local_store, make_note):
        note = await make_note("deleted elsewhere")

        await local_store.delete_note(note.id, record=False)
        await local_store.save()

        assert await local_store.fetch_pending_deletes() == []

    @pytest.mark.asyncio
    async def test_missing_note_is_not_queued(self, local_store):
        await local_store.delete_note("nope")
        assert await local_store.fetch_pending_deletes() == []

    @pytest.mark.asyncio
    async def test_clear(self, local_store, make_note):
        note = await make_note("gone soon")
        await local_store.delete_note(note.id)
        await local_store.save()

        await local_store.clear_pending_delete(note.id)
        await local_store.clear_pending_delete("never-queued")
        await local_store.save()

        assert await local_store.fetch_pending_deletes() == []
