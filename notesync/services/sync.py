"""
Sync Manager.

Keeps the local store consistent with itself and with the remote store:

    deduplicate_categories      merge built-in categories forked across
                                installs onto their deterministic identifier
    repair_missing_identifiers  give every category an identifier
    ensure_default_categories   seed the built-ins into an empty store
    sync_notes                  bidirectional last-writer-wins note sync

Every step is idempotent and saves as it goes, so an interrupted pass is
simply run again. Background passes (startup, sign-in) log and swallow
remote failures; explicit passes raise them. Local store failures always
propagate.
"""

import asyncio
from collections.abc import Collection
from dataclasses import dataclass, field
from datetime import datetime

from notesync.core.exceptions import (
    ApplicationError,
    DatabaseError,
    SyncAbortedError,
    TransientError,
)
from notesync.core.identifiers import default_entry_for, identifier_for
from notesync.core.logging import get_logger, log_with_source, sync_context
from notesync.core.palette import DEFAULT_CATEGORIES, DefaultCategory
from notesync.core.resilience import transient_retry
from notesync.core.session import SessionProvider
from notesync.core.utils import as_naive_utc, new_identifier
from notesync.models.category import Category
from notesync.models.note import Note
from notesync.repositories.local import LocalStore
from notesync.repositories.synced_note import SyncedNoteRepository
from notesync.schemas.remote import SyncedNoteRow
from notesync.services.base import BaseService

logger = get_logger(__name__)


@dataclass
class DedupReport:
    """Outcome of a category deduplication pass."""

    groups_merged: int = 0
    duplicates_removed: int = 0
    notes_repointed: int = 0
    identifiers_assigned: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.duplicates_removed or self.notes_repointed or self.identifiers_assigned)


@dataclass
class SyncReport:
    """Outcome of a note sync pass."""

    uploaded: int = 0
    downloaded: int = 0
    deleted: int = 0
    tombstones: int = 0
    unchanged: int = 0
    skipped: bool = False
    aborted: bool = False
    failures: dict[str, str] = field(default_factory=dict)
    error: str | None = None
    errors: list[ApplicationError] = field(default_factory=list, repr=False)

    @property
    def ok(self) -> bool:
        return not (self.aborted or self.failures or self.error)


@dataclass
class _Plan:
    uploads: list[Note] = field(default_factory=list)
    downloads: list[SyncedNoteRow] = field(default_factory=list)
    deletions: list[str] = field(default_factory=list)
    unchanged: int = 0


def _age_key(category: Category) -> tuple[bool, datetime, int]:
    """Earliest-created first; missing timestamps last, insertion order breaks ties."""
    created = category.created_at
    return (created is None, created or datetime.min, category.pk)


class SyncManager(BaseService):
    """
    Category reconciliation and note sync.

    Usage:
        manager = SyncManager(local, synced_notes, session)
        await manager.on_startup()
        session.add_listener(manager.on_auth_state_changed)
    """

    log_source = "sync"

    def __init__(
        self,
        local: LocalStore,
        synced_notes: SyncedNoteRepository,
        session: SessionProvider,
        *,
        notes_enabled: bool = True,
        max_concurrent_uploads: int = 4,
        retry_attempts: int = 3,
        retry_multiplier: float = 0.5,
        retry_max_wait: float = 8,
        pass_timeout: float | None = None,
    ) -> None:
        super().__init__()
        self.local = local
        self.synced_notes = synced_notes
        self.session = session
        self.notes_enabled = notes_enabled
        self.max_concurrent_uploads = max(1, max_concurrent_uploads)
        self.pass_timeout = pass_timeout
        self._retrying = transient_retry(
            max_attempts=retry_attempts,
            multiplier=retry_multiplier,
            max_wait=retry_max_wait,
        )

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    async def deduplicate_categories(self) -> DedupReport:
        """
        Collapse default-shaped categories onto one row per built-in.

        For every built-in, the earliest-created matching row survives and
        takes the deterministic identifier; notes pointing at any other
        member (or at the survivor's old identifier) are repointed. The
        store is saved after each group.
        """
        report = DedupReport()
        groups: dict[DefaultCategory, list[Category]] = {}
        for category in await self.local.fetch_categories():
            entry = default_entry_for(category.name, category.color, category.symbol)
            if entry is not None:
                groups.setdefault(entry, []).append(category)

        for entry in DEFAULT_CATEGORIES:
            members = groups.get(entry)
            if members:
                await self._merge_group(entry, members, report)

        if report.changed:
            log_with_source(
                logger,
                "sync",
                "info",
                "Categories deduplicated",
                groups=report.groups_merged,
                removed=report.duplicates_removed,
                repointed=report.notes_repointed,
                assigned=report.identifiers_assigned,
            )
        return report

    async def _merge_group(
        self,
        entry: DefaultCategory,
        members: list[Category],
        report: DedupReport,
    ) -> None:
        canonical = identifier_for(entry.name, entry.color, entry.symbol)
        keep, *duplicates = sorted(members, key=_age_key)
        changed = False

        for duplicate in duplicates:
            if duplicate.id:
                report.notes_repointed += await self.local.reassign_notes(duplicate.id, canonical)
            await self.local.delete_category(duplicate, force=True)
            report.duplicates_removed += 1
            changed = True

        if keep.id and keep.id != canonical:
            report.notes_repointed += await self.local.reassign_notes(keep.id, canonical)
        if keep.id != canonical or not keep.is_default:
            if keep.id != canonical:
                report.identifiers_assigned += 1
            await self.local.assign_category_identifier(keep, canonical, is_default=True)
            changed = True

        if duplicates:
            report.groups_merged += 1
        if changed:
            await self.local.save()
            self._log_debug("Category group reconciled", name=entry.name, kept=keep.pk)

    async def repair_missing_identifiers(self) -> int:
        """
        Give identifiers to categories that have none.

        Default-shaped rows get their deterministic identifier unless another
        row already holds it (deduplication resolves that case); custom rows
        get a random one.

        Returns:
            Number of categories repaired
        """
        categories = await self.local.fetch_categories()
        taken = {category.id for category in categories if category.id}
        repaired = 0
        for category in categories:
            if category.id:
                continue
            entry = default_entry_for(category.name, category.color, category.symbol)
            if entry is not None:
                identifier = identifier_for(entry.name, entry.color, entry.symbol)
                if identifier in taken:
                    self._log_debug("Leaving duplicate built-in for dedup", pk=category.pk)
                    continue
            else:
                identifier = new_identifier()
            await self.local.assign_category_identifier(category, identifier)
            taken.add(identifier)
            repaired += 1

        if repaired:
            await self.local.save()
            log_with_source(logger, "sync", "info", "Category identifiers repaired", count=repaired)
        return repaired

    async def ensure_default_categories(self) -> int:
        """Seed the built-in categories into an empty store. Returns the number added."""
        if await self.local.fetch_categories():
            return 0
        for entry in DEFAULT_CATEGORIES:
            await self.local.add_category(
                entry.name,
                entry.color,
                entry.symbol,
                index=entry.index,
                is_default=True,
            )
        await self.local.save()
        log_with_source(logger, "sync", "info", "Default categories created", count=len(DEFAULT_CATEGORIES))
        return len(DEFAULT_CATEGORIES)

    # -------------------------------------------------------------------------
    # Notes
    # -------------------------------------------------------------------------

    async def sync_notes(self, explicit: bool = False) -> SyncReport:
        """
        Reconcile local notes with the synced mirror, last writer wins.

        Skipped when signed out. A session change mid-pass aborts it and
        discards the results not yet applied.

        Raises:
            DatabaseError: Always, on local store failure
            SyncAbortedError, TransientError, AuthenticationError, ...:
                Only when explicit; background passes report them instead
        """
        user_id = self.session.current_user_id()
        if not user_id or not self.notes_enabled:
            self._log_debug("Note sync skipped", signed_in=bool(user_id))
            return SyncReport(skipped=True)

        with sync_context(user_id=user_id, explicit=explicit):
            return await self._sync_for(user_id, explicit)

    async def _sync_for(self, user_id: str, explicit: bool) -> SyncReport:
        report = SyncReport()
        try:
            if self.pass_timeout:
                await asyncio.wait_for(self._run_pass(user_id, report), self.pass_timeout)
            else:
                await self._run_pass(user_id, report)
        except DatabaseError:
            raise
        except TimeoutError as e:
            report.error = "timeout"
            if explicit:
                raise TransientError("Note sync timed out") from e
            log_with_source(logger, "sync", "warning", "Note sync timed out", user_id=user_id)
        except SyncAbortedError as e:
            report.aborted = True
            if explicit:
                raise
            log_with_source(logger, "sync", "warning", "Note sync aborted", reason=e.message)
        except ApplicationError as e:
            report.error = e.code
            if explicit:
                raise
            log_with_source(
                logger, "sync", "warning", "Note sync failed", error=e.message, code=e.code
            )

        if report.errors and explicit and not report.aborted:
            raise report.errors[0]

        log_with_source(
            logger,
            "sync",
            "info",
            "Note sync finished",
            uploaded=report.uploaded,
            downloaded=report.downloaded,
            deleted=report.deleted,
            tombstones=report.tombstones,
            unchanged=report.unchanged,
            failed=len(report.failures),
            aborted=report.aborted,
        )
        return report

    async def _run_pass(self, user_id: str, report: SyncReport) -> None:
        pending = await self._flush_pending_deletes(user_id, report)
        remote_rows = await self.synced_notes.fetch_all(user_id)
        self._ensure_same_user(user_id)
        local_notes = await self.local.fetch_notes()

        plan = self._plan(local_notes, remote_rows, pending)
        report.unchanged = plan.unchanged
        self._log_debug(
            "Note sync planned",
            uploads=len(plan.uploads),
            downloads=len(plan.downloads),
            deletions=len(plan.deletions),
        )

        await self._upload(user_id, plan.uploads, report)
        self._ensure_same_user(user_id)

        local_by_id = {note.id: note for note in local_notes}
        for row in plan.downloads:
            self._ensure_same_user(user_id)
            try:
                note = self.synced_notes.apply_to_note(row, local_by_id.get(row.id))
            except ApplicationError as e:
                report.failures[row.id] = e.code
                report.errors.append(e)
                continue
            await self.local.upsert_note(note, touch=False)
            report.downloaded += 1
        for note_id in plan.deletions:
            self._ensure_same_user(user_id)
            if await self.local.delete_note(note_id, record=False):
                report.deleted += 1

        if plan.downloads or plan.deletions:
            await self.local.save()

    @staticmethod
    def _plan(
        local_notes: list[Note],
        remote_rows: list[SyncedNoteRow],
        pending_deletes: Collection[str] = (),
    ) -> _Plan:
        """
        Classify by identifier set difference, then by last_modified.

        Notes deleted here whose tombstone is still queued are never
        downloaded again.
        """
        plan = _Plan()
        local_by_id = {note.id: note for note in local_notes}
        remote_by_id = {row.id: row for row in remote_rows}

        for note_id, note in local_by_id.items():
            row = remote_by_id.get(note_id)
            if row is None:
                plan.uploads.append(note)
                continue
            local_time = note.last_modified
            remote_time = as_naive_utc(row.last_modified) or datetime.min
            if local_time > remote_time:
                plan.uploads.append(note)
            elif remote_time > local_time:
                if row.is_deleted:
                    plan.deletions.append(note_id)
                else:
                    plan.downloads.append(row)
            else:
                plan.unchanged += 1

        for note_id, row in remote_by_id.items():
            if note_id in local_by_id or row.is_deleted or note_id in pending_deletes:
                continue
            plan.downloads.append(row)
        return plan

    async def _upload(self, user_id: str, notes: list[Note], report: SyncReport) -> None:
        if not notes:
            return
        # One AsyncSession cannot serve concurrent queries; resolve first.
        categories = {note.id: await self.local.category_for_note(note) for note in notes}
        semaphore = asyncio.Semaphore(self.max_concurrent_uploads)

        async def upload(note: Note) -> None:
            async with semaphore:
                try:
                    await self._retrying(
                        self.synced_notes.upsert, note, user_id, categories[note.id]
                    )
                except ApplicationError as e:
                    report.failures[note.id] = e.code
                    report.errors.append(e)
                    self._log_warning("Note upload failed", note_id=note.id, error=e.message)
                    return
                report.uploaded += 1

        await asyncio.gather(*(upload(note) for note in notes))

    def _ensure_same_user(self, user_id: str) -> None:
        current = self.session.current_user_id()
        if current != user_id:
            raise SyncAbortedError(f"Session changed during sync (was {user_id}, now {current})")

    async def record_local_delete(self, note_id: str, explicit: bool = False) -> bool:
        """
        Leave a tombstone for a note deleted locally.

        Returns:
            True if the tombstone was written, False when signed out or
            when a background attempt failed. Unwritten tombstones stay
            queued in the local store and go out with the next pass.
        """
        user_id = self.session.current_user_id()
        if not user_id:
            return False
        try:
            await self._retrying(self.synced_notes.mark_deleted, note_id, user_id)
        except ApplicationError as e:
            if explicit:
                raise
            self._log_warning("Tombstone not written", note_id=note_id, error=e.message)
            return False
        await self.local.clear_pending_delete(note_id)
        await self.local.save()
        return True

    async def _flush_pending_deletes(self, user_id: str, report: SyncReport) -> set[str]:
        """
        Write queued tombstones before planning.

        Returns:
            Identifiers still queued after the attempt
        """
        pending = await self.local.fetch_pending_deletes()
        remaining: set[str] = set()
        for note_id in pending:
            self._ensure_same_user(user_id)
            try:
                await self._retrying(self.synced_notes.mark_deleted, note_id, user_id)
            except ApplicationError as e:
                remaining.add(note_id)
                report.failures[note_id] = e.code
                report.errors.append(e)
                self._log_warning("Queued tombstone not written", note_id=note_id, error=e.message)
                continue
            await self.local.clear_pending_delete(note_id)
            report.tombstones += 1
        if report.tombstones:
            await self.local.save()
        return remaining

    # -------------------------------------------------------------------------
    # Trigger points
    # -------------------------------------------------------------------------

    async def reconcile(self) -> SyncReport:
        """Dedup, repair, then a background note sync."""
        await self.deduplicate_categories()
        await self.repair_missing_identifiers()
        return await self.sync_notes(explicit=False)

    async def on_startup(self) -> SyncReport:
        """Seed defaults and reconcile. Note sync only runs when signed in."""
        self._log_operation("Startup reconciliation")
        await self.ensure_default_categories()
        return await self.reconcile()

    async def on_auth_state_changed(self, previous_user_id: str | None, current_user_id: str | None) -> None:
        """Session listener: a sign-in triggers a background reconciliation."""
        if previous_user_id is None and current_user_id is not None:
            self._log_operation("Sign-in reconciliation", user_id=current_user_id)
            await self.reconcile()
        else:
            self._log_debug(
                "Auth transition ignored",
                previous=previous_user_id,
                current=current_user_id,
            )
