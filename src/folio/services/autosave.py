"""Autosave coordinator — debounced persistence of an open draft.

State machine: ``idle -> saving -> saved | error``. Every edit restarts a
trailing-edge debounce timer, so only the last edit of a burst is written.
Writes for one draft id are single-flight through ``DraftWriteGuard``: a
write that finds another in flight waits for it, then writes the latest
title/content, or does nothing if that content is already persisted.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from enum import StrEnum
from typing import TYPE_CHECKING

from folio.errors import PersistenceError
from folio.events.contracts import DRAFT_UPDATED, DraftUpdated

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Coroutine

    from folio.database.repositories.drafts import DraftRepository
    from folio.events.bus import NotificationBus, Subscription
    from folio.events.contracts import EventEnvelope
    from folio.models.content import ElementNode
    from folio.models.draft import Draft

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 1.2
DEFAULT_SAVED_DISPLAY_SECONDS = 1.2


class SaveState(StrEnum):
    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


class DraftWriteGuard:
    """One lock per draft id, shared by every writer of that draft.

    An entry lives only while some writer holds or waits on it.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._holders: dict[str, int] = {}

    @contextlib.asynccontextmanager
    async def hold(self, draft_id: str) -> AsyncIterator[None]:
        """Run the enclosed write as the only one in flight for ``draft_id``."""
        lock = self._locks.setdefault(draft_id, asyncio.Lock())
        self._holders[draft_id] = self._holders.get(draft_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[draft_id] -= 1
            if not self._holders[draft_id]:
                del self._holders[draft_id]
                del self._locks[draft_id]

    def is_writing(self, draft_id: str) -> bool:
        lock = self._locks.get(draft_id)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)


class AutosaveCoordinator:
    """Debounces edits to one draft and persists them."""

    def __init__(
        self,
        draft: Draft,
        drafts_repo: DraftRepository,
        bus: NotificationBus,
        *,
        debounce: float = DEFAULT_DEBOUNCE_SECONDS,
        saved_display: float = DEFAULT_SAVED_DISPLAY_SECONDS,
        guard: DraftWriteGuard | None = None,
        on_state_change: Callable[[SaveState], None] | None = None,
    ) -> None:
        self.draft_id = draft.id
        self.slug = draft.slug
        self._title = draft.title
        self._content = draft.content
        self._repo = drafts_repo
        self._bus = bus
        self._debounce = debounce
        self._saved_display = saved_display
        self._guard = guard or DraftWriteGuard()
        self._on_state_change = on_state_change
        self._state = SaveState.IDLE
        self._revision = 0
        self._persisted_revision = 0
        self._timer: asyncio.Task | None = None
        self._idle_timer: asyncio.Task | None = None
        self._writes: set[asyncio.Task] = set()
        self._closed = False
        self.last_error: str | None = None
        self._subscription: Subscription | None = bus.subscribe(
            DRAFT_UPDATED, self._on_draft_updated
        )

    @property
    def state(self) -> SaveState:
        return self._state

    @property
    def title(self) -> str:
        return self._title

    @property
    def content(self) -> ElementNode:
        return self._content

    @property
    def has_pending_edit(self) -> bool:
        return self._timer is not None and not self._timer.done()

    @property
    def has_unsaved_changes(self) -> bool:
        return self._revision != self._persisted_revision

    @property
    def guard(self) -> DraftWriteGuard:
        return self._guard

    @property
    def revision(self) -> int:
        return self._revision

    def cancel_pending(self) -> None:
        """Drop the debounce timer; the edit stays in memory as unsaved."""
        self._cancel_timer()

    def adopt_persisted(self, draft: Draft, revision: int) -> None:
        """Take a write made outside this session as the saved state.

        ``revision`` is the session revision that write was built from. Edits
        made after it stay pending and keep their own timer.
        """
        if self._closed:
            return
        if self._revision != revision:
            self._persisted_revision = max(self._persisted_revision, revision)
            return
        self._cancel_timer()
        self._title = draft.title
        self._content = draft.content
        if draft.slug:
            self.slug = draft.slug
        self._persisted_revision = revision
        self.last_error = None
        self._set_state(SaveState.SAVED)
        self._schedule_idle()

    def _on_draft_updated(self, envelope: EventEnvelope) -> None:
        """Adopt a rename made elsewhere unless the user has unsaved edits."""
        event = DraftUpdated.model_validate(envelope.data)
        if event.id != self.draft_id:
            return
        if event.slug:
            self.slug = event.slug
        if event.title is not None and not self.has_unsaved_changes:
            self._title = event.title

    def _set_state(self, state: SaveState) -> None:
        if self._closed or state == self._state:
            return
        logger.debug("Autosave draft=%s %s -> %s", self.draft_id, self._state, state)
        self._state = state
        if self._on_state_change is not None:
            self._on_state_change(state)

    def _spawn(self, coro: Coroutine[object, object, None]) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._writes.add(task)
        task.add_done_callback(self._writes.discard)
        return task

    def edit(self, *, title: str | None = None, content: ElementNode | None = None) -> None:
        """Record an edit and restart the debounce timer."""
        if self._closed:
            raise RuntimeError(f"Editor session for draft {self.draft_id} is closed")
        if title is None and content is None:
            return
        if title is not None:
            self._title = title
        if content is not None:
            self._content = content
        self._revision += 1
        self._cancel_timer()
        self._timer = asyncio.create_task(self._debounce_then_save())

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    async def _debounce_then_save(self) -> None:
        await asyncio.sleep(self._debounce)
        self._timer = None
        self._spawn(self._autosave())

    async def _autosave(self) -> None:
        try:
            await self._flush()
        except PersistenceError:
            logger.warning("Autosave failed for draft=%s", self.draft_id, exc_info=True)

    async def save_now(self) -> bool:
        """Write immediately, collapsing any pending debounce.

        Returns False when the write was superseded by one already in flight.
        Raises ``PersistenceError`` when the store rejects the write.
        """
        self._cancel_timer()
        return await self._flush()

    async def _flush(self) -> bool:
        queued = self._guard.is_writing(self.draft_id)
        async with self._guard.hold(self.draft_id):
            revision = self._revision
            if queued and revision == self._persisted_revision:
                logger.debug("Skipping superseded write for draft=%s", self.draft_id)
                return False
            title, content = self._title, self._content
            self._set_state(SaveState.SAVING)
            try:
                draft = await self._repo.save_content(self.draft_id, title, content)
            except PersistenceError as exc:
                self.last_error = exc.message
                self._set_state(SaveState.ERROR)
                raise
            self._persisted_revision = max(self._persisted_revision, revision)
            self.last_error = None
            if draft.slug:
                self.slug = draft.slug
            self._set_state(SaveState.SAVED)

        await self._bus.draft_updated(self.draft_id, title=title, slug=self.slug)
        self._schedule_idle()
        return True

    def _schedule_idle(self) -> None:
        if self._closed:
            return
        if self._idle_timer is not None and not self._idle_timer.done():
            self._idle_timer.cancel()
        self._idle_timer = asyncio.create_task(self._return_to_idle())

    async def _return_to_idle(self) -> None:
        await asyncio.sleep(self._saved_display)
        if self._state == SaveState.SAVED:
            self._set_state(SaveState.IDLE)

    async def close(self, *, wait_for_writes: bool = True) -> None:
        """Unmount: cancel pending timers without flushing them.

        Writes already in flight are allowed to finish.
        """
        self._closed = True
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None
        for task in (self._timer, self._idle_timer):
            if task is not None and not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        self._timer = None
        self._idle_timer = None
        if wait_for_writes and self._writes:
            await asyncio.gather(*self._writes, return_exceptions=True)
        logger.debug("Autosave coordinator closed for draft=%s", self.draft_id)
