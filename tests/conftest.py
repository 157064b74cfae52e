"""Shared fixtures: in-memory repositories standing in for Cosmos containers."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from folio.errors import PersistenceError
from folio.events.bus import NotificationBus
from folio.models.base import utcnow
from folio.models.draft import Draft, DraftStatus
from folio.models.folder import Folder
from folio.models.snapshot import VersionSnapshot
from folio.services.views import ViewRegistry


class FakeDraftRepository:
    """Dict-backed drafts store with failure injection and write tracking."""

    def __init__(self) -> None:
        self.items: dict[str, Draft] = {}
        self.fail_with: str | None = None
        self.write_delay = 0.0
        self.saves: list[tuple[str, str]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def add(self, draft: Draft) -> Draft:
        self.items[draft.id] = draft
        return draft

    def _check(self) -> None:
        if self.fail_with:
            raise PersistenceError(self.fail_with, status_code=503)

    async def create(self, item: Draft) -> Draft:
        self._check()
        self.items[item.id] = item
        return item

    async def get(self, item_id: str, partition_key: str) -> Draft | None:
        self._check()
        draft = self.items.get(item_id)
        return None if draft is None or draft.is_deleted else draft

    async def patch(self, item_id: str, partition_key: str, fields: dict[str, Any]) -> Draft:
        self._check()
        current = self.items[item_id]
        updated = current.model_copy(update={**fields, "updated_at": utcnow()})
        self.items[item_id] = updated
        return updated

    async def soft_delete(self, item_id: str, partition_key: str) -> None:
        await self.patch(item_id, partition_key, {"is_deleted": True})

    async def save_content(self, draft_id: str, title: str, content: Any) -> Draft:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.write_delay:
                await asyncio.sleep(self.write_delay)
            self._check()
            self.saves.append((draft_id, title))
            return await self.patch(draft_id, draft_id, {"title": title, "content": content})
        finally:
            self.in_flight -= 1

    def _visible(self) -> list[Draft]:
        return [draft for draft in self.items.values() if not draft.is_deleted]

    async def get_by_slug(self, slug: str) -> Draft | None:
        self._check()
        return next((d for d in self._visible() if d.slug == slug), None)

    async def list_workspace(self, author_id: str, *, limit: int = 100) -> list[Draft]:
        self._check()
        drafts = [
            d for d in self._visible() if d.author_id == author_id and d.status == DraftStatus.DRAFT
        ]
        return sorted(drafts, key=lambda d: d.updated_at, reverse=True)[:limit]

    async def list_for_author(self, author_id: str, *, limit: int = 100) -> list[Draft]:
        self._check()
        drafts = [d for d in self._visible() if d.author_id == author_id]
        return sorted(drafts, key=lambda d: d.updated_at, reverse=True)[:limit]

    async def list_published(self, *, limit: int = 100) -> list[Draft]:
        self._check()
        drafts = [d for d in self._visible() if d.status == DraftStatus.PUBLISHED]
        return sorted(drafts, key=lambda d: d.published_at or d.updated_at, reverse=True)[:limit]

    async def list_in_folder(self, folder_id: str) -> list[Draft]:
        return [d for d in self.items.values() if d.folder_id == folder_id]

    async def reassign_folder(self, folder_id: str) -> list[str]:
        members = await self.list_in_folder(folder_id)
        for draft in members:
            await self.patch(draft.id, draft.id, {"folder_id": None})
        return [draft.id for draft in members]


class FakeFolderRepository:
    def __init__(self) -> None:
        self.items: dict[str, Folder] = {}
        self.fail_with: str | None = None
        self.writes = 0

    def add(self, folder: Folder) -> Folder:
        self.items[folder.id] = folder
        return folder

    def _check(self) -> None:
        if self.fail_with:
            raise PersistenceError(self.fail_with)

    async def create(self, item: Folder) -> Folder:
        self._check()
        self.writes += 1
        self.items[item.id] = item
        return item

    async def list_for_owner(self, owner_id: str) -> list[Folder]:
        self._check()
        folders = [f for f in self.items.values() if f.owner_id == owner_id and not f.is_deleted]
        return sorted(folders, key=lambda f: f.name)

    async def rename(self, folder_id: str, name: str) -> Folder:
        self._check()
        self.writes += 1
        updated = self.items[folder_id].model_copy(update={"name": name, "updated_at": utcnow()})
        self.items[folder_id] = updated
        return updated

    async def delete(self, item_id: str, partition_key: str) -> None:
        self._check()
        self.writes += 1
        self.items.pop(item_id, None)


class FakeSnapshotRepository:
    def __init__(self) -> None:
        self.rows: list[VersionSnapshot] = []

    async def append(self, snapshot: VersionSnapshot) -> VersionSnapshot:
        self.rows.append(snapshot)
        return snapshot

    async def list_for_post(self, post_id: str) -> list[VersionSnapshot]:
        rows = [row for row in self.rows if row.post_id == post_id]
        return sorted(rows, key=lambda row: row.created_at, reverse=True)


@pytest.fixture
def drafts_repo() -> FakeDraftRepository:
    return FakeDraftRepository()


@pytest.fixture
def folders_repo() -> FakeFolderRepository:
    return FakeFolderRepository()


@pytest.fixture
def snapshots_repo() -> FakeSnapshotRepository:
    return FakeSnapshotRepository()


@pytest.fixture
def bus() -> NotificationBus:
    return NotificationBus()


@pytest.fixture
def recorded_events(bus: NotificationBus) -> list[tuple[str, dict[str, Any]]]:
    """Capture every draft-updated and refresh-drafts event."""
    events: list[tuple[str, dict[str, Any]]] = []

    def record(envelope: Any) -> None:
        events.append((envelope.event, envelope.data))

    bus.subscribe("draft-updated", record)
    bus.subscribe("refresh-drafts", record)
    return events


@pytest.fixture
async def route_request(drafts_repo, folders_repo, snapshots_repo, bus):
    """A request whose app state carries fakes for every collaborator."""
    editor = SimpleNamespace(
        autosave_debounce=0.05,
        saved_display=0.05,
        draft_list_limit=100,
        excerpt_max_length=200,
    )
    request = MagicMock()
    request.app.state.bus = bus
    request.app.state.views = ViewRegistry(bus, editor)
    request.app.state.settings.editor = editor
    with (
        patch("folio.routes.drafts.drafts_repo", return_value=drafts_repo),
        patch("folio.routes.workspace.drafts_repo", return_value=drafts_repo),
        patch("folio.routes.feed.drafts_repo", return_value=drafts_repo),
        patch("folio.routes.workspace.folders_repo", return_value=folders_repo),
        patch("folio.routes.drafts.snapshots_repo", return_value=snapshots_repo),
    ):
        yield request
    await request.app.state.views.close_all()
