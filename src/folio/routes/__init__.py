"""HTTP routes and the shared request helpers they use."""

from __future__ import annotations

from typing import TYPE_CHECKING

from folio.database.repositories.drafts import DraftRepository
from folio.database.repositories.folders import FolderRepository
from folio.database.repositories.snapshots import SnapshotRepository

if TYPE_CHECKING:
    from fastapi import Request

    from folio.events.bus import NotificationBus
    from folio.services.views import ViewRegistry


def drafts_repo(request: Request) -> DraftRepository:
    return DraftRepository(request.app.state.cosmos.database)


def folders_repo(request: Request) -> FolderRepository:
    return FolderRepository(request.app.state.cosmos.database)


def snapshots_repo(request: Request) -> SnapshotRepository:
    return SnapshotRepository(request.app.state.cosmos.database)


def bus(request: Request) -> NotificationBus:
    return request.app.state.bus


def views(request: Request) -> ViewRegistry:
    return request.app.state.views
