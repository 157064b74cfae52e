"""Workspace tree — folders and drafts for one owner.

Folders are kept sorted by name (case-insensitive); drafts keep the order of
the upstream fetch. Drafts without a folder, or whose folder no longer
exists, live under the synthetic Unfiled folder. Expansion and rename state
are local to the mounted view and never persisted.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import TYPE_CHECKING, Annotated, Literal

from pydantic import BaseModel, Field

from folio.errors import NotFoundError, PersistenceError, ValidationError
from folio.events.contracts import DRAFT_UPDATED, REFRESH_DRAFTS, DraftUpdated
from folio.models.folder import Folder
from folio.services.autosave import DraftWriteGuard
from folio.services.drafts import create_draft, display_title
from folio.services.slugs import unique_slug

if TYPE_CHECKING:
    from folio.database.repositories.drafts import DraftRepository
    from folio.database.repositories.folders import FolderRepository
    from folio.events.bus import NotificationBus, Subscription
    from folio.events.contracts import EventEnvelope
    from folio.models.draft import Draft

logger = logging.getLogger(__name__)

UNFILED_FOLDER_ID = "workspace-unfiled"
UNFILED_NAME = "Unfiled"
UNTITLED_DRAFT = "Untitled draft"

LOADING_MESSAGE = "Loading drafts…"
NO_MATCHES_MESSAGE = "No drafts match your search."
NO_DRAFTS_MESSAGE = "No drafts yet. Start something new."
FOLDERS_ERROR_MESSAGE = "Unable to load folders. Showing drafts without folders."
NO_FOLDERS_MESSAGE = "No folders yet."
EMPTY_FOLDER_MESSAGE = "No drafts in this folder."

DELETE_FOLDER_PROMPT = "Delete this folder? Drafts will be moved to Unfiled."
DELETE_DRAFT_PROMPT = "Delete this draft?"


class DraftLeaf(BaseModel):
    type: Literal["draft"] = "draft"
    id: str
    name: str
    slug: str
    updated_at: datetime | None = None
    renaming: bool = False


class MessageLeaf(BaseModel):
    type: Literal["message"] = "message"
    id: str
    message: str


class FolderBranch(BaseModel):
    type: Literal["folder"] = "folder"
    id: str
    name: str
    origin: Literal["system", "remote"]
    editable: bool
    expanded: bool
    renaming: bool = False
    children: list[TreeNode] = Field(default_factory=list)


TreeNode = Annotated[DraftLeaf | FolderBranch | MessageLeaf, Field(discriminator="type")]

FolderBranch.model_rebuild()


def _folder_sort_key(folder: Folder) -> str:
    return folder.name.casefold()


class Workspace:
    """Owner-scoped folder/draft hierarchy kept in step with the store and the bus."""

    def __init__(
        self,
        owner_id: str,
        drafts_repo: DraftRepository,
        folders_repo: FolderRepository,
        bus: NotificationBus,
        *,
        list_limit: int = 100,
        guard: DraftWriteGuard | None = None,
    ) -> None:
        self.owner_id = owner_id
        self._guard = guard or DraftWriteGuard()
        self._drafts_repo = drafts_repo
        self._folders_repo = folders_repo
        self._bus = bus
        self._list_limit = list_limit
        self._drafts: list[Draft] = []
        self._folders: list[Folder] = []
        self._drafts_loading = True
        self._folders_loading = True
        self._folders_error: str | None = None
        self._expanded: set[str] = {UNFILED_FOLDER_ID}
        self._subscriptions: list[Subscription] = []
        self.renaming_folder_id: str | None = None
        self.renaming_draft_id: str | None = None

    async def mount(self) -> None:
        """Subscribe to the bus, then fetch authoritative state."""
        if not self._subscriptions:
            self._subscriptions = [
                self._bus.subscribe(DRAFT_UPDATED, self._on_draft_updated),
                self._bus.subscribe(REFRESH_DRAFTS, self._on_refresh),
            ]
        await asyncio.gather(self.refresh_drafts(), self.refresh_folders())

    def unmount(self) -> None:
        for subscription in self._subscriptions:
            subscription.close()
        self._subscriptions = []

    @property
    def mounted(self) -> bool:
        return bool(self._subscriptions)

    async def refresh_drafts(self) -> None:
        self._drafts_loading = True
        try:
            self._drafts = await self._drafts_repo.list_workspace(
                self.owner_id, limit=self._list_limit
            )
        except PersistenceError:
            logger.warning("Unable to load drafts for owner=%s", self.owner_id, exc_info=True)
        finally:
            self._drafts_loading = False

    async def refresh_folders(self) -> None:
        self._folders_loading = True
        self._folders_error = None
        try:
            folders = await self._folders_repo.list_for_owner(self.owner_id)
            self._folders = sorted(folders, key=_folder_sort_key)
        except PersistenceError as exc:
            logger.warning("Unable to load folders for owner=%s: %s", self.owner_id, exc.message)
            self._folders_error = exc.message
            self._folders = []
        finally:
            self._folders_loading = False

    def _on_draft_updated(self, envelope: EventEnvelope) -> None:
        event = DraftUpdated.model_validate(envelope.data)
        patch = event.patch()
        self._drafts = [
            draft.model_copy(update=patch) if draft.id == event.id else draft
            for draft in self._drafts
        ]

    async def _on_refresh(self, envelope: EventEnvelope) -> None:
        await self.refresh_drafts()

    @property
    def drafts(self) -> list[Draft]:
        return list(self._drafts)

    @property
    def folders(self) -> list[Folder]:
        return list(self._folders)

    def is_expanded(self, folder_id: str) -> bool:
        return folder_id in self._expanded

    def _find_folder(self, folder_id: str) -> Folder | None:
        return next((f for f in self._folders if f.id == folder_id), None)

    def _find_draft(self, draft_id: str) -> Draft | None:
        return next((d for d in self._drafts if d.id == draft_id), None)

    def _require_folder(self, folder_id: str) -> Folder:
        folder = self._find_folder(folder_id)
        if folder is None:
            raise NotFoundError(f"Folder {folder_id} not found")
        return folder

    def _require_draft(self, draft_id: str) -> Draft:
        draft = self._find_draft(draft_id)
        if draft is None:
            raise NotFoundError(f"Draft {draft_id} not found")
        return draft

    def tree(self, query: str = "") -> list[TreeNode]:
        """Build the rendered hierarchy for a live title filter."""
        if self._drafts_loading:
            return [MessageLeaf(id="drafts-loading", message=LOADING_MESSAGE)]

        needle = query.strip().casefold()
        matches = [
            draft
            for draft in self._drafts
            if needle in display_title(draft.title, UNTITLED_DRAFT).casefold()
        ]
        if not matches:
            message = NO_MATCHES_MESSAGE if needle else NO_DRAFTS_MESSAGE
            return [MessageLeaf(id="workspace-empty", message=message)]

        known_folders = {folder.id for folder in self._folders}
        leaves: dict[str | None, list[TreeNode]] = {}
        for draft in matches:
            key = draft.folder_id if draft.folder_id in known_folders else None
            leaves.setdefault(key, []).append(
                DraftLeaf(
                    id=draft.id,
                    name=display_title(draft.title, UNTITLED_DRAFT),
                    slug=draft.slug,
                    updated_at=draft.updated_at,
                    renaming=self.renaming_draft_id == draft.id,
                )
            )

        nodes: list[TreeNode] = []
        if self._folders_error:
            nodes.append(MessageLeaf(id="folders-error", message=FOLDERS_ERROR_MESSAGE))

        unfiled = leaves.get(None, [])
        if unfiled:
            nodes.append(
                FolderBranch(
                    id=UNFILED_FOLDER_ID,
                    name=UNFILED_NAME,
                    origin="system",
                    editable=False,
                    expanded=self.is_expanded(UNFILED_FOLDER_ID),
                    children=unfiled,
                )
            )

        if not self._folders_loading and not self._folders:
            return nodes or [MessageLeaf(id="workspace-no-folders", message=NO_FOLDERS_MESSAGE)]

        for folder in self._folders:
            children = leaves.get(folder.id) or [
                MessageLeaf(id=f"{folder.id}-empty", message=EMPTY_FOLDER_MESSAGE)
            ]
            nodes.append(
                FolderBranch(
                    id=folder.id,
                    name=folder.name,
                    origin="remote",
                    editable=True,
                    expanded=self.is_expanded(folder.id),
                    renaming=self.renaming_folder_id == folder.id,
                    children=children,
                )
            )
        return nodes

    def toggle(self, folder_id: str) -> bool:
        """Flip a folder's expansion; returns the new state."""
        if folder_id in self._expanded:
            self._expanded.discard(folder_id)
            return False
        self._expanded.add(folder_id)
        return True

    def start_rename_folder(self, folder_id: str) -> None:
        self.renaming_draft_id = None
        self.renaming_folder_id = folder_id

    def start_rename_draft(self, draft_id: str) -> None:
        self.renaming_folder_id = None
        self.renaming_draft_id = draft_id

    def cancel_rename(self) -> None:
        """Escape: leave rename mode without touching the store."""
        self.renaming_folder_id = None
        self.renaming_draft_id = None

    async def create_folder(self, name: str) -> Folder:
        """Create a folder; it starts expanded and in rename mode."""
        trimmed = name.strip()
        if not trimmed:
            raise ValidationError("name", "Folder name cannot be empty.")

        folder = Folder(name=trimmed, owner_id=self.owner_id, slug=unique_slug(trimmed, "folder"))
        await self._folders_repo.create(folder)
        logger.info("Folder created — id=%s name=%s", folder.id, folder.name)

        self._folders = sorted([*self._folders, folder], key=_folder_sort_key)
        self._expanded.add(folder.id)
        self.start_rename_folder(folder.id)
        return folder

    async def rename_folder(self, folder_id: str, name: str) -> bool:
        """Commit a folder rename. Returns False when nothing needed writing."""
        trimmed = name.strip()
        if not trimmed:
            self.renaming_folder_id = None
            raise ValidationError("name", "Folder name cannot be empty.")

        existing = self._require_folder(folder_id)
        if existing.name == trimmed:
            self.renaming_folder_id = None
            return False

        updated = await self._folders_repo.rename(folder_id, trimmed)
        self._folders = sorted(
            [updated if folder.id == folder_id else folder for folder in self._folders],
            key=_folder_sort_key,
        )
        self.renaming_folder_id = None
        logger.info("Folder renamed — id=%s name=%s", folder_id, trimmed)
        return True

    async def delete_folder(self, folder_id: str, *, confirmed: bool) -> bool:
        """Delete a folder after confirmation; its drafts move to Unfiled."""
        if not confirmed:
            return False

        self._require_folder(folder_id)

        moved = await self._drafts_repo.reassign_folder(folder_id)
        await self._folders_repo.delete(folder_id, folder_id)
        logger.info("Folder deleted — id=%s drafts_moved=%d", folder_id, len(moved))

        self._folders = [folder for folder in self._folders if folder.id != folder_id]
        self._drafts = [
            draft.model_copy(update={"folder_id": None}) if draft.folder_id == folder_id else draft
            for draft in self._drafts
        ]
        self._expanded.discard(folder_id)
        if self.renaming_folder_id == folder_id:
            self.renaming_folder_id = None

        for draft_id in moved:
            await self._bus.draft_updated(draft_id, folder_id=None)
        return True

    async def create_draft(self, *, folder_id: str | None = None) -> Draft:
        draft = await create_draft(self.owner_id, self._drafts_repo, folder_id=folder_id)
        self._drafts = [draft, *self._drafts]
        return draft

    async def rename_draft(self, draft_id: str, name: str) -> bool:
        """Commit a draft title change. Returns False when nothing needed writing."""
        trimmed = name.strip()
        if not trimmed:
            self.renaming_draft_id = None
            raise ValidationError("title", "Draft title cannot be empty.")

        existing = self._require_draft(draft_id)
        if existing.title.strip() == trimmed:
            self.renaming_draft_id = None
            return False

        async with self._guard.hold(draft_id):
            updated = await self._drafts_repo.patch(draft_id, draft_id, {"title": trimmed})
        self._drafts = [updated if draft.id == draft_id else draft for draft in self._drafts]
        self.renaming_draft_id = None
        logger.info("Draft renamed — id=%s", draft_id)

        await self._bus.draft_updated(draft_id, title=updated.title, slug=updated.slug)
        return True

    async def move_draft(self, draft_id: str, folder_id: str | None) -> Draft:
        """Reparent a draft; ``None`` files it under Unfiled."""
        self._require_draft(draft_id)
        if folder_id is not None and self._find_folder(folder_id) is None:
            raise ValidationError("folder_id", "Choose an existing folder.")

        async with self._guard.hold(draft_id):
            updated = await self._drafts_repo.patch(draft_id, draft_id, {"folder_id": folder_id})
        self._drafts = [updated if draft.id == draft_id else draft for draft in self._drafts]
        logger.info("Draft moved — id=%s folder=%s", draft_id, folder_id)

        await self._bus.draft_updated(draft_id, folder_id=folder_id)
        return updated

    async def delete_draft(self, draft_id: str, *, confirmed: bool) -> bool:
        """Soft-delete a draft after confirmation."""
        if not confirmed:
            return False

        self._require_draft(draft_id)

        await self._drafts_repo.soft_delete(draft_id, draft_id)
        logger.info("Draft deleted — id=%s", draft_id)

        self._drafts = [draft for draft in self._drafts if draft.id != draft_id]
        if self.renaming_draft_id == draft_id:
            self.renaming_draft_id = None

        await self._bus.refresh_drafts()
        return True
