"""Server-side registry of mounted views (editor sessions and workspaces)."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from folio.errors import NotFoundError
from folio.services.autosave import AutosaveCoordinator, DraftWriteGuard
from folio.services.workspace import Workspace

if TYPE_CHECKING:
    from folio.config import EditorConfig
    from folio.database.repositories.drafts import DraftRepository
    from folio.database.repositories.folders import FolderRepository
    from folio.events.bus import NotificationBus
    from folio.models.draft import Draft

logger = logging.getLogger(__name__)


class ViewRegistry:
    """Mounts views on first use and tears them down on request or shutdown."""

    def __init__(self, bus: NotificationBus, editor: EditorConfig) -> None:
        self._bus = bus
        self._editor = editor
        self._guard = DraftWriteGuard()
        self._sessions: dict[str, AutosaveCoordinator] = {}
        self._workspaces: dict[str, Workspace] = {}

    @property
    def guard(self) -> DraftWriteGuard:
        return self._guard

    def session(self, draft_id: str) -> AutosaveCoordinator | None:
        return self._sessions.get(draft_id)

    def open_session(self, draft: Draft, drafts_repo: DraftRepository) -> AutosaveCoordinator:
        """Return the editor session for a draft, mounting it if needed."""
        session = self._sessions.get(draft.id)
        if session is None:
            session = AutosaveCoordinator(
                draft,
                drafts_repo,
                self._bus,
                debounce=self._editor.autosave_debounce,
                saved_display=self._editor.saved_display,
                guard=self._guard,
            )
            self._sessions[draft.id] = session
            logger.info("Editor session mounted — draft=%s", draft.id)
        return session

    async def resolve_session(
        self, draft_id: str, drafts_repo: DraftRepository
    ) -> AutosaveCoordinator:
        """Return a mounted session, loading the draft when none exists yet."""
        session = self._sessions.get(draft_id)
        if session is not None:
            return session
        draft = await drafts_repo.get(draft_id, draft_id)
        if draft is None:
            raise NotFoundError(f"Draft {draft_id} not found")
        return self.open_session(draft, drafts_repo)

    async def close_session(self, draft_id: str) -> bool:
        session = self._sessions.pop(draft_id, None)
        if session is None:
            return False
        await session.close()
        logger.info("Editor session unmounted — draft=%s", draft_id)
        return True

    async def workspace(
        self,
        owner_id: str,
        drafts_repo: DraftRepository,
        folders_repo: FolderRepository,
    ) -> Workspace:
        """Return the owner's workspace, mounting and loading it if needed."""
        workspace = self._workspaces.get(owner_id)
        if workspace is None:
            workspace = Workspace(
                owner_id,
                drafts_repo,
                folders_repo,
                self._bus,
                list_limit=self._editor.draft_list_limit,
                guard=self._guard,
            )
            self._workspaces[owner_id] = workspace
            await workspace.mount()
            logger.info("Workspace mounted — owner=%s", owner_id)
        return workspace

    def close_workspace(self, owner_id: str) -> bool:
        workspace = self._workspaces.pop(owner_id, None)
        if workspace is None:
            return False
        workspace.unmount()
        return True

    async def close_all(self) -> None:
        sessions = list(self._sessions.values())
        self._sessions.clear()
        await asyncio.gather(*(session.close() for session in sessions))
        for owner_id in list(self._workspaces):
            self.close_workspace(owner_id)
        logger.info("View registry closed — sessions=%d", len(sessions))

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    @property
    def workspace_count(self) -> int:
        return len(self._workspaces)
