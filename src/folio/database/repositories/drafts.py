"""Repository for the drafts container (partitioned by /id)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from folio.database.repositories.base import BaseRepository
from folio.models.draft import Draft, DraftStatus

if TYPE_CHECKING:
    from folio.models.content import ElementNode

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 100


class DraftRepository(BaseRepository[Draft]):
    """Provide data access for the drafts container."""

    container_name = "drafts"
    model_class = Draft

    async def get_by_slug(self, slug: str) -> Draft | None:
        """Fetch a single visible draft by slug."""
        results = await self.query_visible(
            "c.slug = @slug",
            [{"name": "@slug", "value": slug}],
            limit=1,
        )
        return results[0] if results else None

    async def list_workspace(self, author_id: str, *, limit: int = DEFAULT_LIST_LIMIT) -> list[Draft]:
        """Fetch an author's unpublished drafts, most recently updated first."""
        return await self.query_visible(
            "c.author_id = @author_id AND c.status = @status",
            [
                {"name": "@author_id", "value": author_id},
                {"name": "@status", "value": DraftStatus.DRAFT.value},
            ],
            order_by="c.updated_at DESC",
            limit=limit,
        )

    async def list_for_author(
        self, author_id: str, *, limit: int = DEFAULT_LIST_LIMIT
    ) -> list[Draft]:
        """Fetch all of an author's posts regardless of status."""
        return await self.query_visible(
            "c.author_id = @author_id",
            [{"name": "@author_id", "value": author_id}],
            order_by="c.updated_at DESC",
            limit=limit,
        )

    async def list_published(self, *, limit: int = DEFAULT_LIST_LIMIT) -> list[Draft]:
        """Fetch the public feed, newest publication first."""
        return await self.query_visible(
            "c.status = @status",
            [{"name": "@status", "value": DraftStatus.PUBLISHED.value}],
            order_by="c.published_at DESC",
            limit=limit,
        )

    async def list_in_folder(self, folder_id: str) -> list[Draft]:
        """Fetch every draft assigned to a folder, including soft-deleted ones."""
        return await self.query(
            "SELECT * FROM c WHERE c.folder_id = @folder_id",
            [{"name": "@folder_id", "value": folder_id}],
        )

    async def save_content(self, draft_id: str, title: str, content: ElementNode) -> Draft:
        """Persist the editor's title and content tree."""
        return await self.patch(draft_id, draft_id, {"title": title, "content": content})

    async def reassign_folder(self, folder_id: str) -> list[str]:
        """Move every member of a folder to Unfiled. Returns the moved draft ids."""
        members = await self.list_in_folder(folder_id)
        for draft in members:
            await self.patch(draft.id, draft.id, {"folder_id": None})
        logger.info("Reassigned %d drafts out of folder=%s", len(members), folder_id)
        return [draft.id for draft in members]
