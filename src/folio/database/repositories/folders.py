"""Repository for the folders container (partitioned by /id)."""

from __future__ import annotations

from folio.database.repositories.base import BaseRepository
from folio.models.folder import Folder


class FolderRepository(BaseRepository[Folder]):
    """Provide data access for the folders container."""

    container_name = "folders"
    model_class = Folder

    async def list_for_owner(self, owner_id: str) -> list[Folder]:
        """Fetch an owner's folders by name."""
        return await self.query_visible(
            "c.owner_id = @owner_id",
            [{"name": "@owner_id", "value": owner_id}],
            order_by="c.name ASC",
        )

    async def rename(self, folder_id: str, name: str) -> Folder:
        return await self.patch(folder_id, folder_id, {"name": name})
