"""Repository for the post_versions container (partitioned by /post_id).

Snapshots are append-only: this repository only inserts and reads.
"""

from __future__ import annotations

from folio.database.repositories.base import BaseRepository
from folio.models.snapshot import VersionSnapshot


class SnapshotRepository(BaseRepository[VersionSnapshot]):
    """Provide data access for the post_versions container."""

    container_name = "post_versions"
    model_class = VersionSnapshot

    async def append(self, snapshot: VersionSnapshot) -> VersionSnapshot:
        return await self.create(snapshot)

    async def list_for_post(self, post_id: str) -> list[VersionSnapshot]:
        """Fetch a draft's snapshots, newest first."""
        return await self.query(
            "SELECT * FROM c WHERE c.post_id = @post_id ORDER BY c.created_at DESC",
            [{"name": "@post_id", "value": post_id}],
        )
