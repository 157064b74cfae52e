"""Tests for the folder and snapshot repositories."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from folio.database.repositories.folders import FolderRepository
from folio.database.repositories.snapshots import SnapshotRepository
from folio.models.content import empty_document
from folio.models.folder import Folder
from folio.models.snapshot import VersionSnapshot


def _mock_db() -> MagicMock:
    mock_db = MagicMock()
    mock_db.get_container_client.return_value = AsyncMock()
    return mock_db


class TestFolderRepository:
    """Test the Folder Repository."""

    @pytest.fixture
    def repo(self) -> FolderRepository:
        """Create a repo for testing."""
        return FolderRepository(_mock_db())

    async def test_list_for_owner(self, repo: FolderRepository) -> None:
        """Verify folders are listed by name for one owner."""
        repo.query = AsyncMock(return_value=[Folder(name="A", owner_id="u-1")])

        result = await repo.list_for_owner("u-1")

        assert len(result) == 1
        query_str, params = repo.query.call_args[0]
        assert "ORDER BY c.name ASC" in query_str
        assert params == [{"name": "@owner_id", "value": "u-1"}]

    async def test_rename(self, repo: FolderRepository) -> None:
        """Verify rename patches only the name."""
        repo.patch = AsyncMock(return_value=Folder(name="B", owner_id="u-1"))
        await repo.rename("f-1", "B")
        repo.patch.assert_awaited_once_with("f-1", "f-1", {"name": "B"})


class TestSnapshotRepository:
    """Test the Snapshot Repository."""

    @pytest.fixture
    def repo(self) -> SnapshotRepository:
        """Create a repo for testing."""
        return SnapshotRepository(_mock_db())

    async def test_append_inserts(self, repo: SnapshotRepository) -> None:
        """Verify append is a plain insert."""
        snapshot = VersionSnapshot(post_id="d-1", actor_id="u-1", title="T", content=empty_document())

        await repo.append(snapshot)

        body = repo._container.create_item.call_args.kwargs["body"]
        assert body["post_id"] == "d-1"
        assert body["content"]["type"] == "doc"

    async def test_list_for_post_newest_first(self, repo: SnapshotRepository) -> None:
        """Verify history is ordered newest first."""
        repo.query = AsyncMock(return_value=[])

        await repo.list_for_post("d-1")

        query_str, params = repo.query.call_args[0]
        assert "ORDER BY c.created_at DESC" in query_str
        assert params == [{"name": "@post_id", "value": "d-1"}]
