"""Tests for the generic Cosmos repository."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from azure.cosmos.exceptions import CosmosHttpResponseError, CosmosResourceNotFoundError

from folio.database.repositories.base import VISIBLE_PREDICATE
from folio.database.repositories.folders import FolderRepository
from folio.errors import PersistenceError
from folio.models.folder import Folder


class _AsyncRows:
    """Async iterator standing in for a Cosmos query page stream."""

    def __init__(self, rows: list[dict]) -> None:
        self._rows = iter(rows)

    def __aiter__(self) -> "_AsyncRows":
        return self

    async def __anext__(self) -> dict:
        try:
            return next(self._rows)
        except StopIteration:
            raise StopAsyncIteration from None


def _folder_row(**fields) -> dict:
    row = {"id": "f-1", "name": "Essays", "owner_id": "u-1"}
    row.update(fields)
    return row


class TestBaseRepository:
    """Test the Base Repository through a concrete subclass."""

    @pytest.fixture
    def repo(self) -> FolderRepository:
        """Create a repo for testing."""
        mock_db = MagicMock()
        mock_container = AsyncMock()
        mock_db.get_container_client.return_value = mock_container
        return FolderRepository(mock_db)

    async def test_binds_container(self) -> None:
        """Verify the repository asks for its own container."""
        mock_db = MagicMock()
        FolderRepository(mock_db)
        mock_db.get_container_client.assert_called_once_with("folders")

    async def test_create_serializes_document(self, repo: FolderRepository) -> None:
        """Verify create sends a JSON-ready body."""
        folder = Folder(name="Essays", owner_id="u-1")

        await repo.create(folder)

        body = repo._container.create_item.call_args.kwargs["body"]
        assert body["id"] == folder.id
        assert isinstance(body["created_at"], str)
        assert body["is_deleted"] is False

    async def test_get_missing_returns_none(self, repo: FolderRepository) -> None:
        """Verify a 404 reads as missing."""
        repo._container.read_item.side_effect = CosmosResourceNotFoundError(
            status_code=404, message="gone"
        )
        assert await repo.get("f-1", "f-1") is None

    async def test_get_soft_deleted_returns_none(self, repo: FolderRepository) -> None:
        """Verify soft-deleted documents read as missing."""
        repo._container.read_item.return_value = _folder_row(is_deleted=True)
        assert await repo.get("f-1", "f-1") is None

    async def test_get_returns_model(self, repo: FolderRepository) -> None:
        """Verify a stored document validates into the model."""
        repo._container.read_item.return_value = _folder_row()
        folder = await repo.get("f-1", "f-1")
        assert folder.name == "Essays"

    async def test_sdk_error_becomes_persistence_error(self, repo: FolderRepository) -> None:
        """Verify SDK failures are translated."""
        repo._container.read_item.side_effect = CosmosHttpResponseError(
            status_code=503, message="unavailable"
        )
        with pytest.raises(PersistenceError) as exc_info:
            await repo.get("f-1", "f-1")
        assert exc_info.value.status_code == 503
        assert "unavailable" in exc_info.value.message

    async def test_patch_sets_fields_and_timestamp(self, repo: FolderRepository) -> None:
        """Verify patch issues set operations including updated_at."""
        repo._container.patch_item.return_value = _folder_row(name="Renamed")

        folder = await repo.patch("f-1", "f-1", {"name": "Renamed"})

        kwargs = repo._container.patch_item.call_args.kwargs
        ops = {op["path"]: op for op in kwargs["patch_operations"]}
        assert ops["/name"] == {"op": "set", "path": "/name", "value": "Renamed"}
        assert "/updated_at" in ops
        assert kwargs["partition_key"] == "f-1"
        assert folder.name == "Renamed"

    async def test_soft_delete_patches_flag(self, repo: FolderRepository) -> None:
        """Verify soft delete flips is_deleted instead of removing."""
        repo._container.patch_item.return_value = _folder_row(is_deleted=True)

        await repo.soft_delete("f-1", "f-1")

        ops = repo._container.patch_item.call_args.kwargs["patch_operations"]
        assert {"op": "set", "path": "/is_deleted", "value": True} in ops
        repo._container.delete_item.assert_not_called()

    async def test_delete_ignores_missing(self, repo: FolderRepository) -> None:
        """Verify deleting an absent document is not an error."""
        repo._container.delete_item.side_effect = CosmosResourceNotFoundError(
            status_code=404, message="gone"
        )
        await repo.delete("f-1", "f-1")

    async def test_query_validates_rows(self, repo: FolderRepository) -> None:
        """Verify query results are validated into models."""
        repo._container.query_items = MagicMock(
            return_value=_AsyncRows([_folder_row(), _folder_row(id="f-2", name="Notes")])
        )

        folders = await repo.query("SELECT * FROM c")

        assert [f.id for f in folders] == ["f-1", "f-2"]

    async def test_query_visible_builds_filtered_sql(self, repo: FolderRepository) -> None:
        """Verify the visibility predicate, filter, ordering and limit."""
        repo.query = AsyncMock(return_value=[])

        await repo.query_visible("c.owner_id = @o", [{"name": "@o", "value": "u"}], order_by="c.name ASC", limit=5)

        sql = repo.query.call_args[0][0]
        assert sql == (
            f"SELECT TOP 5 * FROM c WHERE {VISIBLE_PREDICATE} AND c.owner_id = @o ORDER BY c.name ASC"
        )
