"""Generic async repository over a single Cosmos DB container."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar, cast

from azure.cosmos.exceptions import CosmosHttpResponseError, CosmosResourceNotFoundError
from pydantic_core import to_jsonable_python

from folio.errors import PersistenceError
from folio.models.base import DocumentBase, utcnow

if TYPE_CHECKING:
    from azure.cosmos.aio import ContainerProxy, DatabaseProxy

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=DocumentBase)

# The only place the soft-delete flag is interpreted for reads.
VISIBLE_PREDICATE = "(NOT IS_DEFINED(c.is_deleted) OR c.is_deleted = false)"


def _persistence_error(action: str, container: str, exc: CosmosHttpResponseError) -> PersistenceError:
    message = getattr(exc, "message", None) or str(exc)
    logger.warning("Cosmos %s failed on %s: %s", action, container, message)
    return PersistenceError(
        f"Unable to {action} {container}: {message}",
        status_code=getattr(exc, "status_code", None),
    )


class BaseRepository(Generic[T]):
    """CRUD and query helpers shared by every container repository."""

    container_name: ClassVar[str]
    model_class: type[T]

    def __init__(self, database: DatabaseProxy) -> None:
        self._container: ContainerProxy = database.get_container_client(self.container_name)

    def _dump(self, item: T) -> dict[str, Any]:
        return item.model_dump(mode="json", by_alias=True)

    async def create(self, item: T) -> T:
        """Insert a new document."""
        try:
            await self._container.create_item(body=self._dump(item))
        except CosmosHttpResponseError as exc:
            raise _persistence_error("insert into", self.container_name, exc) from exc
        return item

    async def get(self, item_id: str, partition_key: str) -> T | None:
        """Read a document by id; soft-deleted documents read as missing."""
        try:
            data = await self._container.read_item(item=item_id, partition_key=partition_key)
        except CosmosResourceNotFoundError:
            return None
        except CosmosHttpResponseError as exc:
            raise _persistence_error("read", self.container_name, exc) from exc
        item = self.model_class.model_validate(data)
        if item.is_deleted:
            return None
        return item

    async def update(self, item: T, partition_key: str) -> T:
        """Replace a whole document, bumping ``updated_at``."""
        item.updated_at = utcnow()
        try:
            await self._container.replace_item(item=item.id, body=self._dump(item))
        except CosmosHttpResponseError as exc:
            raise _persistence_error("update", self.container_name, exc) from exc
        return item

    async def patch(self, item_id: str, partition_key: str, fields: dict[str, Any]) -> T:
        """Set the given top-level fields on a document and return the stored result."""
        values = {**fields, "updated_at": utcnow()}
        operations = [
            {"op": "set", "path": f"/{name}", "value": to_jsonable_python(value, by_alias=True)}
            for name, value in values.items()
        ]
        try:
            data = await self._container.patch_item(
                item=item_id,
                partition_key=partition_key,
                patch_operations=operations,
            )
        except CosmosHttpResponseError as exc:
            raise _persistence_error("update", self.container_name, exc) from exc
        return self.model_class.model_validate(data)

    async def soft_delete(self, item_id: str, partition_key: str) -> None:
        """Flag a document as deleted without removing it."""
        await self.patch(item_id, partition_key, {"is_deleted": True})

    async def delete(self, item_id: str, partition_key: str) -> None:
        """Physically remove a document. Missing documents are ignored."""
        try:
            await self._container.delete_item(item=item_id, partition_key=partition_key)
        except CosmosResourceNotFoundError:
            logger.debug("Delete skipped, %s/%s already gone", self.container_name, item_id)
        except CosmosHttpResponseError as exc:
            raise _persistence_error("delete from", self.container_name, exc) from exc

    async def query(
        self,
        query: str,
        parameters: list[dict[str, Any]] | None = None,
    ) -> list[T]:
        """Run a SQL query and validate every row into the model class."""
        results: list[T] = []
        try:
            async for row in self._container.query_items(query=query, parameters=parameters or []):
                results.append(self.model_class.model_validate(cast("dict[str, Any]", row)))
        except CosmosHttpResponseError as exc:
            raise _persistence_error("query", self.container_name, exc) from exc
        return results

    async def query_visible(
        self,
        where: str = "",
        parameters: list[dict[str, Any]] | None = None,
        *,
        order_by: str = "",
        limit: int | None = None,
    ) -> list[T]:
        """Query documents that are not soft-deleted."""
        top = f"TOP {int(limit)} " if limit else ""
        sql = f"SELECT {top}* FROM c WHERE {VISIBLE_PREDICATE}"
        if where:
            sql += f" AND {where}"
        if order_by:
            sql += f" ORDER BY {order_by}"
        return await self.query(sql, parameters)
