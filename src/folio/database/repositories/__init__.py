"""Repository modules for each Cosmos DB container."""

from folio.database.repositories.base import VISIBLE_PREDICATE, BaseRepository
from folio.database.repositories.drafts import DraftRepository
from folio.database.repositories.folders import FolderRepository
from folio.database.repositories.snapshots import SnapshotRepository

__all__ = [
    "VISIBLE_PREDICATE",
    "BaseRepository",
    "DraftRepository",
    "FolderRepository",
    "SnapshotRepository",
]
