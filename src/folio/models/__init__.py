"""Data models for Cosmos DB document types."""

from folio.models.base import DocumentBase
from folio.models.content import ContentNode, ElementNode, TextNode, empty_document
from folio.models.draft import DEFAULT_TITLE, Draft, DraftStatus, PublishMetadata
from folio.models.folder import Folder
from folio.models.snapshot import VersionSnapshot

__all__ = [
    "DEFAULT_TITLE",
    "ContentNode",
    "DocumentBase",
    "Draft",
    "DraftStatus",
    "ElementNode",
    "Folder",
    "PublishMetadata",
    "TextNode",
    "VersionSnapshot",
    "empty_document",
]
