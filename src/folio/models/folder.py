"""Folder document model."""

from __future__ import annotations

from folio.models.base import DocumentBase


class Folder(DocumentBase):
    """A named grouping of drafts. Names need not be unique."""

    name: str
    owner_id: str
    slug: str = ""
