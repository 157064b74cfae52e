"""Draft document model — the unit of authorship."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator

from folio.models.base import DocumentBase
from folio.models.content import ElementNode, empty_document

DEFAULT_TITLE = "Untitled"


class DraftStatus(StrEnum):
    DRAFT = "draft"
    PUBLISHED = "published"


class Draft(DocumentBase):
    """A document owned by one author, private until published."""

    title: str = DEFAULT_TITLE
    slug: str
    content: ElementNode = Field(default_factory=empty_document)
    status: DraftStatus = DraftStatus.DRAFT
    published_at: datetime | None = None
    excerpt: str | None = None
    tags: list[str] = Field(default_factory=list)
    thumbnail_url: str | None = None
    thumbnail_alt: str | None = None
    folder_id: str | None = None
    author_id: str = ""

    @field_validator("tags", mode="before")
    @classmethod
    def _split_tag_string(cls, value: object) -> object:
        # Older rows store tags as one comma-separated string.
        if isinstance(value, str):
            return [tag for tag in value.split(",") if tag.strip()]
        if value is None:
            return []
        return value

    @property
    def is_published(self) -> bool:
        return self.status == DraftStatus.PUBLISHED


class PublishMetadata(BaseModel):
    """Metadata collected by the publish flow; required only to publish."""

    title: str = ""
    summary: str = ""
    tags: list[str] = Field(default_factory=list)
    thumbnail_url: str = ""
    thumbnail_alt: str = ""
