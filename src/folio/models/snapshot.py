"""Version snapshot model — immutable, manually recorded copies of a draft."""

from __future__ import annotations

from pydantic import ConfigDict

from folio.models.base import DocumentBase
from folio.models.content import ElementNode


class VersionSnapshot(DocumentBase):
    """A checkpoint of a draft's title and content at a point in time."""

    model_config = ConfigDict(frozen=True)

    post_id: str
    actor_id: str
    title: str
    content: ElementNode
