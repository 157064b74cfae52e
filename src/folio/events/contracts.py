"""Typed contracts for cross-view notifications."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

DRAFT_UPDATED = "draft-updated"
REFRESH_DRAFTS = "refresh-drafts"


class EventEnvelope(BaseModel):
    """Canonical envelope delivered to bus listeners."""

    event: str
    data: dict[str, Any] = {}


class DraftUpdated(BaseModel):
    """Partial patch for a single draft; unset fields are not part of the patch."""

    id: str
    title: str | None = None
    slug: str | None = None
    folder_id: str | None = None

    def patch(self) -> dict[str, Any]:
        """Return only the fields the emitter actually set."""
        return self.model_dump(exclude_unset=True, exclude={"id"})
