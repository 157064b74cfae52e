"""Event contracts and the in-process notification bus."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from folio.events.bus import NotificationBus, Subscription
from folio.events.contracts import DRAFT_UPDATED, REFRESH_DRAFTS, DraftUpdated, EventEnvelope


@runtime_checkable
class EventPublisher(Protocol):
    """Protocol for publishing draft events to mounted views."""

    async def publish(self, event_type: str, data: dict[str, Any] | str | None = None) -> int:
        """Broadcast an event to all currently registered listeners."""
        ...


__all__ = [
    "DRAFT_UPDATED",
    "REFRESH_DRAFTS",
    "DraftUpdated",
    "EventEnvelope",
    "EventPublisher",
    "NotificationBus",
    "Subscription",
]
