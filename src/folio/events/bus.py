"""In-process notification bus connecting independently mounted views.

Delivery is fire-and-forget: an event reaches the listeners registered at the
moment it is published, in registration order, at most once each. Nothing is
buffered or replayed, so a view mounted later must fetch authoritative state
itself.
"""

from __future__ import annotations

import inspect
import logging
from collections import defaultdict
from typing import TYPE_CHECKING, Any

from folio.events.contracts import DRAFT_UPDATED, REFRESH_DRAFTS, DraftUpdated, EventEnvelope

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    Listener = Callable[[EventEnvelope], Awaitable[None] | None]

logger = logging.getLogger(__name__)


class Subscription:
    """Handle returned by ``NotificationBus.subscribe``; close it on teardown."""

    def __init__(self, bus: NotificationBus, event_type: str, listener: Listener) -> None:
        self._bus = bus
        self._event_type = event_type
        self._listener = listener
        self.active = True

    def close(self) -> None:
        if self.active:
            self._bus._remove(self._event_type, self._listener)  # noqa: SLF001
            self.active = False


class NotificationBus:
    """Typed observer registry implementing the ``EventPublisher`` protocol."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def subscribe(self, event_type: str, listener: Listener) -> Subscription:
        self._listeners[event_type].append(listener)
        return Subscription(self, event_type, listener)

    def _remove(self, event_type: str, listener: Listener) -> None:
        listeners = self._listeners.get(event_type, [])
        if listener in listeners:
            listeners.remove(listener)

    def listener_count(self, event_type: str) -> int:
        return len(self._listeners.get(event_type, []))

    async def publish(self, event_type: str, data: dict[str, Any] | str | None = None) -> int:
        """Deliver an event to the current listeners. Returns how many were reached."""
        payload = data if isinstance(data, dict) else {}
        envelope = EventEnvelope(event=event_type, data=payload)
        delivered = 0
        for listener in list(self._listeners.get(event_type, [])):
            try:
                result = listener(envelope)
                if inspect.isawaitable(result):
                    await result
                delivered += 1
            except Exception:  # noqa: BLE001
                logger.warning("Listener failed for event=%s", event_type, exc_info=True)
        logger.debug("Published event=%s to %d listeners", event_type, delivered)
        return delivered

    async def draft_updated(self, draft_id: str, **fields: Any) -> int:
        event = DraftUpdated(id=draft_id, **fields)
        return await self.publish(DRAFT_UPDATED, event.model_dump(exclude_unset=True))

    async def refresh_drafts(self) -> int:
        return await self.publish(REFRESH_DRAFTS)
