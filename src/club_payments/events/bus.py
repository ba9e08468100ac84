"""In-process change notification bus.

The bus provides:
- Handler registration per event name, with an unsubscribe callable
- Synchronous fan-out in registration order
- Error isolation (handler failures don't break other handlers)
- Unconditional invalidation of refresh categories for known events
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from club_payments.events.tracker import RefreshInvalidationTracker
from club_payments.events.types import INVALIDATES, EventName, event_key

logger = logging.getLogger(__name__)

Handler = Callable[..., Any]


class ChangeNotificationBus:
    """Publish/subscribe registry plus a polling side channel.

    Publishing an event listed in INVALIDATES always bumps the tracker for
    its categories, even with no subscribers, so consumers that only poll
    the tracker still learn about the change.

    Usage:
        bus = ChangeNotificationBus(tracker)

        unsubscribe = bus.subscribe("payment_status_changed", on_change)
        bus.publish("payment_status_changed", player_id, "paid", paid_at)
        unsubscribe()
    """

    def __init__(self, tracker: RefreshInvalidationTracker) -> None:
        self._tracker = tracker
        self._handlers: dict[str, list[Handler]] = {}

    @property
    def tracker(self) -> RefreshInvalidationTracker:
        return self._tracker

    def subscribe(self, event: EventName | str, handler: Handler) -> Callable[[], None]:
        """Register handler for an event. Returns a callable that unregisters it."""
        key = event_key(event)
        self._handlers.setdefault(key, []).append(handler)
        logger.debug("Registered handler %r for %s", handler, key)

        def unsubscribe() -> None:
            self.unsubscribe(key, handler)

        return unsubscribe

    def unsubscribe(self, event: EventName | str, handler: Handler) -> None:
        """Unregister a handler. Unknown handlers are ignored."""
        key = event_key(event)
        handlers = self._handlers.get(key)
        if not handlers:
            return
        try:
            handlers.remove(handler)
        except ValueError:
            return
        if not handlers:
            del self._handlers[key]
        logger.debug("Unregistered handler %r for %s", handler, key)

    def handler_count(self, event: EventName | str) -> int:
        return len(self._handlers.get(event_key(event), ()))

    def publish(self, event: EventName | str, *payload: Any) -> list[Exception]:
        """Publish an event to all handlers registered for it.

        Returns list of any exceptions raised by handlers.
        Handlers are isolated - failures don't stop other handlers.
        """
        key = event_key(event)

        for category in INVALIDATES.get(key, ()):
            self._tracker.bump(category)

        # Copy so handlers may unsubscribe while being called.
        handlers = list(self._handlers.get(key, ()))
        if not handlers:
            logger.debug("No handlers registered for %s", key)
            return []

        errors: list[Exception] = []
        for handler in handlers:
            try:
                handler(*payload)
            except Exception as e:
                logger.exception("Handler %r failed for event %s", handler, key)
                errors.append(e)
        return errors
