"""Event names and refresh categories.

Events are published positionally. The payment status event carries
``(player_id, status, last_payment_date)`` where status is ``paid`` or
``unpaid`` and last_payment_date is a datetime or None.
"""

from __future__ import annotations

from enum import Enum


class EventName(str, Enum):
    """Events published on the change notification bus."""

    PAYMENT_STATUS_CHANGED = "payment_status_changed"
    PAYMENT_COLLECTION_ADDED = "payment_collection_added"
    PAYMENT_COLLECTION_PROCESSED = "payment_collection_processed"


class RefreshCategory(str, Enum):
    """Data categories tracked by the invalidation tracker."""

    PLAYERS = "players"
    PAYMENTS = "payments"
    TEAMS = "teams"


# Categories bumped on every publish of the event, subscribers or not.
INVALIDATES: dict[str, tuple[str, ...]] = {
    EventName.PAYMENT_STATUS_CHANGED.value: (
        RefreshCategory.PLAYERS.value,
        RefreshCategory.PAYMENTS.value,
    ),
    EventName.PAYMENT_COLLECTION_ADDED.value: (RefreshCategory.PAYMENTS.value,),
    EventName.PAYMENT_COLLECTION_PROCESSED.value: (
        RefreshCategory.PLAYERS.value,
        RefreshCategory.PAYMENTS.value,
    ),
}


def event_key(event: EventName | str) -> str:
    """Plain string key for an event name."""
    return event.value if isinstance(event, EventName) else event


def category_key(category: RefreshCategory | str) -> str:
    """Plain string key for a refresh category."""
    return category.value if isinstance(category, RefreshCategory) else category
