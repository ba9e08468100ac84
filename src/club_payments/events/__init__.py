"""Change notification and refresh invalidation.

This package provides:
- Event names and refresh categories
- The change notification bus
- The per-category invalidation tracker
- The debounced refresh subscriber used by display surfaces
"""

from club_payments.events.bus import ChangeNotificationBus, Handler
from club_payments.events.subscriber import (
    DebouncedRefreshSubscriber,
    InvalidSubscriberTransition,
    SubscriberState,
)
from club_payments.events.tracker import INITIAL_VERSION, RefreshInvalidationTracker
from club_payments.events.types import INVALIDATES, EventName, RefreshCategory

__all__ = [
    "ChangeNotificationBus",
    "Handler",
    "DebouncedRefreshSubscriber",
    "InvalidSubscriberTransition",
    "SubscriberState",
    "INITIAL_VERSION",
    "RefreshInvalidationTracker",
    "INVALIDATES",
    "EventName",
    "RefreshCategory",
]
