"""Pytest fixtures for club payments tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from club_payments.config import RefreshConfig
from club_payments.events import ChangeNotificationBus, RefreshInvalidationTracker
from club_payments.service import PaymentStatusService
from club_payments.services import (
    MonthlyStatusAggregator,
    PaymentStatusResolver,
    PaymentStatusWriter,
)
from club_payments.store import InMemoryPaymentStore, PaymentRecord

# Mid-April 2025; the previous month is March 2025.
NOW = datetime(2025, 4, 15, 12, 0, tzinfo=timezone.utc)

# Short timings so subscriber tests run in well under a second.
FAST_REFRESH = RefreshConfig(poll_interval=0.01, debounce=0.08, min_refresh_interval=0.05)


class FixedClock:
    """Settable wall clock for services."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


def make_record(
    player_id: str,
    year: int,
    month: int,
    status: str = "paid",
    updated_at: datetime | None = None,
    updated_by: str | None = "admin",
) -> PaymentRecord:
    return PaymentRecord(
        player_id=player_id,
        year=year,
        month=month,
        status=status,
        updated_at=updated_at or datetime(year, month, 2, 9, 0, tzinfo=timezone.utc),
        updated_by=updated_by,
    )


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def store() -> InMemoryPaymentStore:
    return InMemoryPaymentStore()


@pytest.fixture
def tracker() -> RefreshInvalidationTracker:
    return RefreshInvalidationTracker()


@pytest.fixture
def bus(tracker: RefreshInvalidationTracker) -> ChangeNotificationBus:
    return ChangeNotificationBus(tracker)


@pytest.fixture
def resolver(store: InMemoryPaymentStore, clock: FixedClock) -> PaymentStatusResolver:
    return PaymentStatusResolver(store, clock)


@pytest.fixture
def writer(
    store: InMemoryPaymentStore, bus: ChangeNotificationBus, clock: FixedClock
) -> PaymentStatusWriter:
    return PaymentStatusWriter(store, bus, clock)


@pytest.fixture
def aggregator(store: InMemoryPaymentStore, clock: FixedClock) -> MonthlyStatusAggregator:
    return MonthlyStatusAggregator(store, clock)


@pytest.fixture
def service(store: InMemoryPaymentStore, clock: FixedClock) -> PaymentStatusService:
    return PaymentStatusService(store, refresh_config=FAST_REFRESH, clock=clock)
