"""Tests for the payment status read path."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from club_payments.errors import StoreError
from club_payments.events import ChangeNotificationBus, RefreshInvalidationTracker
from club_payments.services import PaymentStatusResolver, PaymentStatusWriter
from club_payments.services.resolver import SELF_HEAL_ACTOR
from club_payments.status import LifecycleStatus, PaymentStatus
from club_payments.store import InMemoryPaymentStore, RemoteStatus

from .conftest import NOW, FixedClock, make_record

pytestmark = pytest.mark.asyncio


class TestResolveFallbackOrder:
    """Current month, previous month, remote lookup, then aggregate."""

    async def test_current_month_record_wins(
        self, resolver: PaymentStatusResolver, store: InMemoryPaymentStore
    ):
        store.records[("p1", 2025, 4)] = make_record("p1", 2025, 4, "paid")
        store.records[("p1", 2025, 3)] = make_record("p1", 2025, 3, "not_paid")
        store.add_player("p1", payment_status="not_paid")

        resolved = await resolver.resolve("p1")

        assert resolved.status is PaymentStatus.PAID
        assert resolved.source == "current_month"
        assert resolved.status_since == store.records[("p1", 2025, 4)].updated_at

    async def test_previous_month_does_not_self_heal(
        self, resolver: PaymentStatusResolver, store: InMemoryPaymentStore
    ):
        """A March record read in April is returned without writing April."""
        store.records[("p1", 2025, 3)] = make_record("p1", 2025, 3, "paid")

        resolved = await resolver.resolve("p1")

        assert resolved.status is PaymentStatus.PAID
        assert resolved.source == "previous_month"
        assert ("p1", 2025, 4) not in store.records
        assert "insert_monthly_payment_if_absent" not in store.calls
        assert "get_player_aggregate" not in store.calls

    async def test_previous_month_wraps_year(self, store: InMemoryPaymentStore):
        resolver = PaymentStatusResolver(
            store, FixedClock(datetime(2025, 1, 10, tzinfo=timezone.utc))
        )
        store.records[("p1", 2024, 12)] = make_record("p1", 2024, 12, "not_paid")

        resolved = await resolver.resolve("p1")

        assert resolved.status is PaymentStatus.UNPAID
        assert resolved.source == "previous_month"

    async def test_remote_status_used_before_aggregate(self, clock: FixedClock):
        store = InMemoryPaymentStore(supports_remote_status=True)
        since = NOW - timedelta(days=3)
        store.remote_statuses["p1"] = RemoteStatus("paid", since)
        store.add_player("p1", payment_status="not_paid")
        resolver = PaymentStatusResolver(store, clock)

        resolved = await resolver.resolve("p1")

        assert resolved.status is PaymentStatus.PAID
        assert resolved.source == "remote"
        assert resolved.status_since == since
        assert "get_player_aggregate" not in store.calls

    async def test_remote_status_without_timestamp(self, clock: FixedClock):
        store = InMemoryPaymentStore(supports_remote_status=True)
        store.remote_statuses["p1"] = RemoteStatus("not_paid")
        resolver = PaymentStatusResolver(store, clock)

        resolved = await resolver.resolve("p1")

        assert resolved.status is PaymentStatus.UNPAID
        assert resolved.status_since == NOW

    async def test_nothing_found_returns_none(
        self, resolver: PaymentStatusResolver, store: InMemoryPaymentStore
    ):
        assert await resolver.resolve("ghost") is None
        assert "insert_monthly_payment_if_absent" not in store.calls


class TestAggregateFallback:
    """Legacy aggregate on the player entity."""

    @pytest.mark.parametrize(
        "payment_status, player_status, expected",
        [
            ("paid", None, PaymentStatus.PAID),
            ("not_paid", "paid", PaymentStatus.PAID),
            ("on_trial", "active", PaymentStatus.UNPAID),
            (None, None, PaymentStatus.UNPAID),
        ],
    )
    async def test_aggregate_rule(
        self,
        resolver: PaymentStatusResolver,
        store: InMemoryPaymentStore,
        payment_status,
        player_status,
        expected,
    ):
        store.add_player(
            "p1", payment_status=payment_status, player_status=player_status
        )

        resolved = await resolver.resolve("p1")

        assert resolved.status is expected
        assert resolved.source == "aggregate"

    async def test_self_heal_writes_current_month(
        self, resolver: PaymentStatusResolver, store: InMemoryPaymentStore
    ):
        """The aggregate fallback writes back a current-month record."""
        paid_at = NOW - timedelta(days=40)
        store.add_player("p1", payment_status="paid", last_payment_date=paid_at)

        resolved = await resolver.resolve("p1")

        assert resolved.status_since == paid_at
        healed = store.records[("p1", 2025, 4)]
        assert healed.status == "paid"
        assert healed.updated_by == SELF_HEAL_ACTOR
        assert healed.updated_at == NOW

    async def test_self_heal_converges(
        self, resolver: PaymentStatusResolver, store: InMemoryPaymentStore
    ):
        """After a heal the next resolve is served from the current month."""
        store.add_player("p1", payment_status="not_paid")

        first = await resolver.resolve("p1")
        store.calls.clear()
        second = await resolver.resolve("p1")

        assert first.source == "aggregate"
        assert second.source == "current_month"
        assert second.status is first.status is PaymentStatus.UNPAID
        assert store.calls == ["get_monthly_payment"]

    async def test_self_heal_failure_still_returns_status(
        self, resolver: PaymentStatusResolver, store: InMemoryPaymentStore, caplog
    ):
        store.add_player("p1", payment_status="paid")
        store.fail("insert_monthly_payment_if_absent")

        resolved = await resolver.resolve("p1")

        assert resolved.status is PaymentStatus.PAID
        assert store.records == {}
        assert "Self-heal of 2025-4 record for player p1 failed" in caplog.text

    async def test_record_lookup_failures_fall_through(
        self, resolver: PaymentStatusResolver, store: InMemoryPaymentStore
    ):
        """Failed record and remote lookups are treated as not found."""
        store.records[("p1", 2025, 4)] = make_record("p1", 2025, 4, "not_paid")
        store.add_player("p1", payment_status="paid")
        store.fail("get_monthly_payment", "remote_payment_status")

        resolved = await resolver.resolve("p1")

        assert resolved.status is PaymentStatus.PAID
        assert resolved.source == "aggregate"

    async def test_aggregate_failure_propagates(
        self, resolver: PaymentStatusResolver, store: InMemoryPaymentStore
    ):
        store.fail("get_player_aggregate")

        with pytest.raises(StoreError) as exc_info:
            await resolver.resolve("p1")

        assert exc_info.value.operation == "get_player_aggregate"


class SlowAggregateStore(InMemoryPaymentStore):
    """Holds each aggregate read until released."""

    def __init__(self) -> None:
        super().__init__()
        self.aggregate_read = asyncio.Event()
        self.release = asyncio.Event()

    async def get_player_aggregate(self, player_id):
        aggregate = await super().get_player_aggregate(player_id)
        self.aggregate_read.set()
        await self.release.wait()
        return aggregate


class TestSelfHealWithConcurrentWrite:
    """Self-heal never replaces a record written while it was resolving."""

    async def test_write_during_resolve_is_kept(self, clock: FixedClock):
        store = SlowAggregateStore()
        store.add_player("p1", payment_status="not_paid")
        resolver = PaymentStatusResolver(store, clock)
        writer = PaymentStatusWriter(
            store, ChangeNotificationBus(RefreshInvalidationTracker()), clock
        )

        resolving = asyncio.create_task(resolver.resolve("p1"))
        await store.aggregate_read.wait()
        await writer.update_status("p1", "paid", "coach-1")
        store.release.set()
        resolved = await resolving

        assert resolved.source == "aggregate"
        record = store.records[("p1", 2025, 4)]
        assert record.status == "paid"
        assert record.updated_by == "coach-1"
        assert store.calls[-1] == "insert_monthly_payment_if_absent"

    async def test_next_resolve_sees_the_write(self, clock: FixedClock):
        store = SlowAggregateStore()
        store.add_player("p1", payment_status="not_paid")
        resolver = PaymentStatusResolver(store, clock)

        resolving = asyncio.create_task(resolver.resolve("p1"))
        await store.aggregate_read.wait()
        store.records[("p1", 2025, 4)] = make_record("p1", 2025, 4, "paid")
        store.release.set()
        await resolving

        resolved = await resolver.resolve("p1")

        assert resolved.status is PaymentStatus.PAID
        assert resolved.source == "current_month"
        assert store.records[("p1", 2025, 4)].updated_by == "admin"


class TestCurrentMonthStatus:
    async def test_reads_current_month_only(
        self, resolver: PaymentStatusResolver, store: InMemoryPaymentStore
    ):
        store.records[("p1", 2025, 3)] = make_record("p1", 2025, 3, "paid")
        assert await resolver.current_month_status("p1") is PaymentStatus.UNPAID

        store.records[("p1", 2025, 4)] = make_record("p1", 2025, 4, "paid")
        assert await resolver.current_month_status("p1") is PaymentStatus.PAID

    async def test_failure_reads_unpaid(
        self, resolver: PaymentStatusResolver, store: InMemoryPaymentStore
    ):
        store.records[("p1", 2025, 4)] = make_record("p1", 2025, 4, "paid")
        store.fail("get_monthly_payment")
        assert await resolver.current_month_status("p1") is PaymentStatus.UNPAID


class TestPaymentHistory:
    async def test_history_from_last_year_newest_first(
        self, resolver: PaymentStatusResolver, store: InMemoryPaymentStore
    ):
        for year, month, status in [
            (2023, 12, "paid"),
            (2024, 1, "paid"),
            (2024, 11, "not_paid"),
            (2025, 2, "paid"),
        ]:
            store.records[("p1", year, month)] = make_record("p1", year, month, status)
        store.records[("p2", 2025, 1)] = make_record("p2", 2025, 1)

        entries = await resolver.payment_history("p1")

        assert [(e.year, e.month) for e in entries] == [(2025, 2), (2024, 11), (2024, 1)]
        assert [e.status for e in entries] == [
            PaymentStatus.PAID,
            PaymentStatus.UNPAID,
            PaymentStatus.PAID,
        ]
        assert entries[0].updated_by == "admin"

    async def test_history_failure_is_empty(
        self, resolver: PaymentStatusResolver, store: InMemoryPaymentStore
    ):
        store.records[("p1", 2025, 2)] = make_record("p1", 2025, 2)
        store.fail("list_payment_history")
        assert await resolver.payment_history("p1") == []


class TestLifecycleStatus:
    async def test_trial_expiry_applied_on_read(
        self, resolver: PaymentStatusResolver, store: InMemoryPaymentStore
    ):
        store.add_player(
            "p1", payment_status="on_trial", created_at=NOW - timedelta(days=31)
        )
        store.add_player(
            "p2", payment_status="on_trial", created_at=NOW - timedelta(days=2)
        )

        assert await resolver.lifecycle_status("p1") is LifecycleStatus.TRIAL_ENDED
        assert await resolver.lifecycle_status("p2") is LifecycleStatus.ON_TRIAL
        # Nothing is written back.
        assert store.players["p1"].payment_status == "on_trial"

    async def test_unknown_player(self, resolver: PaymentStatusResolver):
        assert await resolver.lifecycle_status("ghost") is None
