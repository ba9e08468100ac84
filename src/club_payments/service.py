"""Payment status facade.

Constructed once at application start and passed to every consumer. It owns
the invalidation tracker and the notification bus, so there is exactly one
writer of refresh versions per process and no module-level state.

Usage:
    service = PaymentStatusService(store)

    status = await service.get_status(player_id)
    await service.set_status(player_id, "paid", updated_by=coach_id)
    months = await service.team_month_status(team_id, 2025)

    subscriber = service.create_subscriber("payments", reload_screen)
"""

from __future__ import annotations

from collections.abc import Iterable

from club_payments.config import RefreshConfig, Settings
from club_payments.events.bus import ChangeNotificationBus
from club_payments.events.subscriber import DebouncedRefreshSubscriber, RefreshCallback
from club_payments.events.tracker import RefreshInvalidationTracker
from club_payments.events.types import RefreshCategory
from club_payments.services.aggregator import (
    MonthClassification,
    MonthlyStatusAggregator,
    MonthRoster,
)
from club_payments.services.periods import Clock, utc_now
from club_payments.services.resolver import (
    PaymentHistoryEntry,
    PaymentStatusResolver,
    PlayerPaymentStatus,
)
from club_payments.services.writer import (
    DEFAULT_ACTOR,
    LifecycleUpdateResult,
    PaymentStatusWriter,
    StatusUpdateResult,
)
from club_payments.status import DEFAULT_TRIAL_DAYS, LifecycleStatus, PaymentStatus
from club_payments.store.base import PaymentStore


class PaymentStatusService:
    """Wires the store, tracker, bus, resolver, writer and aggregator together."""

    def __init__(
        self,
        store: PaymentStore,
        *,
        refresh_config: RefreshConfig | None = None,
        clock: Clock = utc_now,
        trial_days: int = DEFAULT_TRIAL_DAYS,
        history_years: int = 2,
    ):
        self.store = store
        self.refresh_config = refresh_config or RefreshConfig()
        self.tracker = RefreshInvalidationTracker()
        self.bus = ChangeNotificationBus(self.tracker)
        self.resolver = PaymentStatusResolver(
            store, clock, history_years=history_years, trial_days=trial_days
        )
        self.writer = PaymentStatusWriter(store, self.bus, clock)
        self.aggregator = MonthlyStatusAggregator(store, clock)

    @classmethod
    def from_settings(
        cls, store: PaymentStore, settings: Settings, clock: Clock = utc_now
    ) -> PaymentStatusService:
        return cls(
            store,
            refresh_config=RefreshConfig.from_settings(settings),
            clock=clock,
            trial_days=settings.trial_days,
            history_years=settings.history_years,
        )

    async def get_status(self, player_id: str) -> PlayerPaymentStatus | None:
        return await self.resolver.resolve(player_id)

    async def current_month_status(self, player_id: str) -> PaymentStatus:
        return await self.resolver.current_month_status(player_id)

    async def payment_history(self, player_id: str) -> list[PaymentHistoryEntry]:
        return await self.resolver.payment_history(player_id)

    async def lifecycle_status(self, player_id: str) -> LifecycleStatus | None:
        return await self.resolver.lifecycle_status(player_id)

    async def set_status(
        self,
        player_id: str,
        status: PaymentStatus | str,
        updated_by: str = DEFAULT_ACTOR,
        *,
        year: int | None = None,
        month: int | None = None,
    ) -> StatusUpdateResult:
        return await self.writer.update_status(
            player_id, status, updated_by, year=year, month=month
        )

    async def set_lifecycle_status(
        self,
        player_id: str,
        status: LifecycleStatus | str,
        updated_by: str = DEFAULT_ACTOR,
    ) -> LifecycleUpdateResult:
        return await self.writer.update_lifecycle_status(player_id, status, updated_by)

    async def month_status(
        self, player_ids: Iterable[str], year: int
    ) -> dict[str, MonthClassification]:
        return await self.aggregator.month_status(player_ids, year)

    async def team_month_status(
        self, team_id: str, year: int
    ) -> dict[str, MonthClassification]:
        return await self.aggregator.team_month_status(team_id, year)

    async def team_month_roster(self, team_id: str, year: int, month: int) -> MonthRoster:
        return await self.aggregator.team_month_roster(team_id, year, month)

    def create_subscriber(
        self,
        category: RefreshCategory | str,
        refresh: RefreshCallback,
        *,
        name: str | None = None,
    ) -> DebouncedRefreshSubscriber:
        """Subscriber for a display surface, using the configured timings."""
        return DebouncedRefreshSubscriber(
            self.tracker, category, refresh, self.refresh_config, name=name
        )
