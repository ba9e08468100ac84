"""Payment status read path.

Resolves a player's status through an ordered fallback chain:
1. Current-month payment record
2. Previous-month payment record
3. Store-side status lookup, when the store has one
4. Legacy aggregate on the player entity (then self-heal the current month)

Steps 1-3 tolerate failure and fall through. Step 4 is terminal: its failure
propagates to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from club_payments.services.periods import Clock, YearMonth, utc_now
from club_payments.status import (
    DEFAULT_TRIAL_DAYS,
    LifecycleStatus,
    PaymentStatus,
    effective_lifecycle_status,
    is_paid_aggregate,
    to_storage,
    to_ui,
)
from club_payments.store.base import PaymentRecord, PaymentStore

logger = logging.getLogger(__name__)

SELF_HEAL_ACTOR = "status_resolver"


@dataclass(frozen=True)
class PlayerPaymentStatus:
    """Best known payment status of a player."""

    player_id: str
    status: PaymentStatus
    status_since: datetime
    source: str  # current_month/previous_month/remote/aggregate


@dataclass(frozen=True)
class PaymentHistoryEntry:
    """One month of a player's payment history, in UI vocabulary."""

    year: int
    month: int
    status: PaymentStatus
    updated_at: datetime
    updated_by: str | None


class PaymentStatusResolver:
    """Read path producing a player's best known payment status.

    The legacy aggregate is only consulted when no payment record or remote
    status is found, and only that path writes back (self-heals) a
    current-month record.
    """

    def __init__(
        self,
        store: PaymentStore,
        clock: Clock = utc_now,
        *,
        history_years: int = 2,
        trial_days: int = DEFAULT_TRIAL_DAYS,
    ):
        self.store = store
        self._clock = clock
        self._history_years = history_years
        self._trial_days = trial_days

    async def resolve(self, player_id: str) -> PlayerPaymentStatus | None:
        """Resolve the player's status, or None if nothing is known anywhere."""
        now = self._clock()
        current = YearMonth.of(now)

        record = await self._lookup_record(player_id, current)
        if record is not None:
            return self._from_record(record, "current_month")

        previous = current.previous()
        record = await self._lookup_record(player_id, previous)
        if record is not None:
            return self._from_record(record, "previous_month")

        try:
            remote = await self.store.remote_payment_status(player_id)
        except Exception:
            logger.warning(
                "Remote status lookup failed for player %s", player_id, exc_info=True
            )
            remote = None
        if remote is not None:
            return PlayerPaymentStatus(
                player_id=player_id,
                status=to_ui(remote.status),
                status_since=remote.status_since or now,
                source="remote",
            )

        aggregate = await self.store.get_player_aggregate(player_id)
        if aggregate is None:
            logger.warning("No payment status found for player %s", player_id)
            return None

        status = (
            PaymentStatus.PAID
            if is_paid_aggregate(aggregate.payment_status, aggregate.player_status)
            else PaymentStatus.UNPAID
        )
        logger.info(
            "Player %s resolved from aggregate (payment_status=%s, player_status=%s): %s",
            player_id,
            aggregate.payment_status,
            aggregate.player_status,
            status.value,
        )
        await self._self_heal(player_id, current, status, now)

        return PlayerPaymentStatus(
            player_id=player_id,
            status=status,
            status_since=aggregate.last_payment_date or now,
            source="aggregate",
        )

    async def current_month_status(self, player_id: str) -> PaymentStatus:
        """Status from the current-month record only.

        Missing records and lookup failures both read as unpaid.
        """
        current = YearMonth.of(self._clock())
        try:
            record = await self.store.get_monthly_payment(
                player_id, current.year, current.month
            )
        except Exception:
            logger.exception(
                "Current month lookup failed for player %s", player_id
            )
            return PaymentStatus.UNPAID
        if record is None:
            return PaymentStatus.UNPAID
        return to_ui(record.status)

    async def payment_history(self, player_id: str) -> list[PaymentHistoryEntry]:
        """Records from last year onward, newest first. Empty on failure."""
        since_year = self._clock().year - (self._history_years - 1)
        try:
            records = await self.store.list_payment_history(player_id, since_year)
        except Exception:
            logger.exception("Payment history lookup failed for player %s", player_id)
            return []
        return [
            PaymentHistoryEntry(
                year=r.year,
                month=r.month,
                status=to_ui(r.status),
                updated_at=r.updated_at,
                updated_by=r.updated_by,
            )
            for r in records
        ]

    async def lifecycle_status(self, player_id: str) -> LifecycleStatus | None:
        """Admin lifecycle status as displayed now (trial expiry applied)."""
        aggregate = await self.store.get_player_aggregate(player_id)
        if aggregate is None:
            return None
        return effective_lifecycle_status(
            aggregate.payment_status,
            aggregate.created_at,
            self._clock(),
            self._trial_days,
        )

    async def _lookup_record(
        self, player_id: str, period: YearMonth
    ) -> PaymentRecord | None:
        try:
            return await self.store.get_monthly_payment(
                player_id, period.year, period.month
            )
        except Exception:
            logger.warning(
                "Payment record lookup for player %s %s failed",
                player_id,
                period.key,
                exc_info=True,
            )
            return None

    async def _self_heal(
        self,
        player_id: str,
        period: YearMonth,
        status: PaymentStatus,
        now: datetime,
    ) -> None:
        """Write the derived status for the current month if no record exists yet."""
        record = PaymentRecord(
            player_id=player_id,
            year=period.year,
            month=period.month,
            status=to_storage(status).value,
            updated_at=now,
            updated_by=SELF_HEAL_ACTOR,
        )
        try:
            inserted = await self.store.insert_monthly_payment_if_absent(record)
        except Exception:
            logger.exception(
                "Self-heal of %s record for player %s failed", period.key, player_id
            )
            return
        if not inserted:
            logger.debug(
                "Kept existing %s record for player %s; not self-healing",
                period.key,
                player_id,
            )
            return
        logger.info("Self-healed %s record for player %s", period.key, player_id)

    @staticmethod
    def _from_record(record: PaymentRecord, source: str) -> PlayerPaymentStatus:
        return PlayerPaymentStatus(
            player_id=record.player_id,
            status=to_ui(record.status),
            status_since=record.updated_at,
            source=source,
        )
