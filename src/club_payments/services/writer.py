"""Payment status write path.

Order of effects for every update:
1. Upsert the monthly payment record (failure aborts, nothing is published)
2. Best-effort update of the legacy aggregate on the player (failure is logged)
3. Publish payment_status_changed
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from club_payments.events.bus import ChangeNotificationBus
from club_payments.events.types import EventName
from club_payments.services.periods import Clock, YearMonth, utc_now, validate_month
from club_payments.status import (
    LifecycleStatus,
    PaymentStatus,
    lifecycle_to_ui,
    parse_lifecycle_status,
    parse_payment_status,
    to_storage,
)
from club_payments.store.base import PaymentRecord, PaymentStore

logger = logging.getLogger(__name__)

DEFAULT_ACTOR = "app_user"


@dataclass(frozen=True)
class StatusUpdateResult:
    """Outcome of a status update.

    ``aggregate_updated`` is False when the legacy aggregate write failed or
    was skipped; the payment record is authoritative either way.
    """

    record: PaymentRecord
    status: PaymentStatus
    last_payment_date: datetime | None
    aggregate_updated: bool

    @property
    def player_id(self) -> str:
        return self.record.player_id


@dataclass(frozen=True)
class LifecycleUpdateResult(StatusUpdateResult):
    """Outcome of an admin lifecycle status update."""

    lifecycle_status: LifecycleStatus = LifecycleStatus.NO_DATA


class PaymentStatusWriter:
    """Writes status changes and announces them on the bus.

    Re-issuing the same status for the same month rewrites only updated_at
    and updated_by, and still publishes; subscribers must tolerate redundant
    notifications.
    """

    def __init__(
        self,
        store: PaymentStore,
        bus: ChangeNotificationBus,
        clock: Clock = utc_now,
    ):
        self.store = store
        self.bus = bus
        self._clock = clock

    async def update_status(
        self,
        player_id: str,
        status: PaymentStatus | str,
        updated_by: str = DEFAULT_ACTOR,
        *,
        year: int | None = None,
        month: int | None = None,
    ) -> StatusUpdateResult:
        """Set a player's paid/unpaid status for a month (default: current).

        Only current-month writes touch the aggregate and carry a
        last_payment_date; for other months it is None in the result and event.

        Raises:
            InvalidStatusError: status is not paid/unpaid
            InvalidMonthError: month outside 1..12
            StoreError: the payment record could not be written
        """
        status = parse_payment_status(status)
        now = self._clock()
        period = self._target_period(now, year, month)

        record = await self._write_record(player_id, period, status, now, updated_by)

        current_month = period == YearMonth.of(now)
        last_payment_date = (
            now if status is PaymentStatus.PAID and current_month else None
        )
        aggregate_updated = False
        if current_month:
            aggregate_updated = await self._write_aggregate(
                player_id,
                payment_status=to_storage(status).value,
                last_payment_date=last_payment_date,
            )
        else:
            logger.debug(
                "Skipping aggregate update for player %s: %s is not the current month",
                player_id,
                period.key,
            )

        self._announce(player_id, status, last_payment_date)
        return StatusUpdateResult(
            record=record,
            status=status,
            last_payment_date=last_payment_date,
            aggregate_updated=aggregate_updated,
        )

    async def update_lifecycle_status(
        self,
        player_id: str,
        lifecycle_status: LifecycleStatus | str,
        updated_by: str = DEFAULT_ACTOR,
    ) -> LifecycleUpdateResult:
        """Set an admin lifecycle status.

        The lifecycle value goes onto the aggregate as is; the current-month
        record gets the collapsed paid/unpaid status.
        """
        lifecycle_status = parse_lifecycle_status(lifecycle_status)
        status = lifecycle_to_ui(lifecycle_status)
        now = self._clock()
        period = YearMonth.of(now)

        record = await self._write_record(player_id, period, status, now, updated_by)

        last_payment_date = now if status is PaymentStatus.PAID else None
        aggregate_updated = await self._write_aggregate(
            player_id,
            payment_status=lifecycle_status.value,
            last_payment_date=last_payment_date,
        )

        self._announce(player_id, status, last_payment_date)
        return LifecycleUpdateResult(
            record=record,
            status=status,
            last_payment_date=last_payment_date,
            aggregate_updated=aggregate_updated,
            lifecycle_status=lifecycle_status,
        )

    @staticmethod
    def _target_period(
        now: datetime, year: int | None, month: int | None
    ) -> YearMonth:
        current = YearMonth.of(now)
        return YearMonth(
            year if year is not None else current.year,
            validate_month(month) if month is not None else current.month,
        )

    async def _write_record(
        self,
        player_id: str,
        period: YearMonth,
        status: PaymentStatus,
        now: datetime,
        updated_by: str,
    ) -> PaymentRecord:
        record = PaymentRecord(
            player_id=player_id,
            year=period.year,
            month=period.month,
            status=to_storage(status).value,
            updated_at=now,
            updated_by=updated_by,
        )
        try:
            return await self.store.upsert_monthly_payment(record)
        except Exception:
            logger.exception(
                "Failed to write %s payment record for player %s", period.key, player_id
            )
            raise

    async def _write_aggregate(self, player_id: str, **fields: Any) -> bool:
        try:
            await self.store.update_player_aggregate(player_id, **fields)
        except Exception:
            logger.exception(
                "Failed to update aggregate payment fields for player %s", player_id
            )
            return False
        return True

    def _announce(
        self,
        player_id: str,
        status: PaymentStatus,
        last_payment_date: datetime | None,
    ) -> None:
        logger.info("Payment status of player %s set to %s", player_id, status.value)
        self.bus.publish(
            EventName.PAYMENT_STATUS_CHANGED,
            player_id,
            status.value,
            last_payment_date,
        )
