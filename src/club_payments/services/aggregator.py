"""Monthly paid-ratio roll-up and month rosters for a set of players."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from club_payments.services.periods import (
    Clock,
    YearMonth,
    month_key,
    utc_now,
    validate_month,
)
from club_payments.status import PaymentStatus, StoredPaymentStatus, to_ui
from club_payments.store.base import PaymentRecord, PaymentStore

logger = logging.getLogger(__name__)


class MonthClassification(str, Enum):
    """Whether every player of the set paid for a month."""

    ALL_PAID = "all_paid"
    NOT_ALL_PAID = "not_all_paid"


@dataclass
class MonthTally:
    paid_count: int = 0
    total_count: int = 0

    @property
    def classification(self) -> MonthClassification:
        if self.total_count > 0 and self.paid_count == self.total_count:
            return MonthClassification.ALL_PAID
        return MonthClassification.NOT_ALL_PAID


@dataclass(frozen=True)
class RosterEntry:
    """One player's status for a single month."""

    player_id: str
    name: str | None
    status: PaymentStatus
    updated_at: datetime | None = None
    updated_by: str | None = None


@dataclass(frozen=True)
class MonthRoster:
    team_id: str
    year: int
    month: int
    entries: list[RosterEntry] = field(default_factory=list)

    @property
    def total_players(self) -> int:
        return len(self.entries)

    @property
    def paid_players(self) -> int:
        return sum(1 for e in self.entries if e.status is PaymentStatus.PAID)

    @property
    def unpaid_players(self) -> int:
        return self.total_players - self.paid_players


def tally_months(
    player_ids: Iterable[str], records: Iterable[PaymentRecord], year: int
) -> dict[str, MonthTally]:
    """Count players and paid records per month of the year."""
    players = list(dict.fromkeys(player_ids))
    tallies: dict[str, MonthTally] = {}
    for _ in players:
        for month in range(1, 13):
            tallies.setdefault(month_key(year, month), MonthTally()).total_count += 1

    wanted = set(players)
    for record in records:
        if record.player_id not in wanted:
            continue
        if record.status != StoredPaymentStatus.PAID:
            continue
        tally = tallies.get(month_key(record.year, record.month))
        if tally is not None:
            tally.paid_count += 1
    return tallies


def classify_months(
    player_ids: Iterable[str], records: Iterable[PaymentRecord], year: int
) -> dict[str, MonthClassification]:
    """Map ``"year-month"`` to its classification; months without players are absent."""
    return {
        key: tally.classification
        for key, tally in tally_months(player_ids, records, year).items()
        if tally.total_count > 0
    }


class MonthlyStatusAggregator:
    """Recomputes monthly classifications from the store on every call.

    Store failures propagate; callers should show an empty or error state
    rather than a classification.
    """

    def __init__(self, store: PaymentStore, clock: Clock = utc_now):
        self.store = store
        self._clock = clock

    async def month_status(
        self, player_ids: Iterable[str], year: int
    ) -> dict[str, MonthClassification]:
        players = list(dict.fromkeys(player_ids))
        if not players:
            return {}
        records = await self.store.list_monthly_payments(players, year)
        return classify_months(players, records, year)

    async def team_month_status(
        self, team_id: str, year: int
    ) -> dict[str, MonthClassification]:
        player_ids = await self.store.list_team_player_ids(team_id)
        return await self.month_status(player_ids, year)

    async def month_tallies(
        self, player_ids: Iterable[str], year: int
    ) -> dict[str, MonthTally]:
        players = list(dict.fromkeys(player_ids))
        if not players:
            return {}
        records = await self.store.list_monthly_payments(players, year)
        return tally_months(players, records, year)

    async def team_month_roster(self, team_id: str, year: int, month: int) -> MonthRoster:
        """Per-player status of a team for one month.

        Players without a record read unpaid. Months after the current one
        have no records yet, so they are answered without reading payments.

        Raises:
            InvalidMonthError: month outside 1..12
            StoreError: the roster or its records could not be read
        """
        period = YearMonth(year, validate_month(month))
        players = await self.store.list_team_players(team_id)

        records: dict[str, PaymentRecord] = {}
        if period > YearMonth.of(self._clock()):
            logger.debug("Roster for team %s %s is in the future", team_id, period.key)
        elif players:
            rows = await self.store.list_monthly_payments(
                [p.player_id for p in players], year
            )
            records = {r.player_id: r for r in rows if r.month == month}

        entries = []
        for player in players:
            record = records.get(player.player_id)
            if record is None:
                entries.append(
                    RosterEntry(player.player_id, player.name, PaymentStatus.UNPAID)
                )
                continue
            entries.append(
                RosterEntry(
                    player_id=player.player_id,
                    name=player.name,
                    status=to_ui(record.status),
                    updated_at=record.updated_at,
                    updated_by=record.updated_by,
                )
            )
        return MonthRoster(team_id=team_id, year=year, month=month, entries=entries)
