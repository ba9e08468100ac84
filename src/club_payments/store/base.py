"""Base protocol and types for payment status stores.

The services talk to the backing store only through PaymentStore. Any method
may raise; the services decide which failures are fatal.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol


@dataclass(frozen=True)
class PaymentRecord:
    """Authoritative per-player, per-month payment fact."""

    player_id: str
    year: int
    month: int
    status: str  # paid/not_paid
    updated_at: datetime
    updated_by: str | None = None

    @property
    def key(self) -> tuple[str, int, int]:
        """Natural key of the record."""
        return (self.player_id, self.year, self.month)


@dataclass(frozen=True)
class PlayerAggregate:
    """Denormalized payment fields living on the player entity."""

    player_id: str
    payment_status: str | None = None
    player_status: str | None = None
    last_payment_date: datetime | None = None
    created_at: datetime | None = None
    name: str | None = None


@dataclass(frozen=True)
class RemoteStatus:
    """Result of a store-side payment status lookup."""

    status: str  # storage vocabulary
    status_since: datetime | None = None


class PaymentStore(Protocol):
    """Protocol for payment status backing stores."""

    kind: str  # short backend name reported by health checks

    async def get_monthly_payment(
        self, player_id: str, year: int, month: int
    ) -> PaymentRecord | None:
        """Return the record for (player, year, month), if any."""
        ...

    async def upsert_monthly_payment(self, record: PaymentRecord) -> PaymentRecord:
        """Insert or replace the record on its natural key."""
        ...

    async def insert_monthly_payment_if_absent(self, record: PaymentRecord) -> bool:
        """Insert the record unless one exists for its key. Returns True if inserted."""
        ...

    async def remote_payment_status(self, player_id: str) -> RemoteStatus | None:
        """Store-side aggregate lookup.

        Returns None when the store has no such lookup or it found nothing.
        """
        ...

    async def get_player_aggregate(self, player_id: str) -> PlayerAggregate | None:
        """Return the player's aggregate fields, or None if no such player."""
        ...

    async def update_player_aggregate(self, player_id: str, **fields: Any) -> None:
        """Update aggregate fields on the player entity."""
        ...

    async def list_monthly_payments(
        self, player_ids: list[str], year: int
    ) -> list[PaymentRecord]:
        """Return all records of the given players in a year."""
        ...

    async def list_payment_history(
        self, player_id: str, since_year: int
    ) -> list[PaymentRecord]:
        """Return a player's records from since_year onward, newest first."""
        ...

    async def list_team_player_ids(self, team_id: str) -> list[str]:
        """Return ids of players rostered on a team."""
        ...

    async def list_team_players(self, team_id: str) -> list[PlayerAggregate]:
        """Return the players rostered on a team, ordered by id."""
        ...


AGGREGATE_FIELDS = frozenset({"payment_status", "player_status", "last_payment_date"})
