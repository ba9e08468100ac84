"""In-memory payment store.

Used by tests and for embedding without a database. Failures can be injected per
operation to exercise the services' fallback and abort paths.
"""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Any

from club_payments.errors import StoreError
from club_payments.store.base import (
    AGGREGATE_FIELDS,
    PaymentRecord,
    PlayerAggregate,
    RemoteStatus,
)


class InMemoryPaymentStore:
    """Dict-backed PaymentStore.

    Usage:
        store = InMemoryPaymentStore()
        store.add_player("p1", team_id="t1", payment_status="paid")
        store.fail("get_monthly_payment")  # every call now raises StoreError
    """

    kind = "memory"

    def __init__(self, supports_remote_status: bool = False) -> None:
        self.records: dict[tuple[str, int, int], PaymentRecord] = {}
        self.players: dict[str, PlayerAggregate] = {}
        self.teams: dict[str, list[str]] = {}
        self.remote_statuses: dict[str, RemoteStatus] = {}
        self.supports_remote_status = supports_remote_status
        self.calls: list[str] = []
        self._failing: set[str] = set()

    def fail(self, *operations: str) -> None:
        """Make the named operations raise StoreError."""
        self._failing.update(operations)

    def heal(self, *operations: str) -> None:
        """Stop failing the named operations (all when none given)."""
        if operations:
            self._failing.difference_update(operations)
        else:
            self._failing.clear()

    def add_player(
        self, player_id: str, team_id: str | None = None, **fields: Any
    ) -> PlayerAggregate:
        player = PlayerAggregate(player_id=player_id, **fields)
        self.players[player_id] = player
        if team_id is not None:
            self.teams.setdefault(team_id, []).append(player_id)
        return player

    async def _enter(self, operation: str) -> None:
        self.calls.append(operation)
        # Yield like a real network round trip would.
        await asyncio.sleep(0)
        if operation in self._failing:
            raise StoreError(operation, "injected failure")

    async def get_monthly_payment(
        self, player_id: str, year: int, month: int
    ) -> PaymentRecord | None:
        await self._enter("get_monthly_payment")
        return self.records.get((player_id, year, month))

    async def upsert_monthly_payment(self, record: PaymentRecord) -> PaymentRecord:
        await self._enter("upsert_monthly_payment")
        self.records[record.key] = record
        return record

    async def insert_monthly_payment_if_absent(self, record: PaymentRecord) -> bool:
        await self._enter("insert_monthly_payment_if_absent")
        if record.key in self.records:
            return False
        self.records[record.key] = record
        return True

    async def remote_payment_status(self, player_id: str) -> RemoteStatus | None:
        await self._enter("remote_payment_status")
        if not self.supports_remote_status:
            return None
        return self.remote_statuses.get(player_id)

    async def get_player_aggregate(self, player_id: str) -> PlayerAggregate | None:
        await self._enter("get_player_aggregate")
        return self.players.get(player_id)

    async def update_player_aggregate(self, player_id: str, **fields: Any) -> None:
        unknown = set(fields) - AGGREGATE_FIELDS
        if unknown:
            raise ValueError(f"Not aggregate fields: {sorted(unknown)}")
        await self._enter("update_player_aggregate")
        player = self.players.get(player_id)
        if player is not None:
            self.players[player_id] = replace(player, **fields)

    async def list_monthly_payments(
        self, player_ids: list[str], year: int
    ) -> list[PaymentRecord]:
        await self._enter("list_monthly_payments")
        wanted = set(player_ids)
        return [
            r for r in self.records.values() if r.player_id in wanted and r.year == year
        ]

    async def list_payment_history(
        self, player_id: str, since_year: int
    ) -> list[PaymentRecord]:
        await self._enter("list_payment_history")
        rows = [
            r
            for r in self.records.values()
            if r.player_id == player_id and r.year >= since_year
        ]
        return sorted(rows, key=lambda r: (r.year, r.month), reverse=True)

    async def list_team_player_ids(self, team_id: str) -> list[str]:
        await self._enter("list_team_player_ids")
        return sorted(self.teams.get(team_id, []))

    async def list_team_players(self, team_id: str) -> list[PlayerAggregate]:
        await self._enter("list_team_players")
        return [
            self.players.get(pid) or PlayerAggregate(player_id=pid)
            for pid in sorted(self.teams.get(team_id, []))
        ]
