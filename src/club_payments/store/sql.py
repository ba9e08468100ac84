"""SQLAlchemy-backed payment store."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select, text, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from club_payments.errors import StoreError
from club_payments.models import MonthlyPayment, Player
from club_payments.store.base import (
    AGGREGATE_FIELDS,
    PaymentRecord,
    PlayerAggregate,
    RemoteStatus,
)

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_.]*$")

_UPSERT_DIALECTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def _aware(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; they were written as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _values(record: PaymentRecord) -> dict[str, Any]:
    return {
        "player_id": record.player_id,
        "year": record.year,
        "month": record.month,
        "status": record.status,
        "updated_at": record.updated_at,
        "updated_by": record.updated_by,
    }


def _to_aggregate(player: Player) -> PlayerAggregate:
    return PlayerAggregate(
        player_id=player.player_id,
        payment_status=player.payment_status,
        player_status=player.player_status,
        last_payment_date=_aware(player.last_payment_date),
        created_at=_aware(player.created_at),
        name=player.name,
    )


def _to_record(row: MonthlyPayment) -> PaymentRecord:
    return PaymentRecord(
        player_id=row.player_id,
        year=row.year,
        month=row.month,
        status=row.status,
        updated_at=_aware(row.updated_at),
        updated_by=row.updated_by,
    )


class SqlPaymentStore:
    """Payment store over the monthly_payment and player tables.

    Every call runs in its own short transaction, so a successful upsert is
    committed by the time it returns.

    Args:
        session_factory: Factory producing AsyncSession instances.
        status_function: Name of a database function
            ``fn(player_id) -> (status, status_since)`` used for the remote
            status lookup. Empty means the store exposes none.
    """

    kind = "sql"

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        status_function: str = "",
    ):
        if status_function and not _IDENTIFIER.match(status_function):
            raise ValueError(f"Invalid status function name: {status_function!r}")
        self._session_factory = session_factory
        self._status_function = status_function

    async def get_monthly_payment(
        self, player_id: str, year: int, month: int
    ) -> PaymentRecord | None:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(MonthlyPayment).where(
                        MonthlyPayment.player_id == player_id,
                        MonthlyPayment.year == year,
                        MonthlyPayment.month == month,
                    )
                )
                row = result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StoreError("get_monthly_payment", str(exc)) from exc
        return _to_record(row) if row is not None else None

    async def upsert_monthly_payment(self, record: PaymentRecord) -> PaymentRecord:
        values = _values(record)
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    dialect = session.get_bind().dialect.name
                    insert = _UPSERT_DIALECTS.get(dialect)
                    if insert is not None:
                        stmt = insert(MonthlyPayment).values(**values)
                        stmt = stmt.on_conflict_do_update(
                            index_elements=["player_id", "year", "month"],
                            set_={
                                "status": stmt.excluded.status,
                                "updated_at": stmt.excluded.updated_at,
                                "updated_by": stmt.excluded.updated_by,
                            },
                        )
                        await session.execute(stmt)
                    else:
                        await self._select_then_write(session, values)
        except SQLAlchemyError as exc:
            raise StoreError("upsert_monthly_payment", str(exc)) from exc
        return record

    async def insert_monthly_payment_if_absent(self, record: PaymentRecord) -> bool:
        values = _values(record)
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    dialect = session.get_bind().dialect.name
                    insert = _UPSERT_DIALECTS.get(dialect)
                    if insert is not None:
                        stmt = (
                            insert(MonthlyPayment)
                            .values(**values)
                            .on_conflict_do_nothing(
                                index_elements=["player_id", "year", "month"]
                            )
                        )
                        result = await session.execute(stmt)
                        inserted = result.rowcount > 0
                    else:
                        existing = await session.execute(
                            select(MonthlyPayment.monthly_payment_id).where(
                                MonthlyPayment.player_id == record.player_id,
                                MonthlyPayment.year == record.year,
                                MonthlyPayment.month == record.month,
                            )
                        )
                        inserted = existing.first() is None
                        if inserted:
                            session.add(MonthlyPayment(**values))
        except SQLAlchemyError as exc:
            raise StoreError("insert_monthly_payment_if_absent", str(exc)) from exc
        return inserted

    async def _select_then_write(
        self, session: AsyncSession, values: dict[str, Any]
    ) -> None:
        """Upsert for dialects without ON CONFLICT support."""
        result = await session.execute(
            select(MonthlyPayment).where(
                MonthlyPayment.player_id == values["player_id"],
                MonthlyPayment.year == values["year"],
                MonthlyPayment.month == values["month"],
            )
        )
        row = result.scalar_one_or_none()
        if row is None:
            session.add(MonthlyPayment(**values))
            return
        row.status = values["status"]
        row.updated_at = values["updated_at"]
        row.updated_by = values["updated_by"]

    async def remote_payment_status(self, player_id: str) -> RemoteStatus | None:
        if not self._status_function:
            return None
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    text(
                        f"SELECT status, status_since FROM {self._status_function}(:player_id)"
                    ),
                    {"player_id": player_id},
                )
                row = result.first()
        except SQLAlchemyError as exc:
            raise StoreError("remote_payment_status", str(exc)) from exc
        if row is None or row.status is None:
            return None
        return RemoteStatus(status=row.status, status_since=_aware(row.status_since))

    async def get_player_aggregate(self, player_id: str) -> PlayerAggregate | None:
        try:
            async with self._session_factory() as session:
                player = await session.get(Player, player_id)
        except SQLAlchemyError as exc:
            raise StoreError("get_player_aggregate", str(exc)) from exc
        if player is None:
            return None
        return _to_aggregate(player)

    async def update_player_aggregate(self, player_id: str, **fields: Any) -> None:
        unknown = set(fields) - AGGREGATE_FIELDS
        if unknown:
            raise ValueError(f"Not aggregate fields: {sorted(unknown)}")
        if not fields:
            return
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    result = await session.execute(
                        update(Player)
                        .where(Player.player_id == player_id)
                        .values(**fields)
                    )
        except SQLAlchemyError as exc:
            raise StoreError("update_player_aggregate", str(exc)) from exc
        if result.rowcount == 0:
            logger.warning("No player row %s to update aggregate fields on", player_id)

    async def list_monthly_payments(
        self, player_ids: list[str], year: int
    ) -> list[PaymentRecord]:
        if not player_ids:
            return []
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(MonthlyPayment).where(
                        MonthlyPayment.player_id.in_(player_ids),
                        MonthlyPayment.year == year,
                    )
                )
                rows = result.scalars().all()
        except SQLAlchemyError as exc:
            raise StoreError("list_monthly_payments", str(exc)) from exc
        return [_to_record(row) for row in rows]

    async def list_payment_history(
        self, player_id: str, since_year: int
    ) -> list[PaymentRecord]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(MonthlyPayment)
                    .where(
                        MonthlyPayment.player_id == player_id,
                        MonthlyPayment.year >= since_year,
                    )
                    .order_by(MonthlyPayment.year.desc(), MonthlyPayment.month.desc())
                )
                rows = result.scalars().all()
        except SQLAlchemyError as exc:
            raise StoreError("list_payment_history", str(exc)) from exc
        return [_to_record(row) for row in rows]

    async def list_team_player_ids(self, team_id: str) -> list[str]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(Player.player_id)
                    .where(Player.team_id == team_id)
                    .order_by(Player.player_id)
                )
                ids = list(result.scalars().all())
        except SQLAlchemyError as exc:
            raise StoreError("list_team_player_ids", str(exc)) from exc
        return ids

    async def list_team_players(self, team_id: str) -> list[PlayerAggregate]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(Player)
                    .where(Player.team_id == team_id)
                    .order_by(Player.player_id)
                )
                players = result.scalars().all()
        except SQLAlchemyError as exc:
            raise StoreError("list_team_players", str(exc)) from exc
        return [_to_aggregate(player) for player in players]
