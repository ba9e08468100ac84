"""Team and player models."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from club_payments.models.base import Base, TimestampMixin


class Team(Base, TimestampMixin):
    """A team players are rostered on."""

    __tablename__ = "team"

    team_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)

    players: Mapped[list[Player]] = relationship(back_populates="team")


class Player(Base, TimestampMixin):
    """Player entity.

    payment_status, player_status and last_payment_date form the legacy
    aggregate: denormalized, best effort, never authoritative for a month.
    """

    __tablename__ = "player"

    player_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    team_id: Mapped[str | None] = mapped_column(
        String(64),
        ForeignKey("team.team_id", ondelete="SET NULL"),
        nullable=True,
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    payment_status: Mapped[str | None] = mapped_column(String, nullable=True)
    player_status: Mapped[str | None] = mapped_column(String, nullable=True)
    last_payment_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    team: Mapped[Team | None] = relationship(back_populates="players")
