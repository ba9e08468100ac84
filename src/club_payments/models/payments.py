"""Monthly payment records."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from club_payments.models.base import Base


class MonthlyPayment(Base):
    """Authoritative payment fact for one player and calendar month.

    Upserted on (player_id, year, month); last write wins.
    """

    __tablename__ = "monthly_payment"

    monthly_payment_id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    player_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("player.player_id", ondelete="CASCADE"),
        nullable=False,
    )
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_by: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        UniqueConstraint("player_id", "year", "month", name="monthly_payment_key"),
        CheckConstraint("month BETWEEN 1 AND 12", name="monthly_payment_month_check"),
        CheckConstraint(
            "status IN ('paid', 'not_paid')",
            name="monthly_payment_status_check",
        ),
        Index("monthly_payment_year", "year", "month"),
    )
