"""ORM models."""

from club_payments.models.base import Base, TimestampMixin
from club_payments.models.payments import MonthlyPayment
from club_payments.models.player import Player, Team

__all__ = [
    "Base",
    "TimestampMixin",
    "MonthlyPayment",
    "Player",
    "Team",
]
