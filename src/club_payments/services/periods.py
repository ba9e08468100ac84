"""Calendar month helpers shared by the services."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, NamedTuple

from club_payments.errors import InvalidMonthError

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class YearMonth(NamedTuple):
    year: int
    month: int

    @classmethod
    def of(cls, moment: datetime) -> YearMonth:
        return cls(moment.year, moment.month)

    def previous(self) -> YearMonth:
        if self.month == 1:
            return YearMonth(self.year - 1, 12)
        return YearMonth(self.year, self.month - 1)

    @property
    def key(self) -> str:
        return month_key(self.year, self.month)


def month_key(year: int, month: int) -> str:
    """Key used in monthly status maps, e.g. ``2025-3``."""
    return f"{year}-{month}"


def validate_month(month: int) -> int:
    if not 1 <= month <= 12:
        raise InvalidMonthError(month)
    return month
