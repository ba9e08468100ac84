"""Exceptions raised by the payment status services."""

from __future__ import annotations

from collections.abc import Iterable


class PaymentStatusError(Exception):
    """Base class for payment status errors."""


class StoreError(PaymentStatusError):
    """Raised when a backing store operation fails."""

    def __init__(self, operation: str, reason: str | None = None):
        self.operation = operation
        self.reason = reason
        msg = f"Store operation '{operation}' failed"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class InvalidStatusError(PaymentStatusError, ValueError):
    """Raised when a status value is not part of the expected vocabulary."""

    def __init__(self, value: object, allowed: Iterable[str]):
        self.value = value
        self.allowed = list(allowed)
        super().__init__(
            f"Invalid status '{value}', expected one of: {', '.join(self.allowed)}"
        )


class InvalidMonthError(PaymentStatusError, ValueError):
    """Raised when a calendar month is outside 1..12."""

    def __init__(self, month: int):
        self.month = month
        super().__init__(f"Invalid month {month}, expected 1..12")
