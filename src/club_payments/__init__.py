"""Monthly player payment status tracking.

Resolves, writes and aggregates per-month payment status, and keeps many
independent display surfaces roughly in sync through polled invalidation
versions.
"""

from club_payments.service import PaymentStatusService
from club_payments.status import (
    LifecycleStatus,
    PaymentStatus,
    StoredPaymentStatus,
    to_storage,
    to_ui,
)

__version__ = "0.1.0"

__all__ = [
    "PaymentStatusService",
    "LifecycleStatus",
    "PaymentStatus",
    "StoredPaymentStatus",
    "to_storage",
    "to_ui",
]
