"""Payment status stores."""

from club_payments.store.base import (
    PaymentRecord,
    PaymentStore,
    PlayerAggregate,
    RemoteStatus,
)
from club_payments.store.memory import InMemoryPaymentStore
from club_payments.store.sql import SqlPaymentStore

__all__ = [
    "PaymentRecord",
    "PaymentStore",
    "PlayerAggregate",
    "RemoteStatus",
    "InMemoryPaymentStore",
    "SqlPaymentStore",
]
