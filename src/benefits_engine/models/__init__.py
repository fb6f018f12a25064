"""ORM models for the accounting tables read by month-end validation."""

from benefits_engine.models.accounting import (
    BankReconciliation,
    BankTransaction,
    Bill,
    Invoice,
    MonthEndClosing,
    PaymentTransaction,
    QuickBooksSyncLog,
)
from benefits_engine.models.base import Base

__all__ = [
    "Base",
    "BankReconciliation",
    "BankTransaction",
    "Bill",
    "Invoice",
    "MonthEndClosing",
    "PaymentTransaction",
    "QuickBooksSyncLog",
]
