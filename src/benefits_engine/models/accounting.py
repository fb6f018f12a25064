"""Invoices, bills, bank feeds and close records."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import (
    JSON,
    BigInteger,
    CheckConstraint,
    Date,
    DateTime,
    Index,
    Numeric,
    String,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from benefits_engine.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Invoice(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Customer invoice (accounts receivable). Amounts in cents."""

    __tablename__ = "invoices"

    company_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    invoice_number: Mapped[str | None] = mapped_column(String, nullable=True)
    invoice_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    total_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    amount_paid_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    payment_status: Mapped[str] = mapped_column(String, nullable=False, default="unpaid")
    emailed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    mailed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "payment_status IN ('unpaid', 'partial', 'paid', 'overdue')",
            name="invoices_payment_status_check",
        ),
        Index("invoices_invoice_date_idx", "invoice_date"),
    )


class Bill(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Vendor bill (accounts payable). Amounts in dollars."""

    __tablename__ = "bills"

    vendor_name: Mapped[str] = mapped_column(String, nullable=False)
    bill_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=0)
    amount_paid: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=0)
    payment_status: Mapped[str] = mapped_column(String, nullable=False, default="unpaid")

    __table_args__ = (
        CheckConstraint(
            "payment_status IN ('unpaid', 'partial', 'paid')",
            name="bills_payment_status_check",
        ),
    )


class BankReconciliation(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Monthly reconciliation of one bank account against its statement."""

    __tablename__ = "bank_reconciliations"

    year: Mapped[int] = mapped_column(nullable=False)
    month: Mapped[int] = mapped_column(nullable=False)
    bank_account_name: Mapped[str] = mapped_column(String, nullable=False)
    beginning_book_balance: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=0)
    ending_book_balance: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=0)
    ending_bank_balance: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=0)
    reconciled: Mapped[bool] = mapped_column(default=False, nullable=False)
    notes: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "year", "month", "bank_account_name", name="bank_reconciliations_period_account_unique"
        ),
        CheckConstraint("month BETWEEN 1 AND 12", name="bank_reconciliations_month_check"),
    )


class BankTransaction(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Imported bank feed line. Positive amounts are deposits."""

    __tablename__ = "bank_transactions"

    year: Mapped[int] = mapped_column(nullable=False)
    month: Mapped[int] = mapped_column(nullable=False)
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    description: Mapped[str | None] = mapped_column(String, nullable=True)
    matched_payment_id: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)

    __table_args__ = (Index("bank_transactions_period_idx", "year", "month"),)


class PaymentTransaction(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Customer payment or refund attempt. Amount in cents."""

    __tablename__ = "payment_transactions"

    invoice_id: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
    transaction_type: Mapped[str] = mapped_column(String, nullable=False, default="payment")
    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    payment_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "transaction_type IN ('payment', 'refund')",
            name="payment_transactions_type_check",
        ),
        CheckConstraint(
            "status IN ('pending', 'completed', 'failed')",
            name="payment_transactions_status_check",
        ),
    )


class QuickBooksSyncLog(Base, UUIDPrimaryKeyMixin):
    """One QuickBooks sync attempt."""

    __tablename__ = "quickbooks_sync_log"

    sync_type: Mapped[str] = mapped_column(String, nullable=False, default="bidirectional")
    status: Mapped[str] = mapped_column(String, nullable=False, default="success")
    records_synced: Mapped[int] = mapped_column(nullable=False, default=0)
    synced_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class MonthEndClosing(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Snapshot of a closed month and the validation run that allowed it."""

    __tablename__ = "month_end_closings"

    year: Mapped[int] = mapped_column(nullable=False)
    month: Mapped[int] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="open")
    can_close: Mapped[bool] = mapped_column(nullable=False, default=False)
    critical_issues_count: Mapped[int] = mapped_column(nullable=False, default=0)
    warnings_count: Mapped[int] = mapped_column(nullable=False, default=0)
    validation_report: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    closed_by: Mapped[str | None] = mapped_column(String, nullable=True)
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    transactions_locked: Mapped[bool] = mapped_column(nullable=False, default=False)
    notes: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        UniqueConstraint("year", "month", name="month_end_closings_period_unique"),
        CheckConstraint("status IN ('open', 'closed')", name="month_end_closings_status_check"),
    )
