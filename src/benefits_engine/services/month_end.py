"""Month-end validation checklist.

Runs a fixed set of read-only checks against the books for one month and
aggregates them into a report that decides whether the month can be closed.
Only critical failures block closing.
"""

from __future__ import annotations

import asyncio
import calendar
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Awaitable, Callable

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from benefits_engine.calculators.types import ZERO, round_cents, to_decimal
from benefits_engine.config import Settings, get_settings
from benefits_engine.models import (
    BankReconciliation,
    BankTransaction,
    Bill,
    Invoice,
    PaymentTransaction,
    QuickBooksSyncLog,
)

logger = logging.getLogger(__name__)


class CheckCategory(str, Enum):
    """Severity of a month-end check."""

    CRITICAL = "critical"
    IMPORTANT = "important"
    RECOMMENDED = "recommended"


@dataclass
class ValidationCheck:
    """Outcome of one month-end check."""

    id: str
    category: CheckCategory
    name: str
    description: str
    what_to_check: str
    how_to_fix: str
    passed: bool
    details: str = ""
    error_count: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "category": self.category.value,
            "name": self.name,
            "description": self.description,
            "what_to_check": self.what_to_check,
            "how_to_fix": self.how_to_fix,
            "passed": self.passed,
            "details": self.details,
            "error_count": self.error_count,
        }


@dataclass
class FinancialSummary:
    """Month totals reported alongside the checks."""

    total_revenue: Decimal = ZERO
    total_expenses: Decimal = ZERO
    outstanding_ar: Decimal = ZERO
    outstanding_ap: Decimal = ZERO
    bank_balance: Decimal = ZERO
    qb_synced: bool = False

    @property
    def net_income(self) -> Decimal:
        return self.total_revenue - self.total_expenses

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_revenue": round_cents(self.total_revenue),
            "total_expenses": round_cents(self.total_expenses),
            "net_income": round_cents(self.net_income),
            "outstanding_ar": round_cents(self.outstanding_ar),
            "outstanding_ap": round_cents(self.outstanding_ap),
            "bank_balance": round_cents(self.bank_balance),
            "qb_synced": self.qb_synced,
        }


@dataclass
class MonthEndReport:
    """All checks for a month plus the financial summary."""

    year: int
    month: int
    checks: list[ValidationCheck]
    summary: FinancialSummary
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def period(self) -> str:
        return f"{self.year}-{self.month:02d}"

    @property
    def can_close(self) -> bool:
        return all(c.passed for c in self.checks if c.category is CheckCategory.CRITICAL)

    def _failed(self, category: CheckCategory) -> list[ValidationCheck]:
        return [c for c in self.checks if c.category is category and not c.passed]

    @property
    def critical_issues(self) -> list[ValidationCheck]:
        return self._failed(CheckCategory.CRITICAL)

    @property
    def important_issues(self) -> list[ValidationCheck]:
        return self._failed(CheckCategory.IMPORTANT)

    @property
    def recommendations(self) -> list[ValidationCheck]:
        return self._failed(CheckCategory.RECOMMENDED)

    @property
    def passed_count(self) -> int:
        return sum(1 for c in self.checks if c.passed)

    @property
    def warnings_count(self) -> int:
        return len(self.important_issues) + len(self.recommendations)

    def get_check(self, check_id: str) -> ValidationCheck | None:
        return next((c for c in self.checks if c.id == check_id), None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "month": self.month,
            "period": self.period,
            "can_close": self.can_close,
            "checks": [c.to_dict() for c in self.checks],
            "critical_issues": [c.id for c in self.critical_issues],
            "important_issues": [c.id for c in self.important_issues],
            "recommendations": [c.id for c in self.recommendations],
            "summary": self.summary.to_dict(),
            "generated_at": self.generated_at.isoformat(),
        }


@dataclass(frozen=True)
class MonthPeriod:
    """Calendar month boundaries."""

    year: int
    month: int

    @property
    def start(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def end(self) -> date:
        return date(self.year, self.month, calendar.monthrange(self.year, self.month)[1])

    @property
    def start_at(self) -> datetime:
        return datetime(self.year, self.month, 1, tzinfo=timezone.utc)

    @property
    def next_start_at(self) -> datetime:
        return datetime.combine(self.end + timedelta(days=1), datetime.min.time(), timezone.utc)

    @property
    def invoice_prefix(self) -> str:
        return f"{self.year}{self.month:02d}"


@dataclass(frozen=True)
class CheckContext:
    """Inputs shared by every check in one run."""

    period: MonthPeriod
    now: datetime
    qb_sync_max_age_hours: int = 24
    large_transaction_cents: int = 1_000_000


@dataclass(frozen=True)
class CheckOutcome:
    passed: bool
    details: str
    error_count: int | None = None


CheckFn = Callable[[AsyncSession, CheckContext], Awaitable[CheckOutcome]]


@dataclass(frozen=True)
class CheckDefinition:
    """Static description of a check and the query that evaluates it."""

    id: str
    category: CheckCategory
    name: str
    description: str
    what_to_check: str
    how_to_fix: str
    evaluate: CheckFn

    def result(self, outcome: CheckOutcome) -> ValidationCheck:
        return ValidationCheck(
            id=self.id,
            category=self.category,
            name=self.name,
            description=self.description,
            what_to_check=self.what_to_check,
            how_to_fix=self.how_to_fix,
            passed=outcome.passed,
            details=outcome.details,
            error_count=outcome.error_count,
        )


# ============================================================================
# Query helpers
# ============================================================================


async def _count(session: AsyncSession, model: type, *criteria: Any) -> int:
    result = await session.scalar(select(func.count()).select_from(model).where(*criteria))
    return int(result or 0)


async def _sum(session: AsyncSession, expression: Any, *criteria: Any) -> Decimal:
    result = await session.scalar(select(func.coalesce(func.sum(expression), 0)).where(*criteria))
    return to_decimal(result)


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


async def hours_since_last_sync(session: AsyncSession, now: datetime) -> float | None:
    """Hours since the most recent QuickBooks sync, or None if never synced."""
    last = await session.scalar(select(func.max(QuickBooksSyncLog.synced_at)))
    if last is None:
        return None
    return (_as_utc(now) - _as_utc(last)).total_seconds() / 3600


async def outstanding_receivables(session: AsyncSession) -> Decimal:
    cents = await _sum(
        session,
        Invoice.total_cents - Invoice.amount_paid_cents,
        Invoice.payment_status != "paid",
    )
    return cents / 100


async def outstanding_payables(session: AsyncSession) -> Decimal:
    return await _sum(session, Bill.total_amount - Bill.amount_paid, Bill.payment_status != "paid")


def invoice_sequence(invoice_number: str | None) -> int | None:
    """Numeric suffix of an invoice number like ``202402-0007``."""
    if not invoice_number or "-" not in invoice_number:
        return None
    suffix = invoice_number.split("-", 1)[1].strip()
    return int(suffix) if suffix.isdigit() else None


def find_missing_sequence(numbers: list[int]) -> list[int]:
    """Gaps between the lowest and highest sequence numbers."""
    if not numbers:
        return []
    present = set(numbers)
    return [n for n in range(min(present), max(present) + 1) if n not in present]


# ============================================================================
# Critical checks
# ============================================================================


async def check_bank_reconciliation(session: AsyncSession, ctx: CheckContext) -> CheckOutcome:
    count = await _count(
        session,
        BankReconciliation,
        BankReconciliation.year == ctx.period.year,
        BankReconciliation.month == ctx.period.month,
    )
    if count > 0:
        return CheckOutcome(True, f"{count} bank account(s) reconciled")
    return CheckOutcome(False, "Bank accounts not reconciled for this month")


async def check_quickbooks_sync(session: AsyncSession, ctx: CheckContext) -> CheckOutcome:
    hours = await hours_since_last_sync(session, ctx.now)
    if hours is None:
        return CheckOutcome(False, "No QuickBooks sync has been recorded")
    if hours < ctx.qb_sync_max_age_hours:
        return CheckOutcome(True, f"Last synced {int(hours)} hours ago")
    return CheckOutcome(False, f"Last synced {int(hours)} hours ago (limit {ctx.qb_sync_max_age_hours})")


async def check_all_invoices_sent(session: AsyncSession, ctx: CheckContext) -> CheckOutcome:
    unsent = await _count(
        session,
        Invoice,
        Invoice.invoice_date >= ctx.period.start,
        Invoice.invoice_date <= ctx.period.end,
        Invoice.emailed_at.is_(None),
        Invoice.mailed_at.is_(None),
    )
    if unsent == 0:
        return CheckOutcome(True, "All invoices sent", 0)
    return CheckOutcome(False, f"{unsent} invoice(s) not sent yet", unsent)


async def check_unrecorded_payments(session: AsyncSession, ctx: CheckContext) -> CheckOutcome:
    unmatched = await _count(
        session,
        BankTransaction,
        BankTransaction.year == ctx.period.year,
        BankTransaction.month == ctx.period.month,
        BankTransaction.matched_payment_id.is_(None),
        BankTransaction.amount > 0,
    )
    if unmatched == 0:
        return CheckOutcome(True, "All bank deposits matched", 0)
    return CheckOutcome(False, f"{unmatched} unmatched deposit(s) in bank", unmatched)


async def check_account_balance(session: AsyncSession, ctx: CheckContext) -> CheckOutcome:
    # Stub: reports A/R and A/P but does not verify assets = liabilities + equity.
    ar = await outstanding_receivables(session)
    ap = await outstanding_payables(session)
    return CheckOutcome(
        True,
        f"Outstanding A/R: ${round_cents(ar)}, Outstanding A/P: ${round_cents(ap)} "
        "(accounting equation not verified)",
    )


# ============================================================================
# Important checks
# ============================================================================


async def check_overdue_invoices(session: AsyncSession, ctx: CheckContext) -> CheckOutcome:
    overdue = await _count(session, Invoice, Invoice.payment_status == "overdue")
    if overdue == 0:
        return CheckOutcome(True, "No overdue invoices", 0)
    return CheckOutcome(False, f"{overdue} overdue invoice(s) need follow-up", overdue)


async def check_unpaid_bills(session: AsyncSession, ctx: CheckContext) -> CheckOutcome:
    unpaid = await _count(
        session,
        Bill,
        Bill.due_date <= ctx.period.end,
        Bill.payment_status != "paid",
    )
    if unpaid == 0:
        return CheckOutcome(True, "All bills paid", 0)
    return CheckOutcome(False, f"{unpaid} bill(s) need payment", unpaid)


async def check_payment_failures(session: AsyncSession, ctx: CheckContext) -> CheckOutcome:
    failures = await _count(
        session,
        PaymentTransaction,
        PaymentTransaction.created_at >= ctx.period.start_at,
        PaymentTransaction.created_at < ctx.period.next_start_at,
        PaymentTransaction.status == "failed",
    )
    if failures == 0:
        return CheckOutcome(True, "No failed payments", 0)
    return CheckOutcome(False, f"{failures} failed payment attempt(s)", failures)


async def check_pending_refunds(session: AsyncSession, ctx: CheckContext) -> CheckOutcome:
    pending = await _count(
        session,
        PaymentTransaction,
        PaymentTransaction.transaction_type == "refund",
        PaymentTransaction.status == "pending",
    )
    if pending == 0:
        return CheckOutcome(True, "No pending refunds", 0)
    return CheckOutcome(False, f"{pending} refund(s) need processing", pending)


# ============================================================================
# Recommended checks
# ============================================================================


async def check_large_transactions(session: AsyncSession, ctx: CheckContext) -> CheckOutcome:
    large = await _count(
        session,
        PaymentTransaction,
        PaymentTransaction.payment_date >= ctx.period.start,
        PaymentTransaction.payment_date <= ctx.period.end,
        PaymentTransaction.amount > ctx.large_transaction_cents,
    )
    threshold = f"${ctx.large_transaction_cents // 100:,}"
    if large == 0:
        return CheckOutcome(True, "No unusually large transactions", 0)
    return CheckOutcome(False, f"{large} transaction(s) over {threshold}", large)


async def check_duplicate_invoices(session: AsyncSession, ctx: CheckContext) -> CheckOutcome:
    result = await session.execute(
        select(func.count())
        .select_from(Invoice)
        .where(
            Invoice.invoice_date >= ctx.period.start,
            Invoice.invoice_date <= ctx.period.end,
        )
        .group_by(Invoice.company_id, Invoice.invoice_date, Invoice.total_cents)
        .having(func.count() > 1)
    )
    group_sizes = [int(n) for n in result.scalars().all()]
    if not group_sizes:
        return CheckOutcome(True, "No duplicate invoices detected", 0)
    flagged = sum(group_sizes)
    return CheckOutcome(
        False,
        f"{flagged} potential duplicate invoice(s) in {len(group_sizes)} group(s)",
        flagged,
    )


async def check_missing_invoice_numbers(session: AsyncSession, ctx: CheckContext) -> CheckOutcome:
    result = await session.execute(
        select(Invoice.invoice_number).where(
            Invoice.invoice_number.like(f"{ctx.period.invoice_prefix}%")
        )
    )
    sequences = [n for n in (invoice_sequence(v) for v in result.scalars().all()) if n is not None]
    missing = find_missing_sequence(sequences)
    if not missing:
        return CheckOutcome(True, "No gaps in invoice numbers", 0)
    listed = ", ".join(str(n) for n in missing)
    return CheckOutcome(False, f"{len(missing)} missing invoice number(s): {listed}", len(missing))


MONTH_END_CHECKS: tuple[CheckDefinition, ...] = (
    CheckDefinition(
        id="bank_reconciliation",
        category=CheckCategory.CRITICAL,
        name="Bank Reconciliation",
        description="All bank accounts must be reconciled with bank statements",
        what_to_check="Compare your book balance with the bank statement. They should match.",
        how_to_fix="Go to Bank Reconciliation, upload the bank statement and match transactions",
        evaluate=check_bank_reconciliation,
    ),
    CheckDefinition(
        id="qb_sync",
        category=CheckCategory.CRITICAL,
        name="QuickBooks Sync",
        description="All transactions must be synced to QuickBooks",
        what_to_check="Last sync should be within 24 hours",
        how_to_fix="Go to QuickBooks Settings and click 'Sync Now'",
        evaluate=check_quickbooks_sync,
    ),
    CheckDefinition(
        id="invoices_sent",
        category=CheckCategory.CRITICAL,
        name="All Invoices Sent",
        description="All invoices for the month must be sent to customers",
        what_to_check="No invoice should be left unsent (neither emailed nor mailed)",
        how_to_fix="Go to Invoices, filter 'Unsent' and send each invoice",
        evaluate=check_all_invoices_sent,
    ),
    CheckDefinition(
        id="unrecorded_payments",
        category=CheckCategory.CRITICAL,
        name="Unrecorded Payments",
        description="All payments received must be recorded",
        what_to_check="Bank deposits should match recorded payments",
        how_to_fix="Go to Bank Feeds and match each deposit to an invoice payment",
        evaluate=check_unrecorded_payments,
    ),
    CheckDefinition(
        id="account_balance",
        category=CheckCategory.CRITICAL,
        name="Account Balance",
        description="Accounting equation must balance",
        what_to_check="Assets = Liabilities + Equity",
        how_to_fix="Review all transactions for errors. Contact your accountant if needed.",
        evaluate=check_account_balance,
    ),
    CheckDefinition(
        id="overdue_invoices",
        category=CheckCategory.IMPORTANT,
        name="Overdue Invoices",
        description="Some invoices are past due",
        what_to_check="Review all overdue invoices",
        how_to_fix="Send payment reminders, consider late fees and follow up with customers",
        evaluate=check_overdue_invoices,
    ),
    CheckDefinition(
        id="unpaid_bills",
        category=CheckCategory.IMPORTANT,
        name="Unpaid Bills",
        description="Some bills are still unpaid",
        what_to_check="Review bills due this month",
        how_to_fix="Pay bills before the due date and mark them paid when the check clears",
        evaluate=check_unpaid_bills,
    ),
    CheckDefinition(
        id="payment_failures",
        category=CheckCategory.IMPORTANT,
        name="Failed Payments",
        description="Some automatic payments failed",
        what_to_check="Review failed payment attempts",
        how_to_fix="Contact the customer, update the payment method and retry",
        evaluate=check_payment_failures,
    ),
    CheckDefinition(
        id="pending_refunds",
        category=CheckCategory.IMPORTANT,
        name="Pending Refunds",
        description="Some refunds haven't been processed yet",
        what_to_check="Review pending refund requests",
        how_to_fix="Process each refund and confirm completion",
        evaluate=check_pending_refunds,
    ),
    CheckDefinition(
        id="large_transactions",
        category=CheckCategory.RECOMMENDED,
        name="Large Transactions",
        description="Review unusually large transactions",
        what_to_check="Verify large payments are legitimate",
        how_to_fix="Review each transaction and confirm with the customer if needed",
        evaluate=check_large_transactions,
    ),
    CheckDefinition(
        id="duplicate_invoices",
        category=CheckCategory.RECOMMENDED,
        name="Duplicate Invoices",
        description="Check for potentially duplicate invoices",
        what_to_check="Same company, date, and amount is likely a duplicate",
        how_to_fix="Review flagged invoices and void duplicates",
        evaluate=check_duplicate_invoices,
    ),
    CheckDefinition(
        id="missing_invoice_numbers",
        category=CheckCategory.RECOMMENDED,
        name="Missing Invoice Numbers",
        description="Check for gaps in invoice numbering",
        what_to_check="Invoice numbers should be sequential",
        how_to_fix="Investigate missing numbers and void if needed",
        evaluate=check_missing_invoice_numbers,
    ),
)


class MonthEndValidator:
    """Runs the month-end checklist.

    Each check gets its own session and runs concurrently with the others and
    with the summary queries. Results keep the order of ``checks``. A check
    that exceeds ``timeout`` is reported as failed; any other exception aborts
    the whole report.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        settings: Settings | None = None,
        checks: tuple[CheckDefinition, ...] = MONTH_END_CHECKS,
        clock: Callable[[], datetime] | None = None,
        timeout: float | None = None,
    ):
        self.session_factory = session_factory
        self.settings = settings or get_settings()
        self.checks = checks
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.timeout = timeout if timeout is not None else self.settings.check_timeout_seconds

    async def run(self, year: int, month: int) -> MonthEndReport:
        """Validate one month and build the report."""
        if not 1 <= month <= 12:
            raise ValueError(f"Month must be between 1 and 12, got {month}")

        ctx = CheckContext(
            period=MonthPeriod(year, month),
            now=self.clock(),
            qb_sync_max_age_hours=self.settings.qb_sync_max_age_hours,
            large_transaction_cents=self.settings.large_transaction_cents,
        )

        summary_task = asyncio.ensure_future(self._summarize(ctx))
        check_tasks = [asyncio.ensure_future(self._run_check(d, ctx)) for d in self.checks]
        tasks = [summary_task, *check_tasks]
        try:
            await asyncio.gather(*tasks)
        except Exception:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.exception("Month-end validation failed for %s", ctx.period.invoice_prefix)
            raise

        report = MonthEndReport(
            year=year,
            month=month,
            checks=[task.result() for task in check_tasks],
            summary=summary_task.result(),
            generated_at=ctx.now,
        )
        logger.info(
            "Month-end validation %s: can_close=%s critical=%d warnings=%d",
            report.period,
            report.can_close,
            len(report.critical_issues),
            report.warnings_count,
        )
        return report

    async def _run_check(self, definition: CheckDefinition, ctx: CheckContext) -> ValidationCheck:
        try:
            outcome = await asyncio.wait_for(self._evaluate(definition, ctx), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("Month-end check %s timed out after %ss", definition.id, self.timeout)
            outcome = CheckOutcome(False, f"Check timed out after {self.timeout:g} seconds")
        return definition.result(outcome)

    async def _evaluate(self, definition: CheckDefinition, ctx: CheckContext) -> CheckOutcome:
        async with self.session_factory() as session:
            return await definition.evaluate(session, ctx)

    async def _summarize(self, ctx: CheckContext) -> FinancialSummary:
        period = ctx.period
        async with self.session_factory() as session:
            revenue_cents = await _sum(
                session,
                Invoice.total_cents,
                Invoice.invoice_date >= period.start,
                Invoice.invoice_date <= period.end,
            )
            expenses = await _sum(
                session,
                Bill.total_amount,
                Bill.bill_date >= period.start,
                Bill.bill_date <= period.end,
            )
            bank_balance = await _sum(
                session,
                BankReconciliation.ending_bank_balance,
                BankReconciliation.year == period.year,
                BankReconciliation.month == period.month,
            )
            hours = await hours_since_last_sync(session, ctx.now)

            return FinancialSummary(
                total_revenue=revenue_cents / 100,
                total_expenses=expenses,
                outstanding_ar=await outstanding_receivables(session),
                outstanding_ap=await outstanding_payables(session),
                bank_balance=bank_balance,
                qb_synced=hours is not None and hours < ctx.qb_sync_max_age_hours,
            )
