"""Tests for the month-end validation checklist."""

import asyncio
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from benefits_engine.models import (
    BankReconciliation,
    BankTransaction,
    Bill,
    PaymentTransaction,
    QuickBooksSyncLog,
)
from benefits_engine.services.month_end import (
    MONTH_END_CHECKS,
    CheckCategory,
    CheckDefinition,
    CheckOutcome,
    MonthEndValidator,
    MonthPeriod,
    find_missing_sequence,
    invoice_sequence,
)
from tests.conftest import TEST_MONTH, TEST_NOW, TEST_YEAR, make_invoice

FEB_10 = date(2024, 2, 10)


class TestHelpers:
    def test_month_period_boundaries(self):
        period = MonthPeriod(2024, 2)
        assert period.start == date(2024, 2, 1)
        assert period.end == date(2024, 2, 29)
        assert period.next_start_at == datetime(2024, 3, 1, tzinfo=timezone.utc)
        assert period.invoice_prefix == "202402"

    def test_december_rolls_into_next_year(self):
        assert MonthPeriod(2023, 12).next_start_at == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_invoice_sequence(self):
        assert invoice_sequence("202402-0007") == 7
        assert invoice_sequence("202402-ABC") is None
        assert invoice_sequence("202402") is None
        assert invoice_sequence(None) is None

    def test_find_missing_sequence(self):
        assert find_missing_sequence([1, 2, 5]) == [3, 4]
        assert find_missing_sequence([3, 1, 2]) == []
        assert find_missing_sequence([]) == []


class TestCriticalChecks:
    """Only critical failures block closing."""

    async def test_empty_books_cannot_close(self, validator):
        report = await validator.run(TEST_YEAR, TEST_MONTH)

        assert [c.id for c in report.checks] == [d.id for d in MONTH_END_CHECKS]
        assert report.can_close is False
        assert [c.id for c in report.critical_issues] == ["bank_reconciliation", "qb_sync"]
        assert report.get_check("qb_sync").details == "No QuickBooks sync has been recorded"
        assert report.important_issues == []
        assert report.recommendations == []

    async def test_clean_month_can_close(self, validator, closeable_month):
        report = await validator.run(TEST_YEAR, TEST_MONTH)

        assert report.can_close is True
        assert report.passed_count == len(MONTH_END_CHECKS)
        assert report.warnings_count == 0
        assert report.get_check("bank_reconciliation").details == "1 bank account(s) reconciled"

    async def test_unreconciled_and_stale_sync(self, session, validator):
        session.add(
            QuickBooksSyncLog(synced_at=TEST_NOW - timedelta(hours=30), records_synced=3)
        )
        await session.commit()

        report = await validator.run(TEST_YEAR, TEST_MONTH)

        assert report.can_close is False
        assert report.get_check("bank_reconciliation").passed is False
        qb = report.get_check("qb_sync")
        assert qb.passed is False
        assert qb.details == "Last synced 30 hours ago (limit 24)"

    async def test_other_month_reconciliation_does_not_count(self, session, validator):
        session.add(
            BankReconciliation(year=2024, month=1, bank_account_name="Operating", reconciled=True)
        )
        await session.commit()

        report = await validator.run(TEST_YEAR, TEST_MONTH)
        assert report.get_check("bank_reconciliation").passed is False

    async def test_unsent_invoices_block_close(self, session, validator, closeable_month):
        session.add_all(
            [
                make_invoice(FEB_10, sent=False),
                make_invoice(date(2024, 2, 12), sent=False, mailed_at=TEST_NOW),
                make_invoice(date(2024, 3, 1), sent=False),
            ]
        )
        await session.commit()

        report = await validator.run(TEST_YEAR, TEST_MONTH)

        check = report.get_check("invoices_sent")
        assert check.passed is False
        assert check.error_count == 1
        assert report.can_close is False

    async def test_unmatched_deposits_block_close(self, session, validator, closeable_month):
        session.add_all(
            [
                BankTransaction(
                    year=2024, month=2, transaction_date=FEB_10, amount=Decimal("250.00")
                ),
                BankTransaction(
                    year=2024, month=2, transaction_date=FEB_10, amount=Decimal("-75.00")
                ),
                BankTransaction(
                    year=2024,
                    month=2,
                    transaction_date=FEB_10,
                    amount=Decimal("90.00"),
                    matched_payment_id=uuid4(),
                ),
            ]
        )
        await session.commit()

        report = await validator.run(TEST_YEAR, TEST_MONTH)

        check = report.get_check("unrecorded_payments")
        assert check.passed is False
        assert check.error_count == 1
        assert check.details == "1 unmatched deposit(s) in bank"

    async def test_account_balance_reports_totals(self, session, validator, closeable_month):
        session.add(make_invoice(FEB_10, total_cents=150_000, amount_paid_cents=50_000))
        await session.commit()

        report = await validator.run(TEST_YEAR, TEST_MONTH)

        check = report.get_check("account_balance")
        assert check.passed is True
        assert check.details.startswith("Outstanding A/R: $1000.00, Outstanding A/P: $0.00")


class TestImportantAndRecommendedChecks:
    """Warnings are reported but never block closing."""

    async def test_overdue_invoices(self, session, validator, closeable_month):
        session.add(make_invoice(date(2023, 11, 1), payment_status="overdue"))
        await session.commit()

        report = await validator.run(TEST_YEAR, TEST_MONTH)

        assert report.can_close is True
        assert [c.id for c in report.important_issues] == ["overdue_invoices"]
        assert report.warnings_count == 1

    async def test_unpaid_bills(self, session, validator, closeable_month):
        session.add_all(
            [
                Bill(
                    vendor_name="Office Supply Co",
                    bill_date=date(2024, 2, 1),
                    due_date=date(2024, 2, 20),
                    total_amount=Decimal("120.00"),
                ),
                Bill(
                    vendor_name="Landlord",
                    bill_date=date(2024, 2, 1),
                    due_date=date(2024, 2, 1),
                    total_amount=Decimal("2000.00"),
                    amount_paid=Decimal("2000.00"),
                    payment_status="paid",
                ),
                Bill(
                    vendor_name="Utility",
                    bill_date=date(2024, 2, 25),
                    due_date=date(2024, 3, 15),
                    total_amount=Decimal("80.00"),
                ),
            ]
        )
        await session.commit()

        report = await validator.run(TEST_YEAR, TEST_MONTH)

        check = report.get_check("unpaid_bills")
        assert check.passed is False
        assert check.error_count == 1
        assert report.can_close is True

    async def test_payment_failures_within_month(self, session, validator, closeable_month):
        session.add_all(
            [
                PaymentTransaction(
                    status="failed",
                    amount=5_000,
                    created_at=datetime(2024, 2, 29, 23, 30, tzinfo=timezone.utc),
                ),
                PaymentTransaction(
                    status="failed",
                    amount=5_000,
                    created_at=datetime(2024, 3, 1, 0, 0, tzinfo=timezone.utc),
                ),
                PaymentTransaction(
                    status="completed",
                    amount=5_000,
                    created_at=datetime(2024, 2, 15, tzinfo=timezone.utc),
                ),
            ]
        )
        await session.commit()

        report = await validator.run(TEST_YEAR, TEST_MONTH)

        check = report.get_check("payment_failures")
        assert check.passed is False
        assert check.error_count == 1

    async def test_pending_refunds(self, session, validator, closeable_month):
        session.add_all(
            [
                PaymentTransaction(transaction_type="refund", status="pending", amount=2_500),
                PaymentTransaction(transaction_type="refund", status="completed", amount=2_500),
                PaymentTransaction(transaction_type="payment", status="pending", amount=2_500),
            ]
        )
        await session.commit()

        report = await validator.run(TEST_YEAR, TEST_MONTH)

        check = report.get_check("pending_refunds")
        assert check.passed is False
        assert check.details == "1 refund(s) need processing"

    async def test_large_transactions(self, session, validator, closeable_month):
        session.add_all(
            [
                PaymentTransaction(status="completed", amount=1_500_000, payment_date=FEB_10),
                PaymentTransaction(status="completed", amount=1_000_000, payment_date=FEB_10),
                PaymentTransaction(
                    status="completed", amount=2_000_000, payment_date=date(2024, 1, 31)
                ),
            ]
        )
        await session.commit()

        report = await validator.run(TEST_YEAR, TEST_MONTH)

        check = report.get_check("large_transactions")
        assert check.category is CheckCategory.RECOMMENDED
        assert check.passed is False
        assert check.details == "1 transaction(s) over $10,000"
        assert report.can_close is True

    async def test_duplicate_invoices(self, session, validator, closeable_month):
        company_id = uuid4()
        session.add_all(
            [
                make_invoice(FEB_10, total_cents=42_000, company_id=company_id),
                make_invoice(FEB_10, total_cents=42_000, company_id=company_id),
                make_invoice(FEB_10, total_cents=41_000, company_id=company_id),
                make_invoice(FEB_10, total_cents=42_000),
            ]
        )
        await session.commit()

        report = await validator.run(TEST_YEAR, TEST_MONTH)

        check = report.get_check("duplicate_invoices")
        assert check.passed is False
        assert check.error_count == 2
        assert check.details == "2 potential duplicate invoice(s) in 1 group(s)"

    async def test_missing_invoice_numbers(self, session, validator, closeable_month):
        session.add_all(
            [
                make_invoice(FEB_10, total_cents=100, invoice_number="202402-0001"),
                make_invoice(FEB_10, total_cents=200, invoice_number="202402-0002"),
                make_invoice(FEB_10, total_cents=300, invoice_number="202402-0005"),
                make_invoice(FEB_10, total_cents=400, invoice_number="202402-MANUAL"),
                make_invoice(date(2024, 1, 5), total_cents=500, invoice_number="202401-0009"),
            ]
        )
        await session.commit()

        report = await validator.run(TEST_YEAR, TEST_MONTH)

        check = report.get_check("missing_invoice_numbers")
        assert check.passed is False
        assert check.error_count == 2
        assert check.details == "2 missing invoice number(s): 3, 4"


class TestFinancialSummary:
    async def test_summary_totals(self, session, validator, closeable_month):
        session.add_all(
            [
                make_invoice(FEB_10, total_cents=150_000, amount_paid_cents=50_000),
                make_invoice(date(2024, 2, 20), total_cents=25_000, payment_status="paid",
                             amount_paid_cents=25_000),
                make_invoice(date(2024, 1, 20), total_cents=99_900),
                Bill(
                    vendor_name="Office Supply Co",
                    bill_date=date(2024, 2, 3),
                    due_date=date(2024, 3, 3),
                    total_amount=Decimal("400.25"),
                ),
            ]
        )
        await session.commit()

        report = await validator.run(TEST_YEAR, TEST_MONTH)
        summary = report.summary.to_dict()

        assert summary["total_revenue"] == Decimal("1750.00")
        assert summary["total_expenses"] == Decimal("400.25")
        assert summary["net_income"] == Decimal("1349.75")
        assert summary["outstanding_ar"] == Decimal("1999.00")
        assert summary["outstanding_ap"] == Decimal("400.25")
        assert summary["bank_balance"] == Decimal("2500.50")
        assert summary["qb_synced"] is True

    async def test_report_to_dict(self, validator, closeable_month):
        data = (await validator.run(TEST_YEAR, TEST_MONTH)).to_dict()

        assert data["period"] == "2024-02"
        assert data["can_close"] is True
        assert data["critical_issues"] == []
        assert len(data["checks"]) == len(MONTH_END_CHECKS)
        assert data["checks"][0]["category"] == "critical"
        assert data["generated_at"] == TEST_NOW.isoformat()


class TestConcurrency:
    """Per-check timeouts and storage failures."""

    async def test_slow_check_times_out_as_failure(self, session_factory, settings, closeable_month):
        async def slow(session, ctx):
            await asyncio.sleep(5)
            return CheckOutcome(True, "never")

        slow_check = CheckDefinition(
            id="slow",
            category=CheckCategory.CRITICAL,
            name="Slow",
            description="Takes too long",
            what_to_check="-",
            how_to_fix="-",
            evaluate=slow,
        )
        validator = MonthEndValidator(
            session_factory,
            settings=settings,
            checks=(MONTH_END_CHECKS[0], slow_check),
            clock=lambda: TEST_NOW,
            timeout=0.05,
        )

        report = await validator.run(TEST_YEAR, TEST_MONTH)

        assert [c.id for c in report.checks] == ["bank_reconciliation", "slow"]
        assert report.checks[0].passed is True
        assert report.checks[1].passed is False
        assert report.checks[1].details == "Check timed out after 0.05 seconds"
        assert report.can_close is False

    async def test_storage_error_aborts_report(self, session_factory, settings):
        async def broken(session, ctx):
            raise OperationalError("SELECT 1", {}, Exception("database is locked"))

        broken_check = CheckDefinition(
            id="broken",
            category=CheckCategory.IMPORTANT,
            name="Broken",
            description="Storage unavailable",
            what_to_check="-",
            how_to_fix="-",
            evaluate=broken,
        )
        validator = MonthEndValidator(
            session_factory,
            settings=settings,
            checks=(*MONTH_END_CHECKS, broken_check),
            clock=lambda: TEST_NOW,
        )

        with pytest.raises(OperationalError):
            await validator.run(TEST_YEAR, TEST_MONTH)

    async def test_invalid_month(self, validator):
        with pytest.raises(ValueError):
            await validator.run(2024, 13)
