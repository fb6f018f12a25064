"""Closing a month once validation allows it."""

from __future__ import annotations

import calendar
import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from benefits_engine.models import MonthEndClosing
from benefits_engine.services.month_end import MonthEndReport, MonthEndValidator

logger = logging.getLogger(__name__)


class MonthCloseError(Exception):
    """Raised when a month cannot be closed."""

    def __init__(self, code: str, message: str, report: MonthEndReport | None = None):
        self.code = code
        self.message = message
        self.report = report
        super().__init__(message)


def expected_confirmation(year: int, month: int) -> str:
    """Text the user must type to close a month, e.g. ``CLOSE FEBRUARY 2024``."""
    return f"CLOSE {calendar.month_name[month].upper()} {year}"


class MonthEndCloseService:
    """Records month closings.

    Closing re-runs validation immediately before writing so a month with
    failing critical checks can never be closed. Reading history needs no
    validator.
    """

    def __init__(self, session: AsyncSession, validator: MonthEndValidator | None = None):
        self.session = session
        self.validator = validator

    async def get_closing(self, year: int, month: int) -> MonthEndClosing | None:
        return await self.session.scalar(
            select(MonthEndClosing).where(
                MonthEndClosing.year == year,
                MonthEndClosing.month == month,
            )
        )

    async def close_month(
        self,
        year: int,
        month: int,
        user_id: str,
        confirmation_text: str,
        notes: str | None = None,
    ) -> tuple[MonthEndClosing, MonthEndReport]:
        """Validate and close a month.

        Raises:
            MonthCloseError: confirmation mismatch, month already closed
                (including a close that lost a race with another request),
                or critical checks failing.
        """
        expected = expected_confirmation(year, month)
        if (confirmation_text or "").strip().upper() != expected:
            raise MonthCloseError(
                "INVALID_CONFIRMATION",
                f'Invalid confirmation. Please type: "{expected}"',
            )

        if self.validator is None:
            raise RuntimeError("Closing a month requires a MonthEndValidator")

        closing = await self.get_closing(year, month)
        if closing is not None and closing.status == "closed":
            raise MonthCloseError("ALREADY_CLOSED", "Month is already closed")

        report = await self.validator.run(year, month)
        if not report.can_close:
            raise MonthCloseError(
                "CRITICAL_ISSUES",
                "Cannot close month - critical issues must be resolved",
                report,
            )

        if closing is None:
            closing = MonthEndClosing(year=year, month=month)
            self.session.add(closing)

        closing.status = "closed"
        closing.can_close = report.can_close
        closing.critical_issues_count = len(report.critical_issues)
        closing.warnings_count = report.warnings_count
        closing.validation_report = _json_safe(report.to_dict())
        closing.closed_by = user_id
        closing.closed_at = datetime.now(timezone.utc)
        closing.transactions_locked = True
        closing.notes = notes

        try:
            await self.session.flush()
        except IntegrityError as e:
            await self.session.rollback()
            logger.warning("Concurrent close of %s rejected", report.period)
            raise MonthCloseError("ALREADY_CLOSED", "Month is already closed") from e
        logger.info("Closed %s by %s", report.period, user_id)
        return closing, report

    async def list_closings(self, year: int | None = None, limit: int = 24) -> list[MonthEndClosing]:
        """Closing history, newest month first."""
        query = select(MonthEndClosing)
        if year is not None:
            query = query.where(MonthEndClosing.year == year)
        query = query.order_by(MonthEndClosing.year.desc(), MonthEndClosing.month.desc()).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())


def _json_safe(value: object) -> object:
    """Convert Decimals in a report dict to strings for JSON storage."""
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_json_safe(v) for v in value]
    if isinstance(value, (int, float, str, bool)) or value is None:
        return value
    return str(value)
