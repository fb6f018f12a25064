"""Month-end validation and closing services."""

from benefits_engine.services.month_close import MonthCloseError, MonthEndCloseService
from benefits_engine.services.month_end import (
    MONTH_END_CHECKS,
    CheckCategory,
    FinancialSummary,
    MonthEndReport,
    MonthEndValidator,
    ValidationCheck,
)

__all__ = [
    "MONTH_END_CHECKS",
    "CheckCategory",
    "FinancialSummary",
    "MonthCloseError",
    "MonthEndCloseService",
    "MonthEndReport",
    "MonthEndValidator",
    "ValidationCheck",
]
