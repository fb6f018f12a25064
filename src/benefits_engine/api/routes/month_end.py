"""Month-end validation and close endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query, status

from benefits_engine.api.dependencies import DbSession, Validator
from benefits_engine.api.schemas import (
    ErrorResponse,
    MonthCloseRequest,
    MonthCloseResponse,
    MonthEndClosingResponse,
    MonthEndHistoryResponse,
    MonthEndReportResponse,
    MonthEndValidateResponse,
    MonthPeriodRequest,
    ValidationCounts,
)
from benefits_engine.services.month_close import MonthEndCloseService

router = APIRouter(prefix="/month-end", tags=["month-end"])


@router.post(
    "/validate",
    response_model=MonthEndValidateResponse,
    status_code=status.HTTP_200_OK,
)
async def validate_month(
    validator: Validator,
    payload: MonthPeriodRequest,
) -> MonthEndValidateResponse:
    """Run the month-end checklist without changing anything."""
    report = await validator.run(payload.year, payload.month)
    return MonthEndValidateResponse(
        report=MonthEndReportResponse.model_validate(report.to_dict()),
        summary=ValidationCounts(
            can_close=report.can_close,
            critical_issues=len(report.critical_issues),
            warnings=len(report.important_issues),
            recommendations=len(report.recommendations),
            passed_checks=report.passed_count,
            total_checks=len(report.checks),
        ),
    )


@router.post(
    "/close",
    response_model=MonthCloseResponse,
    responses={400: {"model": ErrorResponse}},
)
async def close_month(
    db: DbSession,
    validator: Validator,
    payload: MonthCloseRequest,
) -> MonthCloseResponse:
    """Close a month after re-validating it.

    Rejections (bad confirmation, already closed, critical issues) are
    returned as 400 with the rejection code.
    """
    service = MonthEndCloseService(db, validator)
    closing, report = await service.close_month(
        payload.year,
        payload.month,
        user_id=payload.user_id,
        confirmation_text=payload.confirmation_text,
        notes=payload.notes,
    )
    await db.commit()
    await db.refresh(closing)
    return MonthCloseResponse(
        success=True,
        closing=MonthEndClosingResponse.model_validate(closing),
        message=f"Month {report.period} closed successfully",
    )


@router.get(
    "/history",
    response_model=MonthEndHistoryResponse,
)
async def closing_history(
    db: DbSession,
    year: Annotated[int | None, Query(ge=2020, le=2100)] = None,
    limit: Annotated[int, Query(ge=1, le=120)] = 24,
) -> MonthEndHistoryResponse:
    """List closed months, newest first."""
    service = MonthEndCloseService(db)
    closings = await service.list_closings(year=year, limit=limit)
    return MonthEndHistoryResponse(
        items=[MonthEndClosingResponse.model_validate(c) for c in closings],
        total=len(closings),
    )
