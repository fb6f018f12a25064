"""Paycheck comparison and affordability endpoints."""

import logging

from fastapi import APIRouter, HTTPException, status

from benefits_engine.api.dependencies import AppSettings
from benefits_engine.api.schemas import (
    AffordabilityResponse,
    ErrorResponse,
    PaycheckComparisonResponse,
    PaycheckRequest,
)
from benefits_engine.calculators import PaycheckCalculator, TaxCalculator, calculate_affordability
from benefits_engine.calculators.types import WithholdingConfigError
from benefits_engine.config import Settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/paychecks", tags=["paychecks"])


def _build_calculator(payload: PaycheckRequest, settings: Settings) -> PaycheckCalculator:
    try:
        taxes = TaxCalculator(
            federal_table=payload.federal_table(),
            state_config=payload.state.to_config() if payload.state else None,
            ss_rate=payload.ss_rate if payload.ss_rate is not None else settings.ss_rate,
            med_rate=(
                payload.medicare_rate
                if payload.medicare_rate is not None
                else settings.medicare_rate
            ),
        )
    except WithholdingConfigError as e:
        logger.warning("Rejected withholding config: %s", e)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    company = payload.company.to_config(settings.default_safety_cap_percent)
    return PaycheckCalculator(company, taxes)


@router.post(
    "/compare",
    response_model=PaycheckComparisonResponse,
    responses={400: {"model": ErrorResponse}},
)
async def compare_paycheck(
    settings: AppSettings,
    payload: PaycheckRequest,
) -> PaycheckComparisonResponse:
    """Compare an employee's paycheck without and with the Section 125 plan."""
    calculator = _build_calculator(payload, settings)
    comparison = calculator.compare(payload.employee.to_input())
    return PaycheckComparisonResponse.model_validate(comparison.to_dict())


@router.post(
    "/affordability",
    response_model=AffordabilityResponse,
    responses={400: {"model": ErrorResponse}},
)
async def check_affordability(
    settings: AppSettings,
    payload: PaycheckRequest,
) -> AffordabilityResponse:
    """Safe Section 125 deduction for an employee."""
    company = payload.company.to_config(settings.default_safety_cap_percent)
    result = calculate_affordability(company, payload.employee.to_input())
    return AffordabilityResponse.model_validate(result.to_dict())
