"""Section 125 target amounts, fee rates and affordability."""

from __future__ import annotations

from decimal import Decimal

from benefits_engine.calculators.types import (
    ZERO,
    AffordabilityResult,
    CompanyBenefitConfig,
    CompanyTier,
    EmployeeInput,
    FilingStatus,
    PayFrequency,
    TierAmounts,
    to_decimal,
)

TIER_AMOUNTS: dict[CompanyTier, TierAmounts] = {
    CompanyTier.STATE_SCHOOL: TierAmounts(
        single_no_dependents=Decimal("1300"),
        single_with_dependents=Decimal("1300"),
        married_no_dependents=Decimal("1300"),
        married_with_dependents=Decimal("1300"),
    ),
    CompanyTier.TIER_2025: TierAmounts(
        single_no_dependents=Decimal("1300"),
        single_with_dependents=Decimal("1700"),
        married_no_dependents=Decimal("1700"),
        married_with_dependents=Decimal("1700"),
    ),
    CompanyTier.PRE_2025: TierAmounts(
        single_no_dependents=Decimal("800"),
        single_with_dependents=Decimal("1200"),
        married_no_dependents=Decimal("1200"),
        married_with_dependents=Decimal("1600"),
    ),
    CompanyTier.ORIGINAL_6PCT: TierAmounts(
        single_no_dependents=Decimal("700"),
        single_with_dependents=Decimal("1100"),
        married_no_dependents=Decimal("1500"),
        married_with_dependents=Decimal("1500"),
    ),
}

# Tiers with a fixed fee split regardless of billing model
TIER_FEE_RATES: dict[CompanyTier, tuple[Decimal, Decimal]] = {
    CompanyTier.STATE_SCHOOL: (Decimal("6"), Decimal("0")),
    CompanyTier.ORIGINAL_6PCT: (Decimal("1"), Decimal("5")),
}


def target_monthly_amount(
    config: CompanyBenefitConfig,
    filing_status: FilingStatus,
    dependents: int,
) -> Decimal:
    """Monthly Section 125 target for an employee's filing bucket."""
    if config.billing_model.uses_custom_amounts and config.custom_amounts is not None:
        amounts = config.custom_amounts
    else:
        amounts = TIER_AMOUNTS[config.tier]
    return amounts.amount_for(filing_status, dependents)


def fee_rates(config: CompanyBenefitConfig) -> tuple[Decimal, Decimal]:
    """(employee_rate, employer_rate) percentages for a company."""
    if config.tier in TIER_FEE_RATES:
        return TIER_FEE_RATES[config.tier]
    return config.billing_model.rates


def monthly_to_per_pay(monthly: Decimal, frequency: PayFrequency) -> Decimal:
    return to_decimal(monthly) * 12 / frequency.periods_per_year


def per_pay_to_monthly(per_pay: Decimal, frequency: PayFrequency) -> Decimal:
    return to_decimal(per_pay) * frequency.periods_per_year / 12


def annual_to_per_pay(annual: Decimal, frequency: PayFrequency) -> Decimal:
    return to_decimal(annual) / frequency.periods_per_year


def calculate_affordability(
    config: CompanyBenefitConfig,
    employee: EmployeeInput,
) -> AffordabilityResult:
    """Compute the safe Section 125 deduction for one employee.

    The safe amount is the tier target capped at ``safety_cap_percent`` of
    monthly gross. Any positive capped amount is applied even when it falls
    short of the target; the shortfall is informational. Only an employee
    whose cap leaves nothing to deduct is not sufficient.
    """
    periods = employee.periods_per_year
    cap_percent = employee.safety_cap_percent
    if cap_percent is None:
        cap_percent = config.safety_cap_percent
    cap_percent = min(max(to_decimal(cap_percent), ZERO), Decimal("100"))

    target_monthly = target_monthly_amount(config, employee.filing_status, employee.dependents)
    gross_monthly = max(ZERO, employee.gross_pay) * periods / 12
    max_monthly = gross_monthly * cap_percent / 100
    safe_monthly = max(ZERO, min(target_monthly, max_monthly))
    is_sufficient = safe_monthly > ZERO

    return AffordabilityResult(
        gross_monthly=gross_monthly,
        target_monthly=target_monthly,
        max_monthly=max_monthly,
        safe_monthly=safe_monthly,
        safe_per_paycheck=safe_monthly * 12 / periods,
        is_sufficient=is_sufficient,
        target_per_paycheck=target_monthly * 12 / periods,
        shortfall_monthly=max(ZERO, target_monthly - safe_monthly),
    )


def calculate_safe_deduction(
    config: CompanyBenefitConfig,
    employee: EmployeeInput,
) -> Decimal:
    """Per-paycheck Section 125 deduction to apply (zero when ineligible)."""
    return calculate_affordability(config, employee).benefit_per_paycheck
