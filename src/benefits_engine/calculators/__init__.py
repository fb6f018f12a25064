"""Section 125 and withholding calculation engine."""

from benefits_engine.calculators.paycheck import (
    CompanySavingsSummary,
    PaycheckCalculator,
    summarize_company,
)
from benefits_engine.calculators.section125 import (
    calculate_affordability,
    calculate_safe_deduction,
    fee_rates,
    target_monthly_amount,
)
from benefits_engine.calculators.tax_calculator import (
    TaxCalculator,
    calc_federal_tax,
    calc_fica,
    calc_state_tax,
)

__all__ = [
    "CompanySavingsSummary",
    "PaycheckCalculator",
    "TaxCalculator",
    "calc_federal_tax",
    "calc_fica",
    "calc_state_tax",
    "calculate_affordability",
    "calculate_safe_deduction",
    "fee_rates",
    "summarize_company",
    "target_monthly_amount",
]
