"""Before/after Section 125 paycheck comparison."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable

from benefits_engine.calculators.section125 import (
    calculate_affordability,
    fee_rates,
    per_pay_to_monthly,
)
from benefits_engine.calculators.tax_calculator import TaxCalculator
from benefits_engine.calculators.types import (
    ZERO,
    CompanyBenefitConfig,
    EmployeeInput,
    PaycheckComparison,
    round_cents,
)


class PaycheckCalculator:
    """Assembles paycheck comparisons for a company's employees.

    Calculation pipeline (per employee):
    1) Section 125 affordability (tier target capped by safety percent)
    2) Before scenario with no pre-tax benefit
    3) After scenario with the capped safe benefit, or zero when ineligible
    4) Employee and employer fees from the billing model
    """

    def __init__(self, company: CompanyBenefitConfig, taxes: TaxCalculator):
        self.company = company
        self.taxes = taxes

    def compare(self, employee: EmployeeInput) -> PaycheckComparison:
        """Compare one employee's paycheck without and with the Section 125 plan."""
        affordability = calculate_affordability(self.company, employee)
        benefit = affordability.benefit_per_paycheck
        employee_rate, employer_rate = fee_rates(self.company)

        employee_fee = benefit * employee_rate / 100
        employer_fee = benefit * employer_rate / 100

        before = self.taxes.scenario(employee, benefit=ZERO)
        after = self.taxes.scenario(employee, benefit=benefit, fee=employee_fee)

        warnings: list[str] = []
        if not affordability.is_sufficient:
            warnings.append(
                "Ineligible: gross pay supports no Section 125 deduction, "
                f"${round_cents(affordability.target_per_paycheck)} target"
            )
        elif affordability.shortfall_monthly > ZERO:
            warnings.append(
                "Capped: gross pay supports "
                f"${round_cents(affordability.safe_per_paycheck)} per paycheck, "
                f"${round_cents(affordability.target_per_paycheck)} target"
            )

        return PaycheckComparison(
            gross=employee.gross_pay,
            periods_per_year=employee.periods_per_year,
            affordability=affordability,
            before=before,
            after=after,
            employee_fee=employee_fee,
            employer_fee=employer_fee,
            warnings=warnings,
        )


@dataclass
class CompanySavingsSummary:
    """Company roll-up of Section 125 amounts and employer savings."""

    employee_count: int = 0
    eligible_count: int = 0
    total_section_125_monthly: Decimal = ZERO
    total_employer_savings_monthly: Decimal = ZERO
    total_employer_savings_annual: Decimal = ZERO
    comparisons: list[PaycheckComparison] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "employee_count": self.employee_count,
            "eligible_count": self.eligible_count,
            "total_section_125_monthly": round_cents(self.total_section_125_monthly),
            "total_employer_savings_monthly": round_cents(self.total_employer_savings_monthly),
            "total_employer_savings_annual": round_cents(self.total_employer_savings_annual),
        }


def summarize_company(
    calculator: PaycheckCalculator,
    employees: Iterable[EmployeeInput],
) -> CompanySavingsSummary:
    """Run comparisons for every enrolled employee and total the results."""
    summary = CompanySavingsSummary()
    for employee in employees:
        comparison = calculator.compare(employee)
        summary.comparisons.append(comparison)
        summary.employee_count += 1
        if comparison.eligible:
            summary.eligible_count += 1
        summary.total_section_125_monthly += per_pay_to_monthly(
            comparison.after.benefit, employee.pay_frequency
        )
        summary.total_employer_savings_monthly += comparison.employer_savings_monthly
        summary.total_employer_savings_annual += comparison.employer_savings_annual
    return summary
