"""Per-paycheck withholding approximations (FICA, federal, state, local)."""

from __future__ import annotations

from decimal import Decimal
from typing import Callable

from benefits_engine.calculators.local_tax import calculate_local_tax
from benefits_engine.calculators.types import (
    ZERO,
    EmployeeInput,
    FederalWithholdingTable,
    FICAResult,
    FilingStatus,
    PaycheckScenario,
    StateTaxMethod,
    StateWithholdingConfig,
    round_cents,
    to_decimal,
)

# 2024 annual standard deductions
STANDARD_DEDUCTIONS: dict[FilingStatus, Decimal] = {
    FilingStatus.SINGLE: Decimal("14600"),
    FilingStatus.MARRIED: Decimal("29200"),
    FilingStatus.HEAD: Decimal("21900"),
}
DEPENDENT_ALLOWANCE = Decimal("2000")
FALLBACK_FEDERAL_RATE = Decimal("0.12")

LocalTaxFn = Callable[[Decimal, str, str, "str | None", "str | None"], Decimal]


def standard_deduction(filing_status: FilingStatus) -> Decimal:
    """Annual standard deduction for a filing status."""
    return STANDARD_DEDUCTIONS[filing_status]


def dependent_allowance(dependents: int) -> Decimal:
    """Annual dependent allowance."""
    return DEPENDENT_ALLOWANCE * max(0, dependents)


def calc_fica(
    gross: Decimal,
    benefit: Decimal,
    ss_rate: Decimal,
    med_rate: Decimal,
) -> FICAResult:
    """Social Security + Medicare on wages after the pre-tax benefit.

    The Social Security wage base is not applied.
    """
    base = max(ZERO, to_decimal(gross) - to_decimal(benefit))
    ss = round_cents(base * to_decimal(ss_rate))
    med = round_cents(base * to_decimal(med_rate))
    return FICAResult(ss=ss, med=med, fica=ss + med)


def calc_federal_tax(
    per_pay_gross: Decimal,
    periods_per_year: int,
    benefit: Decimal,
    annual_standard_deduction: Decimal,
    annual_dependent_allowance: Decimal,
    table: FederalWithholdingTable | None,
) -> Decimal:
    """Federal income tax per paycheck using the IRS percentage method.

    Selects the highest row whose ``over`` does not exceed annual taxable
    income and applies ``base_tax + overage * pct``. Without a table a flat
    12% is withheld on per-pay wages less the prorated standard deduction.
    """
    gross = to_decimal(per_pay_gross)
    benefit = to_decimal(benefit)
    std = to_decimal(annual_standard_deduction)

    if periods_per_year <= 0:
        return ZERO

    if not table:
        per_pay_taxable = max(ZERO, gross - benefit - std / periods_per_year)
        return round_cents(per_pay_taxable * FALLBACK_FEDERAL_RATE)

    annual_wages = (gross - benefit) * periods_per_year
    annual_taxable = max(
        ZERO, annual_wages - std - to_decimal(annual_dependent_allowance)
    )

    row = table.brackets[0]
    for bracket in table.brackets:
        if annual_taxable >= bracket.over:
            row = bracket
        else:
            break

    overage = max(ZERO, annual_taxable - row.over)
    annual_tax = row.base_tax + overage * row.pct
    return round_cents(annual_tax / periods_per_year)


def calc_state_tax(
    per_pay_taxable: Decimal,
    periods_per_year: int,
    dependents: int,
    config: StateWithholdingConfig | None,
) -> Decimal:
    """State income tax per paycheck.

    Bracket configs are taxed as a true marginal sum over the annualized
    income, unlike the federal percentage method.
    """
    if config is None or config.method is StateTaxMethod.NONE or periods_per_year <= 0:
        return ZERO

    annual_income = to_decimal(per_pay_taxable) * periods_per_year
    exemptions = (
        config.standard_deduction
        + config.personal_exemption
        + config.dependent_exemption * max(0, dependents)
    )
    annual_taxable = max(ZERO, annual_income - exemptions)

    if config.method is StateTaxMethod.FLAT:
        annual_tax = annual_taxable * config.flat_rate
    else:
        annual_tax = _marginal_bracket_tax(annual_taxable, config)

    return round_cents(annual_tax / periods_per_year)


def _marginal_bracket_tax(annual_taxable: Decimal, config: StateWithholdingConfig) -> Decimal:
    total = ZERO
    brackets = config.brackets
    for index, bracket in enumerate(brackets):
        if annual_taxable <= bracket.over:
            break
        ceiling = brackets[index + 1].over if index + 1 < len(brackets) else None
        upper = annual_taxable if ceiling is None else min(annual_taxable, ceiling)
        total += (upper - bracket.over) * bracket.rate
    return total


class TaxCalculator:
    """Computes one paycheck scenario for an employee.

    Holds the rate tables loaded for the request; every method is pure with
    respect to its inputs.
    """

    def __init__(
        self,
        federal_table: FederalWithholdingTable | None = None,
        state_config: StateWithholdingConfig | None = None,
        ss_rate: Decimal = Decimal("0.062"),
        med_rate: Decimal = Decimal("0.0145"),
        local_tax: LocalTaxFn = calculate_local_tax,
    ):
        self.federal_table = federal_table
        self.state_config = state_config
        self.ss_rate = ss_rate
        self.med_rate = med_rate
        self.local_tax = local_tax

    def federal(self, employee: EmployeeInput, benefit: Decimal) -> Decimal:
        return calc_federal_tax(
            employee.gross_pay,
            employee.periods_per_year,
            benefit,
            standard_deduction(employee.filing_status),
            dependent_allowance(employee.dependents),
            self.federal_table,
        )

    def state(self, employee: EmployeeInput, benefit: Decimal) -> Decimal:
        return calc_state_tax(
            employee.gross_pay - benefit,
            employee.periods_per_year,
            employee.dependents,
            self.state_config,
        )

    def local(self, employee: EmployeeInput, benefit: Decimal) -> Decimal:
        """Local tax per paycheck (unrounded)."""
        periods = employee.periods_per_year
        annual_gross = max(ZERO, employee.gross_pay - benefit) * periods
        annual_tax = to_decimal(
            self.local_tax(
                annual_gross,
                employee.residence_state,
                employee.residence_city,
                employee.work_state,
                employee.work_city,
            )
        )
        return annual_tax / periods

    def scenario(
        self,
        employee: EmployeeInput,
        benefit: Decimal = ZERO,
        fee: Decimal = ZERO,
    ) -> PaycheckScenario:
        """Compute all withholding for one paycheck with the given pre-tax benefit."""
        return PaycheckScenario(
            benefit=benefit,
            fica=calc_fica(employee.gross_pay, benefit, self.ss_rate, self.med_rate),
            federal=self.federal(employee, benefit),
            state=self.state(employee, benefit),
            local=self.local(employee, benefit),
            fee=fee,
            gross=employee.gross_pay,
        )
