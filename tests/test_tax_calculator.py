"""Unit tests for the withholding calculators.

Pure functions only; no database.
"""

from decimal import Decimal

import pytest

from benefits_engine.calculators.tax_calculator import (
    TaxCalculator,
    calc_federal_tax,
    calc_fica,
    calc_state_tax,
    dependent_allowance,
    standard_deduction,
)
from benefits_engine.calculators.types import (
    EmployeeInput,
    FederalBracket,
    FederalWithholdingTable,
    FilingStatus,
    PayFrequency,
    StateBracket,
    StateTaxMethod,
    StateWithholdingConfig,
    WithholdingConfigError,
)

SS_RATE = Decimal("0.062")
MED_RATE = Decimal("0.0145")


def _federal_table(*rows: tuple[str, str, str]) -> FederalWithholdingTable:
    return FederalWithholdingTable(
        brackets=tuple(
            FederalBracket(over=Decimal(over), base_tax=Decimal(base), pct=Decimal(pct))
            for over, base, pct in rows
        )
    )


FEDERAL_ROWS = (
    ("0", "0", "0.10"),
    ("10000", "1000", "0.12"),
    ("40000", "4600", "0.22"),
)


class TestFica:
    """Social Security and Medicare."""

    def test_fica_on_full_gross(self):
        result = calc_fica(Decimal("2000"), Decimal("0"), SS_RATE, MED_RATE)
        assert result.ss == Decimal("124.00")
        assert result.med == Decimal("29.00")
        assert result.fica == Decimal("153.00")

    def test_benefit_reduces_fica_base(self):
        result = calc_fica(Decimal("2000"), Decimal("600"), SS_RATE, MED_RATE)
        assert result.ss == Decimal("86.80")
        assert result.med == Decimal("20.30")
        assert result.fica == Decimal("107.10")

    def test_benefit_above_gross_floors_at_zero(self):
        result = calc_fica(Decimal("100"), Decimal("200"), SS_RATE, MED_RATE)
        assert result.fica == Decimal("0")

    @pytest.mark.parametrize(
        "gross,benefit",
        [("1234.56", "0"), ("987.65", "123.45"), ("0.07", "0"), ("55555.55", "1300")],
    )
    def test_fica_is_sum_of_parts(self, gross, benefit):
        result = calc_fica(Decimal(gross), Decimal(benefit), SS_RATE, MED_RATE)
        assert result.fica == result.ss + result.med


class TestFederalWithholding:
    """Federal percentage-method withholding."""

    def test_standard_deductions(self):
        assert standard_deduction(FilingStatus.SINGLE) == Decimal("14600")
        assert standard_deduction(FilingStatus.MARRIED) == Decimal("29200")
        assert standard_deduction(FilingStatus.HEAD) == Decimal("21900")
        assert dependent_allowance(3) == Decimal("6000")
        assert dependent_allowance(-1) == Decimal("0")

    def test_fallback_rate_without_table(self):
        """No table: 12% of per-pay wages less prorated standard deduction."""
        tax = calc_federal_tax(
            Decimal("2000"), 26, Decimal("0"), Decimal("14600"), Decimal("0"), None
        )
        assert tax == Decimal("172.62")

    def test_empty_table_uses_fallback(self):
        tax = calc_federal_tax(
            Decimal("2000"),
            26,
            Decimal("0"),
            Decimal("14600"),
            Decimal("0"),
            FederalWithholdingTable(),
        )
        assert tax == Decimal("172.62")

    def test_fallback_never_negative(self):
        tax = calc_federal_tax(
            Decimal("300"), 26, Decimal("0"), Decimal("14600"), Decimal("0"), None
        )
        assert tax == Decimal("0")

    def test_base_plus_overage(self):
        """52000 - 14600 = 37400 taxable; 1000 + 27400 * 12% = 4288 / 26."""
        tax = calc_federal_tax(
            Decimal("2000"),
            26,
            Decimal("0"),
            Decimal("14600"),
            Decimal("0"),
            _federal_table(*FEDERAL_ROWS),
        )
        assert tax == Decimal("164.92")

    def test_benefit_lowers_federal(self):
        tax = calc_federal_tax(
            Decimal("2000"),
            26,
            Decimal("600"),
            Decimal("14600"),
            Decimal("0"),
            _federal_table(*FEDERAL_ROWS),
        )
        assert tax == Decimal("92.92")

    def test_dependent_allowance_lowers_federal(self):
        tax = calc_federal_tax(
            Decimal("2000"),
            26,
            Decimal("0"),
            Decimal("14600"),
            dependent_allowance(2),
            _federal_table(*FEDERAL_ROWS),
        )
        assert tax == Decimal("146.46")

    def test_unsorted_table_matches_sorted(self):
        sorted_table = _federal_table(*FEDERAL_ROWS)
        reversed_table = _federal_table(*reversed(FEDERAL_ROWS))
        assert reversed_table.brackets == sorted_table.brackets
        for gross in ("500", "1500", "2000", "4000", "9000"):
            args = (Decimal(gross), 26, Decimal("0"), Decimal("14600"), Decimal("0"))
            assert calc_federal_tax(*args, reversed_table) == calc_federal_tax(*args, sorted_table)

    def test_income_below_first_row_uses_first_row(self):
        table = _federal_table(("5000", "0", "0.10"))
        tax = calc_federal_tax(
            Decimal("100"), 26, Decimal("0"), Decimal("0"), Decimal("0"), table
        )
        assert tax == Decimal("0")

    def test_zero_periods_returns_zero(self):
        tax = calc_federal_tax(
            Decimal("2000"), 0, Decimal("0"), Decimal("14600"), Decimal("0"), None
        )
        assert tax == Decimal("0")

    def test_negative_bracket_rejected(self):
        with pytest.raises(WithholdingConfigError):
            _federal_table(("0", "0", "-0.10"))

    def test_from_rows_accepts_camel_case(self):
        table = FederalWithholdingTable.from_rows(
            [{"over": 10000, "baseTax": 1000, "pct": "0.12"}, {"over": 0, "pct": 0.1}]
        )
        assert [b.over for b in table.brackets] == [Decimal("0"), Decimal("10000")]
        assert table.brackets[1].base_tax == Decimal("1000")


class TestStateWithholding:
    """State withholding methods."""

    def test_no_config_is_zero(self):
        assert calc_state_tax(Decimal("2000"), 26, 0, None) == Decimal("0")
        assert calc_state_tax(
            Decimal("2000"), 26, 0, StateWithholdingConfig.no_income_tax("tx")
        ) == Decimal("0")

    def test_flat_rate(self):
        config = StateWithholdingConfig(
            state="IL", method=StateTaxMethod.FLAT, flat_rate=Decimal("0.05")
        )
        assert calc_state_tax(Decimal("2000"), 26, 0, config) == Decimal("100.00")

    def test_flat_rate_with_exemptions(self):
        config = StateWithholdingConfig(
            state="IL",
            method=StateTaxMethod.FLAT,
            flat_rate=Decimal("0.05"),
            standard_deduction=Decimal("5000"),
            dependent_exemption=Decimal("1000"),
        )
        # (52000 - 5000 - 2 * 1000) * 5% / 26
        assert calc_state_tax(Decimal("2000"), 26, 2, config) == Decimal("86.54")

    def test_marginal_brackets(self):
        config = StateWithholdingConfig(
            state="XX",
            method=StateTaxMethod.BRACKETS,
            brackets=(
                StateBracket(over=Decimal("0"), rate=Decimal("0.02")),
                StateBracket(over=Decimal("10000"), rate=Decimal("0.04")),
                StateBracket(over=Decimal("50000"), rate=Decimal("0.06")),
            ),
        )
        # 200 + 1600 + 120 = 1920 annual
        assert calc_state_tax(Decimal("2000"), 26, 0, config) == Decimal("73.85")

    def test_unsorted_brackets_are_sorted(self):
        config = StateWithholdingConfig(
            state="XX",
            method=StateTaxMethod.BRACKETS,
            brackets=(
                StateBracket(over=Decimal("50000"), rate=Decimal("0.06")),
                StateBracket(over=Decimal("0"), rate=Decimal("0.02")),
                StateBracket(over=Decimal("10000"), rate=Decimal("0.04")),
            ),
        )
        assert [b.over for b in config.brackets] == [
            Decimal("0"),
            Decimal("10000"),
            Decimal("50000"),
        ]
        assert calc_state_tax(Decimal("2000"), 26, 0, config) == Decimal("73.85")

    def test_marginal_brackets_monotonic(self):
        config = StateWithholdingConfig(
            state="XX",
            method=StateTaxMethod.BRACKETS,
            brackets=(
                StateBracket(over=Decimal("0"), rate=Decimal("0.02")),
                StateBracket(over=Decimal("10000"), rate=Decimal("0.04")),
                StateBracket(over=Decimal("50000"), rate=Decimal("0.06")),
            ),
        )
        previous = Decimal("0")
        for per_pay in range(0, 6000, 250):
            tax = calc_state_tax(Decimal(per_pay), 26, 0, config)
            assert tax >= previous
            previous = tax

    def test_brackets_method_requires_brackets(self):
        with pytest.raises(WithholdingConfigError) as exc_info:
            StateWithholdingConfig(state="XX", method=StateTaxMethod.BRACKETS)
        assert exc_info.value.source == "XX"

    def test_negative_flat_rate_rejected(self):
        with pytest.raises(WithholdingConfigError):
            StateWithholdingConfig(
                state="XX", method=StateTaxMethod.FLAT, flat_rate=Decimal("-0.01")
            )

    @pytest.mark.parametrize(
        "field", ["standard_deduction", "personal_exemption", "dependent_exemption"]
    )
    def test_negative_deduction_rejected(self, field):
        with pytest.raises(WithholdingConfigError) as exc_info:
            StateWithholdingConfig(
                state="XX", method=StateTaxMethod.FLAT, flat_rate=Decimal("0.05"), **{field: Decimal("-1")}
            )
        assert field in exc_info.value.reason

    def test_unknown_method_rejected(self):
        with pytest.raises(WithholdingConfigError):
            StateWithholdingConfig.from_dict({"state": "xx", "method": "graduated"})

    def test_from_dict(self):
        config = StateWithholdingConfig.from_dict(
            {
                "state": "ga",
                "method": "brackets",
                "brackets": [{"over": 7000, "rate": "0.0575"}, {"over": 0, "rate": "0.01"}],
                "standardDeduction": "12000",
            }
        )
        assert config.state == "GA"
        assert config.standard_deduction == Decimal("12000")
        assert config.brackets[0].over == Decimal("0")


class TestTaxCalculatorScenario:
    """Full scenario assembly."""

    def _employee(self, **kwargs) -> EmployeeInput:
        defaults = dict(
            gross_pay=Decimal("2000"),
            filing_status=FilingStatus.SINGLE,
            pay_frequency=PayFrequency.BIWEEKLY,
        )
        defaults.update(kwargs)
        return EmployeeInput(**defaults)

    def test_scenario_without_tables(self):
        scenario = TaxCalculator().scenario(self._employee())
        assert scenario.fica.fica == Decimal("153.00")
        assert scenario.federal == Decimal("172.62")
        assert scenario.state == Decimal("0")
        assert scenario.local == Decimal("0")
        assert scenario.total_tax == Decimal("325.62")
        assert scenario.net_pay == Decimal("1674.38")

    def test_scenario_with_benefit_and_fee(self):
        scenario = TaxCalculator().scenario(
            self._employee(), benefit=Decimal("600"), fee=Decimal("30")
        )
        assert scenario.fica.fica == Decimal("107.10")
        assert scenario.federal == Decimal("100.62")
        assert scenario.total_tax == Decimal("207.72")
        assert scenario.net_pay == Decimal("1762.28")

    def test_local_tax_for_resident(self):
        calc = TaxCalculator()
        employee = self._employee(residence_state="MI", residence_city="Detroit")
        # 52000 * 2.4% / 26
        assert calc.local(employee, Decimal("0")) == Decimal("48")

    def test_local_tax_injected(self):
        calls = []

        def fake_local(annual, state, city, work_state, work_city):
            calls.append((annual, state, city, work_state, work_city))
            return Decimal("260")

        calc = TaxCalculator(local_tax=fake_local)
        employee = self._employee(residence_state="OH", residence_city="Columbus")
        assert calc.local(employee, Decimal("600")) == Decimal("10")
        assert calls == [(Decimal("36400"), "OH", "Columbus", None, None)]

    def test_components_never_negative(self):
        calc = TaxCalculator(federal_table=_federal_table(*FEDERAL_ROWS))
        for gross in ("0", "1", "50", "600", "2000"):
            scenario = calc.scenario(self._employee(gross_pay=Decimal(gross)), benefit=Decimal("600"))
            assert scenario.fica.fica >= 0
            assert scenario.federal >= 0
            assert scenario.state >= 0
            assert scenario.local >= 0

    def test_deterministic(self):
        calc = TaxCalculator(federal_table=_federal_table(*FEDERAL_ROWS))
        employee = self._employee(residence_state="PA", residence_city="Philadelphia")
        first = calc.scenario(employee, benefit=Decimal("600")).to_dict()
        second = calc.scenario(employee, benefit=Decimal("600")).to_dict()
        assert first == second
