"""Type definitions for the calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any, Iterable, Mapping

CENTS = Decimal("0.01")
ZERO = Decimal("0")


def to_decimal(value: Any, default: Decimal = ZERO) -> Decimal:
    """Coerce a loosely typed numeric field to Decimal.

    Missing or unparseable values become ``default`` rather than raising.
    """
    if value is None or value == "":
        return default
    if isinstance(value, Decimal):
        return value if value.is_finite() else default
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return default
    return result if result.is_finite() else default


def round_cents(value: Decimal) -> Decimal:
    """Round a currency amount to cents (half-up)."""
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


class FilingStatus(str, Enum):
    """Employee filing status."""

    SINGLE = "single"
    MARRIED = "married"
    HEAD = "head"

    @classmethod
    def parse(cls, value: Any) -> FilingStatus:
        """Parse a filing status, defaulting to single."""
        if isinstance(value, cls):
            return value
        normalized = str(value or "").strip().lower()
        aliases = {
            "s": cls.SINGLE,
            "m": cls.MARRIED,
            "h": cls.HEAD,
            "hoh": cls.HEAD,
            "head_of_household": cls.HEAD,
        }
        if normalized in aliases:
            return aliases[normalized]
        try:
            return cls(normalized)
        except ValueError:
            return cls.SINGLE


class PayFrequency(str, Enum):
    """Pay frequency and its periods per year."""

    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    SEMIMONTHLY = "semimonthly"
    MONTHLY = "monthly"

    @property
    def periods_per_year(self) -> int:
        return _PERIODS_PER_YEAR[self]

    @classmethod
    def parse(cls, value: Any) -> PayFrequency:
        """Parse a frequency name or single-letter code, defaulting to biweekly."""
        if isinstance(value, cls):
            return value
        normalized = str(value or "").strip().lower().replace("-", "")
        codes = {
            "w": cls.WEEKLY,
            "b": cls.BIWEEKLY,
            "s": cls.SEMIMONTHLY,
            "m": cls.MONTHLY,
        }
        if normalized in codes:
            return codes[normalized]
        try:
            return cls(normalized)
        except ValueError:
            return cls.BIWEEKLY


_PERIODS_PER_YEAR: dict[PayFrequency, int] = {
    PayFrequency.WEEKLY: 52,
    PayFrequency.BIWEEKLY: 26,
    PayFrequency.SEMIMONTHLY: 24,
    PayFrequency.MONTHLY: 12,
}


class CompanyTier(str, Enum):
    """Company pricing tier."""

    STATE_SCHOOL = "state_school"
    TIER_2025 = "2025"
    PRE_2025 = "pre_2025"
    ORIGINAL_6PCT = "original_6pct"

    @classmethod
    def parse(cls, value: Any) -> CompanyTier:
        """Parse a tier, falling back to 2025 pricing for unknown values."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return cls.TIER_2025


LEGACY_MODEL_CODES = {"8": "5/3", "7": "3/4", "6": "1/5"}


class BillingModel(str, Enum):
    """Fee split in EMPLOYEE/EMPLOYER percent notation."""

    FIVE_THREE = "5/3"
    THREE_FOUR = "3/4"
    FIVE_ONE = "5/1"
    FIVE_ZERO = "5/0"
    FOUR_FOUR = "4/4"
    ONE_FIVE = "1/5"

    @property
    def rates(self) -> tuple[Decimal, Decimal]:
        """Return (employee_rate, employer_rate) as percentages."""
        employee, employer = self.value.split("/")
        return Decimal(employee), Decimal(employer)

    @property
    def uses_custom_amounts(self) -> bool:
        return self is BillingModel.THREE_FOUR

    @classmethod
    def parse(cls, value: Any) -> BillingModel:
        """Parse a billing model, defaulting to 5/3.

        Accepts the split notation (``"5/3"``) and the legacy single-number
        codes, which give the combined fee percent: 8 is 5/3, 7 is 3/4 and
        6 is 1/5.
        """
        if isinstance(value, cls):
            return value
        text = str(value or "").strip()
        if text in LEGACY_MODEL_CODES:
            return cls(LEGACY_MODEL_CODES[text])
        try:
            return cls(text)
        except ValueError:
            return cls.FIVE_THREE


class StateTaxMethod(str, Enum):
    """State income tax withholding method."""

    NONE = "none"
    FLAT = "flat"
    BRACKETS = "brackets"


class WithholdingConfigError(Exception):
    """Raised when a withholding table or state config is malformed."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Invalid withholding config for '{source}': {reason}")


@dataclass(frozen=True)
class TierAmounts:
    """Monthly Section 125 targets for the four filing-status buckets."""

    single_no_dependents: Decimal
    single_with_dependents: Decimal
    married_no_dependents: Decimal
    married_with_dependents: Decimal

    def amount_for(self, filing_status: FilingStatus, dependents: int) -> Decimal:
        """Look up the target; head of household uses the single buckets."""
        has_dependents = dependents > 0
        if filing_status is FilingStatus.MARRIED:
            return self.married_with_dependents if has_dependents else self.married_no_dependents
        return self.single_with_dependents if has_dependents else self.single_no_dependents

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TierAmounts:
        return cls(
            single_no_dependents=to_decimal(data.get("single_no_dependents")),
            single_with_dependents=to_decimal(data.get("single_with_dependents")),
            married_no_dependents=to_decimal(data.get("married_no_dependents")),
            married_with_dependents=to_decimal(data.get("married_with_dependents")),
        )


@dataclass(frozen=True)
class FederalBracket:
    """Annual percentage-method row: tax = base_tax + (income - over) * pct."""

    over: Decimal
    base_tax: Decimal
    pct: Decimal


@dataclass(frozen=True)
class FederalWithholdingTable:
    """Federal bracket table, sorted ascending by ``over`` on construction."""

    brackets: tuple[FederalBracket, ...] = ()

    def __post_init__(self) -> None:
        for bracket in self.brackets:
            if bracket.over < 0 or bracket.base_tax < 0 or bracket.pct < 0:
                raise WithholdingConfigError("federal", f"negative value in bracket over={bracket.over}")
        object.__setattr__(
            self, "brackets", tuple(sorted(self.brackets, key=lambda b: b.over))
        )

    @classmethod
    def from_rows(cls, rows: Iterable[Mapping[str, Any]] | None) -> FederalWithholdingTable:
        """Build from JSON-like rows with ``over``, ``base_tax`` (or ``baseTax``), ``pct``."""
        brackets = []
        for row in rows or []:
            base_tax = row.get("base_tax", row.get("baseTax"))
            brackets.append(
                FederalBracket(
                    over=to_decimal(row.get("over")),
                    base_tax=to_decimal(base_tax),
                    pct=to_decimal(row.get("pct")),
                )
            )
        return cls(brackets=tuple(brackets))

    def __bool__(self) -> bool:
        return len(self.brackets) > 0


@dataclass(frozen=True)
class StateBracket:
    """Annual marginal bracket starting at ``over``."""

    over: Decimal
    rate: Decimal


@dataclass(frozen=True)
class StateWithholdingConfig:
    """State withholding configuration.

    Brackets are validated and sorted once here so the calculator can rely on
    ascending order.
    """

    state: str
    method: StateTaxMethod = StateTaxMethod.NONE
    flat_rate: Decimal = ZERO
    brackets: tuple[StateBracket, ...] = ()
    standard_deduction: Decimal = ZERO
    personal_exemption: Decimal = ZERO
    dependent_exemption: Decimal = ZERO

    def __post_init__(self) -> None:
        if self.flat_rate < 0:
            raise WithholdingConfigError(self.state, "flat_rate must not be negative")
        for name in ("standard_deduction", "personal_exemption", "dependent_exemption"):
            if getattr(self, name) < 0:
                raise WithholdingConfigError(self.state, f"{name} must not be negative")
        for bracket in self.brackets:
            if bracket.over < 0 or bracket.rate < 0:
                raise WithholdingConfigError(self.state, f"negative value in bracket over={bracket.over}")
        if self.method is StateTaxMethod.BRACKETS and not self.brackets:
            raise WithholdingConfigError(self.state, "method 'brackets' requires at least one bracket")
        object.__setattr__(
            self, "brackets", tuple(sorted(self.brackets, key=lambda b: b.over))
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> StateWithholdingConfig:
        state = str(data.get("state") or "").upper()
        raw_method = str(data.get("method") or "none").lower()
        try:
            method = StateTaxMethod(raw_method)
        except ValueError:
            raise WithholdingConfigError(state, f"unknown method '{raw_method}'") from None

        return cls(
            state=state,
            method=method,
            flat_rate=to_decimal(data.get("flat_rate")),
            brackets=tuple(
                StateBracket(over=to_decimal(b.get("over")), rate=to_decimal(b.get("rate")))
                for b in data.get("brackets") or []
            ),
            standard_deduction=to_decimal(data.get("standard_deduction", data.get("standardDeduction"))),
            personal_exemption=to_decimal(data.get("personal_exemption", data.get("personalExemption"))),
            dependent_exemption=to_decimal(data.get("dependent_exemption", data.get("dependentExemption"))),
        )

    @classmethod
    def no_income_tax(cls, state: str = "") -> StateWithholdingConfig:
        return cls(state=state.upper(), method=StateTaxMethod.NONE)


@dataclass(frozen=True)
class EmployeeInput:
    """Per-employee calculation input."""

    gross_pay: Decimal = ZERO
    filing_status: FilingStatus = FilingStatus.SINGLE
    dependents: int = 0
    pay_frequency: PayFrequency = PayFrequency.BIWEEKLY
    residence_state: str = ""
    residence_city: str = ""
    residence_county: str = ""
    work_state: str | None = None
    work_city: str | None = None
    safety_cap_percent: Decimal | None = None  # overrides the company cap when set

    @property
    def periods_per_year(self) -> int:
        return self.pay_frequency.periods_per_year

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EmployeeInput:
        """Build from a loosely typed record; missing numbers default to 0."""
        cap = data.get("safety_cap_percent")
        return cls(
            gross_pay=to_decimal(data.get("gross_pay")),
            filing_status=FilingStatus.parse(data.get("filing_status")),
            dependents=max(0, int(to_decimal(data.get("dependents")))),
            pay_frequency=PayFrequency.parse(data.get("pay_frequency", data.get("pay_period"))),
            residence_state=str(data.get("residence_state") or data.get("state") or ""),
            residence_city=str(data.get("residence_city") or data.get("city") or ""),
            residence_county=str(data.get("residence_county") or data.get("county") or ""),
            work_state=data.get("work_state") or None,
            work_city=data.get("work_city") or None,
            safety_cap_percent=to_decimal(cap) if cap is not None else None,
        )


@dataclass(frozen=True)
class CompanyBenefitConfig:
    """Company-level Section 125 pricing configuration."""

    tier: CompanyTier = CompanyTier.TIER_2025
    billing_model: BillingModel = BillingModel.FIVE_THREE
    safety_cap_percent: Decimal = Decimal("50")
    custom_amounts: TierAmounts | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CompanyBenefitConfig:
        custom = data.get("custom_amounts")
        return cls(
            tier=CompanyTier.parse(data.get("tier")),
            billing_model=BillingModel.parse(data.get("billing_model", data.get("model"))),
            safety_cap_percent=to_decimal(data.get("safety_cap_percent"), Decimal("50")),
            custom_amounts=TierAmounts.from_dict(custom) if custom else None,
        )


@dataclass(frozen=True)
class FICAResult:
    """Social Security and Medicare withholding for one paycheck."""

    ss: Decimal
    med: Decimal
    fica: Decimal


@dataclass(frozen=True)
class AffordabilityResult:
    """Safe Section 125 deduction for an employee."""

    gross_monthly: Decimal
    target_monthly: Decimal
    max_monthly: Decimal
    safe_monthly: Decimal
    safe_per_paycheck: Decimal
    is_sufficient: bool
    target_per_paycheck: Decimal
    shortfall_monthly: Decimal

    @property
    def benefit_per_paycheck(self) -> Decimal:
        """Deduction downstream calculators should apply (zero when ineligible)."""
        return self.safe_per_paycheck if self.is_sufficient else ZERO

    def to_dict(self) -> dict[str, Any]:
        return {
            "gross_monthly": round_cents(self.gross_monthly),
            "target_monthly": round_cents(self.target_monthly),
            "max_monthly": round_cents(self.max_monthly),
            "safe_monthly": round_cents(self.safe_monthly),
            "safe_per_paycheck": round_cents(self.safe_per_paycheck),
            "is_sufficient": self.is_sufficient,
            "target_per_paycheck": round_cents(self.target_per_paycheck),
            "shortfall_monthly": round_cents(self.shortfall_monthly),
        }


@dataclass
class PaycheckScenario:
    """Taxes and net pay for one side of the comparison."""

    benefit: Decimal
    fica: FICAResult
    federal: Decimal
    state: Decimal
    local: Decimal
    fee: Decimal = ZERO
    gross: Decimal = ZERO

    @property
    def total_tax(self) -> Decimal:
        return self.fica.fica + self.federal + self.state + self.local

    @property
    def net_pay(self) -> Decimal:
        return self.gross - self.total_tax - self.fee

    def to_dict(self) -> dict[str, Any]:
        return {
            "benefit": round_cents(self.benefit),
            "social_security": round_cents(self.fica.ss),
            "medicare": round_cents(self.fica.med),
            "fica": round_cents(self.fica.fica),
            "federal": round_cents(self.federal),
            "state": round_cents(self.state),
            "local": round_cents(self.local),
            "total_tax": round_cents(self.total_tax),
            "fee": round_cents(self.fee),
            "net_pay": round_cents(self.net_pay),
        }


@dataclass
class PaycheckComparison:
    """Before/after Section 125 paycheck comparison."""

    gross: Decimal
    periods_per_year: int
    affordability: AffordabilityResult
    before: PaycheckScenario
    after: PaycheckScenario
    employee_fee: Decimal
    employer_fee: Decimal
    warnings: list[str] = field(default_factory=list)

    @property
    def eligible(self) -> bool:
        return self.affordability.is_sufficient

    @property
    def employee_tax_savings(self) -> Decimal:
        return self.before.total_tax - self.after.total_tax

    @property
    def employee_net_change(self) -> Decimal:
        return self.after.net_pay - self.before.net_pay

    @property
    def employer_fica_savings(self) -> Decimal:
        return self.before.fica.fica - self.after.fica.fica

    @property
    def employer_savings(self) -> Decimal:
        return self.employer_fica_savings - self.employer_fee

    @property
    def employer_savings_monthly(self) -> Decimal:
        return self.employer_savings * self.periods_per_year / 12

    @property
    def employer_savings_annual(self) -> Decimal:
        return self.employer_savings * self.periods_per_year

    def to_dict(self) -> dict[str, Any]:
        return {
            "gross": round_cents(self.gross),
            "eligible": self.eligible,
            "affordability": self.affordability.to_dict(),
            "before": self.before.to_dict(),
            "after": self.after.to_dict(),
            "employee_fee": round_cents(self.employee_fee),
            "employer_fee": round_cents(self.employer_fee),
            "employee_tax_savings": round_cents(self.employee_tax_savings),
            "employee_net_change": round_cents(self.employee_net_change),
            "employer_fica_savings": round_cents(self.employer_fica_savings),
            "employer_savings": round_cents(self.employer_savings),
            "employer_savings_monthly": round_cents(self.employer_savings_monthly),
            "employer_savings_annual": round_cents(self.employer_savings_annual),
            "warnings": list(self.warnings),
        }
