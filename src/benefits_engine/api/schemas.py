"""Pydantic schemas for API request/response models."""

from datetime import datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from benefits_engine.calculators.types import (
    BillingModel,
    CompanyBenefitConfig,
    CompanyTier,
    EmployeeInput,
    FederalBracket,
    FederalWithholdingTable,
    FilingStatus,
    PayFrequency,
    StateBracket,
    StateTaxMethod,
    StateWithholdingConfig,
    TierAmounts,
)


# ============================================================================
# Paycheck calculation schemas
# ============================================================================


class EmployeePayload(BaseModel):
    """Employee fields used by the calculators."""

    gross_pay: Decimal = Field(default=Decimal("0"), ge=0)
    filing_status: str = "single"
    dependents: int = Field(default=0, ge=0)
    pay_frequency: str = "biweekly"
    residence_state: str = ""
    residence_city: str = ""
    residence_county: str = ""
    work_state: str | None = None
    work_city: str | None = None
    safety_cap_percent: Decimal | None = Field(default=None, ge=0, le=100)

    def to_input(self) -> EmployeeInput:
        return EmployeeInput(
            gross_pay=self.gross_pay,
            filing_status=FilingStatus.parse(self.filing_status),
            dependents=self.dependents,
            pay_frequency=PayFrequency.parse(self.pay_frequency),
            residence_state=self.residence_state,
            residence_city=self.residence_city,
            residence_county=self.residence_county,
            work_state=self.work_state,
            work_city=self.work_city,
            safety_cap_percent=self.safety_cap_percent,
        )


class TierAmountsPayload(BaseModel):
    """Custom monthly targets (billing model 3/4)."""

    single_no_dependents: Decimal = Field(ge=0)
    single_with_dependents: Decimal = Field(ge=0)
    married_no_dependents: Decimal = Field(ge=0)
    married_with_dependents: Decimal = Field(ge=0)


class CompanyPayload(BaseModel):
    """Company Section 125 configuration."""

    tier: str = CompanyTier.TIER_2025.value
    billing_model: str = BillingModel.FIVE_THREE.value
    safety_cap_percent: Decimal | None = Field(default=None, ge=0, le=100)
    custom_amounts: TierAmountsPayload | None = None

    def to_config(self, default_safety_cap: Decimal) -> CompanyBenefitConfig:
        custom = None
        if self.custom_amounts is not None:
            custom = TierAmounts(**self.custom_amounts.model_dump())
        return CompanyBenefitConfig(
            tier=CompanyTier.parse(self.tier),
            billing_model=BillingModel.parse(self.billing_model),
            safety_cap_percent=(
                self.safety_cap_percent
                if self.safety_cap_percent is not None
                else default_safety_cap
            ),
            custom_amounts=custom,
        )


class FederalBracketPayload(BaseModel):
    over: Decimal = Field(ge=0)
    base_tax: Decimal = Field(default=Decimal("0"), ge=0)
    pct: Decimal = Field(ge=0)


class StateBracketPayload(BaseModel):
    over: Decimal = Field(ge=0)
    rate: Decimal = Field(ge=0)


class StateConfigPayload(BaseModel):
    """State withholding configuration."""

    state: str
    method: Literal["none", "flat", "brackets"] = "none"
    flat_rate: Decimal = Field(default=Decimal("0"), ge=0)
    brackets: list[StateBracketPayload] = Field(default_factory=list)
    standard_deduction: Decimal = Field(default=Decimal("0"), ge=0)
    personal_exemption: Decimal = Field(default=Decimal("0"), ge=0)
    dependent_exemption: Decimal = Field(default=Decimal("0"), ge=0)

    def to_config(self) -> StateWithholdingConfig:
        return StateWithholdingConfig(
            state=self.state.upper(),
            method=StateTaxMethod(self.method),
            flat_rate=self.flat_rate,
            brackets=tuple(StateBracket(over=b.over, rate=b.rate) for b in self.brackets),
            standard_deduction=self.standard_deduction,
            personal_exemption=self.personal_exemption,
            dependent_exemption=self.dependent_exemption,
        )


class PaycheckRequest(BaseModel):
    """Inputs for an affordability or paycheck comparison calculation."""

    employee: EmployeePayload
    company: CompanyPayload = Field(default_factory=CompanyPayload)
    federal_brackets: list[FederalBracketPayload] = Field(default_factory=list)
    state: StateConfigPayload | None = None
    ss_rate: Decimal | None = Field(default=None, ge=0)
    medicare_rate: Decimal | None = Field(default=None, ge=0)

    def federal_table(self) -> FederalWithholdingTable:
        return FederalWithholdingTable(
            brackets=tuple(
                FederalBracket(over=b.over, base_tax=b.base_tax, pct=b.pct)
                for b in self.federal_brackets
            )
        )


class AffordabilityResponse(BaseModel):
    gross_monthly: Decimal
    target_monthly: Decimal
    max_monthly: Decimal
    safe_monthly: Decimal
    safe_per_paycheck: Decimal
    is_sufficient: bool
    target_per_paycheck: Decimal
    shortfall_monthly: Decimal


class ScenarioResponse(BaseModel):
    benefit: Decimal
    social_security: Decimal
    medicare: Decimal
    fica: Decimal
    federal: Decimal
    state: Decimal
    local: Decimal
    total_tax: Decimal
    fee: Decimal
    net_pay: Decimal


class PaycheckComparisonResponse(BaseModel):
    gross: Decimal
    eligible: bool
    affordability: AffordabilityResponse
    before: ScenarioResponse
    after: ScenarioResponse
    employee_fee: Decimal
    employer_fee: Decimal
    employee_tax_savings: Decimal
    employee_net_change: Decimal
    employer_fica_savings: Decimal
    employer_savings: Decimal
    employer_savings_monthly: Decimal
    employer_savings_annual: Decimal
    warnings: list[str] = Field(default_factory=list)


# ============================================================================
# Month-end schemas
# ============================================================================


class MonthPeriodRequest(BaseModel):
    """Month to validate."""

    year: int = Field(ge=2020, le=2100)
    month: int = Field(ge=1, le=12)


class MonthCloseRequest(MonthPeriodRequest):
    """Month close request; confirmation must read ``CLOSE <MONTH> <YEAR>``."""

    user_id: str = Field(min_length=1)
    confirmation_text: str
    notes: str | None = None


class ValidationCheckResponse(BaseModel):
    id: str
    category: Literal["critical", "important", "recommended"]
    name: str
    description: str
    what_to_check: str
    how_to_fix: str
    passed: bool
    details: str
    error_count: int | None = None


class FinancialSummaryResponse(BaseModel):
    total_revenue: Decimal
    total_expenses: Decimal
    net_income: Decimal
    outstanding_ar: Decimal
    outstanding_ap: Decimal
    bank_balance: Decimal
    qb_synced: bool


class MonthEndReportResponse(BaseModel):
    year: int
    month: int
    period: str
    can_close: bool
    checks: list[ValidationCheckResponse]
    critical_issues: list[str]
    important_issues: list[str]
    recommendations: list[str]
    summary: FinancialSummaryResponse
    generated_at: datetime


class ValidationCounts(BaseModel):
    can_close: bool
    critical_issues: int
    warnings: int
    recommendations: int
    passed_checks: int
    total_checks: int


class MonthEndValidateResponse(BaseModel):
    report: MonthEndReportResponse
    summary: ValidationCounts


class MonthEndClosingResponse(BaseModel):
    """Closing record."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    year: int
    month: int
    status: str
    can_close: bool
    critical_issues_count: int
    warnings_count: int
    closed_by: str | None = None
    closed_at: datetime | None = None
    transactions_locked: bool
    notes: str | None = None


class MonthCloseResponse(BaseModel):
    success: bool
    closing: MonthEndClosingResponse
    message: str


class MonthEndHistoryResponse(BaseModel):
    items: list[MonthEndClosingResponse]
    total: int


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str
    code: str | None = None
