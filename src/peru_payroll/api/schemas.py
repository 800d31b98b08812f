"""Pydantic schemas for API request/response models."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from peru_payroll.calculators.types import (
    HealthScheme,
    LineItem,
    NormalRegimeDetail,
    Regime,
    ResolvedParameters,
    SalaryInputs,
    SalaryResults,
    StepCode,
)


# ============================================================================
# Calculation schemas
# ============================================================================


class SalaryCalculationRequest(BaseModel):
    """Schema for a salary calculation request."""

    basic_salary: Decimal = Field(description="Monthly basic salary in soles")
    food_allowance: Decimal = Field(default=Decimal("0"), description="Monthly food allowance (non-taxable)")
    has_family_allowance: bool = False
    year: int | None = Field(default=None, description="Parameter year; latest available when omitted")
    regime: Regime = Regime.NORMAL
    health_scheme: HealthScheme = HealthScheme.ESSALUD

    def to_inputs(self, default_year: int) -> SalaryInputs:
        return SalaryInputs(
            basic_salary=self.basic_salary,
            food_allowance=self.food_allowance,
            has_family_allowance=self.has_family_allowance,
            year=self.year if self.year is not None else default_year,
            regime=self.regime,
            health_scheme=self.health_scheme,
        )


class LineItemResponse(BaseModel):
    """Schema for one breakdown step."""

    model_config = ConfigDict(from_attributes=True)

    step: str
    description: str
    amount: Decimal
    code: StepCode
    formula: str | None = None
    rate: str | None = None


class BreakdownResponse(BaseModel):
    """Schema for the calculation trace."""

    monthly: list[LineItemResponse]
    annual: list[LineItemResponse]
    brackets: list[LineItemResponse]


class NormalRegimeDetailResponse(BaseModel):
    """Discrete bonuses (NORMAL regime)."""

    model_config = ConfigDict(from_attributes=True)

    regime: Literal[Regime.NORMAL]
    christmas_bonus: Decimal
    july_bonus: Decimal
    total_bonuses: Decimal
    health_bonus: Decimal
    health_rate: Decimal


class RiaRegimeDetailResponse(BaseModel):
    """Monthly aliquots (RIA regime)."""

    model_config = ConfigDict(from_attributes=True)

    regime: Literal[Regime.RIA]
    base_sf: Decimal
    grati_aliquot: Decimal
    bono_aliquot: Decimal
    cts_aliquot: Decimal
    integral_monthly: Decimal
    health_rate: Decimal


RegimeDetailResponse = Annotated[
    Union[NormalRegimeDetailResponse, RiaRegimeDetailResponse],
    Field(discriminator="regime"),
]


class SalaryCalculationResponse(BaseModel):
    """Schema for salary calculation results."""

    calculation_id: str
    regime: Regime
    health_scheme: HealthScheme
    requested_year: int
    effective_year: int
    used_fallback_year: bool

    basic_salary: Decimal
    food_allowance: Decimal
    family_allowance: Decimal

    gross_monthly_salary: Decimal
    monthly_taxable_income: Decimal
    pension_deduction: Decimal
    monthly_tax: Decimal
    net_monthly_salary: Decimal

    annual_gross_income: Decimal
    annual_food_allowance: Decimal
    total_bonuses: Decimal
    health_bonus: Decimal
    total_annual_income: Decimal
    total_annual_taxable_income: Decimal
    deduction_amount: Decimal
    taxable_base: Decimal
    annual_pension_deduction: Decimal
    annual_tax: Decimal
    net_annual_salary: Decimal

    regime_detail: RegimeDetailResponse
    breakdown: BreakdownResponse

    @classmethod
    def from_results(cls, results: SalaryResults) -> SalaryCalculationResponse:
        detail_model = (
            NormalRegimeDetailResponse
            if isinstance(results.regime_detail, NormalRegimeDetail)
            else RiaRegimeDetailResponse
        )

        def lines(items: tuple[LineItem, ...]) -> list[LineItemResponse]:
            return [LineItemResponse.model_validate(item) for item in items]

        return cls(
            calculation_id=results.calculation_id,
            regime=results.regime,
            health_scheme=results.inputs.health_scheme,
            requested_year=results.inputs.year,
            effective_year=results.effective_year,
            used_fallback_year=results.used_fallback_year,
            basic_salary=results.basic_salary,
            food_allowance=results.food_allowance,
            family_allowance=results.family_allowance,
            gross_monthly_salary=results.gross_monthly_salary,
            monthly_taxable_income=results.monthly_taxable_income,
            pension_deduction=results.pension_deduction,
            monthly_tax=results.monthly_tax,
            net_monthly_salary=results.net_monthly_salary,
            annual_gross_income=results.annual_gross_income,
            annual_food_allowance=results.annual_food_allowance,
            total_bonuses=results.total_bonuses,
            health_bonus=results.health_bonus,
            total_annual_income=results.total_annual_income,
            total_annual_taxable_income=results.total_annual_taxable_income,
            deduction_amount=results.deduction_amount,
            taxable_base=results.taxable_base,
            annual_pension_deduction=results.annual_pension_deduction,
            annual_tax=results.annual_tax,
            net_annual_salary=results.net_annual_salary,
            regime_detail=detail_model.model_validate(results.regime_detail),
            breakdown=BreakdownResponse(
                monthly=lines(results.breakdown.monthly),
                annual=lines(results.breakdown.annual),
                brackets=lines(results.breakdown.brackets),
            ),
        )


# ============================================================================
# Parameter schemas
# ============================================================================


class TaxBracketResponse(BaseModel):
    """Schema for a tax bracket."""

    model_config = ConfigDict(from_attributes=True)

    from_uit: Decimal
    to_uit: Decimal | None = None
    rate: Decimal


class ResolvedParametersResponse(BaseModel):
    """Schema for the parameters applied to a year."""

    regime: Regime
    requested_year: int
    effective_year: int
    is_fallback: bool
    uit: Decimal
    family_allowance: Decimal
    pension_base_rate: Decimal
    pension_extra_rate: Decimal | None = None
    pension_extra_cap: Decimal | None = None
    deduction_uit: Decimal
    health_bonus_rates: dict[HealthScheme, Decimal]
    brackets: list[TaxBracketResponse]

    @classmethod
    def from_resolved(cls, resolved: ResolvedParameters) -> ResolvedParametersResponse:
        params = resolved.parameters
        return cls(
            regime=resolved.regime,
            requested_year=resolved.requested_year,
            effective_year=resolved.effective_year,
            is_fallback=resolved.is_fallback,
            uit=params.uit,
            family_allowance=params.family_allowance,
            pension_base_rate=params.pension_base_rate,
            pension_extra_rate=params.pension_extra_rate,
            pension_extra_cap=params.pension_extra_cap,
            deduction_uit=params.deduction_uit,
            health_bonus_rates={scheme: params.health_rate(scheme) for scheme in HealthScheme},
            brackets=[TaxBracketResponse.model_validate(b) for b in params.brackets],
        )


class AvailableYearsResponse(BaseModel):
    """Schema for listing years with parameter data."""

    regime: Regime
    years: list[int]
    latest: int | None = None


# ============================================================================
# Error schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error response."""

    detail: str
    code: str | None = None
    context: dict[str, Any] | None = None
