"""Type definitions for the salary calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Union


class Regime(str, Enum):
    """Remuneration regimes."""

    NORMAL = "NORMAL"
    RIA = "RIA"  # Remuneracion Integral Anual


class HealthScheme(str, Enum):
    """Health coverage schemes (selects the health bonus rate)."""

    ESSALUD = "ESSALUD"
    EPS = "EPS"


class StepCode(str, Enum):
    """What a breakdown line represents."""

    BASIC_SALARY = "BASIC_SALARY"
    FIXED_BASE_SALARY = "FIXED_BASE_SALARY"
    FOOD_ALLOWANCE = "FOOD_ALLOWANCE"
    FAMILY_ALLOWANCE = "FAMILY_ALLOWANCE"
    GRATI_ALIQUOT = "GRATI_ALIQUOT"
    BONO_ALIQUOT = "BONO_ALIQUOT"
    CTS_ALIQUOT = "CTS_ALIQUOT"
    GROSS_MONTHLY = "GROSS_MONTHLY"
    PENSION = "PENSION"
    MONTHLY_TAX = "MONTHLY_TAX"
    NET_MONTHLY = "NET_MONTHLY"
    ANNUAL_TAXABLE_SALARY = "ANNUAL_TAXABLE_SALARY"
    CHRISTMAS_BONUS = "CHRISTMAS_BONUS"
    JULY_BONUS = "JULY_BONUS"
    HEALTH_BONUS = "HEALTH_BONUS"
    TOTAL_TAXABLE = "TOTAL_TAXABLE"
    TAX_DEDUCTION = "TAX_DEDUCTION"
    TAXABLE_BASE = "TAXABLE_BASE"
    ANNUAL_TAX = "ANNUAL_TAX"
    TOTAL_ANNUAL_INCOME = "TOTAL_ANNUAL_INCOME"
    ANNUAL_PENSION = "ANNUAL_PENSION"
    NET_ANNUAL = "NET_ANNUAL"
    BRACKET = "BRACKET"


@dataclass(frozen=True)
class SalaryInputs:
    """Inputs for one salary calculation."""

    basic_salary: Decimal
    food_allowance: Decimal = Decimal("0")
    has_family_allowance: bool = False
    year: int = 2025
    regime: Regime = Regime.NORMAL
    health_scheme: HealthScheme = HealthScheme.ESSALUD

    def to_canonical_dict(self) -> dict[str, Any]:
        """Return canonical dict for hashing (deterministic ordering)."""
        return {
            "basic_salary": str(self.basic_salary),
            "food_allowance": str(self.food_allowance),
            "has_family_allowance": self.has_family_allowance,
            "year": self.year,
            "regime": Regime(self.regime).value,
            "health_scheme": HealthScheme(self.health_scheme).value,
        }


@dataclass(frozen=True)
class TaxBracket:
    """Tax bracket for progressive taxation, expressed in UIT multiples."""

    from_uit: Decimal
    to_uit: Decimal | None  # None = no upper limit
    rate: Decimal  # As decimal, e.g., 0.14 for 14%

    def lower_bound(self, uit: Decimal) -> Decimal:
        return self.from_uit * uit

    def upper_bound(self, uit: Decimal) -> Decimal | None:
        return self.to_uit * uit if self.to_uit is not None else None

    def width(self, uit: Decimal) -> Decimal | None:
        """Currency width of the bracket (None when unbounded)."""
        if self.to_uit is None:
            return None
        return (self.to_uit - self.from_uit) * uit


@dataclass(frozen=True)
class TaxParameterSet:
    """Tax and payroll parameters for one regime and year."""

    uit: Decimal
    family_allowance: Decimal
    pension_base_rate: Decimal
    brackets: tuple[TaxBracket, ...]
    deduction_uit: Decimal
    health_bonus_rates: Mapping[HealthScheme, Decimal] = field(
        default_factory=lambda: MappingProxyType({})
    )
    health_bonus_rate: Decimal | None = None
    pension_extra_rate: Decimal | None = None
    pension_extra_cap: Decimal | None = None

    # RIA only
    build_from_components: bool = True
    include_health_bonus_equiv: bool = True

    DEFAULT_HEALTH_BONUS_RATE = Decimal("0.09")

    def health_rate(self, scheme: HealthScheme) -> Decimal:
        """Health bonus rate for a scheme, falling back to the flat rate, then 9%."""
        rate = self.health_bonus_rates.get(HealthScheme(scheme))
        if rate is not None:
            return rate
        if self.health_bonus_rate is not None:
            return self.health_bonus_rate
        return self.DEFAULT_HEALTH_BONUS_RATE

    @property
    def deduction_amount(self) -> Decimal:
        return self.deduction_uit * self.uit

    def to_canonical_dict(self) -> dict[str, Any]:
        """Return canonical dict for hashing (deterministic ordering)."""
        return {
            "uit": str(self.uit),
            "family_allowance": str(self.family_allowance),
            "pension_base_rate": str(self.pension_base_rate),
            "pension_extra_rate": str(self.pension_extra_rate) if self.pension_extra_rate is not None else None,
            "pension_extra_cap": str(self.pension_extra_cap) if self.pension_extra_cap is not None else None,
            "brackets": [
                [str(b.from_uit), str(b.to_uit) if b.to_uit is not None else None, str(b.rate)]
                for b in self.brackets
            ],
            "deduction_uit": str(self.deduction_uit),
            "health_bonus_rates": {k.value: str(v) for k, v in self.health_bonus_rates.items()},
            "health_bonus_rate": str(self.health_bonus_rate) if self.health_bonus_rate is not None else None,
            "build_from_components": self.build_from_components,
            "include_health_bonus_equiv": self.include_health_bonus_equiv,
        }


@dataclass(frozen=True)
class ResolvedParameters:
    """A parameter set together with the year it was actually taken from."""

    regime: Regime
    requested_year: int
    effective_year: int
    parameters: TaxParameterSet

    @property
    def is_fallback(self) -> bool:
        return self.effective_year != self.requested_year


@dataclass(frozen=True)
class LineItem:
    """One step of the calculation trace.

    Sign conventions: deductions are negative, everything else positive.
    """

    step: str
    description: str
    amount: Decimal
    code: StepCode
    formula: str | None = None
    rate: str | None = None  # Bracket rate label, e.g. "8%"


@dataclass(frozen=True)
class Breakdown:
    """Auditable trace of a calculation."""

    monthly: tuple[LineItem, ...]
    annual: tuple[LineItem, ...]
    brackets: tuple[LineItem, ...]

    def find(self, code: StepCode) -> LineItem | None:
        """First line (monthly, then annual) with the given code."""
        for line in self.monthly + self.annual:
            if line.code == code:
                return line
        return None


@dataclass(frozen=True)
class BracketSlice:
    """Portion of the taxable base that fell into one bracket."""

    bracket: TaxBracket
    lower: Decimal
    upper: Decimal | None
    taxable: Decimal
    tax: Decimal


@dataclass(frozen=True)
class TaxComputation:
    """Result of the annual 5th-category tax computation."""

    total_taxable_income: Decimal
    deduction_amount: Decimal
    taxable_base: Decimal
    slices: tuple[BracketSlice, ...]
    annual_tax: Decimal

    @property
    def monthly_withholding(self) -> Decimal:
        # Assessed annually, spread evenly across twelve months
        return self.annual_tax / 12


@dataclass(frozen=True)
class NormalRegimeDetail:
    """Discrete annual bonuses paid under the NORMAL regime."""

    christmas_bonus: Decimal
    july_bonus: Decimal
    total_bonuses: Decimal
    health_bonus: Decimal
    health_rate: Decimal
    regime: Regime = Regime.NORMAL


@dataclass(frozen=True)
class RiaRegimeDetail:
    """Monthly aliquots paid under the RIA regime instead of bonuses."""

    base_sf: Decimal
    grati_aliquot: Decimal
    bono_aliquot: Decimal
    cts_aliquot: Decimal
    integral_monthly: Decimal
    health_rate: Decimal
    regime: Regime = Regime.RIA


RegimeDetail = Union[NormalRegimeDetail, RiaRegimeDetail]


@dataclass(frozen=True)
class SalaryResults:
    """Immutable snapshot of one salary calculation."""

    inputs: SalaryInputs
    effective_year: int

    # Input echoes
    basic_salary: Decimal
    food_allowance: Decimal
    family_allowance: Decimal

    # Monthly
    gross_monthly_salary: Decimal
    monthly_taxable_income: Decimal
    pension_deduction: Decimal
    monthly_tax: Decimal
    net_monthly_salary: Decimal

    # Annual
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

    regime_detail: RegimeDetail
    breakdown: Breakdown

    calculation_id: str
    inputs_fingerprint: str
    parameters_fingerprint: str

    @property
    def regime(self) -> Regime:
        return self.regime_detail.regime

    @property
    def used_fallback_year(self) -> bool:
        return self.effective_year != self.inputs.year
