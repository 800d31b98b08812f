"""Unit tests for PayrollEngine.

Covers the worked 2025 scenarios, both regimes, input validation and the
calculation properties that must hold for any input.
"""

from decimal import Decimal

import pytest

from peru_payroll.calculators.engine import PayrollEngine
from peru_payroll.calculators.errors import ConfigurationError, InvalidInputError
from peru_payroll.calculators.types import (
    HealthScheme,
    NormalRegimeDetail,
    Regime,
    RiaRegimeDetail,
    SalaryInputs,
)

from tests.conftest import engine_for, make_params


def inputs(basic="3000", food="0", family=False, year=2025, regime=Regime.NORMAL, scheme=HealthScheme.ESSALUD):
    return SalaryInputs(
        basic_salary=Decimal(basic),
        food_allowance=Decimal(food),
        has_family_allowance=family,
        year=year,
        regime=regime,
        health_scheme=scheme,
    )


class TestNormalRegime:
    """Worked examples with 2025 parameters."""

    def test_reference_scenario(self, engine):
        """3000 basic + 300 food, ESSALUD, no family allowance."""
        r = engine.calculate(inputs(basic="3000", food="300"))

        assert r.gross_monthly_salary == Decimal("3300")
        assert r.monthly_taxable_income == Decimal("3000")
        assert r.pension_deduction == Decimal("397.50")
        assert r.total_bonuses == Decimal("6000")
        assert r.health_bonus == Decimal("540.00")
        assert r.total_annual_taxable_income == Decimal("42000")
        assert r.deduction_amount == Decimal("36050")
        assert r.taxable_base == Decimal("5950")
        assert r.annual_tax == Decimal("476.00")
        assert r.monthly_tax == Decimal("39.67")
        assert r.net_monthly_salary == Decimal("2862.83")

    def test_reference_scenario_annual_figures(self, engine):
        r = engine.calculate(inputs(basic="3000", food="300"))

        assert r.annual_gross_income == Decimal("39600")
        assert r.annual_food_allowance == Decimal("3600")
        assert r.total_annual_income == Decimal("46140.00")
        assert r.annual_pension_deduction == Decimal("4770.00")
        assert r.net_annual_salary == Decimal("40894.00")

    def test_bonuses_are_discrete(self, engine):
        r = engine.calculate(inputs(basic="3000"))

        assert isinstance(r.regime_detail, NormalRegimeDetail)
        assert r.regime == Regime.NORMAL
        assert r.regime_detail.christmas_bonus == Decimal("3000")
        assert r.regime_detail.july_bonus == Decimal("3000")
        assert r.regime_detail.health_rate == Decimal("0.09")

    def test_family_allowance(self, engine):
        r = engine.calculate(inputs(basic="3000", family=True))

        assert r.family_allowance == Decimal("102.50")
        assert r.gross_monthly_salary == Decimal("3102.50")
        assert r.monthly_taxable_income == Decimal("3102.50")
        # AFP only applies to the basic salary
        assert r.pension_deduction == Decimal("397.50")
        assert r.total_bonuses == Decimal("6205.00")
        assert r.health_bonus == Decimal("558.45")
        # 43435 - 36050 = 7385 at 8%
        assert r.annual_tax == Decimal("590.80")
        assert r.monthly_tax == Decimal("49.23")
        assert r.net_monthly_salary == Decimal("2655.77")

    def test_two_bracket_salary(self, engine):
        r = engine.calculate(inputs(basic="10000"))

        assert r.pension_deduction == Decimal("1325.00")
        assert r.annual_tax == Decimal("12390.00")
        assert r.monthly_tax == Decimal("1032.50")
        assert r.net_monthly_salary == Decimal("7642.50")
        assert r.net_annual_salary == Decimal("113510.00")

    def test_salary_below_tax_threshold(self, engine):
        r = engine.calculate(inputs(basic="1500"))

        assert r.taxable_base == Decimal("0")
        assert r.annual_tax == Decimal("0")
        assert r.monthly_tax == Decimal("0.00")
        assert r.net_monthly_salary == Decimal("1301.25")
        assert r.breakdown.brackets == ()

    def test_eps_health_rate(self, engine):
        r = engine.calculate(inputs(basic="3000", scheme=HealthScheme.EPS))
        assert r.health_bonus == Decimal("405.00")
        # Health scheme does not change taxes
        assert r.annual_tax == Decimal("476.00")


class TestPensionExtraRate:
    """AFP extra rate applies only to the part of the salary above the cap."""

    @pytest.fixture
    def capped_engine(self) -> PayrollEngine:
        return engine_for(
            {"NORMAL": {"2025": make_params(AFP_EXTRA_RATE=0.01, AFP_EXTRA_CAP=5000)}}
        )

    def test_below_cap(self, capped_engine):
        r = capped_engine.calculate(inputs(basic="4000"))
        assert r.pension_deduction == Decimal("530.00")

    def test_at_cap(self, capped_engine):
        r = capped_engine.calculate(inputs(basic="5000"))
        assert r.pension_deduction == Decimal("662.50")

    def test_above_cap(self, capped_engine):
        r = capped_engine.calculate(inputs(basic="8000"))
        # 8000 * 13.25% + 3000 * 1%
        assert r.pension_deduction == Decimal("1090.00")


class TestRiaRegime:
    """Aliquots replace discrete bonuses under RIA."""

    def test_aliquots_from_components(self, engine):
        r = engine.calculate(inputs(basic="10000", regime=Regime.RIA))
        detail = r.regime_detail

        assert isinstance(detail, RiaRegimeDetail)
        assert detail.base_sf == Decimal("10000")
        assert detail.grati_aliquot == Decimal("1666.67")
        assert detail.bono_aliquot == Decimal("75.00")
        assert detail.cts_aliquot == Decimal("972.22")
        assert detail.integral_monthly == Decimal("12713.89")

    def test_monthly_figures(self, engine):
        r = engine.calculate(inputs(basic="10000", food="200", regime=Regime.RIA))

        assert r.gross_monthly_salary == Decimal("12913.89")
        assert r.monthly_taxable_income == Decimal("11666.67")
        assert r.pension_deduction == Decimal("1325.00")
        assert r.total_annual_taxable_income == Decimal("140000.04")
        assert r.annual_tax == Decimal("12390.01")
        assert r.monthly_tax == Decimal("1032.50")
        assert r.net_monthly_salary == Decimal("10556.39")

    def test_no_discrete_bonuses(self, engine):
        r = engine.calculate(inputs(basic="10000", regime=Regime.RIA))

        assert r.total_bonuses == Decimal("0")
        assert r.health_bonus == Decimal("0")
        assert r.total_annual_income == r.gross_monthly_salary * 12

    def test_family_allowance_enters_base(self, engine):
        r = engine.calculate(inputs(basic="10000", family=True, regime=Regime.RIA))
        assert r.regime_detail.base_sf == Decimal("10102.50")

    def test_without_health_bonus_equivalent(self):
        engine = engine_for(
            {"RIA": {"2025": make_params(INCLUDE_HEALTH_BONUS_EQUIV=False)}}
        )
        r = engine.calculate(inputs(basic="10000", regime=Regime.RIA))

        assert r.regime_detail.bono_aliquot == Decimal("0")
        assert r.regime_detail.integral_monthly == Decimal("12638.89")

    def test_integral_amount_decomposed(self):
        """When not built from components the entered amount is the integral pay."""
        engine = engine_for(
            {"RIA": {"2025": make_params(BUILD_FROM_COMPONENTS=False)}}
        )
        r = engine.calculate(inputs(basic="12713.89", regime=Regime.RIA))
        detail = r.regime_detail

        assert detail.base_sf == Decimal("10000.00")
        assert detail.cts_aliquot == Decimal("972.22")
        assert detail.integral_monthly == Decimal("12713.89")
        assert r.gross_monthly_salary == Decimal("12713.89")

    def test_decomposed_parts_sum_to_integral_amount(self):
        engine = engine_for(
            {"RIA": {"2025": make_params(BUILD_FROM_COMPONENTS=False)}}
        )
        detail = engine.calculate(inputs(basic="9876.54", regime=Regime.RIA)).regime_detail

        parts = detail.base_sf + detail.grati_aliquot + detail.bono_aliquot + detail.cts_aliquot
        assert parts == Decimal("9876.54")


class TestInputValidation:
    """Inputs are rejected or clamped before any arithmetic."""

    @pytest.mark.parametrize("basic", ["0", "-100"])
    def test_non_positive_basic_salary(self, engine, basic):
        with pytest.raises(InvalidInputError) as exc_info:
            engine.calculate(inputs(basic=basic))
        assert exc_info.value.field == "basic_salary"

    def test_non_finite_basic_salary(self, engine):
        with pytest.raises(InvalidInputError):
            engine.calculate(inputs(basic="NaN"))

    def test_negative_food_allowance_clamped(self, engine):
        r = engine.calculate(inputs(basic="3000", food="-300"))
        assert r.food_allowance == Decimal("0")
        assert r.gross_monthly_salary == Decimal("3000")

    @pytest.mark.parametrize("year", [99, 20250])
    def test_year_must_have_four_digits(self, engine, year):
        with pytest.raises(InvalidInputError):
            engine.calculate(inputs(year=year))

    def test_amounts_rounded_to_cents(self, engine):
        r = engine.calculate(inputs(basic="3000.555", food="300.004"))

        assert r.basic_salary == Decimal("3000.56")
        assert r.food_allowance == Decimal("300.00")
        assert r.pension_deduction == Decimal("397.57")
        assert r.monthly_tax == Decimal("39.72")
        assert r.net_monthly_salary == Decimal("2863.27")
        cent = Decimal("0.01")
        for value in (
            r.gross_monthly_salary,
            r.net_monthly_salary,
            r.total_annual_income,
            r.net_annual_salary,
        ):
            assert value == value.quantize(cent)

    def test_accepts_plain_numbers(self, engine):
        r = engine.calculate(
            SalaryInputs(basic_salary=3000, food_allowance=300.0, year=2025)
        )
        assert r.net_monthly_salary == Decimal("2862.83")

    def test_missing_regime_data(self):
        engine = engine_for({"NORMAL": {"2025": make_params()}})
        with pytest.raises(ConfigurationError):
            engine.calculate(inputs(regime=Regime.RIA))


class TestYearFallback:
    """Results report the year whose parameters were used."""

    def test_effective_year_reported(self, engine):
        r = engine.calculate(inputs(year=2026))
        assert r.effective_year == 2025
        assert r.inputs.year == 2026
        assert r.used_fallback_year

    def test_exact_year_is_not_fallback(self, engine):
        r = engine.calculate(inputs(year=2025))
        assert not r.used_fallback_year

    def test_older_parameters_change_result(self, engine):
        r = engine.calculate(inputs(basic="3000", year=2023))
        # 42000 - 7 * 4950 = 7350 at 8%
        assert r.annual_tax == Decimal("588.00")


class TestCalculationProperties:
    """Invariants that hold across inputs."""

    def test_food_allowance_is_not_taxable(self, engine):
        without = engine.calculate(inputs(basic="4500", food="0"))
        with_food = engine.calculate(inputs(basic="4500", food="650"))

        delta = Decimal("650")
        assert with_food.gross_monthly_salary - without.gross_monthly_salary == delta
        assert with_food.net_monthly_salary - without.net_monthly_salary == delta
        assert with_food.monthly_taxable_income == without.monthly_taxable_income
        assert with_food.pension_deduction == without.pension_deduction
        assert with_food.annual_tax == without.annual_tax
        assert with_food.monthly_tax == without.monthly_tax

    @pytest.mark.parametrize("regime", [Regime.NORMAL, Regime.RIA])
    def test_net_is_monotonic_in_basic_salary(self, engine, regime):
        step = Decimal("750")
        # Upper bound on the share of a raise lost to AFP and tax
        # (14 or more salary units per year taxed at most 30%, spread over 12 months)
        worst_rate = Decimal("0.1325") + Decimal("0.30") * Decimal("14.5") / 12
        previous = engine.calculate(inputs(basic="1000", regime=regime))
        for basic in range(1750, 40000, 750):
            current = engine.calculate(inputs(basic=str(basic), regime=regime))
            gained = current.net_monthly_salary - previous.net_monthly_salary
            assert gained > 0
            assert gained >= step * (1 - worst_rate) - Decimal("0.05")
            assert current.pension_deduction - previous.pension_deduction <= step * Decimal("0.1325") + Decimal("0.01")
            previous = current

    def test_results_are_immutable(self, engine):
        r = engine.calculate(inputs())
        with pytest.raises(AttributeError):
            r.net_monthly_salary = Decimal("0")

    def test_calculation_id_is_deterministic(self, engine):
        a = engine.calculate(inputs(basic="3000", food="300"))
        b = engine.calculate(inputs(basic="3000", food="300"))
        c = engine.calculate(inputs(basic="3001", food="300"))

        assert a.calculation_id == b.calculation_id
        assert a.calculation_id != c.calculation_id
        assert a.parameters_fingerprint == c.parameters_fingerprint
        assert a.inputs_fingerprint != c.inputs_fingerprint

    def test_fallback_shares_parameter_fingerprint(self, engine):
        a = engine.calculate(inputs(year=2025))
        b = engine.calculate(inputs(year=2026))
        assert a.parameters_fingerprint == b.parameters_fingerprint
        assert a.calculation_id != b.calculation_id
