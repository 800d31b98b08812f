"""Unit tests for TaxCalculator.

Tests the bracket walk against hand-worked amounts and the closed-form
piecewise formula.
"""

from decimal import Decimal

import pytest

from peru_payroll.calculators.parameters import parse_parameter_set
from peru_payroll.calculators.tax_calculator import TaxCalculator
from peru_payroll.calculators.types import TaxBracket

from tests.conftest import make_params


def closed_form_tax(base: Decimal, brackets: tuple[TaxBracket, ...], uit: Decimal) -> Decimal:
    """tax(B) = sum(rate_i * clamp(B - lo_i, 0, hi_i - lo_i))."""
    total = Decimal("0")
    for b in brackets:
        lo = b.from_uit * uit
        portion = max(Decimal("0"), base - lo)
        if b.to_uit is not None:
            portion = min(portion, (b.to_uit - b.from_uit) * uit)
        total += portion * b.rate
    return total


@pytest.fixture
def calculator() -> TaxCalculator:
    return TaxCalculator(parse_parameter_set(make_params()))


class TestProgressiveTaxCalculation:
    """Test progressive tax bracket calculations."""

    def test_base_within_first_bracket(self, calculator):
        """3000 basic salary: 42000 taxable, 5950 base, all at 8%."""
        result = calculator.calculate(Decimal("42000"))

        assert result.deduction_amount == Decimal("36050")
        assert result.taxable_base == Decimal("5950")
        assert result.annual_tax == Decimal("476.00")
        assert len(result.slices) == 1
        assert result.slices[0].bracket.rate == Decimal("0.08")

    def test_base_spanning_two_brackets(self, calculator):
        """10000 basic salary: 140000 taxable, 103950 base."""
        result = calculator.calculate(Decimal("140000"))

        # 36050 * 0.08 = 2884
        # 67900 * 0.14 = 9506
        assert result.taxable_base == Decimal("103950")
        assert [s.tax for s in result.slices] == [Decimal("2884.00"), Decimal("9506.00")]
        assert result.annual_tax == Decimal("12390.00")

    def test_base_reaching_unbounded_bracket(self, calculator):
        """Income beyond 70 UIT is taxed at 30%."""
        base = Decimal("400000")
        result = calculator.calculate(base + Decimal("36050"))

        assert len(result.slices) == 5
        top = result.slices[-1]
        assert top.upper is None
        assert top.lower == Decimal("360500")
        assert top.taxable == Decimal("39500")
        assert top.tax == Decimal("11850.00")

    def test_income_below_deduction_pays_nothing(self, calculator):
        """Taxable base is clamped at zero and no bracket is reported."""
        result = calculator.calculate(Decimal("21000"))

        assert result.taxable_base == Decimal("0")
        assert result.annual_tax == Decimal("0")
        assert result.slices == ()

    def test_monthly_withholding_is_annual_over_twelve(self, calculator):
        result = calculator.calculate(Decimal("42000"))
        assert result.monthly_withholding == Decimal("476.00") / 12

    def test_slice_bounds_in_currency(self, calculator):
        result = calculator.calculate(Decimal("140000"))
        first, second = result.slices
        assert (first.lower, first.upper) == (Decimal("0"), Decimal("36050"))
        assert (second.lower, second.upper) == (Decimal("36050"), Decimal("108150"))


class TestBracketPartition:
    """Bracket slices partition the taxable base."""

    @pytest.mark.parametrize(
        "base",
        ["0", "1", "1000", "36050", "36051", "108150", "200000", "360500", "1000000"],
    )
    def test_slices_sum_to_base(self, calculator, base):
        base = Decimal(base)
        slices = calculator.split_into_brackets(base)
        # Last bracket is unbounded so the bracket widths sum to infinity
        assert sum((s.taxable for s in slices), Decimal("0")) == base

    @pytest.mark.parametrize(
        "base",
        ["0", "1000", "36050", "50000", "108150", "216300", "360500", "750000"],
    )
    def test_matches_closed_form(self, calculator, base):
        base = Decimal(base)
        params = calculator.parameters
        slices = calculator.split_into_brackets(base)
        walked = sum((s.tax for s in slices), Decimal("0"))
        assert walked == closed_form_tax(base, params.brackets, params.uit)

    def test_bounded_table_caps_partition(self):
        """With a bounded last bracket, the excess is left untaxed."""
        params = parse_parameter_set(
            make_params(
                FIFTH_CATEGORY_BRACKETS_UIT=[
                    {"fromUIT": 0, "toUIT": 5, "rate": 0.1},
                    {"fromUIT": 5, "toUIT": 10, "rate": 0.2},
                ]
            )
        )
        calculator = TaxCalculator(params)
        slices = calculator.split_into_brackets(Decimal("100000"))

        widths = Decimal("10") * params.uit
        assert sum((s.taxable for s in slices), Decimal("0")) == widths
        assert sum((s.tax for s in slices), Decimal("0")) == closed_form_tax(
            Decimal("100000"), params.brackets, params.uit
        )

    def test_tax_is_marginal_not_flat(self, calculator):
        """Crossing into a higher bracket only taxes the excess at the higher rate."""
        below = calculator.calculate(Decimal("36050") * 2)
        above = calculator.calculate(Decimal("36050") * 2 + 100)
        assert above.annual_tax - below.annual_tax == Decimal("14.00")
