"""Fifth-category income tax using UIT-scaled progressive brackets."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from peru_payroll.calculators.types import (
    BracketSlice,
    TaxComputation,
    TaxParameterSet,
)

CENTS = Decimal("0.01")


class TaxCalculator:
    """Calculates annual 5th-category tax for one parameter set.

    The taxable base is the annual taxable income minus a fixed number of
    UIT. Tax is marginal: each bracket only taxes the part of the base that
    falls inside it.
    """

    def __init__(self, parameters: TaxParameterSet):
        self.parameters = parameters

    def calculate(self, total_taxable_income: Decimal) -> TaxComputation:
        """Compute the annual tax for a year's total taxable income."""
        deduction_amount = self.parameters.deduction_amount
        taxable_base = max(Decimal("0"), total_taxable_income - deduction_amount)
        slices = self.split_into_brackets(taxable_base)
        annual_tax = sum((s.tax for s in slices), Decimal("0"))

        return TaxComputation(
            total_taxable_income=total_taxable_income,
            deduction_amount=deduction_amount,
            taxable_base=taxable_base,
            slices=slices,
            annual_tax=annual_tax,
        )

    def split_into_brackets(self, taxable_base: Decimal) -> tuple[BracketSlice, ...]:
        """Walk the brackets in ascending order and tax each portion.

        Only brackets that receive a positive amount produce a slice.
        """
        uit = self.parameters.uit
        slices: list[BracketSlice] = []
        remaining = taxable_base

        for bracket in self.parameters.brackets:
            if remaining <= 0:
                break

            width = bracket.width(uit)
            taxable_in_bracket = remaining if width is None else min(remaining, width)
            if taxable_in_bracket > 0:
                slices.append(
                    BracketSlice(
                        bracket=bracket,
                        lower=bracket.lower_bound(uit),
                        upper=bracket.upper_bound(uit),
                        taxable=taxable_in_bracket,
                        tax=(taxable_in_bracket * bracket.rate).quantize(
                            CENTS, rounding=ROUND_HALF_UP
                        ),
                    )
                )
            remaining -= taxable_in_bracket

        return tuple(slices)
