"""Breakdown assembly from already computed figures."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from peru_payroll.calculators.formatting import (
    format_currency,
    format_number,
    format_percent,
)
from peru_payroll.calculators.types import (
    Breakdown,
    LineItem,
    NormalRegimeDetail,
    RiaRegimeDetail,
    SalaryResults,
    StepCode,
    TaxComputation,
    TaxParameterSet,
)


class StepSequence:
    """Ordered list of breakdown lines, numbered from 1."""

    def __init__(self) -> None:
        self._lines: list[LineItem] = []

    def add(
        self,
        code: StepCode,
        description: str,
        amount: Decimal,
        formula: str | None = None,
        rate: str | None = None,
    ) -> None:
        self._lines.append(
            LineItem(
                step=str(len(self._lines) + 1),
                description=description,
                amount=amount,
                code=code,
                formula=formula,
                rate=rate,
            )
        )

    def lines(self) -> tuple[LineItem, ...]:
        return tuple(self._lines)


class LineItemBuilder:
    """Builds the calculation trace.

    The builder only labels numbers it is handed; it never computes a value
    that is not already on the results. Sign conventions:
    - earnings, bonuses, aliquots, subtotals: positive
    - pension, withholding, tax deduction allowance: negative
    """

    OUTPUT_PRECISION = Decimal("0.01")

    @staticmethod
    def round_to_cents(amount: Decimal) -> Decimal:
        """Round amount to 2 decimal places (cents)."""
        return amount.quantize(LineItemBuilder.OUTPUT_PRECISION, rounding=ROUND_HALF_UP)

    @classmethod
    def build_breakdown(
        cls,
        results: SalaryResults,
        parameters: TaxParameterSet,
        tax: TaxComputation,
    ) -> Breakdown:
        """Assemble monthly, annual and bracket sequences for a calculation."""
        return Breakdown(
            monthly=cls._monthly_lines(results, parameters),
            annual=cls._annual_lines(results, parameters),
            brackets=cls._bracket_lines(tax),
        )

    @staticmethod
    def _pension_formula(results: SalaryResults, parameters: TaxParameterSet) -> str:
        base_label = "Sueldo básico" if isinstance(results.regime_detail, NormalRegimeDetail) else "Base sueldo fijo"
        formula = f"{base_label} × {format_percent(parameters.pension_base_rate)}"
        if parameters.pension_extra_rate and parameters.pension_extra_cap is not None:
            formula += (
                f" + exceso sobre {format_currency(parameters.pension_extra_cap)}"
                f" × {format_percent(parameters.pension_extra_rate)}"
            )
        return formula

    @classmethod
    def _monthly_lines(cls, results: SalaryResults, parameters: TaxParameterSet) -> tuple[LineItem, ...]:
        seq = StepSequence()
        detail = results.regime_detail
        has_family = results.inputs.has_family_allowance
        decomposed = isinstance(detail, RiaRegimeDetail) and not parameters.build_from_components

        if decomposed:
            # The amount entered is the integral remuneration (family allowance included)
            integral_label = "Remuneración integral" + (" + Asig. familiar" if has_family else "")
            bono_term = f" + {format_percent(detail.health_rate)} ÷ 12" if parameters.include_health_bonus_equiv else ""
            seq.add(
                StepCode.FIXED_BASE_SALARY,
                "Base sueldo fijo",
                detail.base_sf,
                formula=f"({integral_label}) ÷ (1 + 1/6{bono_term} + 7/72)",
            )
            seq.add(StepCode.FOOD_ALLOWANCE, "Vales de alimentación", results.food_allowance)
        else:
            seq.add(StepCode.BASIC_SALARY, "Sueldo básico", results.basic_salary)
            seq.add(StepCode.FOOD_ALLOWANCE, "Vales de alimentación", results.food_allowance)
            if has_family:
                seq.add(StepCode.FAMILY_ALLOWANCE, "Asignación familiar", results.family_allowance)

        gross_parts = ["Sueldo básico", "Vales"] + (["Asignación familiar"] if has_family else [])

        if isinstance(detail, RiaRegimeDetail):
            seq.add(
                StepCode.GRATI_ALIQUOT,
                "Alícuota de gratificación",
                detail.grati_aliquot,
                formula=f"{format_currency(detail.base_sf)} ÷ 6",
            )
            if detail.bono_aliquot:
                seq.add(
                    StepCode.BONO_ALIQUOT,
                    f"Alícuota bono salud ({format_percent(detail.health_rate)})",
                    detail.bono_aliquot,
                    formula=f"{format_currency(detail.base_sf)} × {format_percent(detail.health_rate)} ÷ 12",
                )
            seq.add(
                StepCode.CTS_ALIQUOT,
                "Alícuota CTS",
                detail.cts_aliquot,
                formula=(
                    "Remuneración integral - base sueldo fijo - alícuotas de gratificación y bono"
                    if decomposed
                    else "(Base sueldo fijo + alícuota de gratificación) ÷ 12"
                ),
            )
            if decomposed:
                gross_parts = ["Base sueldo fijo", "Vales", "alícuotas"]
            else:
                gross_parts += ["alícuotas"]

        seq.add(
            StepCode.GROSS_MONTHLY,
            "Sueldo bruto mensual",
            results.gross_monthly_salary,
            formula=" + ".join(gross_parts),
        )
        seq.add(
            StepCode.PENSION,
            f"Descuento AFP ({format_percent(parameters.pension_base_rate)})",
            -results.pension_deduction,
            formula=cls._pension_formula(results, parameters),
        )
        seq.add(
            StepCode.MONTHLY_TAX,
            "Impuesto 5ta categoría (mensual)",
            -results.monthly_tax,
            formula=f"{format_currency(results.annual_tax)} ÷ 12 meses",
        )
        seq.add(
            StepCode.NET_MONTHLY,
            "Sueldo neto mensual",
            results.net_monthly_salary,
            formula="Bruto - AFP - 5ta categoría",
        )
        return seq.lines()

    @classmethod
    def _annual_lines(cls, results: SalaryResults, parameters: TaxParameterSet) -> tuple[LineItem, ...]:
        seq = StepSequence()
        detail = results.regime_detail

        if isinstance(detail, NormalRegimeDetail):
            seq.add(
                StepCode.ANNUAL_TAXABLE_SALARY,
                "Ingresos anuales (12 meses)",
                results.monthly_taxable_income * 12,
                formula="(Sueldo básico + Asig. familiar) × 12",
            )
            bonus_formula = "Sueldo básico + Asig. familiar" if results.inputs.has_family_allowance else "Sueldo básico"
            seq.add(StepCode.CHRISTMAS_BONUS, "Gratificación diciembre", detail.christmas_bonus, formula=bonus_formula)
            seq.add(StepCode.JULY_BONUS, "Gratificación julio", detail.july_bonus, formula=bonus_formula)
            seq.add(
                StepCode.HEALTH_BONUS,
                f"Bono salud ({format_percent(detail.health_rate)} gratificaciones)",
                detail.health_bonus,
                formula=f"({format_number(detail.total_bonuses)}) × {format_percent(detail.health_rate)}",
            )
            taxable_formula = "Ingresos anuales + gratificaciones"
            income_formula = "Bruto mensual × 12 + gratificaciones + bono salud"
        else:
            taxable_formula = "(Base sueldo fijo + alícuota de gratificación) × 12"
            income_formula = "Bruto mensual × 12 (alícuotas incluidas)"

        seq.add(
            StepCode.TOTAL_TAXABLE,
            "Total ingresos gravables anuales",
            results.total_annual_taxable_income,
            formula=taxable_formula,
        )
        seq.add(
            StepCode.TAX_DEDUCTION,
            f"Deducción {format_number(parameters.deduction_uit)} UIT",
            -results.deduction_amount,
            formula=f"{format_number(parameters.deduction_uit)} × {format_currency(parameters.uit)}",
        )
        seq.add(
            StepCode.TAXABLE_BASE,
            "Base imponible 5ta categoría",
            results.taxable_base,
            formula="máx(0, Total gravable - Deducción)",
        )
        seq.add(
            StepCode.ANNUAL_TAX,
            "Impuesto 5ta categoría anual",
            results.annual_tax,
            formula="Calculado por tramos progresivos",
        )
        seq.add(
            StepCode.FOOD_ALLOWANCE,
            "Vales de alimentación anuales (no gravables)",
            results.annual_food_allowance,
            formula="Vales × 12",
        )
        seq.add(
            StepCode.TOTAL_ANNUAL_INCOME,
            "Ingresos totales anuales",
            results.total_annual_income,
            formula=income_formula,
        )
        seq.add(
            StepCode.ANNUAL_PENSION,
            "Descuento AFP anual",
            -results.annual_pension_deduction,
            formula="AFP mensual × 12",
        )
        seq.add(
            StepCode.NET_ANNUAL,
            "Sueldo neto anual",
            results.net_annual_salary,
            formula="Ingresos totales - AFP anual - 5ta categoría anual",
        )
        return seq.lines()

    @staticmethod
    def _bracket_lines(tax: TaxComputation) -> tuple[LineItem, ...]:
        seq = StepSequence()
        for s in tax.slices:
            upper = "∞" if s.upper is None else format_currency(s.upper)
            rate = format_percent(s.bracket.rate)
            seq.add(
                StepCode.BRACKET,
                f"{format_currency(s.lower)} - {upper}",
                s.tax,
                formula=f"{format_currency(s.taxable)} × {rate}",
                rate=rate,
            )
        return seq.lines()
