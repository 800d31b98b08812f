"""Salary calculation engine - main orchestrator."""

from __future__ import annotations

import dataclasses
import hashlib
import json
import logging
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID

from peru_payroll.calculators.errors import InvalidInputError
from peru_payroll.calculators.line_builder import LineItemBuilder
from peru_payroll.calculators.parameters import ParameterTable, get_parameter_table
from peru_payroll.calculators.tax_calculator import TaxCalculator
from peru_payroll.calculators.types import (
    Breakdown,
    HealthScheme,
    NormalRegimeDetail,
    Regime,
    RegimeDetail,
    ResolvedParameters,
    RiaRegimeDetail,
    SalaryInputs,
    SalaryResults,
    TaxParameterSet,
)
from peru_payroll.config import Settings, get_settings

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
MONTHS = 12


class PayrollEngine:
    """Net pay calculation engine.

    Calculation pipeline (stable order):
    1) Validate inputs and resolve parameters (with year fallback)
    2) Monthly aggregation: gross, taxable subset, pension
    3) Discrete bonuses (NORMAL) or monthly aliquots (RIA)
    4) Annual 5th-category tax, withheld evenly over 12 months
    5) Net monthly and annual pay
    6) Breakdown assembly from the computed figures

    The engine holds no state between calls; the parameter table is
    read-only.
    """

    def __init__(
        self,
        parameter_table: ParameterTable | None = None,
        settings: Settings | None = None,
    ):
        self.parameter_table = parameter_table or get_parameter_table()
        self.settings = settings or get_settings()

    def calculate(self, inputs: SalaryInputs) -> SalaryResults:
        """Calculate monthly and annual pay for one set of inputs."""
        inputs = self._normalize_inputs(inputs)
        resolved = self.parameter_table.resolve(inputs.regime, inputs.year)
        params = resolved.parameters
        rnd = LineItemBuilder.round_to_cents

        basic = inputs.basic_salary
        food = inputs.food_allowance
        family = rnd(params.family_allowance) if inputs.has_family_allowance else ZERO
        health_rate = params.health_rate(inputs.health_scheme)

        detail: RegimeDetail
        if inputs.regime == Regime.RIA:
            detail = self._ria_aliquots(basic + family, params, health_rate)
            gross = detail.integral_monthly + food
            monthly_taxable = detail.base_sf + detail.grati_aliquot
            pension = rnd(self._pension(detail.base_sf, params))
            total_bonuses = ZERO
            health_bonus = ZERO
            total_taxable = monthly_taxable * MONTHS
        else:
            monthly_taxable = basic + family
            gross = basic + food + family
            pension = rnd(self._pension(basic, params))
            total_bonuses = monthly_taxable * 2
            health_bonus = rnd(total_bonuses * health_rate)
            detail = NormalRegimeDetail(
                christmas_bonus=monthly_taxable,
                july_bonus=monthly_taxable,
                total_bonuses=total_bonuses,
                health_bonus=health_bonus,
                health_rate=health_rate,
            )
            total_taxable = monthly_taxable * MONTHS + total_bonuses

        tax = TaxCalculator(params).calculate(total_taxable)
        monthly_tax = rnd(tax.monthly_withholding)
        net_monthly = gross - pension - monthly_tax

        annual_gross = gross * MONTHS
        annual_pension = pension * MONTHS
        total_annual_income = annual_gross + total_bonuses + health_bonus
        net_annual = total_annual_income - annual_pension - tax.annual_tax

        inputs_fp = self._compute_inputs_fingerprint(inputs)
        params_fp = self._compute_parameters_fingerprint(resolved)

        results = SalaryResults(
            inputs=inputs,
            effective_year=resolved.effective_year,
            basic_salary=basic,
            food_allowance=food,
            family_allowance=family,
            gross_monthly_salary=gross,
            monthly_taxable_income=monthly_taxable,
            pension_deduction=pension,
            monthly_tax=monthly_tax,
            net_monthly_salary=net_monthly,
            annual_gross_income=annual_gross,
            annual_food_allowance=food * MONTHS,
            total_bonuses=total_bonuses,
            health_bonus=health_bonus,
            total_annual_income=total_annual_income,
            total_annual_taxable_income=total_taxable,
            deduction_amount=tax.deduction_amount,
            taxable_base=tax.taxable_base,
            annual_pension_deduction=annual_pension,
            annual_tax=tax.annual_tax,
            net_annual_salary=net_annual,
            regime_detail=detail,
            breakdown=Breakdown(monthly=(), annual=(), brackets=()),
            calculation_id=self._generate_calculation_id(inputs_fp, params_fp),
            inputs_fingerprint=inputs_fp,
            parameters_fingerprint=params_fp,
        )
        results = dataclasses.replace(
            results, breakdown=LineItemBuilder.build_breakdown(results, params, tax)
        )

        logger.debug(
            "Calculated %s net pay for year %s (effective %s): %s",
            inputs.regime.value,
            inputs.year,
            resolved.effective_year,
            net_monthly,
        )
        return results

    def _normalize_inputs(self, inputs: SalaryInputs) -> SalaryInputs:
        """Coerce and validate inputs; negative allowances clamp to zero."""
        rnd = LineItemBuilder.round_to_cents
        basic = rnd(self._to_money("basic_salary", inputs.basic_salary))
        if basic <= 0:
            raise InvalidInputError("basic_salary", inputs.basic_salary, "must be greater than zero")

        food = max(ZERO, rnd(self._to_money("food_allowance", inputs.food_allowance)))

        try:
            year = int(inputs.year)
        except (TypeError, ValueError):
            raise InvalidInputError("year", inputs.year, "must be an integer")
        if not 1000 <= year <= 9999:
            raise InvalidInputError("year", inputs.year, "must be a 4-digit year")

        try:
            regime = Regime(inputs.regime)
            health_scheme = HealthScheme(inputs.health_scheme)
        except ValueError as e:
            raise InvalidInputError("regime/health_scheme", f"{inputs.regime}/{inputs.health_scheme}", str(e))

        return SalaryInputs(
            basic_salary=basic,
            food_allowance=food,
            has_family_allowance=bool(inputs.has_family_allowance),
            year=year,
            regime=regime,
            health_scheme=health_scheme,
        )

    @staticmethod
    def _to_money(field: str, value: Any) -> Decimal:
        try:
            amount = value if isinstance(value, Decimal) else Decimal(str(value))
        except (InvalidOperation, TypeError, ValueError):
            raise InvalidInputError(field, value, "is not a number")
        if not amount.is_finite():
            raise InvalidInputError(field, value, "must be finite")
        return amount

    @staticmethod
    def _pension(base: Decimal, params: TaxParameterSet) -> Decimal:
        """AFP contribution; the extra rate only applies above the cap."""
        pension = base * params.pension_base_rate
        if params.pension_extra_rate and params.pension_extra_cap is not None:
            pension += max(ZERO, base - params.pension_extra_cap) * params.pension_extra_rate
        return pension

    @staticmethod
    def _ria_aliquots(
        computable: Decimal,
        params: TaxParameterSet,
        health_rate: Decimal,
    ) -> RiaRegimeDetail:
        """Split an RIA remuneration into its fixed base and monthly aliquots.

        With `build_from_components` the aliquots are paid on top of the fixed
        base. Otherwise the amount entered already is the integral
        remuneration and the fixed base is recovered from it; the CTS share
        is then the remainder.
        """
        rnd = LineItemBuilder.round_to_cents
        bono_factor = health_rate / 12 if params.include_health_bonus_equiv else ZERO

        if params.build_from_components:
            base_sf = computable
        else:
            divisor = 1 + Decimal(1) / 6 + bono_factor + Decimal(7) / 72
            base_sf = rnd(computable / divisor)

        grati = rnd(base_sf / 6)
        bono = rnd(base_sf * bono_factor)
        if params.build_from_components:
            cts = rnd((base_sf + grati) / 12)
            integral = base_sf + grati + bono + cts
        else:
            # CTS takes the rounding residue; parts sum exactly to the amount entered
            cts = computable - base_sf - grati - bono
            integral = computable

        return RiaRegimeDetail(
            base_sf=base_sf,
            grati_aliquot=grati,
            bono_aliquot=bono,
            cts_aliquot=cts,
            integral_monthly=integral,
            health_rate=health_rate,
        )

    def _generate_calculation_id(self, inputs_fingerprint: str, parameters_fingerprint: str) -> str:
        """Generate deterministic calculation ID."""
        data = {
            "engine_version": self.settings.engine_version,
            "inputs_fingerprint": inputs_fingerprint,
            "parameters_fingerprint": parameters_fingerprint,
        }
        json_str = json.dumps(data, sort_keys=True)
        hash_bytes = hashlib.sha256(json_str.encode()).digest()
        return str(UUID(bytes=hash_bytes[:16]))

    def _compute_inputs_fingerprint(self, inputs: SalaryInputs) -> str:
        """Compute fingerprint of the normalized inputs."""
        json_str = json.dumps(inputs.to_canonical_dict(), sort_keys=True)
        return hashlib.sha256(json_str.encode()).hexdigest()[:32]

    def _compute_parameters_fingerprint(self, resolved: ResolvedParameters) -> str:
        """Compute fingerprint of the parameter set actually applied."""
        data = {
            "regime": resolved.regime.value,
            "effective_year": resolved.effective_year,
            "parameters": resolved.parameters.to_canonical_dict(),
        }
        json_str = json.dumps(data, sort_keys=True)
        return hashlib.sha256(json_str.encode()).hexdigest()[:32]


def calculate_salary(inputs: SalaryInputs) -> SalaryResults:
    """Calculate with the process-wide parameter table."""
    return PayrollEngine().calculate(inputs)
