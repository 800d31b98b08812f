"""Salary calculation engine."""

from peru_payroll.calculators.engine import PayrollEngine, calculate_salary
from peru_payroll.calculators.errors import (
    ConfigurationError,
    InvalidInputError,
    PayrollEngineError,
)
from peru_payroll.calculators.line_builder import LineItemBuilder
from peru_payroll.calculators.parameters import ParameterTable, get_parameter_table
from peru_payroll.calculators.tax_calculator import TaxCalculator
from peru_payroll.calculators.types import (
    Breakdown,
    HealthScheme,
    LineItem,
    NormalRegimeDetail,
    Regime,
    RiaRegimeDetail,
    SalaryInputs,
    SalaryResults,
    StepCode,
)

__all__ = [
    "PayrollEngine",
    "calculate_salary",
    "ConfigurationError",
    "InvalidInputError",
    "PayrollEngineError",
    "LineItemBuilder",
    "ParameterTable",
    "get_parameter_table",
    "TaxCalculator",
    "Breakdown",
    "HealthScheme",
    "LineItem",
    "NormalRegimeDetail",
    "Regime",
    "RiaRegimeDetail",
    "SalaryInputs",
    "SalaryResults",
    "StepCode",
]
