"""FastAPI dependencies for dependency injection."""

from typing import Annotated

from fastapi import Depends

from peru_payroll.calculators.engine import PayrollEngine
from peru_payroll.calculators.parameters import ParameterTable, get_parameter_table


def get_parameters() -> ParameterTable:
    """Get the process-wide parameter table dependency."""
    return get_parameter_table()


def get_engine(
    parameter_table: Annotated[ParameterTable, Depends(get_parameters)],
) -> PayrollEngine:
    """Get a calculation engine bound to the parameter table."""
    return PayrollEngine(parameter_table)


# Type aliases for cleaner dependency injection
Parameters = Annotated[ParameterTable, Depends(get_parameters)]
Engine = Annotated[PayrollEngine, Depends(get_engine)]
