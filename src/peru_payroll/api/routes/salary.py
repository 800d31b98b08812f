"""Salary calculation endpoints."""

from fastapi import APIRouter, status
from fastapi.responses import PlainTextResponse

from peru_payroll.api.dependencies import Engine
from peru_payroll.api.schemas import (
    ErrorResponse,
    SalaryCalculationRequest,
    SalaryCalculationResponse,
)
from peru_payroll.calculators.engine import PayrollEngine
from peru_payroll.calculators.errors import ConfigurationError
from peru_payroll.calculators.types import SalaryResults
from peru_payroll.report import render_breakdown_text

router = APIRouter(prefix="/salary", tags=["salary"])

ERROR_RESPONSES = {
    422: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


def _calculate(engine: PayrollEngine, payload: SalaryCalculationRequest) -> SalaryResults:
    years = engine.parameter_table.years(payload.regime)
    if payload.year is None and not years:
        raise ConfigurationError(
            f"No tax parameters available for regime {payload.regime.value}",
            context={"regime": payload.regime.value},
        )
    default_year = years[-1] if years else 0
    return engine.calculate(payload.to_inputs(default_year))


@router.post(
    "/calculate",
    response_model=SalaryCalculationResponse,
    status_code=status.HTTP_200_OK,
    responses=ERROR_RESPONSES,
)
async def calculate_salary(engine: Engine, payload: SalaryCalculationRequest) -> SalaryCalculationResponse:
    """Calculate net monthly and annual pay with its breakdown."""
    return SalaryCalculationResponse.from_results(_calculate(engine, payload))


@router.post(
    "/breakdown",
    response_class=PlainTextResponse,
    status_code=status.HTTP_200_OK,
    responses=ERROR_RESPONSES,
)
async def export_breakdown(engine: Engine, payload: SalaryCalculationRequest) -> PlainTextResponse:
    """Render the calculation breakdown as plain text."""
    return PlainTextResponse(render_breakdown_text(_calculate(engine, payload)))
