"""Tax parameter lookup endpoints."""

from typing import Annotated

from fastapi import APIRouter, Path, status

from peru_payroll.api.dependencies import Parameters
from peru_payroll.api.schemas import (
    AvailableYearsResponse,
    ErrorResponse,
    ResolvedParametersResponse,
)
from peru_payroll.calculators.types import Regime

router = APIRouter(prefix="/parameters", tags=["parameters"])


@router.get(
    "/{regime}",
    response_model=AvailableYearsResponse,
    status_code=status.HTTP_200_OK,
)
async def list_years(table: Parameters, regime: Regime) -> AvailableYearsResponse:
    """List the years that carry parameter data for a regime."""
    years = table.years(regime)
    return AvailableYearsResponse(regime=regime, years=years, latest=years[-1] if years else None)


@router.get(
    "/{regime}/{year}",
    response_model=ResolvedParametersResponse,
    status_code=status.HTTP_200_OK,
    responses={503: {"model": ErrorResponse}},
)
async def get_parameters(
    table: Parameters,
    regime: Regime,
    year: Annotated[int, Path(ge=1000, le=9999)],
) -> ResolvedParametersResponse:
    """Resolve the parameters for a year, reporting the year actually used."""
    return ResolvedParametersResponse.from_resolved(table.resolve(regime, year))
