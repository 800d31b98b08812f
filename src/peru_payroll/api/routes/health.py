"""Health check endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter, status
from pydantic import BaseModel

from peru_payroll.api.dependencies import Parameters
from peru_payroll.calculators.types import Regime

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: datetime
    parameters: str


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
)
async def health_check(table: Parameters) -> HealthResponse:
    """Check API health and that tax parameters are loaded."""
    has_data = any(table.years(regime) for regime in Regime)
    return HealthResponse(
        status="healthy" if has_data else "degraded",
        timestamp=datetime.now(timezone.utc),
        parameters="loaded" if has_data else "empty",
    )


@router.get("/ready", status_code=status.HTTP_200_OK)
async def readiness_check() -> dict[str, str]:
    """Readiness check for container orchestration."""
    return {"status": "ready"}


@router.get("/live", status_code=status.HTTP_200_OK)
async def liveness_check() -> dict[str, str]:
    """Liveness check for container orchestration."""
    return {"status": "alive"}
