"""API routes."""

from peru_payroll.api.routes.health import router as health_router
from peru_payroll.api.routes.parameters import router as parameters_router
from peru_payroll.api.routes.salary import router as salary_router

__all__ = ["health_router", "parameters_router", "salary_router"]
