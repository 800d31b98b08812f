"""FastAPI application factory."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from peru_payroll import __version__
from peru_payroll.api.routes import health_router, parameters_router, salary_router
from peru_payroll.calculators.errors import ConfigurationError, InvalidInputError

logger = logging.getLogger(__name__)


def _error_content(exc: Exception, code: str, context: dict | None = None) -> dict:
    return {"detail": str(exc), "code": code, "context": context}


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Peru Salary Calculator API",
        description="Net pay, AFP and 5th-category tax estimates (advisory only)",
        version=__version__,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(InvalidInputError)
    async def invalid_input_handler(request: Request, exc: InvalidInputError) -> JSONResponse:
        """Reject inputs the engine cannot calculate with."""
        return JSONResponse(
            status_code=422,
            content=_error_content(exc, exc.code, exc.context),
        )

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
        """Report missing or broken tax parameters."""
        logger.error("Configuration error: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=_error_content(exc, exc.code, exc.context),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s", request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(salary_router, prefix="/api/v1")
    app.include_router(parameters_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
