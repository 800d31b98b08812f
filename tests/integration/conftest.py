"""Fixtures for API integration tests."""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from peru_payroll.api.app import create_app
from peru_payroll.api.dependencies import get_parameters
from peru_payroll.calculators.parameters import ParameterTable


@pytest.fixture
def app(parameter_table: ParameterTable) -> FastAPI:
    """Application wired to the test parameter table."""
    app = create_app()
    app.dependency_overrides[get_parameters] = lambda: parameter_table
    return app


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
