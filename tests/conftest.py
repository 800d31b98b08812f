"""Pytest fixtures for salary calculator tests."""

from __future__ import annotations

import copy
from typing import Any

import pytest

from peru_payroll.calculators.engine import PayrollEngine
from peru_payroll.calculators.parameters import ParameterTable
from peru_payroll.config import Settings

BRACKETS_UIT = [
    {"fromUIT": 0, "toUIT": 7, "rate": 0.08},
    {"fromUIT": 7, "toUIT": 21, "rate": 0.14},
    {"fromUIT": 21, "toUIT": 42, "rate": 0.17},
    {"fromUIT": 42, "toUIT": 70, "rate": 0.20},
    {"fromUIT": 70, "toUIT": None, "rate": 0.30},
]

PARAMS_2025: dict[str, Any] = {
    "UIT": 5150,
    "FAMILY_ALLOWANCE": 102.5,
    "HEALTH_BONUS": {"ESSALUD": 0.09, "EPS": 0.0675},
    "AFP_BASE_RATE": 0.1325,
    "AFP_EXTRA_RATE": 0,
    "AFP_EXTRA_CAP": None,
    "FIFTH_CATEGORY_BRACKETS_UIT": BRACKETS_UIT,
    "DEDUCTION_UIT": 7,
}


def make_params(**overrides: Any) -> dict[str, Any]:
    """Copy of the 2025 parameter payload with overrides applied."""
    params = copy.deepcopy(PARAMS_2025)
    params.update(overrides)
    return params


def make_raw_table() -> dict[str, Any]:
    """Parameter data shaped like the shipped JSON file.

    NORMAL has 2023 and 2025 data and an empty 2026 entry; RIA only 2025.
    """
    return {
        "NORMAL": {
            "2023": make_params(UIT=4950),
            "2025": make_params(),
            "2026": {},
        },
        "RIA": {
            "2025": make_params(BUILD_FROM_COMPONENTS=True, INCLUDE_HEALTH_BONUS_EQUIV=True),
        },
    }


TEST_SETTINGS = Settings(
    tax_parameters_path=None,
    engine_version="test",
    host="127.0.0.1",
    port=8000,
    debug=False,
    log_level="INFO",
)


@pytest.fixture
def raw_table() -> dict[str, Any]:
    return make_raw_table()


@pytest.fixture
def parameter_table(raw_table: dict[str, Any]) -> ParameterTable:
    return ParameterTable.from_dict(raw_table)


@pytest.fixture
def engine(parameter_table: ParameterTable) -> PayrollEngine:
    return PayrollEngine(parameter_table, settings=TEST_SETTINGS)


def engine_for(raw: dict[str, Any]) -> PayrollEngine:
    """Engine over an ad-hoc parameter table."""
    return PayrollEngine(ParameterTable.from_dict(raw), settings=TEST_SETTINGS)
