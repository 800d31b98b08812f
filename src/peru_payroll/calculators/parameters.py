"""Tax parameter table with year fallback resolution."""

from __future__ import annotations

import json
import logging
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

from peru_payroll.calculators.errors import ConfigurationError
from peru_payroll.calculators.types import (
    HealthScheme,
    Regime,
    ResolvedParameters,
    TaxBracket,
    TaxParameterSet,
)
from peru_payroll.config import get_settings

logger = logging.getLogger(__name__)

REQUIRED_KEYS = (
    "UIT",
    "FAMILY_ALLOWANCE",
    "AFP_BASE_RATE",
    "FIFTH_CATEGORY_BRACKETS_UIT",
    "DEDUCTION_UIT",
)


def _require_mapping(value: Any, where: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"{where}: expected an object, got {type(value).__name__}")
    return value


def _decimal(payload: Mapping[str, Any], key: str, where: str) -> Decimal:
    payload = _require_mapping(payload, where)
    if key not in payload:
        raise ConfigurationError(f"{where}: missing {key}")
    value = payload[key]
    if isinstance(value, bool):
        raise ConfigurationError(f"{where}: {key} is not a number ({value!r})")
    try:
        return Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError) as e:
        raise ConfigurationError(f"{where}: {key} is not a number ({value!r})") from e


def _flag(payload: Mapping[str, Any], key: str, default: bool, where: str) -> bool:
    value = payload.get(key, default)
    if not isinstance(value, bool):
        raise ConfigurationError(f"{where}: {key} must be true or false ({value!r})")
    return value


def _optional_decimal(payload: Mapping[str, Any], key: str, where: str) -> Decimal | None:
    if payload.get(key) is None:
        return None
    return _decimal(payload, key, where)


def parse_brackets(raw: list[dict[str, Any]], where: str = "brackets") -> tuple[TaxBracket, ...]:
    """Parse and validate a bracket list.

    Brackets must start at 0 UIT, be contiguous and ascending, and only the
    last one may be open ended. Rates must lie in [0, 1).
    """
    if not isinstance(raw, (list, tuple)):
        raise ConfigurationError(f"{where}: expected a list of brackets")
    if not raw:
        raise ConfigurationError(f"{where}: at least one bracket is required")

    brackets: list[TaxBracket] = []
    for i, b in enumerate(raw):
        b = _require_mapping(b, f"{where}[{i}]")
        brackets.append(
            TaxBracket(
                from_uit=_decimal(b, "fromUIT", f"{where}[{i}]"),
                to_uit=_optional_decimal(b, "toUIT", f"{where}[{i}]"),
                rate=_decimal(b, "rate", f"{where}[{i}]"),
            )
        )

    if brackets[0].from_uit != 0:
        raise ConfigurationError(f"{where}: first bracket must start at 0 UIT")

    for i, bracket in enumerate(brackets):
        if not (Decimal("0") <= bracket.rate < Decimal("1")):
            raise ConfigurationError(f"{where}: bracket {i} rate {bracket.rate} outside [0, 1)")
        is_last = i == len(brackets) - 1
        if bracket.to_uit is None:
            if not is_last:
                raise ConfigurationError(f"{where}: only the last bracket may be unbounded")
            continue
        if bracket.to_uit <= bracket.from_uit:
            raise ConfigurationError(f"{where}: bracket {i} upper bound must exceed lower bound")
        if not is_last and brackets[i + 1].from_uit != bracket.to_uit:
            raise ConfigurationError(
                f"{where}: bracket {i + 1} must start where bracket {i} ends ({bracket.to_uit} UIT)"
            )

    return tuple(brackets)


def parse_parameter_set(payload: Mapping[str, Any], where: str = "parameters") -> TaxParameterSet:
    """Build a TaxParameterSet from one year entry of the parameter file."""
    payload = _require_mapping(payload, where)
    missing = [key for key in REQUIRED_KEYS if payload.get(key) is None]
    if missing:
        raise ConfigurationError(f"{where}: missing {', '.join(missing)}")

    health_rates: dict[HealthScheme, Decimal] = {}
    health_bonus = _require_mapping(payload.get("HEALTH_BONUS") or {}, f"{where}.HEALTH_BONUS")
    for scheme_name, rate in health_bonus.items():
        try:
            scheme = HealthScheme(scheme_name)
        except ValueError as e:
            raise ConfigurationError(f"{where}: unknown health scheme {scheme_name!r}") from e
        if rate is not None:
            health_rates[scheme] = _decimal({"rate": rate}, "rate", f"{where}.HEALTH_BONUS.{scheme_name}")

    return TaxParameterSet(
        uit=_decimal(payload, "UIT", where),
        family_allowance=_decimal(payload, "FAMILY_ALLOWANCE", where),
        pension_base_rate=_decimal(payload, "AFP_BASE_RATE", where),
        pension_extra_rate=_optional_decimal(payload, "AFP_EXTRA_RATE", where),
        pension_extra_cap=_optional_decimal(payload, "AFP_EXTRA_CAP", where),
        brackets=parse_brackets(payload["FIFTH_CATEGORY_BRACKETS_UIT"], f"{where}.brackets"),
        deduction_uit=_decimal(payload, "DEDUCTION_UIT", where),
        health_bonus_rates=MappingProxyType(health_rates),
        health_bonus_rate=_optional_decimal(payload, "HEALTH_BONUS_RATE", where),
        build_from_components=_flag(payload, "BUILD_FROM_COMPONENTS", True, where),
        include_health_bonus_equiv=_flag(payload, "INCLUDE_HEALTH_BONUS_EQUIV", True, where),
    )


class ParameterTable:
    """Read-only table of parameter sets keyed by regime and year.

    A year mapped to None is present in the source but carries no data.
    """

    def __init__(self, entries: Mapping[Regime, Mapping[int, TaxParameterSet | None]]):
        self._entries = MappingProxyType(
            {Regime(regime): MappingProxyType(dict(years)) for regime, years in entries.items()}
        )

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> ParameterTable:
        """Parse the nested `regime -> year -> parameters` structure."""
        entries: dict[Regime, dict[int, TaxParameterSet | None]] = {}
        for regime_name, years in _require_mapping(raw, "parameter data").items():
            try:
                regime = Regime(regime_name)
            except ValueError as e:
                raise ConfigurationError(f"Unknown regime {regime_name!r} in parameter data") from e

            by_year: dict[int, TaxParameterSet | None] = {}
            for year_key, payload in _require_mapping(years or {}, regime.value).items():
                try:
                    year = int(year_key)
                except (TypeError, ValueError) as e:
                    raise ConfigurationError(f"{regime.value}: invalid year key {year_key!r}") from e
                by_year[year] = (
                    parse_parameter_set(payload, f"{regime.value}.{year}") if payload else None
                )
            entries[regime] = by_year
        return cls(entries)

    @classmethod
    def from_file(cls, path: str | Path) -> ParameterTable:
        """Load the table from a JSON file."""
        try:
            with open(path, encoding="utf-8") as fh:
                raw = json.load(fh)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"Cannot load tax parameters from {path}: {e}",
                context={"path": str(path)},
            ) from e
        logger.info("Loaded tax parameters from %s", path)
        return cls.from_dict(raw)

    def years(self, regime: Regime) -> list[int]:
        """Years that carry data for a regime, ascending."""
        by_year = self._entries.get(Regime(regime), {})
        return sorted(year for year, params in by_year.items() if params is not None)

    def get(self, regime: Regime, year: int) -> TaxParameterSet | None:
        """Exact lookup without fallback."""
        return self._entries.get(Regime(regime), {}).get(year)

    def resolve(self, regime: Regime, year: int) -> ResolvedParameters:
        """Resolve the parameter set for a year, falling back when it has no data.

        Falls back to the latest year not after the requested one, or to the
        latest year overall when every year with data is later.
        """
        regime = Regime(regime)
        exact = self.get(regime, year)
        if exact is not None:
            return ResolvedParameters(
                regime=regime, requested_year=year, effective_year=year, parameters=exact
            )

        available = self.years(regime)
        if not available:
            raise ConfigurationError(
                f"No tax parameters available for regime {regime.value}",
                context={"regime": regime.value, "year": year},
            )

        earlier = [y for y in available if y <= year]
        effective_year = earlier[-1] if earlier else available[-1]
        logger.warning(
            "No %s parameters for %s, using %s", regime.value, year, effective_year
        )
        return ResolvedParameters(
            regime=regime,
            requested_year=year,
            effective_year=effective_year,
            parameters=self._entries[regime][effective_year],
        )


def default_parameters_path() -> Path:
    """Location of the parameter file shipped with the package."""
    return Path(str(resources.files("peru_payroll") / "data" / "tax_parameters.json"))


@lru_cache(maxsize=1)
def get_parameter_table() -> ParameterTable:
    """Get the process-wide parameter table, loaded once."""
    settings = get_settings()
    path = settings.tax_parameters_path or default_parameters_path()
    return ParameterTable.from_file(path)
