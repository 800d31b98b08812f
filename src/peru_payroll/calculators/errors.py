"""Errors raised by the salary calculation engine."""

from __future__ import annotations

from typing import Any


class PayrollEngineError(Exception):
    """Base class for engine failures."""

    code = "ENGINE_ERROR"

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        self.context = context or {}
        super().__init__(message)


class ConfigurationError(PayrollEngineError):
    """Raised when no usable tax parameters exist for a regime."""

    code = "CONFIGURATION_ERROR"


class InvalidInputError(PayrollEngineError):
    """Raised when calculation inputs are rejected."""

    code = "INVALID_INPUT"

    def __init__(self, field: str, value: Any, reason: str):
        self.field = field
        self.value = value
        super().__init__(
            f"Invalid {field} {value!r}: {reason}",
            context={"field": field, "value": str(value)},
        )
