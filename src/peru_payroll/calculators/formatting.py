"""Number, currency and rate formatting for breakdown labels and reports."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

CURRENCY_SYMBOL = "S/"


def format_number(amount: Decimal, max_decimals: int = 2, min_decimals: int = 0) -> str:
    """Format a number the es-PE way: comma grouping, dot decimals.

    Trailing zero decimals are dropped down to `min_decimals`, so whole
    amounts print without decimals.
    """
    quantum = Decimal(1).scaleb(-max_decimals)
    value = Decimal(amount).quantize(quantum, rounding=ROUND_HALF_UP)
    text = f"{value:,.{max_decimals}f}"
    if max_decimals > min_decimals and "." in text:
        whole, decimals = text.split(".")
        decimals = decimals.rstrip("0")
        if len(decimals) < min_decimals:
            decimals = decimals.ljust(min_decimals, "0")
        text = f"{whole}.{decimals}" if decimals else whole
    return text


def format_currency(amount: Decimal, max_decimals: int = 2, min_decimals: int = 0) -> str:
    """Format an amount as soles, e.g. ``S/ 3,300`` or ``- S/ 397.5``."""
    text = f"{CURRENCY_SYMBOL} {format_number(abs(amount), max_decimals, min_decimals)}"
    return f"- {text}" if amount < 0 else text


def format_percent(rate: Decimal) -> str:
    """Format a rate as a percentage label, e.g. 0.1325 -> ``13.25%``."""
    return f"{format_number(rate * 100)}%"
