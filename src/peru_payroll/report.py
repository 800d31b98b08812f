"""Plain-text rendering of a calculation breakdown.

The output is deterministic (no timestamps) so it can be compared in tests
and pasted into tickets or emails as-is.
"""

from __future__ import annotations

from peru_payroll.calculators.formatting import format_currency
from peru_payroll.calculators.types import LineItem, SalaryResults

TITLE_RULE = "=" * 50


def _render_step(line: LineItem) -> list[str]:
    rendered = [f"{line.step}. {line.description}: {format_currency(line.amount)}"]
    if line.formula:
        rendered.append(f"   Fórmula: {line.formula}")
    return rendered


def _section(title: str, rule_width: int) -> list[str]:
    return [f"{title}:", "-" * rule_width]


def render_breakdown_text(results: SalaryResults) -> str:
    """Render the breakdown of a calculation as plain text."""
    breakdown = results.breakdown
    lines: list[str] = [
        f"DESGLOSE DETALLADO - SUELDO NETO PERÚ {results.effective_year}",
        TITLE_RULE,
        f"Régimen: {results.regime.value}",
        "",
    ]

    lines.extend(_section("CÁLCULO MENSUAL", 20))
    for item in breakdown.monthly:
        lines.extend(_render_step(item))
    lines.append("")

    lines.extend(_section("CÁLCULO ANUAL", 20))
    for item in breakdown.annual:
        lines.extend(_render_step(item))
    lines.append("")

    if breakdown.brackets:
        lines.extend(_section("DESGLOSE 5TA CATEGORÍA", 25))
        for item in breakdown.brackets:
            lines.append(
                f"{item.step}. Tramo {item.rate}: {item.description} = {format_currency(item.amount)}"
            )
        lines.append("")

    if results.used_fallback_year:
        lines.append(
            f"Usando parámetros de {results.effective_year} (sin datos para {results.inputs.year})."
        )
    lines.append("Calculadora Sueldo Neto Perú")

    return "\n".join(lines) + "\n"
