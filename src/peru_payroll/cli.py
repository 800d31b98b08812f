"""Command line interface for the salary calculator.

Usage:
    peru-payroll calculate --basic-salary 3000 --food-allowance 300
    peru-payroll calculate --basic-salary 8000 --regime RIA --format json
    peru-payroll years --regime NORMAL
    peru-payroll serve
"""

from __future__ import annotations

import argparse
import json
import sys
from decimal import Decimal, InvalidOperation
from typing import Callable

from peru_payroll.api.schemas import SalaryCalculationResponse
from peru_payroll.calculators.engine import PayrollEngine
from peru_payroll.calculators.errors import PayrollEngineError
from peru_payroll.calculators.parameters import ParameterTable, get_parameter_table
from peru_payroll.calculators.types import HealthScheme, Regime, SalaryInputs
from peru_payroll.config import configure_logging
from peru_payroll.report import render_breakdown_text


def parse_amount(s: str) -> Decimal:
    """Parse a monetary amount, accepting a comma as decimal separator."""
    try:
        return Decimal(s.replace(",", "."))
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"invalid amount: {s!r}")


class SalaryCli:
    """Salary calculator command line interface."""

    def __init__(self, parameter_table: ParameterTable | None = None) -> None:
        self._parameter_table = parameter_table
        self.parser = self._build_parser()

    @property
    def parameter_table(self) -> ParameterTable:
        if self._parameter_table is None:
            self._parameter_table = get_parameter_table()
        return self._parameter_table

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="peru-payroll",
            description="Net pay calculator for Peru (advisory estimates)",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        # calculate command
        calc = subparsers.add_parser(
            "calculate",
            help="Calculate net pay and print the breakdown",
        )
        calc.add_argument(
            "--basic-salary",
            type=parse_amount,
            required=True,
            help="Monthly basic salary in soles",
        )
        calc.add_argument(
            "--food-allowance",
            type=parse_amount,
            default=Decimal("0"),
            help="Monthly food allowance (non-taxable)",
        )
        calc.add_argument(
            "--family-allowance",
            action="store_true",
            help="Include the family allowance",
        )
        calc.add_argument(
            "--year",
            type=int,
            help="Parameter year (default: latest available)",
        )
        calc.add_argument(
            "--regime",
            type=str,
            choices=[r.value for r in Regime],
            default=Regime.NORMAL.value,
            help="Remuneration regime",
        )
        calc.add_argument(
            "--health-scheme",
            type=str,
            choices=[h.value for h in HealthScheme],
            default=HealthScheme.ESSALUD.value,
            help="Health scheme for the health bonus rate",
        )
        calc.add_argument(
            "--format",
            type=str,
            choices=["text", "json"],
            default="text",
            help="Output format",
        )

        # years command
        years = subparsers.add_parser(
            "years",
            help="List years with parameter data",
        )
        years.add_argument(
            "--regime",
            type=str,
            choices=[r.value for r in Regime],
            default=Regime.NORMAL.value,
            help="Remuneration regime",
        )

        # serve command
        subparsers.add_parser(
            "serve",
            help="Run the HTTP API",
        )

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 1

        # Dispatch to command handler
        handlers: dict[str, Callable[..., int]] = {
            "calculate": self._cmd_calculate,
            "years": self._cmd_years,
            "serve": self._cmd_serve,
        }

        handler = handlers[parsed.command]
        try:
            return handler(parsed)
        except PayrollEngineError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 1

    def _cmd_calculate(self, args: argparse.Namespace) -> int:
        """Calculate and print results."""
        regime = Regime(args.regime)
        year = args.year
        if year is None:
            available = self.parameter_table.years(regime)
            if not available:
                print(f"ERROR: No tax parameters available for regime {regime.value}", file=sys.stderr)
                return 1
            year = available[-1]

        engine = PayrollEngine(self.parameter_table)
        results = engine.calculate(
            SalaryInputs(
                basic_salary=args.basic_salary,
                food_allowance=args.food_allowance,
                has_family_allowance=args.family_allowance,
                year=year,
                regime=regime,
                health_scheme=HealthScheme(args.health_scheme),
            )
        )

        if args.format == "json":
            print(SalaryCalculationResponse.from_results(results).model_dump_json(indent=2))
        else:
            print(render_breakdown_text(results), end="")
        return 0

    def _cmd_years(self, args: argparse.Namespace) -> int:
        """List years with data."""
        regime = Regime(args.regime)
        print(json.dumps({"regime": regime.value, "years": self.parameter_table.years(regime)}))
        return 0

    def _cmd_serve(self, args: argparse.Namespace) -> int:
        """Run the API server."""
        from peru_payroll.__main__ import main as serve

        serve()
        return 0


def main() -> int:
    """CLI entry point."""
    configure_logging()
    cli = SalaryCli()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
