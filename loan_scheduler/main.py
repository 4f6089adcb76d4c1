"""Command-line interface for the loan scheduler.

This module uses the ``click`` library to implement a multi-command interface.
Users can compute a full repayment schedule or only its summary. Results can
be printed to the terminal or exported to JSON/CSV files. Every option can
also be supplied through an environment variable prefixed with
``LOAN_SCHEDULER_`` (e.g. ``LOAN_SCHEDULER_SCHEDULE_RATE``).
"""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click

from .data_models import (
    DayCountBasis,
    EarlyRepaymentRule,
    LoanParameters,
    LoanType,
    Periodicity,
    RepaymentType,
    ScheduleEntry,
)
from .engine import generate_schedule, summarize
from .formatter import print_schedule, print_summary
from .utils import decimal_from_str, parse_date
from .validation import LoanValidationError, validate_parameters

logger = logging.getLogger(__name__)


def parse_amount(value: str) -> str:
    """Parse a numeric string with optional suffixes.

    Accepts plain numbers ("500000") and shorthand with ``k``/``m`` suffixes
    (e.g., "500k" meaning 500_000). Returns a normalized numeric string so
    that the caller can build an exact ``Decimal`` from it.
    """
    value = value.strip().lower()
    value = value.replace(",", "")
    factor = 1
    if value.endswith("k"):
        factor = 1_000
        value = value[:-1]
    elif value.endswith("m"):
        factor = 1_000_000
        value = value[:-1]
    try:
        return str(decimal_from_str(value) * factor)
    except ValueError:
        raise click.BadParameter(f"Invalid amount: {value}")


def parse_early_repayment_strings(values: Tuple[str, ...]) -> List[EarlyRepaymentRule]:
    """Parse ``START:AMOUNT[:PERIODICITY[:TYPE[:END]]]`` items into rules."""
    rules: List[EarlyRepaymentRule] = []
    for item in values:
        parts = item.split(":")
        if not 2 <= len(parts) <= 5:
            raise click.BadParameter(
                f"Early repayment must be in START:AMOUNT[:PERIODICITY[:TYPE[:END]]] format; got {item}"
            )
        start_str, amount_str = parts[0], parts[1]
        periodicity_str = parts[2] if len(parts) > 2 else "once"
        type_str = parts[3] if len(parts) > 3 else "decrease_term"
        end_str = parts[4] if len(parts) > 4 else ""
        try:
            start = parse_date(start_str)
            end = parse_date(end_str) if end_str else None
            periodicity = Periodicity(periodicity_str.strip().upper())
            repayment_type = RepaymentType(type_str.strip().upper())
        except ValueError as exc:
            raise click.BadParameter(f"Invalid early repayment {item}: {exc}")
        rules.append(
            EarlyRepaymentRule(
                start_date=start,
                amount=decimal_from_str(parse_amount(amount_str)),
                periodicity=periodicity,
                repayment_type=repayment_type,
                end_date=end,
            )
        )
    return rules


def build_parameters_from_options(
    principal: str,
    rate: str,
    term: int,
    term_unit: str,
    loan_type: str,
    issue_date: str,
    payment_day: Optional[int],
    interest_only_first_period: bool,
    move_holiday: bool,
    day_count: str,
    decimals: int,
    early_repayment: Tuple[str, ...],
) -> LoanParameters:
    """Turn raw option values into validated ``LoanParameters``.

    Raises ``click.BadParameter`` on malformed input or when the parameters
    are rejected by validation.
    """
    try:
        issue_dt = parse_date(issue_date)
        rate_value = decimal_from_str(rate)
    except ValueError as exc:
        raise click.BadParameter(str(exc))
    term_months = term * 12 if term_unit == "y" else term
    params = LoanParameters(
        principal=decimal_from_str(parse_amount(principal)),
        annual_interest_rate_percent=rate_value,
        term_months=term_months,
        issue_date=issue_dt,
        loan_type=LoanType(loan_type.upper()),
        payment_day_number=payment_day,
        interest_only_first_period=interest_only_first_period,
        move_holiday_to_next_day=move_holiday,
        day_count_basis=DayCountBasis(day_count.upper()),
        rounding_decimals=decimals,
        early_repayments=tuple(parse_early_repayment_strings(early_repayment)),
    )
    try:
        validate_parameters(params)
    except LoanValidationError as exc:
        raise click.BadParameter(str(exc))
    return params


def _serializable_summary(summary: Dict[str, Any]) -> Dict[str, Any]:
    data: Dict[str, Any] = {}
    for key, value in summary.items():
        if hasattr(value, "isoformat"):
            data[key] = value.isoformat()
        elif isinstance(value, int) or value is None:
            data[key] = value
        else:
            data[key] = float(value)
    return data


def export_to_json(path: Path, schedule: List[ScheduleEntry], summary: Dict[str, Any]) -> None:
    """Export schedule and summary to a JSON file."""
    sched_list = []
    for e in schedule:
        sched_list.append(
            {
                "payment_date": e.payment_date.isoformat(),
                "payment_amount": float(e.payment_amount),
                "interest_amount": float(e.interest_amount),
                "principal_amount": float(e.principal_amount),
                "remaining_principal": float(e.remaining_principal),
                "is_early_repayment": e.is_early_repayment,
            }
        )
    data = {"summary": _serializable_summary(summary), "schedule": sched_list}
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_to_csv(path: Path, schedule: List[ScheduleEntry]) -> None:
    """Export schedule to a CSV file."""
    header = [
        "Payment_Date",
        "Payment",
        "Interest",
        "Principal",
        "Remaining_Principal",
        "Early_Repayment",
    ]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for e in schedule:
            writer.writerow(
                [
                    e.payment_date.isoformat(),
                    str(e.payment_amount),
                    str(e.interest_amount),
                    str(e.principal_amount),
                    str(e.remaining_principal),
                    e.is_early_repayment,
                ]
            )


def loan_options(func):
    """Attach the loan parameter options shared by all commands."""
    options = [
        click.option("--principal", "-p", "principal", required=True, help="Loan amount (500000, 500k, 1.2m)"),
        click.option("--rate", "-r", "rate", required=True, help="Annual interest rate (percent)"),
        click.option("--term", "-t", "term", required=True, type=click.IntRange(min=1), help="Loan term"),
        click.option(
            "--term-unit",
            "term_unit",
            type=click.Choice(["m", "y"]),
            default="m",
            show_default=True,
            help="Unit of --term: months or years",
        ),
        click.option(
            "--type",
            "loan_type",
            type=click.Choice(["annuity", "differentiated"], case_sensitive=False),
            default="annuity",
            show_default=True,
            help="Repayment regime",
        ),
        click.option("--issue-date", "-s", "issue_date", required=True, help="Issue date (YYYY-MM-DD)"),
        click.option(
            "--payment-day",
            "payment_day",
            type=click.IntRange(1, 31),
            help="Day of month payments fall on (defaults to the issue day)",
        ),
        click.option(
            "--interest-only-first-period",
            "interest_only_first_period",
            is_flag=True,
            help="Collect only interest on the first payment date",
        ),
        click.option(
            "--move-holiday",
            "move_holiday",
            is_flag=True,
            help="Move payment dates falling on a weekend to the following Monday",
        ),
        click.option(
            "--day-count",
            "day_count",
            type=click.Choice([b.value for b in DayCountBasis], case_sensitive=False),
            default=DayCountBasis.ACTUAL_365.value,
            show_default=True,
            help="Day-count basis for interest accrual",
        ),
        click.option(
            "--decimals",
            "decimals",
            type=click.IntRange(0, 10, clamp=True),
            default=2,
            show_default=True,
            help="Decimal places amounts are rounded to",
        ),
        click.option(
            "--early-repayment",
            "early_repayment",
            multiple=True,
            help=(
                "Early repayment in START:AMOUNT[:PERIODICITY[:TYPE[:END]]] format, e.g. "
                "2025-03-10:5000:monthly:decrease_payment:2026-03-10"
            ),
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group(context_settings={"auto_envvar_prefix": "LOAN_SCHEDULER"})
@click.option(
    "--log-level",
    "log_level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging verbosity",
)
def cli(log_level: str) -> None:
    """A command-line loan repayment scheduler."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@loan_options
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def schedule(output: Optional[str], **options: Any) -> None:
    """Compute and print the full repayment schedule."""
    params = build_parameters_from_options(**options)
    result = generate_schedule(params)
    summary_data = summarize(params, result)
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, result.schedule, summary_data)
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, result.schedule)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
        logger.info("Schedule written to %s", path)
        click.echo(f"Schedule exported to {path}")
    else:
        print_summary(summary_data)
        print_schedule(result.schedule)


@cli.command()
@loan_options
@click.option("--output", "output", type=str, help="Output file path (.json)")
def summary(output: Optional[str], **options: Any) -> None:
    """Compute and print only the summary metrics for a loan."""
    params = build_parameters_from_options(**options)
    summary_data = summarize(params, generate_schedule(params))
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Summary export must use .json extension")
        with path.open("w", encoding="utf-8") as f:
            json.dump({"summary": _serializable_summary(summary_data)}, f, indent=2)
        click.echo(f"Summary exported to {path}")
    else:
        print_summary(summary_data)


if __name__ == "__main__":
    cli()
