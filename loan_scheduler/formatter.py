"""Output helpers for the loan scheduler.

This module renders schedules and summaries as plain tab-separated text.
Amounts are printed as stored, without currency symbols or locale-specific
separators; presentation beyond that is left to the caller.
"""

from __future__ import annotations

from typing import Dict, Iterable

import click

from .data_models import ScheduleEntry


def _fmt_date(value) -> str:
    return value.isoformat() if value is not None else "-"


def print_summary(summary: Dict[str, object]) -> None:
    """Print a summary of loan metrics in a human-readable format."""
    click.echo("Summary")
    click.echo("-" * 72)
    click.echo(f"Principal           : {summary['principal']}")
    click.echo(f"Starting payment    : {summary['start_monthly_payment']}")
    click.echo(f"Total interest      : {summary['total_interest']}")
    if summary.get("total_early_repayment"):
        click.echo(f"Early repayments    : {summary['total_early_repayment']}")
    click.echo(f"Total paid          : {summary['total_paid']}")
    click.echo(f"First payment date  : {_fmt_date(summary['first_payment_date'])}")
    click.echo(f"Last payment date   : {_fmt_date(summary['last_payment_date'])}")
    click.echo(f"Payments made       : {summary['payments_made']} of {summary['term_months']}")
    click.echo(f"Highest payment     : {summary['max_payment']}")
    click.echo("-" * 72)


def print_schedule(schedule: Iterable[ScheduleEntry]) -> None:
    """Print the repayment schedule as a simple table.

    Early repayments are numbered with the period they fall into and marked
    in the last column.
    """
    headers = ["Period", "Date", "Payment", "Interest", "Principal", "Remaining", "Early"]
    click.echo("\t".join(headers))
    period = 0
    for entry in schedule:
        if not entry.is_early_repayment:
            period += 1
        row = [
            str(period if not entry.is_early_repayment else period + 1),
            entry.payment_date.isoformat(),
            str(entry.payment_amount),
            str(entry.interest_amount),
            str(entry.principal_amount),
            str(entry.remaining_principal),
            "Yes" if entry.is_early_repayment else "No",
        ]
        click.echo("\t".join(row))
