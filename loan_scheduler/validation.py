"""Fail-fast checks on loan parameters.

All checks run before any schedule computation starts, so an invalid request
never yields a partial schedule.
"""

from __future__ import annotations

from .data_models import LoanParameters


class LoanValidationError(ValueError):
    """Raised when loan parameters cannot produce a schedule."""


def validate_parameters(params: LoanParameters) -> None:
    if params.principal <= 0:
        raise LoanValidationError("principal must be > 0")
    if params.term_months <= 0:
        raise LoanValidationError("term_months must be > 0")
    if params.annual_interest_rate_percent < 0:
        raise LoanValidationError("annual_interest_rate_percent must be >= 0")
    if params.payment_day_number is not None and not 1 <= params.payment_day_number <= 31:
        raise LoanValidationError("payment_day_number must be between 1 and 31")
    if params.interest_only_first_period and params.term_months < 2:
        raise LoanValidationError(
            "an interest-only first period needs a term of at least 2 months"
        )

    for index, rule in enumerate(params.early_repayments, start=1):
        if rule.amount <= 0:
            raise LoanValidationError(f"early repayment #{index}: amount must be > 0")
        if rule.start_date <= params.issue_date:
            raise LoanValidationError(
                f"early repayment #{index}: date {rule.start_date.isoformat()} "
                f"must be after the issue date {params.issue_date.isoformat()}"
            )
        if rule.end_date is not None and rule.end_date < rule.start_date:
            raise LoanValidationError(
                f"early repayment #{index}: end date {rule.end_date.isoformat()} "
                f"is before its start date {rule.start_date.isoformat()}"
            )
