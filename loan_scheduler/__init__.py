"""Loan repayment schedules with day-count conventions and early repayments."""

from .data_models import (
    DayCountBasis,
    EarlyRepaymentRule,
    LoanParameters,
    LoanType,
    Periodicity,
    RepaymentType,
    ScheduleEntry,
    ScheduleResult,
)
from .engine import ScheduleEngine, generate_schedule, summarize
from .validation import LoanValidationError, validate_parameters

__all__ = [
    "DayCountBasis",
    "EarlyRepaymentRule",
    "LoanParameters",
    "LoanType",
    "LoanValidationError",
    "Periodicity",
    "RepaymentType",
    "ScheduleEngine",
    "ScheduleEntry",
    "ScheduleResult",
    "generate_schedule",
    "summarize",
    "validate_parameters",
]
