"""Data models for the loan scheduler.

This module defines the enumerations and dataclasses used by the scheduler:
the loan parameters handed over by the caller, early repayment rules, the
schedule entries produced by the engine and the mutable state the engine
threads through its loop. Parameters and entries are frozen so they can be
shared freely once built.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Tuple


class LoanType(str, Enum):
    ANNUITY = "ANNUITY"
    DIFFERENTIATED = "DIFFERENTIATED"

    @classmethod
    def _missing_(cls, value):
        # "AMORTIZATION" and "DECREASING" are common names for level principal.
        if isinstance(value, str):
            name = value.strip().upper()
            if name in ("AMORTIZATION", "DECREASING"):
                return cls.DIFFERENTIATED
            if name in cls.__members__:
                return cls[name]
        return None


class DayCountBasis(str, Enum):
    ACTUAL_365 = "ACTUAL_365"
    ACTUAL_360 = "ACTUAL_360"
    ACTUAL_ACTUAL = "ACTUAL_ACTUAL"


class Periodicity(str, Enum):
    ONCE = "ONCE"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"

    @property
    def months(self) -> int:
        """Number of months between two occurrences (0 for one-off rules)."""
        return _PERIODICITY_MONTHS[self]


_PERIODICITY_MONTHS = {
    Periodicity.ONCE: 0,
    Periodicity.MONTHLY: 1,
    Periodicity.QUARTERLY: 3,
    Periodicity.YEARLY: 12,
}


class RepaymentType(str, Enum):
    DECREASE_TERM = "DECREASE_TERM"
    DECREASE_PAYMENT = "DECREASE_PAYMENT"


def _to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True)
class EarlyRepaymentRule:
    """An out-of-schedule payment, applied once or on a recurring basis.

    Attributes
    ----------
    start_date: date
        Date of the first occurrence.
    amount: Decimal
        Amount paid on each occurrence. Accrued interest is settled first and
        only the rest reduces the principal.
    periodicity: Periodicity
        ``ONCE`` or the recurrence step (monthly, quarterly, yearly).
    repayment_type: RepaymentType
        ``DECREASE_TERM`` keeps the annuity payment and shortens the loan;
        ``DECREASE_PAYMENT`` keeps the term and lowers the future payments.
    end_date: Optional[date]
        Inclusive bound for recurring rules. ``None`` means until maturity.
    """

    start_date: date
    amount: Decimal
    periodicity: Periodicity = Periodicity.ONCE
    repayment_type: RepaymentType = RepaymentType.DECREASE_TERM
    end_date: Optional[date] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", _to_decimal(self.amount))
        object.__setattr__(self, "periodicity", Periodicity(self.periodicity))
        object.__setattr__(self, "repayment_type", RepaymentType(self.repayment_type))


@dataclass(frozen=True)
class LoanParameters:
    """All inputs needed to build a schedule.

    ``payment_day_number`` defaults to the day of ``issue_date`` when left as
    ``None``. Early repayment rules are kept in registration order, which is
    used to break ties between rules due on the same day.
    """

    principal: Decimal
    annual_interest_rate_percent: Decimal
    term_months: int
    issue_date: date
    loan_type: LoanType = LoanType.ANNUITY
    payment_day_number: Optional[int] = None
    interest_only_first_period: bool = False
    move_holiday_to_next_day: bool = False
    day_count_basis: DayCountBasis = DayCountBasis.ACTUAL_365
    rounding_decimals: int = 2
    early_repayments: Tuple[EarlyRepaymentRule, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "principal", _to_decimal(self.principal))
        object.__setattr__(
            self, "annual_interest_rate_percent", _to_decimal(self.annual_interest_rate_percent)
        )
        object.__setattr__(self, "loan_type", LoanType(self.loan_type))
        object.__setattr__(self, "day_count_basis", DayCountBasis(self.day_count_basis))
        object.__setattr__(self, "early_repayments", tuple(self.early_repayments))

    @property
    def effective_payment_day(self) -> int:
        if self.payment_day_number is None:
            return self.issue_date.day
        return self.payment_day_number


@dataclass(frozen=True)
class ScheduleEntry:
    """One line of the repayment schedule.

    Regular entries fall on payment dates; entries with
    ``is_early_repayment`` set are dated on the early repayment itself.
    """

    payment_date: date
    payment_amount: Decimal
    interest_amount: Decimal
    principal_amount: Decimal
    remaining_principal: Decimal
    is_early_repayment: bool = False


@dataclass
class ScheduleResult:
    schedule: List[ScheduleEntry]
    start_monthly_payment: Decimal


@dataclass
class EngineState:
    """Running state of a single schedule computation.

    ``current_date`` is the date interest has been settled up to, which is
    either the previous payment date or the last early repayment.
    ``nominal_date`` is the unshifted date of the upcoming payment;
    ``next_date`` is the same date after any weekend shift.
    ``interest_carry`` holds interest accrued by an early repayment that did
    not cover it and that the next regular payment has to collect.
    """

    previous_date: date
    current_date: date
    next_date: date
    nominal_date: date
    remaining_principal: Decimal
    monthly_interest_rate: Decimal
    periods_to_amortize: int
    amortization_principal: Decimal
    annuity_payment: Decimal
    interest_carry: Decimal = field(default_factory=lambda: Decimal("0"))
