"""Day-count conventions used to accrue interest between two dates."""

from __future__ import annotations

import calendar
from datetime import date
from decimal import Decimal
from typing import Tuple

from .data_models import DayCountBasis
from .rounding import RoundingPolicy
from .utils import days_in_month, is_month_end


class DayCountCalculator:
    """Convert a calendar span into accrued interest for a given basis.

    ``ACTUAL_365`` and ``ACTUAL_ACTUAL`` count the literal number of days
    between the dates, so a payment date moved past a weekend accrues the
    extra days. ``ACTUAL_360`` counts every month as 30 days, which makes a
    regular monthly period accrue exactly ``rate / 12``.
    """

    def __init__(self, basis: DayCountBasis, rounding: RoundingPolicy) -> None:
        self.basis = basis
        self.rounding = rounding

    def year_and_month_days(self, reference: date) -> Tuple[int, int]:
        """Return ``(days_in_year, days_in_month)`` for ``reference``."""
        if self.basis is DayCountBasis.ACTUAL_360:
            return 360, 30
        month_days = days_in_month(reference.year, reference.month)
        if self.basis is DayCountBasis.ACTUAL_365:
            # Feb 29 is dropped from the month, the year stays at 365.
            return 365, (28 if reference.month == 2 else month_days)
        year_days = 366 if calendar.isleap(reference.year) else 365
        return year_days, month_days

    def elapsed_days(self, start: date, end: date) -> int:
        if self.basis is not DayCountBasis.ACTUAL_360:
            return (end - start).days
        d1 = min(start.day, 30)
        d2 = min(end.day, 30)
        # A short month-end stands for the payment day it was clamped from.
        if is_month_end(end) and d2 < d1:
            d2 = d1
        elif is_month_end(start) and d1 < d2:
            d1 = d2
        return (end.year - start.year) * 360 + (end.month - start.month) * 30 + d2 - d1

    def interest(
        self,
        principal: Decimal,
        annual_rate_percent: Decimal,
        start: date,
        end: date,
    ) -> Decimal:
        """Interest accrued on ``principal`` from ``start`` to ``end``.

        The year length is taken from ``end``, the date the interest is paid.
        """
        if end <= start or principal <= 0 or annual_rate_percent == 0:
            return self.rounding.round(Decimal("0"))
        days_in_year, _ = self.year_and_month_days(end)
        elapsed = self.elapsed_days(start, end)
        accrued = principal * annual_rate_percent * elapsed / (Decimal(100) * days_in_year)
        return self.rounding.round(accrued)
