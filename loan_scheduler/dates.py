"""Payment date sequencing.

Payment dates are aligned to a fixed day of the month. When that day does not
exist in a month (e.g. the 31st in April) the last day of the month is used.
Optionally a date falling on a weekend is moved to the following Monday.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Tuple

from .utils import days_in_month

SATURDAY = 5


def shift_weekend(dt: date) -> date:
    """Return the following Monday if ``dt`` is a Saturday or Sunday."""
    weekday = dt.weekday()
    if weekday >= SATURDAY:
        return dt + timedelta(days=7 - weekday)
    return dt


def next_nominal_date(current: date, payment_day_number: int) -> date:
    """Return the payment date in the month after ``current``, unshifted."""
    year = current.year + current.month // 12
    month = current.month % 12 + 1
    day = min(payment_day_number, days_in_month(year, month))
    return date(year, month, day)


def next_payment_date(
    nominal: date, payment_day_number: int, move_holiday_to_next_day: bool
) -> Tuple[date, date]:
    """Return the next payment date after ``nominal`` as ``(nominal, actual)``.

    The nominal date is ``payment_day_number`` in the following month. The
    actual date is the same date shifted off the weekend when
    ``move_holiday_to_next_day`` is set. Sequencing continues from the nominal
    date, so a shift into the next month never skips a payment.
    """
    nxt = next_nominal_date(nominal, payment_day_number)
    if move_holiday_to_next_day:
        return nxt, shift_weekend(nxt)
    return nxt, nxt
