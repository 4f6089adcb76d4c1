"""Shared fixtures for the scheduler tests.

Canonical loan: 100,000 at 12% over 12 months issued 2024-01-15. Under
ACTUAL_360 a regular month then accrues exactly 1% of the balance.
"""

from datetime import date
from decimal import Decimal

import pytest

from loan_scheduler.data_models import DayCountBasis, LoanParameters, LoanType


@pytest.fixture
def annuity_params() -> LoanParameters:
    return LoanParameters(
        principal=Decimal("100000"),
        annual_interest_rate_percent=Decimal("12"),
        term_months=12,
        issue_date=date(2024, 1, 15),
        loan_type=LoanType.ANNUITY,
        day_count_basis=DayCountBasis.ACTUAL_360,
    )


@pytest.fixture
def scenario_b_params() -> LoanParameters:
    """100,000 at 12% over 3 months, level principal, 30/360 months."""
    return LoanParameters(
        principal=Decimal("100000"),
        annual_interest_rate_percent=Decimal("12"),
        term_months=3,
        issue_date=date(2024, 1, 15),
        loan_type=LoanType.DIFFERENTIATED,
        day_count_basis=DayCountBasis.ACTUAL_360,
        rounding_decimals=2,
    )
