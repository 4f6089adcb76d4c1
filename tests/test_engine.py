from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from loan_scheduler.data_models import (
    DayCountBasis,
    EarlyRepaymentRule,
    LoanParameters,
    LoanType,
    Periodicity,
    RepaymentType,
)
from loan_scheduler.engine import ScheduleEngine, generate_schedule, summarize
from loan_scheduler.validation import LoanValidationError


def regular(schedule):
    return [e for e in schedule if not e.is_early_repayment]


def early(schedule):
    return [e for e in schedule if e.is_early_repayment]


class TestZeroRate:
    @pytest.mark.parametrize("loan_type", [LoanType.ANNUITY, LoanType.DIFFERENTIATED])
    def test_twelve_equal_payments(self, loan_type):
        params = LoanParameters(
            principal=Decimal("12000"),
            annual_interest_rate_percent=Decimal("0"),
            term_months=12,
            issue_date=date(2024, 1, 15),
            loan_type=loan_type,
        )
        result = generate_schedule(params)
        assert len(result.schedule) == 12
        assert result.start_monthly_payment == Decimal("1000.00")
        for month, entry in enumerate(result.schedule, start=1):
            assert entry.payment_amount == Decimal("1000.00")
            assert entry.principal_amount == Decimal("1000.00")
            assert entry.interest_amount == Decimal("0.00")
            assert entry.remaining_principal == Decimal(12000 - 1000 * month)


class TestDifferentiated:
    def test_three_month_schedule(self, scenario_b_params):
        result = generate_schedule(scenario_b_params)
        first, second, third = result.schedule

        assert first.payment_date == date(2024, 2, 15)
        assert first.interest_amount == Decimal("1000.00")
        assert first.principal_amount == Decimal("33333.33")
        assert first.payment_amount == Decimal("34333.33")
        assert first.remaining_principal == Decimal("66666.67")

        assert second.interest_amount == Decimal("666.67")
        assert second.principal_amount == Decimal("33333.33")
        assert second.payment_amount == Decimal("34000.00")
        assert second.remaining_principal == Decimal("33333.34")

        assert third.payment_date == date(2024, 4, 15)
        assert third.interest_amount == Decimal("333.33")
        assert third.principal_amount == Decimal("33333.34")
        assert third.payment_amount == Decimal("33666.67")
        assert third.remaining_principal == Decimal("0.00")

    def test_start_payment_is_constant_principal(self, scenario_b_params):
        result = generate_schedule(scenario_b_params)
        assert result.start_monthly_payment == Decimal("33333.33")

    def test_interest_only_first_period(self):
        params = LoanParameters(
            principal=Decimal("12000"),
            annual_interest_rate_percent=Decimal("12"),
            term_months=4,
            issue_date=date(2024, 1, 15),
            loan_type=LoanType.DIFFERENTIATED,
            day_count_basis=DayCountBasis.ACTUAL_360,
            interest_only_first_period=True,
        )
        schedule = generate_schedule(params).schedule
        assert [e.principal_amount for e in schedule] == [
            Decimal("0.00"),
            Decimal("4000.00"),
            Decimal("4000.00"),
            Decimal("4000.00"),
        ]
        assert [e.interest_amount for e in schedule] == [
            Decimal("120.00"),
            Decimal("120.00"),
            Decimal("80.00"),
            Decimal("40.00"),
        ]
        assert schedule[0].payment_amount == Decimal("120.00")
        assert schedule[0].remaining_principal == Decimal("12000.00")
        assert schedule[-1].payment_amount == Decimal("4040.00")


class TestAnnuity:
    def test_standing_payment(self, annuity_params):
        result = generate_schedule(annuity_params)
        assert result.start_monthly_payment == Decimal("8884.88")

    def test_first_payment_split(self, annuity_params):
        first = generate_schedule(annuity_params).schedule[0]
        assert first.interest_amount == Decimal("1000.00")
        assert first.principal_amount == Decimal("7884.88")
        assert first.remaining_principal == Decimal("92115.12")

    def test_actual_360_interest_is_rate_over_twelve(self, annuity_params):
        schedule = generate_schedule(annuity_params).schedule
        balance = annuity_params.principal
        for entry in schedule:
            expected = (balance * Decimal("0.01")).quantize(Decimal("0.01"))
            assert entry.interest_amount == expected
            balance = entry.remaining_principal

    def test_payments_constant_until_last(self, annuity_params):
        schedule = generate_schedule(annuity_params).schedule
        assert len(schedule) == 12
        assert {e.payment_amount for e in schedule[:-1]} == {Decimal("8884.88")}
        assert schedule[-1].remaining_principal == Decimal("0")

    def test_interest_only_first_period_amortizes_over_remaining_term(self, annuity_params):
        params = replace(annuity_params, term_months=13, interest_only_first_period=True)
        result = generate_schedule(params)
        assert result.start_monthly_payment == Decimal("8884.88")
        assert result.schedule[0].principal_amount == Decimal("0")
        assert result.schedule[0].interest_amount == Decimal("1000.00")
        assert len(result.schedule) == 13


class TestPaymentDates:
    def test_weekend_shift_accrues_extra_days(self):
        params = LoanParameters(
            principal=Decimal("100000"),
            annual_interest_rate_percent=Decimal("12"),
            term_months=6,
            issue_date=date(2024, 5, 1),
            move_holiday_to_next_day=True,
        )
        schedule = generate_schedule(params).schedule
        # 2024-06-01 is a Saturday: 33 days at 12% / 365.
        assert schedule[0].payment_date == date(2024, 6, 3)
        assert schedule[0].interest_amount == Decimal("1084.93")
        assert schedule[1].payment_date == date(2024, 7, 1)

    def test_shift_into_next_month_does_not_skip_a_payment(self):
        params = LoanParameters(
            principal=Decimal("10000"),
            annual_interest_rate_percent=Decimal("5"),
            term_months=3,
            issue_date=date(2024, 10, 30),
            move_holiday_to_next_day=True,
        )
        dates = [e.payment_date for e in generate_schedule(params).schedule]
        assert dates == [date(2024, 12, 2), date(2024, 12, 30), date(2025, 1, 30)]

    def test_explicit_payment_day(self):
        params = LoanParameters(
            principal=Decimal("10000"),
            annual_interest_rate_percent=Decimal("5"),
            term_months=3,
            issue_date=date(2024, 1, 20),
            payment_day_number=5,
        )
        dates = [e.payment_date for e in generate_schedule(params).schedule]
        assert dates == [date(2024, 2, 5), date(2024, 3, 5), date(2024, 4, 5)]


class TestEarlyRepayments:
    def test_amount_below_accrued_interest_is_carried(self, annuity_params):
        params = replace(
            annuity_params,
            early_repayments=(EarlyRepaymentRule(date(2024, 1, 25), Decimal("100")),),
        )
        schedule = generate_schedule(params).schedule
        entry, following = schedule[0], schedule[1]

        assert entry.is_early_repayment
        assert entry.payment_date == date(2024, 1, 25)
        assert entry.interest_amount == Decimal("100.00")
        assert entry.principal_amount == Decimal("0")
        assert entry.remaining_principal == Decimal("100000.00")
        # 333.33 accrued over 10 days; the 233.33 left unpaid is collected
        # instead of a fresh accrual.
        assert following.interest_amount == Decimal("233.33")
        assert following.principal_amount == Decimal("8651.55")
        assert len(early(schedule)) == 1

    def test_carried_interest_collected_by_payoff(self, annuity_params):
        params = replace(
            annuity_params,
            early_repayments=(
                EarlyRepaymentRule(date(2024, 1, 25), Decimal("100")),
                EarlyRepaymentRule(date(2024, 2, 1), Decimal("200000"), periodicity=Periodicity.MONTHLY),
            ),
        )
        schedule = generate_schedule(params).schedule
        assert len(schedule) == 2
        payoff = schedule[-1]
        # 233.33 carried from Jan 25 plus 233.33 accrued over the next 7 days.
        assert payoff.interest_amount == Decimal("466.66")
        assert payoff.principal_amount == Decimal("100000.00")
        assert payoff.payment_amount == Decimal("100466.66")
        assert payoff.remaining_principal == Decimal("0")
        assert sum(e.interest_amount for e in schedule) == Decimal("566.66")

    def test_amount_equal_to_accrued_interest(self, annuity_params):
        params = replace(
            annuity_params,
            early_repayments=(EarlyRepaymentRule(date(2024, 3, 1), Decimal("491.28")),),
        )
        schedule = generate_schedule(params).schedule
        entry = early(schedule)[0]
        assert entry.principal_amount == Decimal("0")
        assert entry.interest_amount == Decimal("491.28")
        following = schedule[schedule.index(entry) + 1]
        assert following.interest_amount == Decimal("429.87")

    def test_decrease_term_keeps_payment(self, annuity_params):
        params = replace(
            annuity_params,
            early_repayments=(
                EarlyRepaymentRule(date(2024, 3, 1), Decimal("20000"), repayment_type=RepaymentType.DECREASE_TERM),
            ),
        )
        schedule = generate_schedule(params).schedule
        entry = early(schedule)[0]
        assert entry.interest_amount == Decimal("491.28")
        assert entry.principal_amount == Decimal("19508.72")
        assert entry.remaining_principal == Decimal("72606.40")
        payments = regular(schedule)
        assert len(payments) < 12
        assert {e.payment_amount for e in payments[:-1]} == {Decimal("8884.88")}

    def test_decrease_payment_keeps_term(self, annuity_params):
        params = replace(
            annuity_params,
            early_repayments=(
                EarlyRepaymentRule(
                    date(2024, 3, 1), Decimal("20000"), repayment_type=RepaymentType.DECREASE_PAYMENT
                ),
            ),
        )
        schedule = generate_schedule(params).schedule
        payments = regular(schedule)
        assert len(payments) == 12
        assert payments[0].payment_amount == Decimal("8884.88")
        later = {e.payment_amount for e in payments[1:-1]}
        assert len(later) == 1
        assert later.pop() < Decimal("8884.88")

    def test_overpayment_clears_loan(self, annuity_params):
        params = replace(
            annuity_params,
            early_repayments=(EarlyRepaymentRule(date(2024, 3, 1), Decimal("200000")),),
        )
        schedule = generate_schedule(params).schedule
        assert len(schedule) == 2
        last = schedule[-1]
        assert last.is_early_repayment
        assert last.principal_amount == Decimal("92115.12")
        assert last.payment_amount == Decimal("92606.40")
        assert last.remaining_principal == Decimal("0")

    def test_recurring_with_end_date(self):
        params = LoanParameters(
            principal=Decimal("12000"),
            annual_interest_rate_percent=Decimal("0"),
            term_months=12,
            issue_date=date(2024, 1, 15),
            loan_type=LoanType.DIFFERENTIATED,
            early_repayments=(
                EarlyRepaymentRule(
                    date(2024, 2, 1),
                    Decimal("500"),
                    periodicity=Periodicity.MONTHLY,
                    end_date=date(2024, 4, 30),
                ),
            ),
        )
        schedule = generate_schedule(params).schedule
        assert [e.payment_date for e in early(schedule)] == [
            date(2024, 2, 1),
            date(2024, 3, 1),
            date(2024, 4, 1),
        ]
        assert sum(e.principal_amount for e in schedule) == Decimal("12000")

    def test_differentiated_principal_recomputed(self, scenario_b_params):
        params = replace(
            scenario_b_params,
            early_repayments=(EarlyRepaymentRule(date(2024, 2, 15), Decimal("10666.67")),),
        )
        schedule = generate_schedule(params).schedule
        # Paid on the first payment date, before the regular payment: covers
        # the month's 1000.00 interest and 9666.67 of principal.
        entry = schedule[0]
        assert entry.is_early_repayment
        assert entry.remaining_principal == Decimal("90333.33")
        assert schedule[1].principal_amount == Decimal("30111.11")


class TestScheduleProperties:
    @pytest.mark.parametrize("loan_type", list(LoanType))
    @pytest.mark.parametrize("basis", list(DayCountBasis))
    def test_invariants(self, loan_type, basis):
        params = LoanParameters(
            principal=Decimal("250000"),
            annual_interest_rate_percent=Decimal("7.5"),
            term_months=60,
            issue_date=date(2024, 1, 31),
            loan_type=loan_type,
            day_count_basis=basis,
            move_holiday_to_next_day=True,
            early_repayments=(
                EarlyRepaymentRule(date(2024, 6, 10), Decimal("15000")),
                EarlyRepaymentRule(
                    date(2024, 3, 5),
                    Decimal("2000"),
                    periodicity=Periodicity.QUARTERLY,
                    repayment_type=RepaymentType.DECREASE_PAYMENT,
                    end_date=date(2026, 1, 1),
                ),
                EarlyRepaymentRule(date(2025, 2, 1), Decimal("50"), periodicity=Periodicity.YEARLY),
            ),
        )
        schedule = generate_schedule(params).schedule

        assert schedule[-1].remaining_principal == 0
        assert sum(e.principal_amount for e in schedule) == params.principal
        previous = params.principal
        for entry in schedule:
            assert entry.principal_amount >= 0
            assert entry.interest_amount >= 0
            assert entry.remaining_principal >= 0
            assert entry.remaining_principal <= previous
            previous = entry.remaining_principal
        dates = [e.payment_date for e in schedule]
        assert dates == sorted(dates)

    def test_idempotent(self, annuity_params):
        params = replace(
            annuity_params,
            early_repayments=(
                EarlyRepaymentRule(date(2024, 2, 1), Decimal("300"), periodicity=Periodicity.MONTHLY),
            ),
        )
        engine = ScheduleEngine(params)
        assert engine.run() == engine.run()
        assert generate_schedule(params) == generate_schedule(params)


class TestValidation:
    @pytest.mark.parametrize(
        "changes",
        [
            {"principal": Decimal("0")},
            {"principal": Decimal("-5")},
            {"term_months": 0},
            {"annual_interest_rate_percent": Decimal("-1")},
            {"payment_day_number": 32},
            {"term_months": 1, "interest_only_first_period": True},
            {"early_repayments": (EarlyRepaymentRule(date(2024, 1, 10), Decimal("100")),)},
            {"early_repayments": (EarlyRepaymentRule(date(2024, 1, 15), Decimal("100")),)},
            {"early_repayments": (EarlyRepaymentRule(date(2024, 2, 1), Decimal("0")),)},
            {
                "early_repayments": (
                    EarlyRepaymentRule(
                        date(2024, 3, 1),
                        Decimal("100"),
                        periodicity=Periodicity.MONTHLY,
                        end_date=date(2024, 2, 1),
                    ),
                )
            },
        ],
    )
    def test_rejected_before_computation(self, annuity_params, changes):
        with pytest.raises(LoanValidationError):
            generate_schedule(replace(annuity_params, **changes))

    def test_validation_error_is_a_value_error(self, annuity_params):
        with pytest.raises(ValueError):
            ScheduleEngine(replace(annuity_params, term_months=-3))

    def test_plain_numbers_and_names_accepted(self):
        params = LoanParameters(
            principal=12000,
            annual_interest_rate_percent=0,
            term_months=12,
            issue_date=date(2024, 1, 15),
            loan_type="amortization",
            day_count_basis="ACTUAL_360",
        )
        assert params.loan_type is LoanType.DIFFERENTIATED
        assert params.principal == Decimal("12000")
        assert len(generate_schedule(params).schedule) == 12


class TestSummary:
    def test_totals(self, scenario_b_params):
        result = generate_schedule(scenario_b_params)
        summary = summarize(scenario_b_params, result)
        assert summary["total_interest"] == Decimal("2000.00")
        assert summary["total_paid"] == Decimal("102000.00")
        assert summary["payments_made"] == 3
        assert summary["max_payment"] == Decimal("34333.33")
        assert summary["first_payment_date"] == date(2024, 2, 15)
        assert summary["last_payment_date"] == date(2024, 4, 15)
        assert summary["total_early_repayment"] == Decimal("0")
