"""Core calculation engine for the loan scheduler.

This module builds repayment schedules for annuity (level payment) and
differentiated (level principal) loans. Interest accrues day by day under the
chosen day-count basis between payment dates, which can be pinned to a day of
the month and moved off weekends. An optional first period collects interest
only. Early repayments, one-off or recurring, are applied on their own dates
inside the payment windows and re-shape the rest of the schedule.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal, getcontext
from typing import Dict, List

from .data_models import (
    EarlyRepaymentRule,
    EngineState,
    LoanParameters,
    LoanType,
    RepaymentType,
    ScheduleEntry,
    ScheduleResult,
)
from .dates import next_payment_date
from .daycount import DayCountCalculator
from .early_repayments import EarlyRepaymentRegistry
from .rounding import RoundingPolicy
from .validation import validate_parameters

getcontext().prec = 28  # increase precision for financial calculations

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def _calculate_annuity_payment(principal: Decimal, rate_per_month: Decimal, term: int) -> Decimal:
    """Return the annuity (equal installment) monthly payment for a loan.

    The formula is:

        payment = P * (i * (1 + i)^n) / ((1 + i)^n - 1)

    where ``P`` is the principal, ``i`` is the monthly interest rate and
    ``n`` is the number of payments. When the interest rate is zero, the
    payment simplifies to ``P / n``.
    """
    if term <= 0:
        raise ValueError("Term must be positive")
    if rate_per_month == 0:
        return principal / Decimal(term)
    factor = (1 + rate_per_month) ** term
    return principal * (rate_per_month * factor) / (factor - 1)


class ScheduleEngine:
    """Compute the repayment schedule for one set of loan parameters.

    The parameters are validated on construction. Each call to :meth:`run`
    starts from fresh state, so an engine can be run repeatedly and always
    yields the same schedule.
    """

    def __init__(self, params: LoanParameters) -> None:
        validate_parameters(params)
        self.params = params
        self.rounding = RoundingPolicy(params.rounding_decimals)
        self.day_count = DayCountCalculator(params.day_count_basis, self.rounding)
        self.payment_day = params.effective_payment_day
        self._zero = self.rounding.round(ZERO)

    def run(self) -> ScheduleResult:
        params = self.params
        registry = EarlyRepaymentRegistry(params.early_repayments)
        state = self._initial_state()
        start_payment = self._start_monthly_payment(state)

        schedule: List[ScheduleEntry] = []
        remaining_term = params.term_months
        interest_only_pending = params.interest_only_first_period

        while remaining_term > 0:
            self._apply_early_repayments(state, registry, schedule)
            if state.remaining_principal <= 0:
                # Paid off by an early repayment.
                break

            interest = self._period_interest(state)

            if interest_only_pending:
                schedule.append(
                    ScheduleEntry(
                        payment_date=state.next_date,
                        payment_amount=interest,
                        interest_amount=interest,
                        principal_amount=self._zero,
                        remaining_principal=state.remaining_principal,
                    )
                )
                interest_only_pending = False
            elif remaining_term == 1 or self._is_last_payment(state):
                schedule.append(self._final_entry(state, interest))
                break
            else:
                schedule.append(self._regular_entry(state, interest))
                state.periods_to_amortize -= 1

            self._advance(state, registry)
            remaining_term -= 1

        logger.info(
            "Computed %s schedule: %d entries, last payment %s",
            params.loan_type.value.lower(),
            len(schedule),
            schedule[-1].payment_date.isoformat() if schedule else "n/a",
        )
        return ScheduleResult(schedule=schedule, start_monthly_payment=start_payment)

    # ------------------------------------------------------------------
    # Setup

    def _initial_state(self) -> EngineState:
        params = self.params
        principal = self.rounding.round(params.principal)
        monthly_rate = params.annual_interest_rate_percent / Decimal(1200)
        periods = params.term_months - (1 if params.interest_only_first_period else 0)
        nominal, actual = next_payment_date(
            params.issue_date, self.payment_day, params.move_holiday_to_next_day
        )
        return EngineState(
            previous_date=params.issue_date,
            current_date=params.issue_date,
            next_date=actual,
            nominal_date=nominal,
            remaining_principal=principal,
            monthly_interest_rate=monthly_rate,
            periods_to_amortize=periods,
            amortization_principal=self.rounding.round(principal / Decimal(periods)),
            annuity_payment=self.rounding.round(
                _calculate_annuity_payment(principal, monthly_rate, periods)
            ),
        )

    def _start_monthly_payment(self, state: EngineState) -> Decimal:
        if self.params.loan_type is LoanType.ANNUITY:
            return state.annuity_payment
        return state.amortization_principal

    # ------------------------------------------------------------------
    # Regular periods

    def _period_interest(self, state: EngineState) -> Decimal:
        """Interest due on the upcoming payment date.

        Interest an early repayment accrued but did not cover is collected
        here once, in place of a fresh accrual for the window.
        """
        if state.interest_carry != 0:
            interest = self.rounding.round(state.interest_carry)
            state.interest_carry = ZERO
            return interest
        return self.day_count.interest(
            state.remaining_principal,
            self.params.annual_interest_rate_percent,
            state.current_date,
            state.next_date,
        )

    def _is_last_payment(self, state: EngineState) -> bool:
        if self.params.loan_type is LoanType.ANNUITY:
            return state.remaining_principal <= state.annuity_payment
        return state.remaining_principal <= state.amortization_principal

    def _final_entry(self, state: EngineState, interest: Decimal) -> ScheduleEntry:
        principal = state.remaining_principal
        state.remaining_principal = self._zero
        return ScheduleEntry(
            payment_date=state.next_date,
            payment_amount=self.rounding.round(principal + interest),
            interest_amount=interest,
            principal_amount=principal,
            remaining_principal=state.remaining_principal,
        )

    def _regular_entry(self, state: EngineState, interest: Decimal) -> ScheduleEntry:
        if self.params.loan_type is LoanType.ANNUITY:
            # Interest above the standing payment is paid in full, with no principal.
            principal = max(self.rounding.round(state.annuity_payment - interest), self._zero)
        else:
            principal = state.amortization_principal
        state.remaining_principal = self.rounding.round(state.remaining_principal - principal)
        return ScheduleEntry(
            payment_date=state.next_date,
            payment_amount=self.rounding.round(principal + interest),
            interest_amount=interest,
            principal_amount=principal,
            remaining_principal=state.remaining_principal,
        )

    def _advance(self, state: EngineState, registry: EarlyRepaymentRegistry) -> None:
        state.previous_date = state.current_date
        state.current_date = state.next_date
        state.nominal_date, state.next_date = next_payment_date(
            state.nominal_date, self.payment_day, self.params.move_holiday_to_next_day
        )
        registry.compact(state.current_date)

    # ------------------------------------------------------------------
    # Early repayments

    def _apply_early_repayments(
        self,
        state: EngineState,
        registry: EarlyRepaymentRegistry,
        schedule: List[ScheduleEntry],
    ) -> None:
        for pending in registry.due_within(state.current_date, state.next_date):
            schedule.append(self._apply_early_repayment(state, pending.rule, pending.due_date))
            registry.mark_applied(pending)
            if state.remaining_principal <= 0:
                break

    def _apply_early_repayment(
        self, state: EngineState, rule: EarlyRepaymentRule, due_date: date
    ) -> ScheduleEntry:
        accrued = self.day_count.interest(
            state.remaining_principal,
            self.params.annual_interest_rate_percent,
            state.current_date,
            due_date,
        )
        # A carry left by an earlier repayment in this window is settled first.
        accrued = self.rounding.round(accrued + state.interest_carry)
        state.interest_carry = ZERO
        amount = self.rounding.round(rule.amount)

        if amount <= accrued:
            # The payment does not even cover the interest: the rest is carried.
            state.interest_carry = self.rounding.round(accrued - amount)
            entry = ScheduleEntry(
                payment_date=due_date,
                payment_amount=amount,
                interest_amount=amount,
                principal_amount=self._zero,
                remaining_principal=state.remaining_principal,
                is_early_repayment=True,
            )
        else:
            principal = self.rounding.round(amount - accrued)
            payment = amount
            if principal > state.remaining_principal:
                overflow = principal - state.remaining_principal
                principal -= overflow
                payment = self.rounding.round(payment - overflow)
            state.remaining_principal = self.rounding.round(state.remaining_principal - principal)
            entry = ScheduleEntry(
                payment_date=due_date,
                payment_amount=payment,
                interest_amount=accrued,
                principal_amount=principal,
                remaining_principal=state.remaining_principal,
                is_early_repayment=True,
            )

        logger.debug(
            "Early repayment on %s: paid %s (interest %s, principal %s), balance %s",
            due_date.isoformat(),
            entry.payment_amount,
            entry.interest_amount,
            entry.principal_amount,
            entry.remaining_principal,
        )
        self._recompute_after_early_repayment(state, rule)
        state.previous_date = state.current_date
        state.current_date = due_date
        return entry

    def _recompute_after_early_repayment(self, state: EngineState, rule: EarlyRepaymentRule) -> None:
        """Re-derive the standing payment or principal from the new balance.

        Annuity loans repaid with ``DECREASE_TERM`` keep their payment, so the
        balance simply runs out sooner.
        """
        if state.remaining_principal <= 0 or state.periods_to_amortize <= 0:
            return
        if self.params.loan_type is LoanType.ANNUITY:
            if rule.repayment_type is RepaymentType.DECREASE_PAYMENT:
                state.annuity_payment = self.rounding.round(
                    _calculate_annuity_payment(
                        state.remaining_principal,
                        state.monthly_interest_rate,
                        state.periods_to_amortize,
                    )
                )
                logger.debug("Annuity payment recomputed to %s", state.annuity_payment)
        else:
            state.amortization_principal = self.rounding.round(
                state.remaining_principal / Decimal(state.periods_to_amortize)
            )
            logger.debug("Constant principal recomputed to %s", state.amortization_principal)


def generate_schedule(params: LoanParameters) -> ScheduleResult:
    """Validate ``params`` and compute the full repayment schedule."""
    return ScheduleEngine(params).run()


def summarize(params: LoanParameters, result: ScheduleResult) -> Dict[str, object]:
    """Aggregate metrics for a computed schedule.

    Returns
    -------
    Dict[str, object]
        Principal, total interest, total paid early, total paid, the number of
        regular payments, the nominal starting payment, the first and last
        payment dates and the highest single payment.
    """
    schedule = result.schedule
    total_interest = sum((e.interest_amount for e in schedule), ZERO)
    total_paid = sum((e.payment_amount for e in schedule), ZERO)
    total_early = sum((e.payment_amount for e in schedule if e.is_early_repayment), ZERO)
    regular = [e for e in schedule if not e.is_early_repayment]
    return {
        "principal": params.principal,
        "total_interest": total_interest,
        "total_early_repayment": total_early,
        "total_paid": total_paid,
        "payments_made": len(regular),
        "term_months": params.term_months,
        "start_monthly_payment": result.start_monthly_payment,
        "first_payment_date": schedule[0].payment_date if schedule else None,
        "last_payment_date": schedule[-1].payment_date if schedule else None,
        "max_payment": max((e.payment_amount for e in regular), default=ZERO),
    }
