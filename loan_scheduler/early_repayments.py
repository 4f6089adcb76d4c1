"""Registry of pending early repayment rules.

The engine asks the registry, once per payment window, which rules fall due
inside it. At most one rule per periodicity is returned for a window and the
result is ordered by due date, so rules of different periodicities that
coincide are applied one after the other with each seeing the balance left
by the previous one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional

from .data_models import EarlyRepaymentRule, Periodicity
from .utils import add_months

logger = logging.getLogger(__name__)


@dataclass
class PendingRepayment:
    """A registered rule together with its next due date."""

    rule: EarlyRepaymentRule
    order: int
    due_date: date
    occurrences: int = 0
    active: bool = True

    @property
    def expired(self) -> bool:
        return self.rule.end_date is not None and self.due_date > self.rule.end_date


class EarlyRepaymentRegistry:
    def __init__(self, rules: Iterable[EarlyRepaymentRule] = ()) -> None:
        self._entries: List[PendingRepayment] = [
            PendingRepayment(rule=rule, order=index, due_date=rule.start_date)
            for index, rule in enumerate(rules)
        ]

    def __len__(self) -> int:
        return len(self.pending)

    def __bool__(self) -> bool:
        return bool(self.pending)

    @property
    def pending(self) -> List[PendingRepayment]:
        return [entry for entry in self._entries if entry.active]

    def due_within(self, current: date, nxt: date) -> List[PendingRepayment]:
        """Return the rules to apply in the window ``(current, nxt]``.

        Only the earliest-due rule of each periodicity is a candidate; ties go
        to the rule registered first.
        """
        earliest: Dict[Periodicity, PendingRepayment] = {}
        for entry in self.pending:
            best: Optional[PendingRepayment] = earliest.get(entry.rule.periodicity)
            if best is None or (entry.due_date, entry.order) < (best.due_date, best.order):
                earliest[entry.rule.periodicity] = entry

        due = [
            entry
            for entry in earliest.values()
            if current < entry.due_date <= nxt
            and (entry.rule.end_date is None or current <= entry.rule.end_date)
        ]
        return sorted(due, key=lambda e: (e.due_date, e.order))

    def mark_applied(self, entry: PendingRepayment) -> None:
        """Advance ``entry`` to its next occurrence or retire it.

        Occurrences are counted from the start date so that a rule starting
        on the 31st keeps returning to the 31st after a shorter month.
        """
        entry.occurrences += 1
        step = entry.rule.periodicity.months
        if step == 0:
            entry.active = False
            return
        entry.due_date = add_months(entry.rule.start_date, step * entry.occurrences)
        if entry.expired:
            entry.active = False

    def compact(self, as_of: date) -> None:
        """Drop retired rules and skip occurrences already behind ``as_of``.

        An occurrence is left behind when another repayment of the same
        periodicity took its slot in the window it fell into. One-off rules
        are dropped; recurring rules move on to their first occurrence after
        ``as_of``.
        """
        kept: List[PendingRepayment] = []
        for entry in self._entries:
            if not entry.active:
                continue
            if entry.due_date <= as_of:
                logger.warning(
                    "Skipping %s early repayment of %s due %s: only one %s repayment "
                    "is applied per period",
                    entry.rule.periodicity.value.lower(),
                    entry.rule.amount,
                    entry.due_date.isoformat(),
                    entry.rule.periodicity.value.lower(),
                )
                while entry.active and entry.due_date <= as_of:
                    self.mark_applied(entry)
                if not entry.active:
                    continue
            kept.append(entry)
        self._entries = kept
