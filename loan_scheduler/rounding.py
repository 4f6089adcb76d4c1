"""Monetary rounding used throughout the schedule computation."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

MIN_DECIMALS = 0
MAX_DECIMALS = 10


class RoundingPolicy:
    """Round money half away from zero at a fixed number of decimals.

    The number of decimals is clamped to ``0..10``. Every intermediate amount
    (interest, principal split, balance) goes through :meth:`round` at the
    point it is computed, so later periods accrue on already rounded
    balances.
    """

    def __init__(self, decimals: int = 2) -> None:
        self.decimals = max(MIN_DECIMALS, min(MAX_DECIMALS, int(decimals)))
        self._quantum = Decimal(1).scaleb(-self.decimals)

    @property
    def unit(self) -> Decimal:
        """Smallest representable amount, e.g. ``0.01`` for two decimals."""
        return self._quantum

    def round(self, value: Union[Decimal, int, float, str]) -> Decimal:
        if not isinstance(value, Decimal):
            value = Decimal(str(value))
        return value.quantize(self._quantum, rounding=ROUND_HALF_UP)

    def __repr__(self) -> str:
        return f"RoundingPolicy(decimals={self.decimals})"
