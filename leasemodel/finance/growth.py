from __future__ import annotations
from decimal import Decimal

from leasemodel.finance.money import ONE


def growth_steps(year: int, base_year: int, frequency: int) -> int:
    """Number of completed growth intervals at `year`; 0 before `base_year`."""
    if frequency < 1:
        raise ValueError("growth frequency must be >= 1 year")
    return max(0, (year - base_year) // frequency)


def step_growth_factor(rate: Decimal, frequency: int, year: int, base_year: int) -> Decimal:
    """(1 + rate) ** floor((year - base_year) / frequency).

    Growth is applied only at frequency boundaries; values in between repeat
    the prior step. The exponent is always a whole number of intervals.
    """
    return (ONE + rate) ** growth_steps(year, base_year, frequency)
