from __future__ import annotations
import logging
from decimal import Decimal
from typing import List, Optional, Sequence

from leasemodel.finance.money import ONE, ZERO

logger = logging.getLogger(__name__)


def _base(rate: Decimal) -> Decimal:
    base = ONE + rate
    if base == ZERO:
        raise ZeroDivisionError("discount rate of -100% has no present value")
    return base


def discount_factors(rate: Decimal, periods: int) -> List[Decimal]:
    """Return [1/(1+r)^0, ..., 1/(1+r)^(periods-1)]."""
    base = _base(rate)
    return [ONE / (base ** t) for t in range(periods)]


def npv(cashflows: Sequence[Decimal], rate: Decimal) -> Decimal:
    """Net present value, index 0 undiscounted: sum(cf_t / (1+rate)^t).

    This is the only NPV implementation in the engine; every other caller
    (metrics, sensitivity, present_value) goes through it.
    """
    base = _base(rate)
    total = ZERO
    for t, cf in enumerate(cashflows):
        total += cf / (base ** t)
    return total


def present_value(cashflows: Sequence[Decimal], rate: Decimal) -> Decimal:
    """Present value with the first flow discounted one full period."""
    return npv([ZERO, *cashflows], rate)


def _npv_derivative(cashflows: Sequence[Decimal], rate: Decimal) -> Decimal:
    base = _base(rate)
    total = ZERO
    for t, cf in enumerate(cashflows):
        if t == 0:
            continue
        total -= t * cf / (base ** (t + 1))
    return total


def changes_sign(cashflows: Sequence[Decimal]) -> bool:
    signs = {cf > 0 for cf in cashflows if cf != 0}
    return len(signs) == 2


def irr(
    cashflows: Sequence[Decimal],
    guess: Decimal = Decimal("0.1"),
    max_iterations: int = 100,
    tolerance: Decimal = Decimal("0.0000001"),
) -> Optional[Decimal]:
    """Internal rate of return by Newton-Raphson, or None when unavailable.

    None is returned when the flows never change sign, the derivative
    vanishes, an iterate leaves the domain (rate <= -100%), or the
    iteration cap is reached.
    """
    if not changes_sign(cashflows):
        return None
    rate = guess
    for _ in range(max_iterations):
        value = npv(cashflows, rate)
        slope = _npv_derivative(cashflows, rate)
        if slope == ZERO:
            logger.debug("irr: derivative vanished at rate %s", rate)
            return None
        new_rate = rate - value / slope
        if new_rate <= -ONE:
            logger.debug("irr: iterate left the domain (%s)", new_rate)
            return None
        if abs(new_rate - rate) < tolerance:
            return new_rate
        rate = new_rate
    logger.debug("irr: no convergence after %d iterations", max_iterations)
    return None


def annuity_factor(rate: Decimal, periods: int) -> Decimal:
    """Converts a present value into an equivalent level annual amount."""
    if periods < 1:
        raise ValueError("annuity needs at least one period")
    if rate == ZERO:
        return ONE / periods
    return rate / (ONE - ONE / (_base(rate) ** periods))
