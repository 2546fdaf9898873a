from __future__ import annotations
from decimal import Decimal
from typing import Callable, Tuple

from leasemodel.finance.money import ZERO

# policy(projected_cash, opening_debt, min_cash) -> (drawn, repaid)
# projected_cash is the year's closing cash before any financing.
DebtPolicy = Callable[[Decimal, Decimal, Decimal], Tuple[Decimal, Decimal]]


def minimum_cash_draw(projected_cash: Decimal, opening_debt: Decimal, min_cash: Decimal) -> Tuple[Decimal, Decimal]:
    """Draw exactly the shortfall below the minimum cash balance; never repay."""
    shortfall = min_cash - projected_cash
    if shortfall > ZERO:
        return shortfall, ZERO
    return ZERO, ZERO


def surplus_sweep(threshold: Decimal) -> DebtPolicy:
    """Repayment hook: like minimum_cash_draw, but cash above `threshold`
    repays outstanding debt. Proposal-specific; not used unless passed in.
    """
    if threshold < ZERO:
        raise ValueError("sweep threshold must be >= 0")

    def policy(projected_cash: Decimal, opening_debt: Decimal, min_cash: Decimal) -> Tuple[Decimal, Decimal]:
        drawn, _ = minimum_cash_draw(projected_cash, opening_debt, min_cash)
        if drawn > ZERO:
            return drawn, ZERO
        floor = max(threshold, min_cash)
        surplus = projected_cash - floor
        if surplus <= ZERO or opening_debt <= ZERO:
            return ZERO, ZERO
        return ZERO, min(surplus, opening_debt)

    return policy
