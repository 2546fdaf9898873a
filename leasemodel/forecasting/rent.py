from __future__ import annotations
from decimal import Decimal

from leasemodel.assumptions.model import (
    FixedRent,
    PartnerInvestmentRent,
    ResolvedInput,
    RevenueShareRent,
    TransitionAssumptions,
)
from leasemodel.finance.growth import step_growth_factor


def transition_rent(t: TransitionAssumptions, year: int) -> Decimal:
    """Base-year rent grown every year at the transition rent growth rate."""
    return t.base_rent * step_growth_factor(t.rent_growth_rate, 1, year, t.rent_base_year)


def contract_rent(r: ResolvedInput, year: int, total_revenue: Decimal) -> Decimal:
    """Rent for a contract year under the proposal's rent model.

    - Fixed: base rent, stepped growth from the contract start year
    - Revenue share: this year's total revenue times the share, no growth
    - Partner investment: (land + construction basis) x yield, stepped growth
      applied to the resulting rent; the basis itself never grows
    """
    p = r.rent
    if isinstance(p, FixedRent):
        return p.base_rent * step_growth_factor(p.growth_rate, p.frequency, year, r.contract_start_year)
    if isinstance(p, RevenueShareRent):
        return total_revenue * p.share
    if isinstance(p, PartnerInvestmentRent):
        return p.base_rent * step_growth_factor(p.growth_rate, p.frequency, year, r.contract_start_year)
    raise TypeError(f"unsupported rent parameters: {type(p).__name__}")


def rent_expense(r: ResolvedInput, year: int, total_revenue: Decimal) -> Decimal:
    if r.is_transition_year(year):
        return transition_rent(r.transition, year)
    return contract_rent(r, year, total_revenue)
