from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Tuple

from leasemodel.assumptions.model import CapitalAsset, ResolvedInput
from leasemodel.finance.money import ZERO, dsum, money


@dataclass(frozen=True)
class CapexYear:
    year: int
    purchases: Decimal
    depreciation: Decimal
    net_ppe: Decimal  # closing net book value of every asset held


def reinvestment_assets(r: ResolvedInput) -> List[CapitalAsset]:
    """Synthesize the auto-reinvestment purchases of every category.

    A category with frequency f, amount A and start year s buys A in every
    year s <= y <= contract end with (y - s) % f == 0, depreciated over the
    category's useful life. Purchases dated before the first simulated year
    are part of the opening PP&E, exactly like manual assets bought then.
    """
    out: List[CapitalAsset] = []
    last = r.contract_end_year
    for c in r.categories:
        if not c.reinvests:
            continue
        for year in range(c.reinvest_start_year, last + 1):
            if (year - c.reinvest_start_year) % c.reinvest_frequency == 0:
                out.append(CapitalAsset(
                    purchase_year=year,
                    amount=c.reinvest_amount,
                    useful_life=c.useful_life,
                    category=c.name,
                ))
    return out


def full_roster(r: ResolvedInput) -> Tuple[CapitalAsset, ...]:
    roster = list(r.assets) + reinvestment_assets(r)
    roster.sort(key=lambda a: (a.purchase_year, a.category or ""))
    return tuple(roster)


def annual_depreciation(asset: CapitalAsset, places: int = 2) -> Decimal:
    return money(asset.amount / asset.useful_life, places)


def depreciation(asset: CapitalAsset, year: int, places: int = 2) -> Decimal:
    """Straight-line charge for `year`.

    The asset depreciates in its purchase year and the following
    useful_life - 1 years. The last year charges whatever book value is left,
    so rounding never leaves a residue or takes the asset below zero.
    """
    age = year - asset.purchase_year
    if age < 0 or age >= asset.useful_life:
        return ZERO
    cost = money(asset.amount, places)
    annual = annual_depreciation(asset, places)
    charged = annual * age
    if age == asset.useful_life - 1:
        return max(ZERO, cost - charged)
    return min(annual, max(ZERO, cost - charged))


def net_book_value(asset: CapitalAsset, year: int, places: int = 2) -> Decimal:
    """Book value at the close of `year` (zero before purchase)."""
    if year < asset.purchase_year:
        return ZERO
    cost = money(asset.amount, places)
    elapsed = min(year - asset.purchase_year + 1, asset.useful_life)
    if elapsed >= asset.useful_life:
        return ZERO
    return max(ZERO, cost - annual_depreciation(asset, places) * elapsed)


def opening_net_ppe(r: ResolvedInput, places: int = 2) -> Decimal:
    """Net book value, at the start of the first simulated year, of assets bought before it."""
    prior = r.first_year - 1
    return dsum(net_book_value(a, prior, places) for a in full_roster(r) if a.purchase_year <= prior)


def capital_schedule(r: ResolvedInput, places: int = 2) -> Dict[int, CapexYear]:
    roster = full_roster(r)
    out: Dict[int, CapexYear] = {}
    for year in r.simulated_years():
        out[year] = CapexYear(
            year=year,
            purchases=dsum(money(a.amount, places) for a in roster if a.purchase_year == year),
            depreciation=dsum(depreciation(a, year, places) for a in roster),
            net_ppe=dsum(net_book_value(a, year, places) for a in roster),
        )
    return out
