from __future__ import annotations
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Sequence

from leasemodel.config.env import EngineConfig
from leasemodel.finance.discount import annuity_factor, irr, npv
from leasemodel.finance.money import ZERO, dsum
from leasemodel.statements.periods import FinancialPeriod

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Metrics:
    contract_years: int
    total_rent: Decimal
    npv_rent: Decimal
    total_ebitda: Decimal
    average_ebitda: Decimal
    npv_ebitda: Decimal
    irr: Optional[Decimal]  # None: no solution
    payback_year: Optional[int]  # 0-based contract year; None: never pays back
    nav: Decimal
    net_tenant_surplus: Decimal
    annualized_nav: Decimal
    total_net_income: Decimal
    average_roe: Decimal  # total net income / total closing equity; 0 when equity sums <= 0
    peak_debt: Decimal
    final_debt: Decimal
    final_cash: Decimal


def payback_year(cashflows: Sequence[Decimal]) -> Optional[int]:
    """First index where the cumulative cash flow turns non-negative."""
    cumulative = ZERO
    for idx, cf in enumerate(cashflows):
        cumulative += cf
        if cumulative >= ZERO:
            return idx
    return None


def contract_window(periods: Sequence[FinancialPeriod]) -> List[FinancialPeriod]:
    return [p for p in periods if p.is_contract]


def average_roe(periods: Sequence[FinancialPeriod]) -> Decimal:
    equity = dsum(p.balance_sheet.equity for p in periods)
    if equity <= ZERO:
        return ZERO
    return dsum(p.profit_loss.net_income for p in periods) / equity


def aggregate(periods: Sequence[FinancialPeriod], discount_rate: Decimal, config: Optional[EngineConfig] = None) -> Metrics:
    """Reduce the contract window (transition years excluded) to Metrics.

    - NPVs discount the contract years with year one undiscounted
    - NAV = average EBITDA - average rent
    - annualized NAV = (NPV EBITDA - NPV rent) x annuity factor
    - IRR and payback use each year's net change in cash
    - average ROE = total net income / sum of closing equity
    """
    window = contract_window(periods)
    if not window:
        raise ValueError("no contract years to aggregate")
    n = len(window)
    rents = [p.profit_loss.rent_expense for p in window]
    ebitdas = [p.profit_loss.ebitda for p in window]
    flows = [p.cash_flow.net_change for p in window]

    total_rent = dsum(rents)
    total_ebitda = dsum(ebitdas)
    npv_rent = npv(rents, discount_rate)
    npv_ebitda = npv(ebitdas, discount_rate)
    surplus = npv_ebitda - npv_rent

    total_net_income = dsum(p.profit_loss.net_income for p in window)

    kwargs = {}
    if config is not None:
        kwargs = {"max_iterations": config.irr_max_iterations, "tolerance": config.irr_tolerance}
    rate = irr(flows, **kwargs)
    if rate is None:
        logger.warning("IRR unavailable for this run (no sign change or no convergence)")

    return Metrics(
        contract_years=n,
        total_rent=total_rent,
        npv_rent=npv_rent,
        total_ebitda=total_ebitda,
        average_ebitda=total_ebitda / n,
        npv_ebitda=npv_ebitda,
        irr=rate,
        payback_year=payback_year(flows),
        nav=total_ebitda / n - total_rent / n,
        net_tenant_surplus=surplus,
        annualized_nav=surplus * annuity_factor(discount_rate, n),
        total_net_income=total_net_income,
        average_roe=average_roe(window),
        peak_debt=max(p.balance_sheet.debt for p in window),
        final_debt=window[-1].balance_sheet.debt,
        final_cash=window[-1].balance_sheet.cash,
    )
