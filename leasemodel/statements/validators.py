from __future__ import annotations
import logging
from typing import Sequence

from leasemodel.errors import AccountingIdentityError
from leasemodel.statements.periods import FinancialPeriod

logger = logging.getLogger(__name__)


def check_period(p: FinancialPeriod) -> None:
    """Raise AccountingIdentityError unless the closed period is internally consistent.

    - Assets == liabilities + equity (cash + net PP&E == debt + equity)
    - Ending cash == beginning cash + net change == balance sheet cash
    - Net change == operating + investing + financing
    - Net income == EBT - zakat
    """
    bs, cf, pl = p.balance_sheet, p.cash_flow, p.profit_loss
    checks = (
        ("balance sheet identity", bs.total_assets - bs.liabilities_and_equity),
        ("cash reconciliation", cf.beginning_cash + cf.net_change - cf.ending_cash),
        ("cash on balance sheet", cf.ending_cash - bs.cash),
        ("cash flow sum", cf.operating + cf.investing + cf.financing - cf.net_change),
        ("net income", pl.ebt - pl.zakat_expense - pl.net_income),
    )
    for name, diff in checks:
        if diff != 0:
            logger.error("year %s: %s off by %s", p.year, name, diff)
            raise AccountingIdentityError(p.year, name, diff)


def validate_accounting_identities(periods: Sequence[FinancialPeriod]) -> bool:
    """Check every period's identities and the opening/closing chain.

    Returns True when every period balances and, for consecutive periods,
    closing cash/debt/equity of year N equal the opening values of year N+1
    and years run without gaps.
    """
    ok = True
    prev = None
    for p in periods:
        try:
            check_period(p)
        except AccountingIdentityError:
            ok = False
        if prev is not None:
            if p.year != prev.year + 1:
                ok = False
            if p.opening_cash != prev.balance_sheet.cash:
                ok = False
            if p.opening_debt != prev.balance_sheet.debt:
                ok = False
            if p.opening_equity != prev.balance_sheet.equity:
                ok = False
        prev = p
    return ok
