from __future__ import annotations
import dataclasses
import json
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Sequence

from leasemodel.statements.periods import FinancialPeriod


def to_plain(obj: Any) -> Any:
    """Convert engine objects into JSON-ready structures without loss.

    Decimals become strings so no precision is dropped. Dataclass fields
    hidden from repr (threading handles on batches) are left out.
    """
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, Enum):
        return obj.value
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_plain(getattr(obj, f.name)) for f in dataclasses.fields(obj) if f.repr}
    if isinstance(obj, dict):
        return {str(to_plain(k)): to_plain(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_plain(v) for v in obj]
    return obj


def dumps(obj: Any, **kwargs) -> str:
    return json.dumps(to_plain(obj), **kwargs)


def period_rows(periods: Sequence[FinancialPeriod]) -> List[Dict[str, Any]]:
    """One flat dict per year, for tables and charts."""
    rows: List[Dict[str, Any]] = []
    for p in periods:
        pl, bs, cf = p.profit_loss, p.balance_sheet, p.cash_flow
        rows.append({
            "year": p.year,
            "kind": p.kind.value,
            "students": p.students,
            "staff_headcount": p.staff_headcount,
            "total_revenue": pl.total_revenue,
            "rent_expense": pl.rent_expense,
            "staff_cost": pl.staff_cost,
            "other_opex": pl.other_opex,
            "ebitda": pl.ebitda,
            "depreciation": pl.depreciation,
            "ebit": pl.ebit,
            "interest_income": pl.interest_income,
            "interest_expense": pl.interest_expense,
            "ebt": pl.ebt,
            "zakat_expense": pl.zakat_expense,
            "net_income": pl.net_income,
            "net_ppe": bs.net_ppe,
            "cash": bs.cash,
            "total_assets": bs.total_assets,
            "debt": bs.debt,
            "equity": bs.equity,
            "operating_cash_flow": cf.operating,
            "investing_cash_flow": cf.investing,
            "financing_cash_flow": cf.financing,
            "free_cash_flow": p.free_cash_flow,
            "net_change_in_cash": cf.net_change,
        })
    return rows
