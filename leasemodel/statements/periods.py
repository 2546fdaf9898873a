from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class PeriodKind(str, Enum):
    TRANSITION = "TRANSITION"
    CONTRACT = "CONTRACT"


@dataclass(frozen=True)
class ProfitAndLoss:
    primary_tuition_revenue: Decimal
    secondary_tuition_revenue: Decimal
    other_revenue: Decimal
    total_revenue: Decimal
    rent_expense: Decimal
    staff_cost: Decimal
    other_opex: Decimal
    ebitda: Decimal
    depreciation: Decimal
    ebit: Decimal
    interest_income: Decimal
    interest_expense: Decimal
    ebt: Decimal
    zakat_base: Decimal
    zakat_expense: Decimal
    net_income: Decimal


@dataclass(frozen=True)
class BalanceSheet:
    net_ppe: Decimal
    total_non_current_assets: Decimal
    cash: Decimal
    total_assets: Decimal
    debt: Decimal
    equity: Decimal

    @property
    def liabilities_and_equity(self) -> Decimal:
        return self.debt + self.equity


@dataclass(frozen=True)
class CashFlow:
    beginning_cash: Decimal
    operating: Decimal
    capex: Decimal
    investing: Decimal
    debt_drawn: Decimal
    debt_repaid: Decimal
    financing: Decimal
    net_change: Decimal
    ending_cash: Decimal


@dataclass(frozen=True)
class FinancialPeriod:
    year: int
    kind: PeriodKind
    students: int
    staff_headcount: int
    opening_debt: Decimal
    opening_equity: Decimal
    profit_loss: ProfitAndLoss
    balance_sheet: BalanceSheet
    cash_flow: CashFlow

    @property
    def is_contract(self) -> bool:
        return self.kind is PeriodKind.CONTRACT

    @property
    def opening_cash(self) -> Decimal:
        return self.cash_flow.beginning_cash

    @property
    def free_cash_flow(self) -> Decimal:
        return self.cash_flow.operating + self.cash_flow.investing
