from __future__ import annotations
import logging
from typing import List, Optional

from leasemodel.assumptions.model import ResolvedInput
from leasemodel.config.env import EngineConfig
from leasemodel.errors import AccountingIdentityError
from leasemodel.finance.money import ZERO, money
from leasemodel.forecasting.capex import capital_schedule, opening_net_ppe
from leasemodel.forecasting.revenue import operating_year
from leasemodel.statements.debt import DebtPolicy, minimum_cash_draw
from leasemodel.statements.periods import (
    BalanceSheet,
    CashFlow,
    FinancialPeriod,
    PeriodKind,
    ProfitAndLoss,
)
from leasemodel.statements.validators import check_period

logger = logging.getLogger(__name__)


def roll_forward(
    r: ResolvedInput,
    config: Optional[EngineConfig] = None,
    debt_policy: DebtPolicy = minimum_cash_draw,
) -> List[FinancialPeriod]:
    """Project the three statements for every simulated year, in order.

    Each year closes before the next begins. Interest accrues on opening
    balances (cash and debt), which breaks the cash/debt/interest circularity
    without iterating. Zakat is charged on max(0, prior closing equity - this
    year's non-current assets). Debt is drawn by `debt_policy` when cash
    before financing would fall below the minimum cash balance.
    """
    places = config.money_places if config is not None else 2
    rates = r.rates
    schedule = capital_schedule(r, places)

    cash = money(r.opening.cash, places)
    debt = money(r.opening.debt, places)
    net_ppe = opening_net_ppe(r, places)
    equity = cash + net_ppe - debt
    min_cash = rates.min_cash_balance

    periods: List[FinancialPeriod] = []
    for year in r.simulated_years():
        op = operating_year(r, year, places)
        cx = schedule[year]

        ebitda = op.ebitda
        ebit = ebitda - cx.depreciation
        interest_income = money(max(cash, ZERO) * rates.deposit_interest_rate, places)
        interest_expense = money(debt * rates.debt_interest_rate, places)
        ebt = ebit + interest_income - interest_expense

        closing_ppe = net_ppe + cx.purchases - cx.depreciation
        if closing_ppe != cx.net_ppe:
            raise AccountingIdentityError(year, "net PP&E roll-forward", closing_ppe - cx.net_ppe)
        zakat_base = equity - closing_ppe
        zakat = money(max(ZERO, zakat_base) * rates.zakat_rate, places)
        net_income = ebt - zakat

        operating = net_income + cx.depreciation
        investing = -cx.purchases
        projected = cash + operating + investing
        drawn, repaid = debt_policy(projected, debt, min_cash)
        drawn, repaid = money(drawn, places), money(repaid, places)
        financing = drawn - repaid
        net_change = operating + investing + financing
        ending_cash = cash + net_change
        closing_debt = debt + financing
        closing_equity = equity + net_income
        if drawn:
            logger.debug("%s: drew %s to hold minimum cash %s", year, drawn, min_cash)

        period = FinancialPeriod(
            year=year,
            kind=PeriodKind.TRANSITION if r.is_transition_year(year) else PeriodKind.CONTRACT,
            students=op.students,
            staff_headcount=op.staff_headcount,
            opening_debt=debt,
            opening_equity=equity,
            profit_loss=ProfitAndLoss(
                primary_tuition_revenue=op.primary_tuition_revenue,
                secondary_tuition_revenue=op.secondary_tuition_revenue,
                other_revenue=op.other_revenue,
                total_revenue=op.total_revenue,
                rent_expense=op.rent_expense,
                staff_cost=op.staff_cost,
                other_opex=op.other_opex,
                ebitda=ebitda,
                depreciation=cx.depreciation,
                ebit=ebit,
                interest_income=interest_income,
                interest_expense=interest_expense,
                ebt=ebt,
                zakat_base=zakat_base,
                zakat_expense=zakat,
                net_income=net_income,
            ),
            balance_sheet=BalanceSheet(
                net_ppe=closing_ppe,
                total_non_current_assets=closing_ppe,
                cash=ending_cash,
                total_assets=ending_cash + closing_ppe,
                debt=closing_debt,
                equity=closing_equity,
            ),
            cash_flow=CashFlow(
                beginning_cash=cash,
                operating=operating,
                capex=cx.purchases,
                investing=investing,
                debt_drawn=drawn,
                debt_repaid=repaid,
                financing=financing,
                net_change=net_change,
                ending_cash=ending_cash,
            ),
        )
        check_period(period)
        logger.debug("%s: net income %s, cash %s, debt %s", year, net_income, ending_cash, closing_debt)
        periods.append(period)

        cash, debt, equity, net_ppe = ending_cash, closing_debt, closing_equity, closing_ppe
    return periods
