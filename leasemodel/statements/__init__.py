"""Three linked financial statements rolled forward year by year.

- periods.py: FinancialPeriod and its P&L / balance sheet / cash flow blocks
- debt.py: debt draw and repayment policies
- rollforward.py: the sequential roll-forward engine
- validators.py: accounting identity and continuity checks
"""
