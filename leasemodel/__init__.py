"""Lease proposal projection engine.

Builds year-by-year profit & loss, balance sheet and cash flow statements for a
long-horizon lease proposal, reduces them to contract metrics and re-runs the
whole pipeline under perturbed inputs for sensitivity (tornado) analysis.
"""
