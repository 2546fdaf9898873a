"""Sensitivity and tornado analysis over the full projection pipeline.

- variables.py: closed sets of perturbable variables and reportable metrics
- request.py: request parsing and offset generation
- analyzer.py: single- and multi-variable runs
- scenario.py: several adjustments applied together, with per-metric changes
- batch.py: background batches with cancellation between runs
"""
