"""Per-year operating model.

- revenue.py: enrollment, tuition by track, staff cost, other opex
- rent.py: transition rent and the three contract rent models
- capex.py: capital roster, auto-reinvestment, straight-line depreciation
"""
