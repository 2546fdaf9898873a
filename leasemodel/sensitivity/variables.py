from __future__ import annotations
from dataclasses import replace
from decimal import Decimal
from enum import Enum
from typing import Optional

from leasemodel.assumptions.model import (
    FixedRent,
    PartnerInvestmentRent,
    ResolvedInput,
    RevenueShareRent,
)
from leasemodel.finance.money import round_half_up
from leasemodel.metrics.aggregate import Metrics


class SensitivityVariable(str, Enum):
    ENROLLMENT = "enrollment"  # capacity
    TUITION = "tuition"  # base tuition of every track
    TUITION_GROWTH = "tuition_growth"
    STAFF_SALARY = "staff_salary"
    SALARY_GROWTH = "salary_growth"
    RENT = "rent"  # base rent, revenue share or partner yield
    RENT_GROWTH = "rent_growth"
    OTHER_OPEX = "other_opex"
    DISCOUNT_RATE = "discount_rate"


class SensitivityMetric(str, Enum):
    TOTAL_RENT = "total_rent"
    NPV_RENT = "npv_rent"
    TOTAL_EBITDA = "total_ebitda"
    AVERAGE_EBITDA = "average_ebitda"
    NPV_EBITDA = "npv_ebitda"
    IRR = "irr"
    PAYBACK_YEAR = "payback_year"
    NAV = "nav"
    NET_TENANT_SURPLUS = "net_tenant_surplus"
    ANNUALIZED_NAV = "annualized_nav"
    TOTAL_NET_INCOME = "total_net_income"
    AVERAGE_ROE = "average_roe"
    PEAK_DEBT = "peak_debt"
    FINAL_DEBT = "final_debt"
    FINAL_CASH = "final_cash"


def metric_value(metrics: Metrics, metric: SensitivityMetric) -> Optional[Decimal]:
    """Metric as a Decimal, or None when the run has no value for it."""
    v = getattr(metrics, metric.value)
    if v is None:
        return None
    return Decimal(v)


def baseline_value(r: ResolvedInput, variable: SensitivityVariable) -> Optional[Decimal]:
    """Current value of `variable`, or None when the proposal has no such input."""
    v = SensitivityVariable(variable)
    if v is SensitivityVariable.ENROLLMENT:
        return Decimal(r.enrollment.capacity)
    if v is SensitivityVariable.TUITION:
        return r.curriculum.primary.base_tuition
    if v is SensitivityVariable.TUITION_GROWTH:
        return r.curriculum.primary.growth_rate
    if v is SensitivityVariable.STAFF_SALARY:
        return r.staffing.base_salary
    if v is SensitivityVariable.SALARY_GROWTH:
        return r.staffing.growth_rate
    if v is SensitivityVariable.RENT:
        if isinstance(r.rent, FixedRent):
            return r.rent.base_rent
        if isinstance(r.rent, RevenueShareRent):
            return r.rent.share
        return r.rent.yield_rate
    if v is SensitivityVariable.RENT_GROWTH:
        if isinstance(r.rent, (FixedRent, PartnerInvestmentRent)):
            return r.rent.growth_rate
        return None
    if v is SensitivityVariable.OTHER_OPEX:
        return r.other_opex_ratio
    return r.rates.discount_rate


def _scale_tracks(r: ResolvedInput, field_name: str, factor: Decimal) -> ResolvedInput:
    c = r.curriculum
    primary = replace(c.primary, **{field_name: getattr(c.primary, field_name) * factor})
    secondary = None
    if c.secondary is not None:
        secondary = replace(c.secondary, **{field_name: getattr(c.secondary, field_name) * factor})
    return replace(r, curriculum=replace(c, primary=primary, secondary=secondary))


def perturb(r: ResolvedInput, variable: SensitivityVariable, factor: Decimal) -> ResolvedInput:
    """Return a copy of `r` with `variable` multiplied by `factor`.

    Capacity stays a whole number of students (rounded half up). The input
    is never modified.
    """
    v = SensitivityVariable(variable)
    if v is SensitivityVariable.ENROLLMENT:
        capacity = round_half_up(r.enrollment.capacity * factor)
        return replace(r, enrollment=replace(r.enrollment, capacity=capacity))
    if v is SensitivityVariable.TUITION:
        return _scale_tracks(r, "base_tuition", factor)
    if v is SensitivityVariable.TUITION_GROWTH:
        return _scale_tracks(r, "growth_rate", factor)
    if v is SensitivityVariable.STAFF_SALARY:
        return replace(r, staffing=replace(r.staffing, base_salary=r.staffing.base_salary * factor))
    if v is SensitivityVariable.SALARY_GROWTH:
        return replace(r, staffing=replace(r.staffing, growth_rate=r.staffing.growth_rate * factor))
    if v is SensitivityVariable.RENT:
        if isinstance(r.rent, FixedRent):
            return replace(r, rent=replace(r.rent, base_rent=r.rent.base_rent * factor))
        if isinstance(r.rent, RevenueShareRent):
            return replace(r, rent=replace(r.rent, share=r.rent.share * factor))
        return replace(r, rent=replace(r.rent, yield_rate=r.rent.yield_rate * factor))
    if v is SensitivityVariable.RENT_GROWTH:
        if isinstance(r.rent, (FixedRent, PartnerInvestmentRent)):
            return replace(r, rent=replace(r.rent, growth_rate=r.rent.growth_rate * factor))
        raise ValueError(f"{v.value} does not apply to rent model {r.rent_model.value}")
    if v is SensitivityVariable.OTHER_OPEX:
        return replace(r, other_opex_ratio=r.other_opex_ratio * factor)
    return replace(r, rates=replace(r.rates, discount_rate=r.rates.discount_rate * factor))
