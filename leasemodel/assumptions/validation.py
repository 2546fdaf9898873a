from __future__ import annotations
from decimal import Decimal
from typing import List

from leasemodel.assumptions.model import (
    CONTRACT_HORIZONS,
    RAMP_YEARS,
    TRANSITION_YEARS,
    FixedRent,
    PartnerInvestmentRent,
    RENT_PARAMS_BY_MODEL,
    ResolvedInput,
    RevenueShareRent,
    TuitionTrack,
)
from leasemodel.errors import ValidationError
from leasemodel.finance.money import ONE, ZERO


def _fraction(errors: List[str], name: str, v: Decimal, allow_zero: bool = True) -> None:
    lo_ok = v >= ZERO if allow_zero else v > ZERO
    if not (lo_ok and v <= ONE):
        bound = "[0, 1]" if allow_zero else "(0, 1]"
        errors.append(f"{name} must be in {bound}, got {v}")


def _non_negative(errors: List[str], name: str, v: Decimal) -> None:
    if v < ZERO:
        errors.append(f"{name} must be >= 0, got {v}")


def _growth(errors: List[str], name: str, rate: Decimal, frequency: int) -> None:
    _non_negative(errors, f"{name} growth rate", rate)
    if frequency < 1:
        errors.append(f"{name} growth frequency must be >= 1 year, got {frequency}")


def _track(errors: List[str], name: str, t: TuitionTrack) -> None:
    if t.base_tuition <= ZERO:
        errors.append(f"{name} base tuition must be positive")
    _growth(errors, f"{name} tuition", t.growth_rate, t.growth_frequency)


def collect_errors(r: ResolvedInput) -> List[str]:
    errors: List[str] = []
    if r.contract_years not in CONTRACT_HORIZONS:
        errors.append(f"contract horizon must be one of {CONTRACT_HORIZONS}, got {r.contract_years}")

    # transition snapshot
    years = tuple(ty.year for ty in r.transition.years)
    if years != TRANSITION_YEARS:
        errors.append(f"transition assumptions must cover {TRANSITION_YEARS}, got {years}")
    for ty in r.transition.years:
        if ty.students < 0:
            errors.append(f"transition students for {ty.year} must be >= 0")
        _non_negative(errors, f"transition average tuition for {ty.year}", ty.average_tuition)
    if r.transition.base_rent is None:
        errors.append("transition base rent is required")
    else:
        _non_negative(errors, "transition base rent", r.transition.base_rent)
    if r.transition.rent_growth_rate is None:
        errors.append("transition rent growth rate is required")
    elif r.transition.rent_growth_rate <= -ONE:
        errors.append("transition rent growth rate must be > -100%")

    # system rates
    rates = r.rates
    for name in ("zakat_rate", "debt_interest_rate", "deposit_interest_rate", "discount_rate", "min_cash_balance"):
        if getattr(rates, name) is None:
            errors.append(f"{name} is required")
    if rates.zakat_rate is not None:
        _fraction(errors, "zakat_rate", rates.zakat_rate)
    if rates.debt_interest_rate is not None:
        _non_negative(errors, "debt_interest_rate", rates.debt_interest_rate)
    if rates.deposit_interest_rate is not None:
        _non_negative(errors, "deposit_interest_rate", rates.deposit_interest_rate)
    if rates.discount_rate is not None and rates.discount_rate <= -ONE:
        errors.append("discount_rate must be > -100%")
    if rates.min_cash_balance is not None:
        _non_negative(errors, "min_cash_balance", rates.min_cash_balance)

    # enrollment ramp-up
    if r.enrollment.capacity <= 0:
        errors.append("capacity must be positive")
    if len(r.enrollment.ramp) != RAMP_YEARS:
        errors.append(f"ramp-up needs exactly {RAMP_YEARS} percentages, got {len(r.enrollment.ramp)}")
    for i, pct in enumerate(r.enrollment.ramp, start=1):
        _fraction(errors, f"ramp year {i}", pct, allow_zero=False)

    # curriculum
    _track(errors, "primary", r.curriculum.primary)
    if r.curriculum.secondary is not None:
        _track(errors, "secondary", r.curriculum.secondary)
        _fraction(errors, "secondary student share", r.curriculum.secondary_share)

    # staff
    if r.staffing.student_staff_ratio <= ZERO:
        errors.append("student:staff ratio must be positive")
    _non_negative(errors, "base salary", r.staffing.base_salary)
    _growth(errors, "salary", r.staffing.growth_rate, r.staffing.growth_frequency)

    # rent
    expected = RENT_PARAMS_BY_MODEL.get(r.rent_model)
    if expected is None or not isinstance(r.rent, expected):
        errors.append(f"rent parameters do not match rent model {r.rent_model}")
    elif isinstance(r.rent, FixedRent):
        _non_negative(errors, "base rent", r.rent.base_rent)
        _growth(errors, "rent", r.rent.growth_rate, r.rent.frequency)
    elif isinstance(r.rent, RevenueShareRent):
        _fraction(errors, "revenue share", r.rent.share)
    elif isinstance(r.rent, PartnerInvestmentRent):
        for name in ("land_size", "land_price_per_sqm", "built_up_area", "construction_cost_per_sqm", "yield_rate"):
            _non_negative(errors, name, getattr(r.rent, name))
        _growth(errors, "rent", r.rent.growth_rate, r.rent.frequency)

    _fraction(errors, "other opex ratio", r.other_opex_ratio)
    _non_negative(errors, "other revenue ratio", r.other_revenue_ratio)

    # capital roster
    for i, a in enumerate(r.assets):
        _non_negative(errors, f"asset {i} amount", a.amount)
        if a.useful_life < 1:
            errors.append(f"asset {i} useful life must be >= 1 year")
        if a.category is not None and r.category(a.category) is None:
            errors.append(f"asset {i} refers to unknown category {a.category!r}")
    for c in r.categories:
        if c.useful_life < 1:
            errors.append(f"category {c.name!r} useful life must be >= 1 year")
        if c.reinvest_frequency is not None and c.reinvest_frequency < 1:
            errors.append(f"category {c.name!r} reinvest frequency must be >= 1 year")
        if c.reinvest_amount is not None:
            _non_negative(errors, f"category {c.name!r} reinvest amount", c.reinvest_amount)

    _non_negative(errors, "opening cash", r.opening.cash)
    _non_negative(errors, "opening debt", r.opening.debt)
    return errors


def validate_resolved(r: ResolvedInput) -> None:
    """Raise ValidationError listing every problem; a run never starts on bad input."""
    errors = collect_errors(r)
    if errors:
        raise ValidationError(errors)
