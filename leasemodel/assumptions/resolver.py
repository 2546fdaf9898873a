from __future__ import annotations
import logging
from dataclasses import replace
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Tuple

from leasemodel.assumptions.model import (
    CapexCategory,
    CapitalAsset,
    Curriculum,
    Enrollment,
    FixedRent,
    OpeningBalances,
    PartnerInvestmentRent,
    RentModel,
    RentParams,
    ResolvedInput,
    RevenueShareRent,
    Staffing,
    SystemRates,
    TransitionAssumptions,
    TransitionYear,
    TuitionTrack,
)
from leasemodel.assumptions.validation import collect_errors
from leasemodel.errors import ValidationError
from leasemodel.finance.money import ZERO, to_decimal

logger = logging.getLogger(__name__)

_MISSING = object()

RATE_FIELDS: Tuple[str, ...] = (
    "zakat_rate",
    "debt_interest_rate",
    "deposit_interest_rate",
    "discount_rate",
    "min_cash_balance",
)


class _Reader:
    """Reads typed fields out of nested proposal dicts, collecting errors."""

    def __init__(self):
        self.errors: List[str] = []

    def section(self, data: Mapping[str, Any], key: str, path: str, required: bool = True) -> Optional[Mapping[str, Any]]:
        v = data.get(key) if isinstance(data, Mapping) else None
        if v is None:
            if required:
                self.errors.append(f"{path}{key} is required")
            return None
        if not isinstance(v, Mapping):
            self.errors.append(f"{path}{key} must be an object")
            return None
        return v

    def listing(self, data: Mapping[str, Any], key: str, path: str) -> Optional[List[Any]]:
        """Optional list field; None when absent or not a list."""
        v = data.get(key) if isinstance(data, Mapping) else None
        if v is None:
            return None
        if not isinstance(v, (list, tuple)):
            self.errors.append(f"{path}{key} must be a list")
            return None
        return list(v)

    def dec(self, data: Mapping[str, Any], key: str, path: str, default: Any = _MISSING) -> Decimal:
        v = data.get(key) if isinstance(data, Mapping) else None
        if v is None:
            if default is _MISSING:
                self.errors.append(f"{path}{key} is required")
                return ZERO
            return default
        try:
            return to_decimal(v)
        except (ValueError, ArithmeticError):
            self.errors.append(f"{path}{key} must be a number, got {v!r}")
            return ZERO

    def whole(self, data: Mapping[str, Any], key: str, path: str, default: Any = _MISSING) -> int:
        v = data.get(key) if isinstance(data, Mapping) else None
        if v is None:
            if default is _MISSING:
                self.errors.append(f"{path}{key} is required")
                return 0
            return default
        if isinstance(v, bool):
            self.errors.append(f"{path}{key} must be a whole number, got {v!r}")
            return 0
        try:
            d = to_decimal(v)
        except (ValueError, ArithmeticError):
            self.errors.append(f"{path}{key} must be a whole number, got {v!r}")
            return 0
        if d != d.to_integral_value():
            self.errors.append(f"{path}{key} must be a whole number, got {v!r}")
            return 0
        return int(d)


def _track(rd: _Reader, data: Mapping[str, Any], path: str) -> TuitionTrack:
    return TuitionTrack(
        base_tuition=rd.dec(data, "base_tuition", path),
        growth_rate=rd.dec(data, "growth_rate", path, ZERO),
        growth_frequency=rd.whole(data, "growth_frequency", path, 1),
    )


def _rent(rd: _Reader, model: RentModel, data: Mapping[str, Any]) -> RentParams:
    p = "rent."
    if model is RentModel.FIXED:
        return FixedRent(
            base_rent=rd.dec(data, "base_rent", p),
            growth_rate=rd.dec(data, "growth_rate", p, ZERO),
            frequency=rd.whole(data, "frequency", p, 1),
        )
    if model is RentModel.REVENUE_SHARE:
        return RevenueShareRent(share=rd.dec(data, "share", p))
    return PartnerInvestmentRent(
        land_size=rd.dec(data, "land_size", p),
        land_price_per_sqm=rd.dec(data, "land_price_per_sqm", p),
        built_up_area=rd.dec(data, "built_up_area", p),
        construction_cost_per_sqm=rd.dec(data, "construction_cost_per_sqm", p),
        yield_rate=rd.dec(data, "yield_rate", p),
        growth_rate=rd.dec(data, "growth_rate", p, ZERO),
        frequency=rd.whole(data, "frequency", p, 1),
    )


def _capex(rd: _Reader, data: Mapping[str, Any]) -> Tuple[Tuple[CapitalAsset, ...], Tuple[CapexCategory, ...]]:
    categories: List[CapexCategory] = []
    for i, c in enumerate(rd.listing(data, "categories", "capex.") or []):
        path = f"capex.categories[{i}]."
        name = c.get("name") if isinstance(c, Mapping) else None
        if not name:
            rd.errors.append(f"{path}name is required")
            continue
        categories.append(CapexCategory(
            name=str(name),
            useful_life=rd.whole(c, "useful_life", path),
            reinvest_frequency=rd.whole(c, "reinvest_frequency", path, None),
            reinvest_amount=rd.dec(c, "reinvest_amount", path, None),
            reinvest_start_year=rd.whole(c, "reinvest_start_year", path, None),
        ))
    by_name = {c.name: c for c in categories}
    assets: List[CapitalAsset] = []
    for i, a in enumerate(rd.listing(data, "assets", "capex.") or []):
        path = f"capex.assets[{i}]."
        if not isinstance(a, Mapping):
            rd.errors.append(f"capex.assets[{i}] must be an object")
            continue
        category = a.get("category")
        if category is not None and not isinstance(category, str):
            rd.errors.append(f"{path}category must be a string")
            category = None
        # an asset without its own useful life inherits its category's
        default_life = by_name[category].useful_life if category in by_name else _MISSING
        assets.append(CapitalAsset(
            purchase_year=rd.whole(a, "purchase_year", path),
            amount=rd.dec(a, "amount", path),
            useful_life=rd.whole(a, "useful_life", path, default_life),
            category=category,
        ))
    return tuple(assets), tuple(categories)


def _resolve_transition(rd: _Reader, proposal: Mapping[str, Any], shared: TransitionAssumptions) -> TransitionAssumptions:
    out = shared
    raw_years = rd.listing(proposal, "transition_years", "")
    if raw_years is not None:
        years = []
        for i, ty in enumerate(raw_years):
            path = f"transition_years[{i}]."
            if not isinstance(ty, Mapping):
                rd.errors.append(f"transition_years[{i}] must be an object")
                continue
            years.append(TransitionYear(
                year=rd.whole(ty, "year", path),
                students=rd.whole(ty, "students", path),
                average_tuition=rd.dec(ty, "average_tuition", path),
            ))
        out = replace(out, years=tuple(sorted(years, key=lambda t: t.year)))
    if proposal.get("transition_base_rent") is not None:
        out = replace(out, base_rent=rd.dec(proposal, "transition_base_rent", ""))
    if proposal.get("transition_rent_growth_rate") is not None:
        out = replace(out, rent_growth_rate=rd.dec(proposal, "transition_rent_growth_rate", ""))
    return out


def _resolve_rates(rd: _Reader, proposal: Mapping[str, Any], shared: SystemRates) -> SystemRates:
    values: Dict[str, Optional[Decimal]] = {}
    for name in RATE_FIELDS:
        if proposal.get(name) is not None:
            values[name] = rd.dec(proposal, name, "")
        else:
            values[name] = getattr(shared, name)
            logger.debug("resolver: %s falls back to system rates (%s)", name, values[name])
    return SystemRates(**values)


def resolve(proposal: Mapping[str, Any], transition: TransitionAssumptions, rates: SystemRates) -> ResolvedInput:
    """Merge a proposal with the shared transition and system-rate snapshots.

    Precedence:
    - Proposal-level fields win
    - Absent fields fall back to the shared snapshots
    - Anything still missing is a ValidationError listing every problem

    Pure: the snapshots are read, never modified.
    """
    if not isinstance(proposal, Mapping):
        raise ValidationError("proposal must be an object")
    rd = _Reader()

    try:
        model = RentModel(str(proposal.get("rent_model", "")).upper())
    except ValueError:
        rd.errors.append(f"rent_model must be one of {[m.value for m in RentModel]}, got {proposal.get('rent_model')!r}")
        model = None

    enr = rd.section(proposal, "enrollment", "") or {}
    ramp_raw = rd.listing(enr, "ramp", "enrollment.") or []
    ramp = []
    for i, pct in enumerate(ramp_raw):
        try:
            ramp.append(to_decimal(pct))
        except (ValueError, ArithmeticError):
            rd.errors.append(f"enrollment.ramp[{i}] must be a number, got {pct!r}")
    enrollment = Enrollment(capacity=rd.whole(enr, "capacity", "enrollment."), ramp=tuple(ramp))

    cur = rd.section(proposal, "curriculum", "") or {}
    primary = _track(rd, rd.section(cur, "primary", "curriculum.") or {}, "curriculum.primary.")
    sec = rd.section(cur, "secondary", "curriculum.", required=False)
    curriculum = Curriculum(
        primary=primary,
        secondary=_track(rd, sec, "curriculum.secondary.") if sec is not None else None,
        secondary_share=rd.dec(sec, "student_share", "curriculum.secondary.") if sec is not None else ZERO,
        secondary_start_year=rd.whole(sec, "start_year", "curriculum.secondary.", None) if sec is not None else None,
    )

    st = rd.section(proposal, "staff", "") or {}
    staffing = Staffing(
        student_staff_ratio=rd.dec(st, "student_staff_ratio", "staff."),
        base_salary=rd.dec(st, "base_salary", "staff."),
        growth_rate=rd.dec(st, "growth_rate", "staff.", ZERO),
        growth_frequency=rd.whole(st, "growth_frequency", "staff.", 1),
    )

    rent_data = rd.section(proposal, "rent", "") or {}
    rent = _rent(rd, model, rent_data) if model is not None else None

    assets, categories = _capex(rd, rd.section(proposal, "capex", "", required=False) or {})
    ob = rd.section(proposal, "opening_balances", "", required=False) or {}
    opening = OpeningBalances(
        cash=rd.dec(ob, "cash", "opening_balances.", ZERO),
        debt=rd.dec(ob, "debt", "opening_balances.", ZERO),
    )

    resolved_transition = _resolve_transition(rd, proposal, transition)
    resolved_rates = _resolve_rates(rd, proposal, rates)

    if rd.errors:
        raise ValidationError(rd.errors)

    resolved = ResolvedInput(
        contract_years=rd.whole(proposal, "contract_years", ""),
        transition=resolved_transition,
        rates=resolved_rates,
        enrollment=enrollment,
        curriculum=curriculum,
        staffing=staffing,
        rent_model=model,
        rent=rent,
        other_opex_ratio=rd.dec(proposal, "other_opex_ratio", ""),
        other_revenue_ratio=rd.dec(proposal, "other_revenue_ratio", "", ZERO),
        assets=assets,
        categories=categories,
        opening=opening,
    )
    errors = rd.errors + collect_errors(resolved)
    if errors:
        raise ValidationError(errors)
    return resolved
