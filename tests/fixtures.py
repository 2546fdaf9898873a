"""Shared sample inputs for the test suite."""
from __future__ import annotations
import copy
from decimal import Decimal
from typing import Any, Dict

from leasemodel.assumptions.model import SystemRates, TransitionAssumptions, TransitionYear
from leasemodel.assumptions.resolver import resolve

D = Decimal

PARTNER_PROPOSAL: Dict[str, Any] = {
    "contract_years": 25,
    "enrollment": {"capacity": 1200, "ramp": ["0.5", "0.6", "0.7", "0.8", "0.9"]},
    "curriculum": {
        "primary": {"base_tuition": "45000", "growth_rate": "0.05", "growth_frequency": 3},
        "secondary": {
            "base_tuition": "55000",
            "growth_rate": "0.04",
            "growth_frequency": 2,
            "student_share": "0.3",
            "start_year": 2030,
        },
    },
    "staff": {"student_staff_ratio": "12", "base_salary": "180000", "growth_rate": "0.03", "growth_frequency": 2},
    "rent_model": "PARTNER_INVESTMENT",
    "rent": {
        "land_size": "10000",
        "land_price_per_sqm": "5000",
        "built_up_area": "20000",
        "construction_cost_per_sqm": "2500",
        "yield_rate": "0.09",
        "growth_rate": "0.02",
        "frequency": 1,
    },
    "other_opex_ratio": "0.1",
    "other_revenue_ratio": "0.02",
    "capex": {
        "categories": [
            {"name": "building", "useful_life": 25},
            {
                "name": "it",
                "useful_life": 4,
                "reinvest_frequency": 4,
                "reinvest_amount": "500000",
                "reinvest_start_year": 2028,
            },
        ],
        "assets": [
            {"purchase_year": 2028, "amount": "20000000", "category": "building"},
            {"purchase_year": 2025, "amount": "2000000", "useful_life": 5},
        ],
    },
    "opening_balances": {"cash": "2000000"},
}


def transition_snapshot() -> TransitionAssumptions:
    return TransitionAssumptions(
        years=(
            TransitionYear(2025, 400, D("40000")),
            TransitionYear(2026, 450, D("41000")),
            TransitionYear(2027, 500, D("42000")),
        ),
        base_rent=D("5000000"),
        rent_growth_rate=D("0.03"),
    )


def system_rates() -> SystemRates:
    return SystemRates(
        zakat_rate=D("0.025"),
        debt_interest_rate=D("0.06"),
        deposit_interest_rate=D("0.02"),
        discount_rate=D("0.08"),
        min_cash_balance=D("1000000"),
    )


def proposal(**overrides: Any) -> Dict[str, Any]:
    p = copy.deepcopy(PARTNER_PROPOSAL)
    p.update(overrides)
    return p


def fixed_rent_proposal(**overrides: Any) -> Dict[str, Any]:
    """Flat fixed rent: rent-driven metrics move exactly in proportion."""
    p = proposal(rent_model="FIXED", rent={"base_rent": "6000000", "growth_rate": "0", "frequency": 1})
    p.update(overrides)
    return p


def revenue_share_proposal(share: str = "0.12", **overrides: Any) -> Dict[str, Any]:
    p = proposal(rent_model="REVENUE_SHARE", rent={"share": share})
    p.update(overrides)
    return p


def resolved(p: Dict[str, Any] = None):
    return resolve(p if p is not None else proposal(), transition_snapshot(), system_rates())


def heavy_capex_proposal(**overrides: Any) -> Dict[str, Any]:
    """A 40M building in 2028: forces a debt draw and a negative zakat base."""
    p = proposal(**overrides)
    p["capex"]["assets"][0]["amount"] = "40000000"
    return p
