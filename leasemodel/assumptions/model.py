from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple, Union

from leasemodel.finance.money import ZERO

RENT_BASE_YEAR = 2024
TRANSITION_YEARS: Tuple[int, ...] = (2025, 2026, 2027)
CONTRACT_START_YEAR = 2028
CONTRACT_HORIZONS: Tuple[int, ...] = (25, 30)
RAMP_YEARS = 5


class RentModel(str, Enum):
    FIXED = "FIXED"
    REVENUE_SHARE = "REVENUE_SHARE"
    PARTNER_INVESTMENT = "PARTNER_INVESTMENT"


# Shared configuration snapshots. Fields are optional because an admin may not
# have set them yet; the resolver rejects any that stay unset.

@dataclass(frozen=True)
class TransitionYear:
    year: int
    students: int
    average_tuition: Decimal


@dataclass(frozen=True)
class TransitionAssumptions:
    years: Tuple[TransitionYear, ...] = ()
    base_rent: Optional[Decimal] = None  # rent of the base year (2024)
    rent_growth_rate: Optional[Decimal] = None
    rent_base_year: int = RENT_BASE_YEAR

    def for_year(self, year: int) -> TransitionYear:
        for ty in self.years:
            if ty.year == year:
                return ty
        raise KeyError(year)


@dataclass(frozen=True)
class SystemRates:
    zakat_rate: Optional[Decimal] = None
    debt_interest_rate: Optional[Decimal] = None
    deposit_interest_rate: Optional[Decimal] = None
    discount_rate: Optional[Decimal] = None
    min_cash_balance: Optional[Decimal] = None


# Proposal structure

@dataclass(frozen=True)
class Enrollment:
    capacity: int
    ramp: Tuple[Decimal, ...]  # fractions of capacity for contract years 1..5


@dataclass(frozen=True)
class TuitionTrack:
    base_tuition: Decimal
    growth_rate: Decimal = ZERO
    growth_frequency: int = 1


@dataclass(frozen=True)
class Curriculum:
    primary: TuitionTrack
    secondary: Optional[TuitionTrack] = None
    secondary_share: Decimal = ZERO  # fraction of enrolled students
    secondary_start_year: Optional[int] = None


@dataclass(frozen=True)
class Staffing:
    student_staff_ratio: Decimal
    base_salary: Decimal  # annual cost per staff member
    growth_rate: Decimal = ZERO
    growth_frequency: int = 1


@dataclass(frozen=True)
class FixedRent:
    base_rent: Decimal
    growth_rate: Decimal = ZERO
    frequency: int = 1


@dataclass(frozen=True)
class RevenueShareRent:
    share: Decimal  # fraction of total revenue


@dataclass(frozen=True)
class PartnerInvestmentRent:
    land_size: Decimal
    land_price_per_sqm: Decimal
    built_up_area: Decimal
    construction_cost_per_sqm: Decimal
    yield_rate: Decimal
    growth_rate: Decimal = ZERO
    frequency: int = 1

    @property
    def investment_basis(self) -> Decimal:
        return self.land_size * self.land_price_per_sqm + self.built_up_area * self.construction_cost_per_sqm

    @property
    def base_rent(self) -> Decimal:
        return self.investment_basis * self.yield_rate


RentParams = Union[FixedRent, RevenueShareRent, PartnerInvestmentRent]

RENT_PARAMS_BY_MODEL = {
    RentModel.FIXED: FixedRent,
    RentModel.REVENUE_SHARE: RevenueShareRent,
    RentModel.PARTNER_INVESTMENT: PartnerInvestmentRent,
}


@dataclass(frozen=True)
class CapexCategory:
    name: str
    useful_life: int
    reinvest_frequency: Optional[int] = None
    reinvest_amount: Optional[Decimal] = None
    reinvest_start_year: Optional[int] = None

    @property
    def reinvests(self) -> bool:
        return bool(self.reinvest_frequency and self.reinvest_amount is not None
                    and self.reinvest_start_year is not None)


@dataclass(frozen=True)
class CapitalAsset:
    purchase_year: int
    amount: Decimal
    useful_life: int
    category: Optional[str] = None


@dataclass(frozen=True)
class OpeningBalances:
    cash: Decimal = ZERO
    debt: Decimal = ZERO


@dataclass(frozen=True)
class ResolvedInput:
    """Everything one simulation needs. Never mutated; perturb with dataclasses.replace."""
    contract_years: int
    transition: TransitionAssumptions
    rates: SystemRates
    enrollment: Enrollment
    curriculum: Curriculum
    staffing: Staffing
    rent_model: RentModel
    rent: RentParams
    other_opex_ratio: Decimal
    other_revenue_ratio: Decimal = ZERO
    assets: Tuple[CapitalAsset, ...] = ()
    categories: Tuple[CapexCategory, ...] = ()
    opening: OpeningBalances = field(default_factory=OpeningBalances)

    @property
    def contract_start_year(self) -> int:
        return CONTRACT_START_YEAR

    @property
    def contract_end_year(self) -> int:
        return CONTRACT_START_YEAR + self.contract_years - 1

    @property
    def first_year(self) -> int:
        return TRANSITION_YEARS[0]

    def simulated_years(self) -> Tuple[int, ...]:
        return tuple(range(self.first_year, self.contract_end_year + 1))

    def is_transition_year(self, year: int) -> bool:
        return year in TRANSITION_YEARS

    def category(self, name: Optional[str]) -> Optional[CapexCategory]:
        for c in self.categories:
            if c.name == name:
                return c
        return None
