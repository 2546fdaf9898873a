from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, ROUND_CEILING
from typing import Tuple

from leasemodel.assumptions.model import RAMP_YEARS, ResolvedInput, TuitionTrack
from leasemodel.finance.growth import step_growth_factor
from leasemodel.finance.money import ZERO, money, round_half_up
from leasemodel.forecasting.rent import rent_expense


@dataclass(frozen=True)
class OperatingYear:
    year: int
    students: int
    primary_students: int
    secondary_students: int
    primary_tuition_revenue: Decimal
    secondary_tuition_revenue: Decimal
    other_revenue: Decimal
    total_revenue: Decimal
    staff_headcount: int
    staff_cost: Decimal
    rent_expense: Decimal
    other_opex: Decimal

    @property
    def tuition_revenue(self) -> Decimal:
        return self.primary_tuition_revenue + self.secondary_tuition_revenue

    @property
    def ebitda(self) -> Decimal:
        return self.total_revenue - self.rent_expense - self.staff_cost - self.other_opex


def ramp_percentage(r: ResolvedInput, year: int) -> Decimal:
    """Ramp-up percentage of a contract year; year 6 onwards holds year 5 flat."""
    idx = min(year - r.contract_start_year, RAMP_YEARS - 1)
    if idx < 0:
        raise ValueError(f"{year} is not a contract year")
    return r.enrollment.ramp[idx]


def enrollment(r: ResolvedInput, year: int) -> int:
    if r.is_transition_year(year):
        return r.transition.for_year(year).students
    return round_half_up(r.enrollment.capacity * ramp_percentage(r, year))


def tuition_fee(track: TuitionTrack, year: int, base_year: int) -> Decimal:
    return track.base_tuition * step_growth_factor(track.growth_rate, track.growth_frequency, year, base_year)


def split_students(r: ResolvedInput, year: int, students: int) -> Tuple[int, int]:
    """(primary, secondary) students for a contract year."""
    c = r.curriculum
    if c.secondary is None:
        return students, 0
    if c.secondary_start_year is not None and year < c.secondary_start_year:
        return students, 0
    secondary = round_half_up(students * c.secondary_share)
    return students - secondary, secondary


def staff_headcount(students: int, ratio: Decimal) -> int:
    """Staff needed for `students`; partial staff round up to a whole hire."""
    return int((Decimal(students) / ratio).to_integral_value(rounding=ROUND_CEILING))


def staff_cost(r: ResolvedInput, year: int, headcount: int) -> Decimal:
    s = r.staffing
    return headcount * s.base_salary * step_growth_factor(s.growth_rate, s.growth_frequency, year, r.contract_start_year)


def operating_year(r: ResolvedInput, year: int, places: int = 2) -> OperatingYear:
    """Revenue and operating costs for one year; every line item is quantized."""
    students = enrollment(r, year)
    if r.is_transition_year(year):
        primary, secondary = students, 0
        primary_rev = money(students * r.transition.for_year(year).average_tuition, places)
        secondary_rev = ZERO
    else:
        primary, secondary = split_students(r, year, students)
        primary_rev = money(primary * tuition_fee(r.curriculum.primary, year, r.contract_start_year), places)
        secondary_rev = ZERO
        if secondary:
            secondary_rev = money(secondary * tuition_fee(r.curriculum.secondary, year, r.contract_start_year), places)
    other_rev = money((primary_rev + secondary_rev) * r.other_revenue_ratio, places)
    total_revenue = primary_rev + secondary_rev + other_rev

    headcount = staff_headcount(students, r.staffing.student_staff_ratio)
    return OperatingYear(
        year=year,
        students=students,
        primary_students=primary,
        secondary_students=secondary,
        primary_tuition_revenue=primary_rev,
        secondary_tuition_revenue=secondary_rev,
        other_revenue=other_rev,
        total_revenue=total_revenue,
        staff_headcount=headcount,
        staff_cost=money(staff_cost(r, year, headcount), places),
        rent_expense=money(rent_expense(r, year, total_revenue), places),
        other_opex=money(total_revenue * r.other_opex_ratio, places),
    )
