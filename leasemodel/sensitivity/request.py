from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, List, Mapping

from leasemodel.errors import ValidationError
from leasemodel.finance.money import to_decimal
from leasemodel.sensitivity.variables import SensitivityMetric, SensitivityVariable

MIN_RANGE_PERCENT = Decimal("5")
MAX_RANGE_PERCENT = Decimal("50")
DEFAULT_DATA_POINTS = 5


@dataclass(frozen=True)
class SensitivityRequest:
    variable: SensitivityVariable
    range_percent: Decimal
    metric: SensitivityMetric
    data_points: int = DEFAULT_DATA_POINTS


def check_shape(range_percent: Decimal, data_points: int) -> List[str]:
    errors: List[str] = []
    if not (MIN_RANGE_PERCENT <= range_percent <= MAX_RANGE_PERCENT):
        errors.append(f"range_percent must be between {MIN_RANGE_PERCENT} and {MAX_RANGE_PERCENT}")
    if data_points < 3:
        errors.append("data_points must be at least 3")
    elif data_points % 2 == 0:
        errors.append("data_points must be odd so the 0% point is included")
    return errors


def parse_request(payload: Mapping[str, Any]) -> SensitivityRequest:
    """Validate a plain-data request. All problems are reported together."""
    errors: List[str] = []
    variable = metric = None
    range_percent = None
    data_points = DEFAULT_DATA_POINTS

    try:
        variable = SensitivityVariable(str(payload.get("variable", "")).lower())
    except ValueError:
        allowed = ", ".join(v.value for v in SensitivityVariable)
        errors.append(f"variable must be one of: {allowed}")
    try:
        metric = SensitivityMetric(str(payload.get("metric", "")).lower())
    except ValueError:
        allowed = ", ".join(m.value for m in SensitivityMetric)
        errors.append(f"metric must be one of: {allowed}")

    raw_range = payload.get("range_percent")
    if raw_range is None:
        errors.append("range_percent is required")
    else:
        try:
            range_percent = to_decimal(raw_range)
        except (TypeError, ValueError, InvalidOperation):
            errors.append("range_percent must be a number")

    raw_points = payload.get("data_points", DEFAULT_DATA_POINTS)
    if isinstance(raw_points, bool) or not isinstance(raw_points, int):
        errors.append("data_points must be an integer")
    else:
        data_points = raw_points

    if range_percent is not None:
        errors.extend(check_shape(range_percent, data_points))

    if errors:
        raise ValidationError(errors)
    return SensitivityRequest(
        variable=variable, range_percent=range_percent, metric=metric, data_points=data_points
    )
