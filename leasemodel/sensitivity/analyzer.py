"""Single-variable sensitivity runs and tornado ranking.

Every data point re-runs the whole pipeline on its own perturbed copy of
the baseline input, so points can be evaluated in any order or in parallel.
A failing point is reported with its error and never aborts the others.
"""
from __future__ import annotations
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from leasemodel.assumptions.model import ResolvedInput
from leasemodel.config.env import EngineConfig
from leasemodel.errors import EngineError, ValidationError
from leasemodel.finance.money import HUNDRED, ONE, ZERO, decimal_context, to_decimal
from leasemodel.pipeline import simulate
from leasemodel.sensitivity.request import DEFAULT_DATA_POINTS, SensitivityRequest, check_shape
from leasemodel.sensitivity.variables import (
    SensitivityMetric,
    SensitivityVariable,
    baseline_value,
    metric_value,
    perturb,
)

logger = logging.getLogger(__name__)


class SensitivityCancelled(EngineError):
    """Raised between perturbation runs once a batch is cancelled."""


@dataclass(frozen=True)
class SensitivityPoint:
    offset_percent: Decimal
    variable_value: Optional[Decimal]
    metric_value: Optional[Decimal]
    deviation_percent: Optional[Decimal]  # None: baseline metric zero or unavailable
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class SensitivityResult:
    variable: SensitivityVariable
    metric: SensitivityMetric
    range_percent: Decimal
    baseline_value: Decimal
    baseline_metric: Optional[Decimal]
    points: Tuple[SensitivityPoint, ...]
    positive_impact: Optional[Decimal]
    negative_impact: Optional[Decimal]
    total_impact: Optional[Decimal]  # None: no impact could be measured, left unranked

    @property
    def ranked(self) -> bool:
        return self.total_impact is not None


def offsets(range_percent: Decimal, data_points: int) -> List[Decimal]:
    """Evenly spaced offsets from -range to +range, e.g. ±20/5 -> -20 -10 0 10 20."""
    errors = check_shape(range_percent, data_points)
    if errors:
        raise ValidationError(errors)
    mid = data_points // 2
    # offset k and offset n-1-k are computed from mirrored integers, so they
    # negate each other exactly even when range/mid does not terminate
    return [(i - mid) * range_percent / mid for i in range(data_points)]


def _deviation(value: Optional[Decimal], base: Optional[Decimal]) -> Optional[Decimal]:
    if value is None or base is None or base == ZERO:
        return None
    return (value - base) / abs(base) * HUNDRED


def _evaluate(
    baseline: ResolvedInput,
    variable: SensitivityVariable,
    metric: SensitivityMetric,
    offset: Decimal,
    config: EngineConfig,
) -> Tuple[Optional[Decimal], Optional[Decimal], Optional[str]]:
    """(variable value, metric value, error) for one perturbed run."""
    variable_value = None
    try:
        with decimal_context(config):
            factor = ONE + offset / HUNDRED
            scenario = perturb(baseline, variable, factor)
            variable_value = baseline_value(scenario, variable)
        sim = simulate(scenario, config)
        return variable_value, metric_value(sim.metrics, metric), None
    except (EngineError, ArithmeticError) as e:
        logger.warning("%s at %s%% failed: %s", variable.value, offset, e)
        return variable_value, None, f"{type(e).__name__}: {e}"


def run_single(
    baseline: ResolvedInput,
    variable: SensitivityVariable,
    range_percent: Decimal,
    metric: SensitivityMetric,
    data_points: int = DEFAULT_DATA_POINTS,
    config: Optional[EngineConfig] = None,
    workers: Optional[int] = None,
    cancelled: Optional[threading.Event] = None,
) -> SensitivityResult:
    """Perturb one variable across ±range_percent and record `metric` at each point.

    The baseline itself must simulate cleanly; its failure is raised rather
    than reported per point. `cancelled` is checked before each run.
    """
    cfg = config if config is not None else EngineConfig()
    variable = SensitivityVariable(variable)
    metric = SensitivityMetric(metric)
    range_percent = to_decimal(range_percent)
    offs = offsets(range_percent, data_points)

    base_value = baseline_value(baseline, variable)
    if base_value is None:
        raise ValidationError(f"{variable.value} does not apply to rent model {baseline.rent_model.value}")
    base_sim = simulate(baseline, cfg)
    base_metric = metric_value(base_sim.metrics, metric)

    def run_point(offset: Decimal) -> SensitivityPoint:
        if cancelled is not None and cancelled.is_set():
            raise SensitivityCancelled(f"cancelled before {variable.value} at {offset}%")
        if offset == ZERO:
            return SensitivityPoint(offset, base_value, base_metric, _deviation(base_metric, base_metric))
        value, result, error = _evaluate(baseline, variable, metric, offset, cfg)
        return SensitivityPoint(offset, value, result, _deviation(result, base_metric), error)

    n_workers = workers if workers is not None else cfg.sensitivity_workers
    if n_workers > 1:
        with ThreadPoolExecutor(max_workers=n_workers) as pool:
            points = tuple(pool.map(run_point, offs))
    else:
        points = tuple(run_point(o) for o in offs)

    def impact(point: SensitivityPoint) -> Optional[Decimal]:
        if point.metric_value is None or base_metric is None:
            return None
        return point.metric_value - base_metric

    negative = impact(points[0])
    positive = impact(points[-1])
    total = None
    if positive is not None or negative is not None:
        total = abs(positive or ZERO) + abs(negative or ZERO)
    else:
        logger.warning("sensitivity %s on %s: no measurable impact, result left unranked", variable.value, metric.value)
    failed = sum(1 for p in points if not p.ok)
    logger.info(
        "sensitivity %s on %s ±%s%%: total impact %s (%d/%d points failed)",
        variable.value, metric.value, range_percent, total, failed, len(points),
    )
    return SensitivityResult(
        variable=variable,
        metric=metric,
        range_percent=range_percent,
        baseline_value=base_value,
        baseline_metric=base_metric,
        points=points,
        positive_impact=positive,
        negative_impact=negative,
        total_impact=total,
    )


def run_multi(
    baseline: ResolvedInput,
    variables: Sequence[SensitivityVariable],
    range_percent: Decimal,
    metric: SensitivityMetric,
    data_points: int = DEFAULT_DATA_POINTS,
    config: Optional[EngineConfig] = None,
    workers: Optional[int] = None,
    cancelled: Optional[threading.Event] = None,
) -> List[SensitivityResult]:
    """Tornado: one run per variable, ranked by total impact (largest first).

    Results without a measurable impact (baseline metric unavailable, or
    both end points failed) come last, in the order requested.
    """
    if not variables:
        raise ValidationError("at least one variable is required")
    results = [
        run_single(baseline, v, range_percent, metric, data_points, config, workers, cancelled)
        for v in variables
    ]
    # sorted() is stable so ties keep the caller's order
    return sorted(results, key=lambda r: (not r.ranked, -(r.total_impact or ZERO)))


def run_request(
    baseline: ResolvedInput,
    request: SensitivityRequest,
    config: Optional[EngineConfig] = None,
    cancelled: Optional[threading.Event] = None,
) -> SensitivityResult:
    return run_single(
        baseline, request.variable, request.range_percent, request.metric,
        request.data_points, config, cancelled=cancelled,
    )
