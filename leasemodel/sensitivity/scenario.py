"""What-if scenarios: several adjustments applied together to one baseline.

A scenario is a mapping of variable to multiplicative factor, e.g.
``{RENT: 1.1, STAFF_SALARY: 0.9}``. Each factor goes through `perturb`, one
after another, so the result is the same whatever order the mapping holds.
Every metric is then reported against the baseline as an absolute and a
percent change.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Tuple

from leasemodel.assumptions.model import ResolvedInput
from leasemodel.config.env import EngineConfig
from leasemodel.errors import ValidationError
from leasemodel.finance.money import HUNDRED, ZERO, decimal_context, to_decimal
from leasemodel.metrics.aggregate import Metrics
from leasemodel.pipeline import simulate
from leasemodel.sensitivity.variables import (
    SensitivityMetric,
    SensitivityVariable,
    baseline_value,
    metric_value,
    perturb,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetricChange:
    baseline: Optional[Decimal]
    scenario: Optional[Decimal]
    absolute: Optional[Decimal]  # None when either side is unavailable
    percent: Optional[Decimal]


@dataclass(frozen=True)
class ScenarioResult:
    adjustments: Tuple[Tuple[SensitivityVariable, Decimal], ...]
    baseline: Metrics
    scenario: Metrics
    changes: Dict[SensitivityMetric, MetricChange]


def metric_change(baseline: Optional[Decimal], scenario: Optional[Decimal]) -> MetricChange:
    """Absolute and percent change of one metric.

    Percent is relative to the baseline and is 0 when the baseline is 0.
    """
    if baseline is None or scenario is None:
        return MetricChange(baseline, scenario, None, None)
    absolute = scenario - baseline
    percent = ZERO if baseline == ZERO else absolute / baseline * HUNDRED
    return MetricChange(baseline, scenario, absolute, percent)


def _check(baseline: ResolvedInput, adjustments: Mapping[SensitivityVariable, Decimal]) -> List[Tuple[SensitivityVariable, Decimal]]:
    errors: List[str] = []
    out: List[Tuple[SensitivityVariable, Decimal]] = []
    for key, raw in adjustments.items():
        try:
            variable = SensitivityVariable(key)
        except ValueError:
            errors.append(f"unknown variable {key!r}")
            continue
        try:
            factor = to_decimal(raw)
        except (ValueError, ArithmeticError):
            errors.append(f"{variable.value} factor must be a number, got {raw!r}")
            continue
        if factor < ZERO:
            errors.append(f"{variable.value} factor must not be negative, got {factor}")
            continue
        if baseline_value(baseline, variable) is None:
            errors.append(f"{variable.value} does not apply to rent model {baseline.rent_model.value}")
            continue
        out.append((variable, factor))
    if errors:
        raise ValidationError(errors)
    return out


def apply_scenario(
    baseline: ResolvedInput,
    adjustments: Mapping[SensitivityVariable, Decimal],
    config: Optional[EngineConfig] = None,
) -> ResolvedInput:
    """Return a copy of `baseline` with every adjustment applied. The baseline is never modified."""
    scenario = baseline
    with decimal_context(config):
        for variable, factor in _check(baseline, adjustments):
            scenario = perturb(scenario, variable, factor)
    return scenario


def run_scenario(
    baseline: ResolvedInput,
    adjustments: Mapping[SensitivityVariable, Decimal],
    config: Optional[EngineConfig] = None,
) -> ScenarioResult:
    cfg = config if config is not None else EngineConfig()
    checked = tuple(_check(baseline, adjustments))
    scenario = apply_scenario(baseline, dict(checked), cfg)
    base = simulate(baseline, cfg).metrics
    result = simulate(scenario, cfg).metrics
    changes = {
        m: metric_change(metric_value(base, m), metric_value(result, m))
        for m in SensitivityMetric
    }
    logger.info(
        "scenario %s: nav %s -> %s",
        ", ".join(f"{v.value}x{f}" for v, f in checked), base.nav, result.nav,
    )
    return ScenarioResult(adjustments=checked, baseline=base, scenario=result, changes=changes)
