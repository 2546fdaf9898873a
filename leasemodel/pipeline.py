from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

from leasemodel.assumptions.model import ResolvedInput, SystemRates, TransitionAssumptions
from leasemodel.assumptions.resolver import resolve
from leasemodel.assumptions.validation import validate_resolved
from leasemodel.config.env import EngineConfig
from leasemodel.finance.money import decimal_context
from leasemodel.metrics.aggregate import Metrics, aggregate
from leasemodel.statements.debt import DebtPolicy, minimum_cash_draw
from leasemodel.statements.periods import FinancialPeriod
from leasemodel.statements.rollforward import roll_forward

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Simulation:
    periods: Tuple[FinancialPeriod, ...]  # transition years included
    metrics: Metrics


def simulate(
    resolved: ResolvedInput,
    config: Optional[EngineConfig] = None,
    debt_policy: DebtPolicy = minimum_cash_draw,
) -> Simulation:
    """Run one full projection. Pure: same input, same output."""
    validate_resolved(resolved)
    with decimal_context(config):
        periods = tuple(roll_forward(resolved, config, debt_policy))
        metrics = aggregate(periods, resolved.rates.discount_rate, config)
    logger.info(
        "simulated %d years (%d contract): final cash %s, peak debt %s",
        len(periods), metrics.contract_years, metrics.final_cash, metrics.peak_debt,
    )
    return Simulation(periods=periods, metrics=metrics)


def run_proposal(
    proposal: Mapping[str, Any],
    transition: TransitionAssumptions,
    rates: SystemRates,
    config: Optional[EngineConfig] = None,
) -> Simulation:
    return simulate(resolve(proposal, transition, rates), config)
