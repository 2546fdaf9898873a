from __future__ import annotations
import os
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class EngineConfig:
    decimal_precision: int = 28
    money_places: int = 2
    irr_max_iterations: int = 100
    irr_tolerance: Decimal = Decimal("0.0000001")
    sensitivity_workers: int = 1
    batch_workers: int = 2
    max_finished_batches: int = 100


def get_engine_config() -> EngineConfig:
    return EngineConfig(
        decimal_precision=int(os.getenv("LEASEMODEL_DECIMAL_PRECISION", "28")),
        money_places=int(os.getenv("LEASEMODEL_MONEY_PLACES", "2")),
        irr_max_iterations=int(os.getenv("LEASEMODEL_IRR_MAX_ITERATIONS", "100")),
        irr_tolerance=Decimal(os.getenv("LEASEMODEL_IRR_TOLERANCE", "0.0000001")),
        sensitivity_workers=max(1, int(os.getenv("LEASEMODEL_SENSITIVITY_WORKERS", "1"))),
        batch_workers=max(1, int(os.getenv("LEASEMODEL_BATCH_WORKERS", "2"))),
        max_finished_batches=max(0, int(os.getenv("LEASEMODEL_MAX_FINISHED_BATCHES", "100"))),
    )
