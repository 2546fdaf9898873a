from __future__ import annotations
from contextlib import contextmanager
from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Any, Iterable, Iterator, Optional

from leasemodel.config.env import EngineConfig

ZERO = Decimal(0)
ONE = Decimal(1)
HUNDRED = Decimal(100)


def to_decimal(value: Any) -> Decimal:
    """Coerce a number-like value to Decimal.

    Floats go through str() so 0.1 becomes Decimal("0.1") rather than the
    binary expansion. Booleans, None and non-finite values are rejected.
    """
    if isinstance(value, bool) or value is None:
        raise ValueError(f"not a number: {value!r}")
    if isinstance(value, Decimal):
        d = value
    elif isinstance(value, (int, str)):
        d = Decimal(value.strip() if isinstance(value, str) else value)
    elif isinstance(value, float):
        d = Decimal(str(value))
    else:
        raise ValueError(f"not a number: {value!r}")
    if not d.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    return d


def money(value: Decimal, places: int = 2) -> Decimal:
    """Quantize a monetary amount (ROUND_HALF_UP)."""
    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def round_half_up(value: Decimal) -> int:
    return int(value.quantize(ONE, rounding=ROUND_HALF_UP))


def dsum(values: Iterable[Decimal]) -> Decimal:
    total = ZERO
    for v in values:
        total += v
    return total


@contextmanager
def decimal_context(config: Optional[EngineConfig] = None) -> Iterator[None]:
    """Run a block under a local Decimal context with the configured precision."""
    prec = config.decimal_precision if config is not None else 28
    with localcontext() as ctx:
        ctx.prec = prec
        ctx.rounding = ROUND_HALF_UP
        yield
