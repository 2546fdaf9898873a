from __future__ import annotations
from decimal import Decimal
from typing import List, Optional, Union


class EngineError(Exception):
    """Base class for errors raised by the projection engine."""


class ValidationError(EngineError, ValueError):
    def __init__(self, errors: Union[List[str], str]):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class AccountingIdentityError(EngineError):
    """A closed period does not balance. Internal defect, never tolerated."""

    def __init__(self, year: int, check: str, difference: Decimal, detail: Optional[str] = None):
        self.year = year
        self.check = check
        self.difference = difference
        msg = f"{check} broken in {year} (difference {difference})"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)
