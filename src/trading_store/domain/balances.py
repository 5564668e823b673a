"""Balance domain models.

A balance is the free and locked amount of one asset held by one user.
All models are immutable.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import field_validator
from pydantic.dataclasses import dataclass


@dataclass(frozen=True)
class UserBalance:
    """Balance of a single asset for a single user.

    Identified by (user_id, asset). Amounts are never negative.
    """

    user_id: int
    asset: str
    free: Decimal
    locked: Decimal
    id: int | None = None  # Store-assigned surrogate key
    updated_at: datetime | None = None

    @field_validator("free", "locked")
    @classmethod
    def validate_non_negative(cls, v: Decimal) -> Decimal:
        """Ensure amounts are not negative."""
        if v < 0:
            raise ValueError("Balance amounts must not be negative")
        return v

    def total(self) -> Decimal:
        """Return free + locked."""
        return self.free + self.locked

    def is_zero(self) -> bool:
        """Return True if both free and locked are exactly zero."""
        return self.free == 0 and self.locked == 0


@dataclass(frozen=True)
class BalanceWrite:
    """Outcome of a conditional balance write.

    applied is False when the stored values already matched and nothing
    was written. When applied is True, balance carries the row id and the
    timestamp that was written.
    """

    applied: bool
    balance: UserBalance
