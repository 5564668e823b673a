"""Filter values for history queries.

A filter is passed once, explicitly. Callers that want everything pass
None (or a default-constructed filter); unset fields add no predicate.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import field_validator
from pydantic.dataclasses import dataclass

from trading_store.domain.types import enum_value


@dataclass(frozen=True)
class TradeFilter:
    """Filter for trade history.

    start_time and end_time are inclusive bounds. limit and offset only
    apply when positive.
    """

    symbol: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    limit: int = 0
    offset: int = 0

    @field_validator("limit", "offset")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        """Ensure pagination values are not negative."""
        if v < 0:
            raise ValueError("limit and offset must not be negative")
        return v


@dataclass(frozen=True)
class OrderFilter(TradeFilter):
    """Filter for order listings; adds status equality."""

    status: str | None = None

    @field_validator("status", mode="before")
    @classmethod
    def unwrap_enum(cls, v: Any) -> Any:
        """Accept OrderStatus members."""
        if isinstance(v, Enum):
            return enum_value(v)
        return v
