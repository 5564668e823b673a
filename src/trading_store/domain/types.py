"""Enumerations shared by the order and trade models.

Order side is a closed set. Order type and status are open string domains
on the exchange side; the enums below list the well-known values so callers
do not have to spell them out, but any string is accepted and persisted.
"""

from __future__ import annotations

from enum import Enum


class OrderSide(str, Enum):
    """Order direction: BUY or SELL."""

    BUY = "BUY"
    SELL = "SELL"

    def opposite(self) -> OrderSide:
        """Return the opposite order side."""
        return OrderSide.SELL if self == OrderSide.BUY else OrderSide.BUY


class OrderType(str, Enum):
    """Well-known spot order types."""

    LIMIT = "LIMIT"
    MARKET = "MARKET"
    LIMIT_MAKER = "LIMIT_MAKER"
    IMMEDIATE_OR_CANCEL = "IMMEDIATE_OR_CANCEL"
    FILL_OR_KILL = "FILL_OR_KILL"


class OrderStatus(str, Enum):
    """Well-known order statuses.

    State transitions reported by the exchange:
    - NEW -> PARTIALLY_FILLED (partial execution)
    - NEW -> FILLED (full execution)
    - NEW -> CANCELED (cancelled before any fill)
    - PARTIALLY_FILLED -> FILLED (remaining executed)
    - PARTIALLY_FILLED -> PARTIALLY_CANCELED (cancelled after some fills)
    """

    NEW = "NEW"  # Accepted, on book
    PARTIALLY_FILLED = "PARTIALLY_FILLED"  # Some fills received
    FILLED = "FILLED"  # Fully executed (terminal)
    CANCELED = "CANCELED"  # Cancelled without fills (terminal)
    PARTIALLY_CANCELED = "PARTIALLY_CANCELED"  # Cancelled after fills (terminal)

    def is_open(self) -> bool:
        """Return True if the order is on the book and can receive fills."""
        return self in OPEN_ORDER_STATUSES


OPEN_ORDER_STATUSES: tuple[OrderStatus, ...] = (
    OrderStatus.NEW,
    OrderStatus.PARTIALLY_FILLED,
)


def enum_value(value: str | Enum) -> str:
    """Return the plain string behind an enum member, or the string itself."""
    if isinstance(value, Enum):
        return str(value.value)
    return value
