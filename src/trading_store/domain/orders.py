"""Order domain models.

These models represent exchange orders and the audit records of their
status transitions. All models are immutable.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import field_validator
from pydantic.dataclasses import dataclass

from trading_store.domain.types import OPEN_ORDER_STATUSES, OrderSide, enum_value


@dataclass(frozen=True)
class Order:
    """An order as asserted by the trading engine.

    Immutable - repositories return fresh copies carrying the fields the
    store assigns (id, created_at, updated_at).
    """

    internal_id: int  # Engine-assigned sequence number
    user_id: int
    mexc_order_id: str  # Exchange-assigned order ID (natural key)
    symbol: str
    side: OrderSide
    type: str  # LIMIT, MARKET, ...
    status: str  # NEW, PARTIALLY_FILLED, FILLED, ...
    price: Decimal
    quantity: Decimal
    transact_time: datetime
    quote_order_qty: Decimal | None = None
    executed_quantity: Decimal = Decimal("0")
    cummulative_quote_qty: Decimal = Decimal("0")
    client_order_id: str | None = None
    id: int | None = None  # Store-assigned surrogate key
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("type", "status", mode="before")
    @classmethod
    def unwrap_enum(cls, v: Any) -> Any:
        """Accept OrderType/OrderStatus members for the open string fields."""
        if isinstance(v, Enum):
            return enum_value(v)
        return v

    def remaining_quantity(self) -> Decimal:
        """Return the unexecuted quantity."""
        return self.quantity - self.executed_quantity

    def is_open(self) -> bool:
        """Return True if the order can still receive fills."""
        return self.status in {s.value for s in OPEN_ORDER_STATUSES}


@dataclass(frozen=True)
class OrderUpdate:
    """Audit record of one observed order status transition.

    Never mutated or deleted once written. `order_id` is the exchange order
    ID; the record outlives the order row itself.
    """

    user_id: int
    order_id: str
    status: str
    executed_quantity: Decimal
    cummulative_quote_qty: Decimal
    update_time: datetime
    raw_data: dict[str, Any] | None = None  # Exchange payload as received
    id: int | None = None

    @field_validator("status", mode="before")
    @classmethod
    def unwrap_enum(cls, v: Any) -> Any:
        """Accept OrderStatus members for the status field."""
        if isinstance(v, Enum):
            return enum_value(v)
        return v
