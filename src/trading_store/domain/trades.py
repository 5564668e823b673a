"""Trade domain model."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic.dataclasses import dataclass


@dataclass(frozen=True)
class Trade:
    """Record of an executed trade (fill).

    Immutable after creation; the store assigns id and created_at.
    """

    user_id: int
    mexc_trade_id: str  # Exchange-assigned trade ID (natural key)
    order_id: str  # Exchange order ID the trade belongs to
    symbol: str
    price: Decimal
    quantity: Decimal
    quote_quantity: Decimal
    commission: Decimal
    commission_asset: str
    trade_time: datetime
    is_buyer: bool
    is_maker: bool
    id: int | None = None
    created_at: datetime | None = None

    def notional(self) -> Decimal:
        """Return notional value (price * quantity)."""
        return self.price * self.quantity
