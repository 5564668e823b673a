"""Domain models for the trading store.

This package contains the storage-agnostic entities, filter values and
error types. All models are immutable and use Decimal for amounts.
"""

from trading_store.domain.balances import BalanceWrite, UserBalance
from trading_store.domain.errors import (
    BalanceNotFoundError,
    ConfigurationError,
    DuplicateKeyError,
    MalformedRecordError,
    NotFoundError,
    OrderNotFoundError,
    StorageError,
    StoreUnavailableError,
    TradeNotFoundError,
)
from trading_store.domain.filters import OrderFilter, TradeFilter
from trading_store.domain.orders import Order, OrderUpdate
from trading_store.domain.trades import Trade
from trading_store.domain.types import (
    OPEN_ORDER_STATUSES,
    OrderSide,
    OrderStatus,
    OrderType,
)

__all__ = [
    # Types
    "OPEN_ORDER_STATUSES",
    "OrderSide",
    "OrderStatus",
    "OrderType",
    # Orders
    "Order",
    "OrderUpdate",
    # Trades
    "Trade",
    # Balances
    "BalanceWrite",
    "UserBalance",
    # Filters
    "OrderFilter",
    "TradeFilter",
    # Errors
    "BalanceNotFoundError",
    "ConfigurationError",
    "DuplicateKeyError",
    "MalformedRecordError",
    "NotFoundError",
    "OrderNotFoundError",
    "StorageError",
    "StoreUnavailableError",
    "TradeNotFoundError",
]
