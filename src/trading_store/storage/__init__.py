"""Storage interfaces for the trading engine.

This package contains the storage abstraction layer and the factory that
builds a concrete implementation from configuration.
"""

from trading_store.storage.base import (
    BalanceStorage,
    OrderStorage,
    OrderUpdateStorage,
    Storage,
    TradeStorage,
)
from trading_store.storage.factory import create_storage, register_storage

__all__ = [
    "BalanceStorage",
    "OrderStorage",
    "OrderUpdateStorage",
    "Storage",
    "TradeStorage",
    "create_storage",
    "register_storage",
]
