"""Persistence core for a trading bot.

Orders and their status history, trades, and a per-asset balance ledger
on a relational store.
"""

from trading_store.core.config import StoreConfig, load_config
from trading_store.storage.base import Storage
from trading_store.storage.factory import create_storage

__version__ = "0.1.0"

__all__ = [
    "Storage",
    "StoreConfig",
    "create_storage",
    "load_config",
]
