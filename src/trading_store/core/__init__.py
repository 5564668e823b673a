"""Core configuration and logging for the trading store."""

from trading_store.core.config import (
    DatabaseConfig,
    PoolConfig,
    StorageType,
    StoreConfig,
    load_config,
)
from trading_store.core.logs import setup_logging

__all__ = [
    "DatabaseConfig",
    "PoolConfig",
    "StorageType",
    "StoreConfig",
    "load_config",
    "setup_logging",
]
