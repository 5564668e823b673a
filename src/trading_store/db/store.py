"""SQL implementation of the aggregate storage surface."""

from __future__ import annotations

import logging

from trading_store.core.config import StoreConfig
from trading_store.db.balances import SqlBalanceLedger
from trading_store.db.database import Database
from trading_store.db.orders import SqlOrderRepository, SqlOrderUpdateLog
from trading_store.db.trades import SqlTradeRepository
from trading_store.storage.base import (
    BalanceStorage,
    OrderStorage,
    OrderUpdateStorage,
    Storage,
    TradeStorage,
)

logger = logging.getLogger(__name__)


class SqlStorage(Storage):
    """Orders, audit log, trades and balances sharing one Database.

    Thread-safe with session-per-operation pattern.
    """

    def __init__(self, config: StoreConfig | None = None) -> None:
        """Initialize storage.

        Args:
            config: Store configuration (defaults to StoreConfig())
        """
        self._database = Database(config or StoreConfig())
        self._orders = SqlOrderRepository(self._database)
        self._order_updates = SqlOrderUpdateLog(self._database)
        self._trades = SqlTradeRepository(self._database)
        self._balances = SqlBalanceLedger(self._database)
        logger.info(f"SQL storage ready on {self._database.backend}")

    @property
    def database(self) -> Database:
        """Get the shared database collaborator."""
        return self._database

    @property
    def orders(self) -> OrderStorage:
        return self._orders

    @property
    def order_updates(self) -> OrderUpdateStorage:
        return self._order_updates

    @property
    def trades(self) -> TradeStorage:
        return self._trades

    @property
    def balances(self) -> BalanceStorage:
        return self._balances

    def ping(self) -> bool:
        return self._database.ping()

    def close(self) -> None:
        self._database.close()
