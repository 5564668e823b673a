"""Database module.

Provides SQLAlchemy persistence for orders, order status history, trades
and balances.
"""

from trading_store.db.balances import SqlBalanceLedger
from trading_store.db.database import Database, translate_error
from trading_store.db.models import (
    BalanceRecord,
    Base,
    OrderRecord,
    OrderUpdateRecord,
    TradeRecord,
    UserRecord,
)
from trading_store.db.orders import SqlOrderRepository, SqlOrderUpdateLog
from trading_store.db.query import FilteredQuery, PredicateBuilder
from trading_store.db.store import SqlStorage
from trading_store.db.trades import SqlTradeRepository

__all__ = [
    "BalanceRecord",
    "Base",
    "Database",
    "FilteredQuery",
    "OrderRecord",
    "OrderUpdateRecord",
    "PredicateBuilder",
    "SqlBalanceLedger",
    "SqlOrderRepository",
    "SqlOrderUpdateLog",
    "SqlStorage",
    "SqlTradeRepository",
    "TradeRecord",
    "UserRecord",
    "translate_error",
]
