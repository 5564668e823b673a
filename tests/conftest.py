"""Pytest configuration and shared fixtures."""

from collections.abc import Iterator
from datetime import UTC, datetime
from decimal import Decimal

import pytest

from trading_store.core.config import DatabaseConfig, StoreConfig
from trading_store.db.store import SqlStorage
from trading_store.domain.balances import UserBalance
from trading_store.domain.orders import Order
from trading_store.domain.trades import Trade
from trading_store.domain.types import OrderSide, OrderStatus, OrderType


@pytest.fixture
def store_config() -> StoreConfig:
    """Store configuration backed by an in-memory SQLite database."""
    return StoreConfig(database=DatabaseConfig(url="sqlite:///:memory:"))


@pytest.fixture
def storage(store_config: StoreConfig) -> Iterator[SqlStorage]:
    """Fresh storage with the schema created."""
    with SqlStorage(store_config) as store:
        yield store


@pytest.fixture
def sample_order() -> Order:
    """A NEW limit buy order for user 1."""
    return Order(
        internal_id=1,
        user_id=1,
        mexc_order_id="O1",
        symbol="BTCUSDT",
        side=OrderSide.BUY,
        type=OrderType.LIMIT,
        status=OrderStatus.NEW,
        price=Decimal("50000"),
        quantity=Decimal("0.01"),
        transact_time=datetime(2024, 3, 1, 12, 0, tzinfo=UTC),
        client_order_id="client-1",
    )


@pytest.fixture
def sample_trade() -> Trade:
    """A maker buy fill of order O1."""
    return Trade(
        user_id=1,
        mexc_trade_id="T1",
        order_id="O1",
        symbol="BTCUSDT",
        price=Decimal("50000"),
        quantity=Decimal("0.01"),
        quote_quantity=Decimal("500"),
        commission=Decimal("0.5"),
        commission_asset="USDT",
        trade_time=datetime(2024, 3, 1, 12, 0, 5, tzinfo=UTC),
        is_buyer=True,
        is_maker=True,
    )


@pytest.fixture
def sample_balance() -> UserBalance:
    """1.5 BTC free, 0.5 locked for user 1."""
    return UserBalance(
        user_id=1,
        asset="BTC",
        free=Decimal("1.5"),
        locked=Decimal("0.5"),
    )
