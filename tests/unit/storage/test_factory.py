"""Tests for storage factory."""

from decimal import Decimal

import pytest

from trading_store.core.config import DatabaseConfig, StorageType, StoreConfig
from trading_store.db.store import SqlStorage
from trading_store.domain.balances import UserBalance
from trading_store.domain.errors import ConfigurationError, StoreUnavailableError
from trading_store.storage import base
from trading_store.storage.base import Storage
from trading_store.storage.factory import _storage_factories, create_storage

UNREACHABLE = StoreConfig(
    database=DatabaseConfig(url="sqlite:////nonexistent-dir/store.db"),
    create_schema=False,
)


class TestCreateStorage:
    """Tests for create_storage function."""

    def test_creates_sql_storage(self, store_config: StoreConfig) -> None:
        """The default storage type is SQL."""
        with create_storage(store_config) as storage:
            assert isinstance(storage, SqlStorage)
            assert isinstance(storage, Storage)
            assert isinstance(storage.orders, base.OrderStorage)
            assert isinstance(storage.order_updates, base.OrderUpdateStorage)
            assert isinstance(storage.trades, base.TradeStorage)
            assert isinstance(storage.balances, base.BalanceStorage)

    def test_ping(self, store_config: StoreConfig) -> None:
        """A reachable store answers ping."""
        with create_storage(store_config) as storage:
            assert storage.ping() is True

    def test_unregistered_type(
        self,
        store_config: StoreConfig,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """A storage type without a factory raises ConfigurationError."""
        monkeypatch.setattr("trading_store.storage.factory._storage_factories", {})
        with pytest.raises(ConfigurationError) as exc_info:
            create_storage(store_config)
        assert exc_info.value.field == "storage"

    def test_registry_has_sql(self) -> None:
        """The SQL storage registers itself."""
        assert StorageType.SQL in _storage_factories

    def test_unsupported_backend(self) -> None:
        """Dialects without upsert support are rejected at construction."""
        config = StoreConfig(database=DatabaseConfig(url="mysql://user@localhost/db"))
        with pytest.raises(ConfigurationError):
            create_storage(config)


class TestUnavailableStore:
    """Operations against a store that cannot be opened."""

    def test_ping_fails(self) -> None:
        """ping() reports False instead of raising."""
        with create_storage(UNREACHABLE) as storage:
            assert storage.ping() is False

    def test_read_raises(self) -> None:
        """Reads raise StoreUnavailableError."""
        with create_storage(UNREACHABLE) as storage:
            with pytest.raises(StoreUnavailableError) as exc_info:
                storage.orders.get_order("O1")
        assert exc_info.value.context["operation"] == "get_order"

    def test_batch_raises(self) -> None:
        """Batch balance writes raise StoreUnavailableError."""
        entry = UserBalance(user_id=1, asset="BTC", free=Decimal("1"), locked=Decimal("0"))
        with create_storage(UNREACHABLE) as storage:
            with pytest.raises(StoreUnavailableError):
                storage.balances.update_user_balances(1, [entry])
