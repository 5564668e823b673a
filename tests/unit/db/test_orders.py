"""Tests for the order repository."""

import time
from dataclasses import replace
from datetime import UTC, datetime
from decimal import Decimal

import pytest

from trading_store.db.models import OrderRecord
from trading_store.db.store import SqlStorage
from trading_store.domain.errors import (
    DuplicateKeyError,
    MalformedRecordError,
    OrderNotFoundError,
)
from trading_store.domain.filters import OrderFilter
from trading_store.domain.orders import Order
from trading_store.domain.types import OrderSide, OrderStatus

# SQLite CURRENT_TIMESTAMP has one-second resolution
STORE_CLOCK_TICK = 1.1


def make_order(base: Order, n: int, **changes: object) -> Order:
    """Derive a distinct order from the sample."""
    return replace(base, internal_id=n, mexc_order_id=f"O{n}", **changes)


class TestCreateOrder:
    """Tests for create_order and get_order."""

    def test_create_assigns_store_fields(
        self,
        storage: SqlStorage,
        sample_order: Order,
    ) -> None:
        """The stored order carries id and timestamps."""
        created = storage.orders.create_order(sample_order)

        assert created.id is not None
        assert created.created_at is not None
        assert created.updated_at is not None
        assert created.mexc_order_id == "O1"

    def test_create_and_get(self, storage: SqlStorage, sample_order: Order) -> None:
        """Should save and retrieve order."""
        created = storage.orders.create_order(sample_order)

        result = storage.orders.get_order("O1")

        assert result.id == created.id
        assert result.user_id == 1
        assert result.symbol == "BTCUSDT"
        assert result.side == OrderSide.BUY
        assert result.type == "LIMIT"
        assert result.status == "NEW"
        assert result.price == Decimal("50000")
        assert result.quantity == Decimal("0.01")
        assert result.executed_quantity == Decimal("0")
        assert result.client_order_id == "client-1"
        assert result.quote_order_qty is None

    def test_duplicate_exchange_id(self, storage: SqlStorage, sample_order: Order) -> None:
        """A second order with the same exchange ID is rejected."""
        storage.orders.create_order(sample_order)

        with pytest.raises(DuplicateKeyError) as exc_info:
            storage.orders.create_order(replace(sample_order, internal_id=2))

        assert exc_info.value.context["operation"] == "create_order"
        assert exc_info.value.context["mexc_order_id"] == "O1"

    def test_duplicate_internal_id(self, storage: SqlStorage, sample_order: Order) -> None:
        """The engine sequence number is unique too."""
        storage.orders.create_order(sample_order)

        with pytest.raises(DuplicateKeyError):
            storage.orders.create_order(replace(sample_order, mexc_order_id="O2"))

    def test_failed_create_leaves_no_row(
        self,
        storage: SqlStorage,
        sample_order: Order,
    ) -> None:
        """A rejected insert does not disturb the existing order."""
        storage.orders.create_order(sample_order)
        with pytest.raises(DuplicateKeyError):
            storage.orders.create_order(replace(sample_order, internal_id=2, symbol="ETHUSDT"))

        assert storage.orders.get_order("O1").symbol == "BTCUSDT"
        assert len(storage.orders.get_user_orders(1)) == 1

    def test_get_missing(self, storage: SqlStorage) -> None:
        """Unknown exchange IDs raise OrderNotFoundError."""
        with pytest.raises(OrderNotFoundError) as exc_info:
            storage.orders.get_order("missing")
        assert exc_info.value.mexc_order_id == "missing"

    def test_malformed_row(self, storage: SqlStorage, sample_order: Order) -> None:
        """A row with an unknown side cannot be decoded."""
        with storage.database.session("seed") as session:
            session.add(
                OrderRecord(
                    internal_id=99,
                    user_id=1,
                    mexc_order_id="BAD",
                    symbol="BTCUSDT",
                    side="HOLD",
                    type="LIMIT",
                    status="NEW",
                    price=Decimal("1"),
                    quantity=Decimal("1"),
                    transact_time=sample_order.transact_time,
                )
            )
            session.commit()

        with pytest.raises(MalformedRecordError):
            storage.orders.get_order("BAD")


class TestUpdateOrder:
    """Tests for status and execution updates."""

    def test_update_status(self, storage: SqlStorage, sample_order: Order) -> None:
        """Status is overwritten."""
        storage.orders.create_order(sample_order)

        storage.orders.update_order_status("O1", OrderStatus.CANCELED)

        assert storage.orders.get_order("O1").status == "CANCELED"

    def test_update_status_refreshes_updated_at(
        self,
        storage: SqlStorage,
        sample_order: Order,
    ) -> None:
        """A status change moves updated_at forward and keeps created_at."""
        created = storage.orders.create_order(sample_order)
        time.sleep(STORE_CLOCK_TICK)

        storage.orders.update_order_status("O1", OrderStatus.FILLED)

        result = storage.orders.get_order("O1")
        assert result.updated_at > created.updated_at
        assert result.created_at == created.created_at

    def test_update_execution_refreshes_updated_at(
        self,
        storage: SqlStorage,
        sample_order: Order,
    ) -> None:
        """A fill update moves updated_at forward."""
        created = storage.orders.create_order(sample_order)
        time.sleep(STORE_CLOCK_TICK)

        storage.orders.update_order_execution(
            "O1", OrderStatus.PARTIALLY_FILLED, Decimal("0.004"), Decimal("200")
        )

        assert storage.orders.get_order("O1").updated_at > created.updated_at

    def test_update_status_accepts_any_string(
        self,
        storage: SqlStorage,
        sample_order: Order,
    ) -> None:
        """Status values are not validated against the enum."""
        storage.orders.create_order(sample_order)

        storage.orders.update_order_status("O1", "EXPIRED")

        assert storage.orders.get_order("O1").status == "EXPIRED"

    def test_update_status_missing(self, storage: SqlStorage) -> None:
        """Updating an unknown order raises OrderNotFoundError."""
        with pytest.raises(OrderNotFoundError):
            storage.orders.update_order_status("missing", OrderStatus.FILLED)

    def test_update_execution(self, storage: SqlStorage, sample_order: Order) -> None:
        """Status and fill progress are overwritten together."""
        storage.orders.create_order(sample_order)

        storage.orders.update_order_execution(
            "O1",
            OrderStatus.PARTIALLY_FILLED,
            executed_quantity=Decimal("0.004"),
            cummulative_quote_qty=Decimal("200"),
        )

        result = storage.orders.get_order("O1")
        assert result.status == "PARTIALLY_FILLED"
        assert result.executed_quantity == Decimal("0.004")
        assert result.cummulative_quote_qty == Decimal("200")
        assert result.remaining_quantity() == Decimal("0.006")

    def test_update_execution_missing(self, storage: SqlStorage) -> None:
        """Execution updates on unknown orders raise OrderNotFoundError."""
        with pytest.raises(OrderNotFoundError):
            storage.orders.update_order_execution(
                "missing", OrderStatus.FILLED, Decimal("1"), Decimal("1")
            )


class TestDeleteOrder:
    """Tests for delete_order."""

    def test_delete(self, storage: SqlStorage, sample_order: Order) -> None:
        """A deleted order is gone."""
        storage.orders.create_order(sample_order)

        storage.orders.delete_order("O1")

        with pytest.raises(OrderNotFoundError):
            storage.orders.get_order("O1")

    def test_delete_twice(self, storage: SqlStorage, sample_order: Order) -> None:
        """Deleting an absent order raises OrderNotFoundError."""
        storage.orders.create_order(sample_order)
        storage.orders.delete_order("O1")

        with pytest.raises(OrderNotFoundError):
            storage.orders.delete_order("O1")


class TestListOrders:
    """Tests for get_user_orders and get_open_orders."""

    @pytest.fixture
    def seeded(self, storage: SqlStorage, sample_order: Order) -> SqlStorage:
        """Four orders for user 1 and one for user 2, created in id order."""
        orders = [
            make_order(sample_order, 1),
            make_order(sample_order, 2, symbol="ETHUSDT", status=OrderStatus.FILLED),
            make_order(
                sample_order,
                3,
                status=OrderStatus.PARTIALLY_FILLED,
                transact_time=datetime(2024, 3, 2, tzinfo=UTC),
            ),
            make_order(
                sample_order,
                4,
                symbol="ETHUSDT",
                transact_time=datetime(2024, 3, 3, tzinfo=UTC),
            ),
            make_order(sample_order, 5, user_id=2),
        ]
        for order in orders:
            storage.orders.create_order(order)
        return storage

    def test_newest_first(self, seeded: SqlStorage) -> None:
        """Orders are returned most recently created first."""
        result = seeded.orders.get_user_orders(1)
        assert [o.mexc_order_id for o in result] == ["O4", "O3", "O2", "O1"]

    def test_no_filter_equals_default_filter(self, seeded: SqlStorage) -> None:
        """None and an empty filter behave alike."""
        assert seeded.orders.get_user_orders(1) == seeded.orders.get_user_orders(
            1, OrderFilter()
        )

    def test_scoped_to_user(self, seeded: SqlStorage) -> None:
        """Other users' orders are never returned."""
        result = seeded.orders.get_user_orders(2)
        assert [o.mexc_order_id for o in result] == ["O5"]

    def test_symbol_filter(self, seeded: SqlStorage) -> None:
        """Symbol filter matches exactly."""
        result = seeded.orders.get_user_orders(1, OrderFilter(symbol="ETHUSDT"))
        assert [o.mexc_order_id for o in result] == ["O4", "O2"]

    def test_status_filter(self, seeded: SqlStorage) -> None:
        """Status filter matches exactly."""
        result = seeded.orders.get_user_orders(1, OrderFilter(status=OrderStatus.FILLED))
        assert [o.mexc_order_id for o in result] == ["O2"]

    def test_time_bounds_inclusive(self, seeded: SqlStorage) -> None:
        """Start and end bounds on transact time are inclusive."""
        criteria = OrderFilter(
            start_time=datetime(2024, 3, 2, tzinfo=UTC),
            end_time=datetime(2024, 3, 3, tzinfo=UTC),
        )
        result = seeded.orders.get_user_orders(1, criteria)
        assert [o.mexc_order_id for o in result] == ["O4", "O3"]

    def test_limit_and_offset(self, seeded: SqlStorage) -> None:
        """Paging applies after ordering."""
        result = seeded.orders.get_user_orders(1, OrderFilter(limit=2, offset=1))
        assert [o.mexc_order_id for o in result] == ["O3", "O2"]

    def test_offset_only(self, seeded: SqlStorage) -> None:
        """Offset without limit skips the newest rows."""
        result = seeded.orders.get_user_orders(1, OrderFilter(offset=3))
        assert [o.mexc_order_id for o in result] == ["O1"]

    def test_no_match(self, seeded: SqlStorage) -> None:
        """No match yields an empty list."""
        assert seeded.orders.get_user_orders(1, OrderFilter(symbol="DOGEUSDT")) == []

    def test_open_orders(self, seeded: SqlStorage) -> None:
        """Only NEW and PARTIALLY_FILLED orders are open."""
        result = seeded.orders.get_open_orders(1)
        assert [o.mexc_order_id for o in result] == ["O4", "O3", "O1"]
        assert all(o.is_open() for o in result)

    def test_open_orders_by_symbol(self, seeded: SqlStorage) -> None:
        """Open orders can be narrowed to one symbol."""
        result = seeded.orders.get_open_orders(1, "ETHUSDT")
        assert [o.mexc_order_id for o in result] == ["O4"]

    def test_open_orders_after_fill(self, seeded: SqlStorage) -> None:
        """A filled order leaves the open set."""
        seeded.orders.update_order_status("O1", OrderStatus.FILLED)
        result = seeded.orders.get_open_orders(1, "BTCUSDT")
        assert [o.mexc_order_id for o in result] == ["O3"]
