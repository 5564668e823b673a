"""Order repository and order status audit log.

Mutations by natural key derive existence from the affected-row count of
the mutation itself; there is no read before write.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from decimal import Decimal
from enum import Enum

from pydantic import ValidationError
from sqlalchemy import delete, func, select, update

from trading_store.db.database import Database
from trading_store.db.models import OrderRecord, OrderUpdateRecord
from trading_store.db.query import FilteredQuery, PredicateBuilder
from trading_store.domain.errors import MalformedRecordError, OrderNotFoundError
from trading_store.domain.filters import OrderFilter
from trading_store.domain.orders import Order, OrderUpdate
from trading_store.domain.types import OPEN_ORDER_STATUSES, OrderSide, enum_value
from trading_store.storage.base import OrderStorage, OrderUpdateStorage

logger = logging.getLogger(__name__)

ORDER_QUERY = PredicateBuilder(
    owner_column=OrderRecord.user_id,
    time_column=OrderRecord.transact_time,
    order_by=(OrderRecord.created_at.desc(), OrderRecord.id.desc()),
    symbol_column=OrderRecord.symbol,
    status_column=OrderRecord.status,
)


class SqlOrderRepository(OrderStorage):
    """Order lifecycle persistence on the relational store."""

    def __init__(self, database: Database) -> None:
        """Initialize repository.

        Args:
            database: Shared database collaborator
        """
        self._db = database

    def create_order(self, order: Order) -> Order:
        with self._db.transaction("create_order", mexc_order_id=order.mexc_order_id) as session:
            record = OrderRecord(
                internal_id=order.internal_id,
                user_id=order.user_id,
                mexc_order_id=order.mexc_order_id,
                symbol=order.symbol,
                side=order.side.value,
                type=order.type,
                status=order.status,
                price=order.price,
                quantity=order.quantity,
                quote_order_qty=order.quote_order_qty,
                executed_quantity=order.executed_quantity,
                cummulative_quote_qty=order.cummulative_quote_qty,
                client_order_id=order.client_order_id,
                transact_time=order.transact_time,
            )
            session.add(record)
            session.flush()
            # Loads the store-assigned columns inside the transaction
            created = replace(
                order,
                id=record.id,
                created_at=record.created_at,
                updated_at=record.updated_at,
            )
        logger.debug(f"Order {order.mexc_order_id} created for user {order.user_id}")
        return created

    def get_order(self, mexc_order_id: str) -> Order:
        with self._db.session("get_order", mexc_order_id=mexc_order_id) as session:
            stmt = select(OrderRecord).where(OrderRecord.mexc_order_id == mexc_order_id)
            record = session.execute(stmt).scalar_one_or_none()
            if record is None:
                raise OrderNotFoundError(mexc_order_id, {"operation": "get_order"})
            return self._order_from_record(record)

    def update_order_status(self, mexc_order_id: str, status: str | Enum) -> None:
        self._update(
            "update_order_status",
            mexc_order_id,
            status=enum_value(status),
        )

    def update_order_execution(
        self,
        mexc_order_id: str,
        status: str | Enum,
        executed_quantity: Decimal,
        cummulative_quote_qty: Decimal,
    ) -> None:
        self._update(
            "update_order_execution",
            mexc_order_id,
            status=enum_value(status),
            executed_quantity=executed_quantity,
            cummulative_quote_qty=cummulative_quote_qty,
        )

    def delete_order(self, mexc_order_id: str) -> None:
        with self._db.transaction("delete_order", mexc_order_id=mexc_order_id) as session:
            stmt = delete(OrderRecord).where(OrderRecord.mexc_order_id == mexc_order_id)
            result = session.execute(stmt, execution_options={"synchronize_session": False})
            if result.rowcount == 0:
                raise OrderNotFoundError(mexc_order_id, {"operation": "delete_order"})
        logger.debug(f"Order {mexc_order_id} deleted")

    def get_user_orders(
        self,
        user_id: int,
        criteria: OrderFilter | None = None,
    ) -> list[Order]:
        query = ORDER_QUERY.build(select(OrderRecord), user_id, criteria)
        return self._fetch("get_user_orders", query, user_id)

    def get_open_orders(self, user_id: int, symbol: str | None = None) -> list[Order]:
        base = select(OrderRecord).where(
            OrderRecord.status.in_([s.value for s in OPEN_ORDER_STATUSES])
        )
        query = ORDER_QUERY.build(base, user_id, OrderFilter(symbol=symbol))
        return self._fetch("get_open_orders", query, user_id)

    def _update(self, operation: str, mexc_order_id: str, **values: object) -> None:
        """Apply column values to one order and refresh updated_at server-side."""
        with self._db.transaction(operation, mexc_order_id=mexc_order_id) as session:
            stmt = (
                update(OrderRecord)
                .where(OrderRecord.mexc_order_id == mexc_order_id)
                .values(**values, updated_at=func.now())
            )
            result = session.execute(stmt, execution_options={"synchronize_session": False})
            if result.rowcount == 0:
                raise OrderNotFoundError(mexc_order_id, {"operation": operation})
        logger.debug(f"Order {mexc_order_id} updated: {values}")

    def _fetch(self, operation: str, query: FilteredQuery, user_id: int) -> list[Order]:
        with self._db.session(operation, user_id=user_id) as session:
            records = session.execute(query.statement).scalars().all()
            return [self._order_from_record(r) for r in records]

    @staticmethod
    def _order_from_record(record: OrderRecord) -> Order:
        """Convert database record to domain Order."""
        try:
            return Order(
                id=record.id,
                internal_id=record.internal_id,
                user_id=record.user_id,
                mexc_order_id=record.mexc_order_id,
                symbol=record.symbol,
                side=OrderSide(record.side),
                type=record.type,
                status=record.status,
                price=record.price,
                quantity=record.quantity,
                quote_order_qty=record.quote_order_qty,
                executed_quantity=record.executed_quantity,
                cummulative_quote_qty=record.cummulative_quote_qty,
                client_order_id=record.client_order_id,
                transact_time=record.transact_time,
                created_at=record.created_at,
                updated_at=record.updated_at,
            )
        except (ValueError, ValidationError) as exc:
            raise MalformedRecordError(
                f"Order row {record.id} cannot be decoded: {exc}",
                {"mexc_order_id": record.mexc_order_id},
            ) from exc


class SqlOrderUpdateLog(OrderUpdateStorage):
    """Append-only order status history."""

    def __init__(self, database: Database) -> None:
        self._db = database

    def append_order_update(self, entry: OrderUpdate) -> OrderUpdate:
        with self._db.transaction(
            "append_order_update", user_id=entry.user_id, order_id=entry.order_id
        ) as session:
            record = OrderUpdateRecord(
                user_id=entry.user_id,
                order_id=entry.order_id,
                status=entry.status,
                executed_quantity=entry.executed_quantity,
                cummulative_quote_qty=entry.cummulative_quote_qty,
                update_time=entry.update_time,
                raw_data=entry.raw_data,
            )
            session.add(record)
            session.flush()
            appended = replace(entry, id=record.id)
        logger.debug(f"Order {entry.order_id} transition to {entry.status} recorded")
        return appended

    def get_order_updates(self, user_id: int, order_id: str) -> list[OrderUpdate]:
        with self._db.session("get_order_updates", user_id=user_id, order_id=order_id) as session:
            stmt = (
                select(OrderUpdateRecord)
                .where(
                    OrderUpdateRecord.user_id == user_id,
                    OrderUpdateRecord.order_id == order_id,
                )
                .order_by(OrderUpdateRecord.update_time.desc(), OrderUpdateRecord.id.desc())
            )
            records = session.execute(stmt).scalars().all()
            return [self._update_from_record(r) for r in records]

    @staticmethod
    def _update_from_record(record: OrderUpdateRecord) -> OrderUpdate:
        """Convert database record to domain OrderUpdate."""
        try:
            return OrderUpdate(
                id=record.id,
                user_id=record.user_id,
                order_id=record.order_id,
                status=record.status,
                executed_quantity=record.executed_quantity,
                cummulative_quote_qty=record.cummulative_quote_qty,
                update_time=record.update_time,
                raw_data=record.raw_data,
            )
        except ValidationError as exc:
            raise MalformedRecordError(
                f"Order update row {record.id} cannot be decoded: {exc}",
                {"order_id": record.order_id},
            ) from exc
