"""Storage capability abstractions.

Defines the interfaces the trading engine depends on. Each repository has
one abstract base; Storage aggregates the four behind a single surface.
The SQL implementations live in trading_store.db.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from types import TracebackType

    from trading_store.domain.balances import BalanceWrite, UserBalance
    from trading_store.domain.filters import OrderFilter, TradeFilter
    from trading_store.domain.orders import Order, OrderUpdate
    from trading_store.domain.trades import Trade


class OrderStorage(ABC):
    """Order lifecycle: creation, status transitions, lookups, deletion."""

    @abstractmethod
    def create_order(self, order: Order) -> Order:
        """Insert a new order.

        Returns:
            The stored order with id, created_at and updated_at set

        Raises:
            DuplicateKeyError: If the exchange order ID already exists
            StoreUnavailableError: If the store cannot be reached
        """
        ...

    @abstractmethod
    def get_order(self, mexc_order_id: str) -> Order:
        """Get an order by exchange order ID.

        Raises:
            OrderNotFoundError: If no order matches
        """
        ...

    @abstractmethod
    def update_order_status(self, mexc_order_id: str, status: str | Enum) -> None:
        """Overwrite the order status and refresh updated_at.

        Raises:
            OrderNotFoundError: If no order was affected
        """
        ...

    @abstractmethod
    def update_order_execution(
        self,
        mexc_order_id: str,
        status: str | Enum,
        executed_quantity: Decimal,
        cummulative_quote_qty: Decimal,
    ) -> None:
        """Overwrite status and fill progress and refresh updated_at.

        Raises:
            OrderNotFoundError: If no order was affected
        """
        ...

    @abstractmethod
    def delete_order(self, mexc_order_id: str) -> None:
        """Hard-delete an order.

        Raises:
            OrderNotFoundError: If no order was affected
        """
        ...

    @abstractmethod
    def get_user_orders(
        self,
        user_id: int,
        criteria: OrderFilter | None = None,
    ) -> list[Order]:
        """List a user's orders, newest first.

        Returns:
            Matching orders; empty list if none
        """
        ...

    @abstractmethod
    def get_open_orders(self, user_id: int, symbol: str | None = None) -> list[Order]:
        """List a user's NEW and PARTIALLY_FILLED orders, newest first."""
        ...


class OrderUpdateStorage(ABC):
    """Append-only history of order status transitions."""

    @abstractmethod
    def append_order_update(self, entry: OrderUpdate) -> OrderUpdate:
        """Record one transition. Duplicates are allowed.

        Returns:
            The stored record with id set
        """
        ...

    @abstractmethod
    def get_order_updates(self, user_id: int, order_id: str) -> list[OrderUpdate]:
        """Get the transition history of one order, most recent first."""
        ...


class TradeStorage(ABC):
    """Immutable record of executed trades."""

    @abstractmethod
    def create_trade(self, trade: Trade) -> Trade:
        """Insert a trade.

        Returns:
            The stored trade with id and created_at set

        Raises:
            DuplicateKeyError: If the exchange trade ID already exists
        """
        ...

    @abstractmethod
    def get_trade(self, mexc_trade_id: str) -> Trade:
        """Get a trade by exchange trade ID.

        Raises:
            TradeNotFoundError: If no trade matches
        """
        ...

    @abstractmethod
    def get_user_trades(
        self,
        user_id: int,
        criteria: TradeFilter | None = None,
    ) -> list[Trade]:
        """List a user's trades by trade time, newest first."""
        ...


class BalanceStorage(ABC):
    """Per-(user, asset) balance ledger."""

    @abstractmethod
    def get_balance(self, user_id: int, asset: str) -> UserBalance:
        """Get one balance.

        Raises:
            BalanceNotFoundError: If the user holds no row for the asset
        """
        ...

    @abstractmethod
    def get_user_balances(self, user_id: int) -> list[UserBalance]:
        """Get all balances of a user ordered by asset."""
        ...

    @abstractmethod
    def update_balance(self, balance: UserBalance) -> BalanceWrite:
        """Insert the balance, or overwrite it only if free or locked changed.

        Returns:
            BalanceWrite with applied=False when the stored values matched
        """
        ...

    @abstractmethod
    def update_user_balances(
        self,
        user_id: int,
        balances: Sequence[UserBalance],
    ) -> list[UserBalance]:
        """Reconcile a set of balances for one user atomically.

        All rows are written with one shared timestamp, then zero balances
        not touched by this pass are deleted. Nothing is visible unless
        every step succeeds.

        Returns:
            The written balances with ids set
        """
        ...


class Storage(ABC):
    """Aggregate storage surface exposed to the trading engine."""

    @property
    @abstractmethod
    def orders(self) -> OrderStorage:
        """Order repository."""
        ...

    @property
    @abstractmethod
    def order_updates(self) -> OrderUpdateStorage:
        """Order audit log."""
        ...

    @property
    @abstractmethod
    def trades(self) -> TradeStorage:
        """Trade repository."""
        ...

    @property
    @abstractmethod
    def balances(self) -> BalanceStorage:
        """Balance ledger."""
        ...

    @abstractmethod
    def ping(self) -> bool:
        """Return True if the backing store is reachable."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Release all resources held by the storage."""
        ...

    def __enter__(self) -> Storage:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
