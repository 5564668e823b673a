"""Exception hierarchy for storage errors.

All storage errors inherit from StorageError, allowing code to catch
broad categories of errors. Each error type includes relevant context for
debugging and logging (operation name, natural key).

Error categories:
- NotFoundError: Entity absent on read, or zero rows affected on a
  targeted update/delete
- DuplicateKeyError: Uniqueness violation on insert
- StoreUnavailableError: Connection, transport or transaction failures
- MalformedRecordError: A stored row could not be mapped to its entity
- ConfigurationError: Invalid configuration
"""

from __future__ import annotations

from typing import Any


class StorageError(Exception):
    """Base exception for all storage errors.

    All errors raised by repositories inherit from this class, allowing
    code to catch broad categories of errors when needed.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        """Initialize with message and optional context.

        Args:
            message: Human-readable error description
            context: Additional structured data for logging/debugging
        """
        super().__init__(message)
        self.context = context or {}


class NotFoundError(StorageError):
    """Entity not found.

    Raised when a point lookup matches no row, or when an update or delete
    by natural key affected zero rows.
    """

    def __init__(
        self,
        entity: str,
        key: Any,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with entity name and key.

        Args:
            entity: Entity kind (e.g., "order", "balance")
            key: The natural key that was looked up
            context: Additional structured data
        """
        super().__init__(f"{entity} not found: {key}", context)
        self.entity = entity
        self.key = key


class OrderNotFoundError(NotFoundError):
    """Order with the given exchange order ID does not exist."""

    def __init__(self, mexc_order_id: str, context: dict[str, Any] | None = None) -> None:
        super().__init__("order", mexc_order_id, context)
        self.mexc_order_id = mexc_order_id


class TradeNotFoundError(NotFoundError):
    """Trade with the given exchange trade ID does not exist."""

    def __init__(self, mexc_trade_id: str, context: dict[str, Any] | None = None) -> None:
        super().__init__("trade", mexc_trade_id, context)
        self.mexc_trade_id = mexc_trade_id


class BalanceNotFoundError(NotFoundError):
    """No balance row for the (user, asset) pair."""

    def __init__(
        self,
        user_id: int,
        asset: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__("balance", f"{user_id}/{asset}", context)
        self.user_id = user_id
        self.asset = asset


class DuplicateKeyError(StorageError):
    """Uniqueness violation on insert.

    Raised when:
    - An order with the same exchange order ID (or internal ID) exists
    - A trade with the same exchange trade ID exists
    """


class StoreUnavailableError(StorageError):
    """The relational store could not be reached or failed mid-operation.

    Raised when:
    - The connection cannot be opened or is lost
    - The pool checkout times out
    - A statement times out or the transaction cannot be committed

    Callers may retry at their discretion; nothing is retried internally.
    """


class MalformedRecordError(StorageError):
    """A stored row could not be mapped back to its domain entity."""


class ConfigurationError(StorageError):
    """Invalid configuration.

    Raised when:
    - Configuration file is malformed
    - The database dialect is not supported
    - Configuration values fail validation
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with field information.

        Args:
            message: Human-readable error description
            field: Name of the configuration field with the issue
            context: Additional structured data
        """
        super().__init__(message, context)
        self.field = field
