"""SQLAlchemy models for trading data persistence.

Stores users, orders, order status history, trades and per-asset balances.
PostgreSQL in production, SQLite for tests.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# SQLite only auto-increments INTEGER PRIMARY KEY columns
Id = BigInteger().with_variant(Integer(), "sqlite")
Amount = Numeric(30, 15)


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class UserRecord(Base):
    """Account owner. Referenced by every other table.

    Only the key is modelled; account details are managed elsewhere.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Id, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"UserRecord(id={self.id!r})"


class OrderRecord(Base):
    """Persisted order record. Mutable status and fill progress."""

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Id, primary_key=True, autoincrement=True)
    internal_id: Mapped[int] = mapped_column(BigInteger, unique=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    mexc_order_id: Mapped[str] = mapped_column(String(64), unique=True)
    symbol: Mapped[str] = mapped_column(String(32), index=True)
    side: Mapped[str] = mapped_column(String(8))  # "BUY" or "SELL"
    type: Mapped[str] = mapped_column(String(32))
    status: Mapped[str] = mapped_column(String(32), index=True)
    price: Mapped[Decimal] = mapped_column(Amount)
    quantity: Mapped[Decimal] = mapped_column(Amount)
    quote_order_qty: Mapped[Decimal | None] = mapped_column(Amount, nullable=True)
    executed_quantity: Mapped[Decimal] = mapped_column(Amount, default=Decimal("0"))
    cummulative_quote_qty: Mapped[Decimal] = mapped_column(Amount, default=Decimal("0"))
    client_order_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    transact_time: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return (
            f"OrderRecord(mexc_order_id={self.mexc_order_id!r}, symbol={self.symbol!r}, "
            f"{self.side} {self.quantity} @ {self.price}, status={self.status!r})"
        )


class OrderUpdateRecord(Base):
    """Append-only order status history.

    order_id holds the exchange order ID without a foreign key so the
    history outlives the order row.
    """

    __tablename__ = "order_updates"
    __table_args__ = (Index("ix_order_updates_user_order", "user_id", "order_id"),)

    id: Mapped[int] = mapped_column(Id, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    order_id: Mapped[str] = mapped_column(String(64))
    status: Mapped[str] = mapped_column(String(32))
    executed_quantity: Mapped[Decimal] = mapped_column(Amount)
    cummulative_quote_qty: Mapped[Decimal] = mapped_column(Amount)
    update_time: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    raw_data: Mapped[Any] = mapped_column(JSON, nullable=True)

    def __repr__(self) -> str:
        return (
            f"OrderUpdateRecord(order={self.order_id!r}, status={self.status!r}, "
            f"at={self.update_time})"
        )


class TradeRecord(Base):
    """Persisted trade record. Never updated."""

    __tablename__ = "trades"

    id: Mapped[int] = mapped_column(Id, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    mexc_trade_id: Mapped[str] = mapped_column(String(64), unique=True)
    order_id: Mapped[str] = mapped_column(String(64), index=True)
    symbol: Mapped[str] = mapped_column(String(32), index=True)
    price: Mapped[Decimal] = mapped_column(Amount)
    quantity: Mapped[Decimal] = mapped_column(Amount)
    quote_quantity: Mapped[Decimal] = mapped_column(Amount)
    commission: Mapped[Decimal] = mapped_column(Amount)
    commission_asset: Mapped[str] = mapped_column(String(16))
    trade_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    is_buyer: Mapped[bool] = mapped_column(Boolean)
    is_maker: Mapped[bool] = mapped_column(Boolean)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return (
            f"TradeRecord(mexc_trade_id={self.mexc_trade_id!r}, "
            f"{self.quantity} {self.symbol} @ {self.price})"
        )


class BalanceRecord(Base):
    """Per-(user, asset) balance. Written only by the balance ledger."""

    __tablename__ = "user_balances"
    __table_args__ = (
        UniqueConstraint("user_id", "asset", name="uq_user_balances_user_asset"),
    )

    id: Mapped[int] = mapped_column(Id, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    asset: Mapped[str] = mapped_column(String(16))
    free: Mapped[Decimal] = mapped_column(Amount)
    locked: Mapped[Decimal] = mapped_column(Amount)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))

    def __repr__(self) -> str:
        return (
            f"BalanceRecord(user={self.user_id!r}, asset={self.asset!r}, "
            f"free={self.free}, locked={self.locked})"
        )
