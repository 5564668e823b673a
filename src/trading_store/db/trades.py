"""Trade repository.

Trades are written once and never updated or deleted.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from pydantic import ValidationError
from sqlalchemy import select

from trading_store.db.database import Database
from trading_store.db.models import TradeRecord
from trading_store.db.query import PredicateBuilder
from trading_store.domain.errors import MalformedRecordError, TradeNotFoundError
from trading_store.domain.filters import TradeFilter
from trading_store.domain.trades import Trade
from trading_store.storage.base import TradeStorage

logger = logging.getLogger(__name__)

# Trades sort by execution time, not insertion time
TRADE_QUERY = PredicateBuilder(
    owner_column=TradeRecord.user_id,
    time_column=TradeRecord.trade_time,
    order_by=(TradeRecord.trade_time.desc(), TradeRecord.id.desc()),
    symbol_column=TradeRecord.symbol,
)


class SqlTradeRepository(TradeStorage):
    """Trade history persistence on the relational store."""

    def __init__(self, database: Database) -> None:
        self._db = database

    def create_trade(self, trade: Trade) -> Trade:
        with self._db.transaction("create_trade", mexc_trade_id=trade.mexc_trade_id) as session:
            record = TradeRecord(
                user_id=trade.user_id,
                mexc_trade_id=trade.mexc_trade_id,
                order_id=trade.order_id,
                symbol=trade.symbol,
                price=trade.price,
                quantity=trade.quantity,
                quote_quantity=trade.quote_quantity,
                commission=trade.commission,
                commission_asset=trade.commission_asset,
                trade_time=trade.trade_time,
                is_buyer=trade.is_buyer,
                is_maker=trade.is_maker,
            )
            session.add(record)
            session.flush()
            created = replace(trade, id=record.id, created_at=record.created_at)
        logger.debug(f"Trade {trade.mexc_trade_id} recorded for order {trade.order_id}")
        return created

    def get_trade(self, mexc_trade_id: str) -> Trade:
        with self._db.session("get_trade", mexc_trade_id=mexc_trade_id) as session:
            stmt = select(TradeRecord).where(TradeRecord.mexc_trade_id == mexc_trade_id)
            record = session.execute(stmt).scalar_one_or_none()
            if record is None:
                raise TradeNotFoundError(mexc_trade_id, {"operation": "get_trade"})
            return self._trade_from_record(record)

    def get_user_trades(
        self,
        user_id: int,
        criteria: TradeFilter | None = None,
    ) -> list[Trade]:
        query = TRADE_QUERY.build(select(TradeRecord), user_id, criteria)
        with self._db.session("get_user_trades", user_id=user_id) as session:
            records = session.execute(query.statement).scalars().all()
            return [self._trade_from_record(r) for r in records]

    @staticmethod
    def _trade_from_record(record: TradeRecord) -> Trade:
        """Convert database record to domain Trade."""
        try:
            return Trade(
                id=record.id,
                user_id=record.user_id,
                mexc_trade_id=record.mexc_trade_id,
                order_id=record.order_id,
                symbol=record.symbol,
                price=record.price,
                quantity=record.quantity,
                quote_quantity=record.quote_quantity,
                commission=record.commission,
                commission_asset=record.commission_asset,
                trade_time=record.trade_time,
                is_buyer=record.is_buyer,
                is_maker=record.is_maker,
                created_at=record.created_at,
            )
        except ValidationError as exc:
            raise MalformedRecordError(
                f"Trade row {record.id} cannot be decoded: {exc}",
                {"mexc_trade_id": record.mexc_trade_id},
            ) from exc
