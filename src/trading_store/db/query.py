"""Filtered listing queries shared by orders and trades.

A PredicateBuilder turns an owner id and an optional filter into one
SELECT whose bind parameters are named p1, p2, ... in the order the
predicates were appended. The owner is always p1; LIMIT and OFFSET come
last. Rows are returned newest first with the primary key as tie-break.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import Integer, Select, bindparam
from sqlalchemy.orm import InstrumentedAttribute
from sqlalchemy.sql.elements import BindParameter, ColumnElement

from trading_store.domain.filters import OrderFilter, TradeFilter


@dataclass(frozen=True)
class FilteredQuery:
    """A composed SELECT and its bind values in parameter order."""

    statement: Select[Any]
    args: list[Any] = field(default_factory=list)

    @property
    def sql(self) -> str:
        """Render the statement with its named placeholders."""
        return str(self.statement)


class _Params:
    """Hands out sequentially numbered bind parameters."""

    def __init__(self) -> None:
        self.values: list[Any] = []

    def bind(self, value: Any, type_: Any = None) -> BindParameter[Any]:
        self.values.append(value)
        return bindparam(f"p{len(self.values)}", value, type_=type_)


class PredicateBuilder:
    """Composes owner-scoped listing queries from optional filters.

    Args:
        owner_column: Column compared with the owner id
        time_column: Column the start/end bounds apply to
        order_by: Fixed ordering, most significant first
        symbol_column: Column for symbol equality, if filterable
        status_column: Column for status equality, if filterable
    """

    def __init__(
        self,
        owner_column: InstrumentedAttribute[Any],
        time_column: InstrumentedAttribute[Any],
        order_by: Sequence[ColumnElement[Any]],
        symbol_column: InstrumentedAttribute[Any] | None = None,
        status_column: InstrumentedAttribute[Any] | None = None,
    ) -> None:
        self._owner = owner_column
        self._time = time_column
        self._order_by = tuple(order_by)
        self._symbol = symbol_column
        self._status = status_column

    def build(
        self,
        statement: Select[Any],
        owner_id: int,
        criteria: TradeFilter | None = None,
    ) -> FilteredQuery:
        """Apply owner scope, filter predicates, ordering and paging.

        Args:
            statement: Base SELECT (may already carry fixed predicates)
            owner_id: Owner the rows must belong to
            criteria: Optional filter; None means no filter

        Returns:
            FilteredQuery with the final statement and argument list
        """
        criteria = criteria or TradeFilter()
        params = _Params()

        stmt = statement.where(self._owner == params.bind(owner_id, self._owner.type))

        if criteria.symbol and self._symbol is not None:
            stmt = stmt.where(self._symbol == params.bind(criteria.symbol, self._symbol.type))
        status = criteria.status if isinstance(criteria, OrderFilter) else None
        if status and self._status is not None:
            stmt = stmt.where(self._status == params.bind(status, self._status.type))
        if criteria.start_time is not None:
            stmt = stmt.where(self._time >= params.bind(criteria.start_time, self._time.type))
        if criteria.end_time is not None:
            stmt = stmt.where(self._time <= params.bind(criteria.end_time, self._time.type))

        stmt = stmt.order_by(*self._order_by)

        if criteria.limit > 0:
            stmt = stmt.limit(params.bind(criteria.limit, Integer()))
        if criteria.offset > 0:
            stmt = stmt.offset(params.bind(criteria.offset, Integer()))

        return FilteredQuery(statement=stmt, args=params.values)
