"""Balance ledger.

The only writer of user_balances rows. Single-asset writes are
compare-and-maybe-write upserts; a reconciliation pass rewrites a whole set
of assets for one user in one transaction and prunes rows that drained to
zero in an earlier pass.

No version column is used: concurrent writers to the same (user, asset)
are serialized by the store's row lock on the conflicting key.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import replace
from datetime import UTC, datetime

from pydantic import ValidationError
from sqlalchemy import delete, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from trading_store.db.database import Database, translate_error
from trading_store.db.models import BalanceRecord
from trading_store.domain.balances import BalanceWrite, UserBalance
from trading_store.domain.errors import BalanceNotFoundError, MalformedRecordError
from trading_store.storage.base import BalanceStorage

logger = logging.getLogger(__name__)


class SqlBalanceLedger(BalanceStorage):
    """Per-(user, asset) balances on the relational store."""

    def __init__(self, database: Database) -> None:
        """Initialize the ledger.

        Args:
            database: Shared database collaborator
        """
        self._db = database

    def get_balance(self, user_id: int, asset: str) -> UserBalance:
        with self._db.session("get_balance", user_id=user_id, asset=asset) as session:
            stmt = select(BalanceRecord).where(
                BalanceRecord.user_id == user_id,
                BalanceRecord.asset == asset,
            )
            record = session.execute(stmt).scalar_one_or_none()
            if record is None:
                raise BalanceNotFoundError(user_id, asset, {"operation": "get_balance"})
            return self._balance_from_record(record)

    def get_user_balances(self, user_id: int) -> list[UserBalance]:
        with self._db.session("get_user_balances", user_id=user_id) as session:
            stmt = (
                select(BalanceRecord)
                .where(BalanceRecord.user_id == user_id)
                .order_by(BalanceRecord.asset)
            )
            records = session.execute(stmt).scalars().all()
            return [self._balance_from_record(r) for r in records]

    def update_balance(self, balance: UserBalance) -> BalanceWrite:
        updated_at = datetime.now(UTC)
        with self._db.transaction(
            "update_balance", user_id=balance.user_id, asset=balance.asset
        ) as session:
            balance_id = self._upsert(session, balance, updated_at, only_if_changed=True)

        if balance_id is None:
            logger.debug(f"Balance {balance.user_id}/{balance.asset} unchanged")
            return BalanceWrite(applied=False, balance=balance)

        logger.debug(
            f"Balance {balance.user_id}/{balance.asset} set to "
            f"free={balance.free} locked={balance.locked}"
        )
        return BalanceWrite(
            applied=True,
            balance=replace(balance, id=balance_id, updated_at=updated_at),
        )

    def update_user_balances(
        self,
        user_id: int,
        balances: Sequence[UserBalance],
    ) -> list[UserBalance]:
        if not balances:
            return []

        # One timestamp for the whole pass; pruning relies on it
        batch_time = datetime.now(UTC)
        written: list[UserBalance] = []

        with self._db.transaction("update_user_balances", user_id=user_id) as session:
            for balance in balances:
                entry = replace(balance, user_id=user_id, updated_at=batch_time)
                try:
                    balance_id = self._upsert(session, entry, batch_time, only_if_changed=False)
                except SQLAlchemyError as exc:
                    raise translate_error(
                        exc,
                        "update_user_balances",
                        {"user_id": user_id, "asset": entry.asset, "stage": "upsert"},
                    ) from exc
                written.append(entry if balance_id is None else replace(entry, id=balance_id))

            try:
                pruned = self._prune_zero_balances(session, user_id, batch_time)
            except SQLAlchemyError as exc:
                raise translate_error(
                    exc,
                    "update_user_balances",
                    {"user_id": user_id, "stage": "prune"},
                ) from exc

        logger.info(
            f"Reconciled {len(written)} balances for user {user_id}, "
            f"pruned {pruned} zero balances"
        )
        return written

    def _upsert(
        self,
        session: Session,
        balance: UserBalance,
        updated_at: datetime,
        *,
        only_if_changed: bool,
    ) -> int | None:
        """Insert or overwrite one balance row.

        With only_if_changed, an existing row is left untouched (updated_at
        included) unless free or locked differ.

        Returns:
            The row id, or None if the existing row was left untouched
        """
        stmt = self._db.insert(BalanceRecord).values(
            user_id=balance.user_id,
            asset=balance.asset,
            free=balance.free,
            locked=balance.locked,
            updated_at=updated_at,
        )
        changed = or_(
            BalanceRecord.free != stmt.excluded.free,
            BalanceRecord.locked != stmt.excluded.locked,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[BalanceRecord.user_id, BalanceRecord.asset],
            set_={
                "free": stmt.excluded.free,
                "locked": stmt.excluded.locked,
                "updated_at": stmt.excluded.updated_at,
            },
            where=changed if only_if_changed else None,
        ).returning(BalanceRecord.id)
        return session.execute(stmt).scalar_one_or_none()

    @staticmethod
    def _prune_zero_balances(session: Session, user_id: int, batch_time: datetime) -> int:
        """Delete zero balances last written before this pass."""
        stmt = delete(BalanceRecord).where(
            BalanceRecord.user_id == user_id,
            BalanceRecord.free == 0,
            BalanceRecord.locked == 0,
            BalanceRecord.updated_at < batch_time,
        )
        result = session.execute(stmt, execution_options={"synchronize_session": False})
        return result.rowcount

    @staticmethod
    def _balance_from_record(record: BalanceRecord) -> UserBalance:
        """Convert database record to domain UserBalance."""
        try:
            return UserBalance(
                id=record.id,
                user_id=record.user_id,
                asset=record.asset,
                free=record.free,
                locked=record.locked,
                updated_at=record.updated_at,
            )
        except ValidationError as exc:
            raise MalformedRecordError(
                f"Balance row {record.id} cannot be decoded: {exc}",
                {"user_id": record.user_id, "asset": record.asset},
            ) from exc
