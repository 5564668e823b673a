"""Database engine, session scopes and error translation.

The Database is the single collaborator every repository talks to. It owns
the engine and connection pool built from StoreConfig, hands out sessions
and transactions, and turns SQLAlchemy exceptions into StorageError kinds.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine, text
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import URL, Engine
from sqlalchemy.exc import (
    DBAPIError,
    DisconnectionError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session, sessionmaker

from trading_store.core.config import PoolConfig, StoreConfig
from trading_store.db.models import Base
from trading_store.domain.errors import (
    ConfigurationError,
    DuplicateKeyError,
    StorageError,
    StoreUnavailableError,
)

logger = logging.getLogger(__name__)

# INSERT ... ON CONFLICT constructs per supported backend
_UPSERT_INSERTS: dict[str, Callable[..., Any]] = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

_UNIQUE_VIOLATION = "23505"


def _is_unique_violation(exc: IntegrityError) -> bool:
    """Return True if the integrity error is a unique constraint violation."""
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate is not None:
        return sqlstate == _UNIQUE_VIOLATION
    return "UNIQUE constraint failed" in str(orig)


def translate_error(
    exc: SQLAlchemyError,
    operation: str,
    context: dict[str, Any] | None = None,
) -> StorageError:
    """Map a SQLAlchemy exception to the storage error taxonomy.

    Args:
        exc: The exception raised by SQLAlchemy or the driver
        operation: Repository operation that failed
        context: Natural key and stage information

    Returns:
        The StorageError to raise (chain it with ``from exc``)
    """
    context = {"operation": operation, **(context or {})}
    detail = exc.orig if isinstance(exc, DBAPIError) and exc.orig is not None else exc

    if isinstance(exc, IntegrityError) and _is_unique_violation(exc):
        return DuplicateKeyError(f"{operation}: duplicate key: {detail}", context)
    if isinstance(exc, OperationalError | InterfaceError | DisconnectionError | PoolTimeoutError):
        return StoreUnavailableError(f"{operation}: store unavailable: {detail}", context)
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return StoreUnavailableError(f"{operation}: connection lost: {detail}", context)
    return StorageError(f"{operation} failed: {detail}", context)


def _engine_options(url: URL, pool: PoolConfig) -> dict[str, Any]:
    """Build create_engine() pool options for the backend."""
    if url.get_backend_name() == "sqlite":
        # SQLite uses a per-thread pool that takes no sizing options
        return {}

    connect_args: dict[str, Any] = {"connect_timeout": pool.connect_timeout_seconds}
    if pool.statement_timeout_ms is not None:
        connect_args["options"] = f"-c statement_timeout={pool.statement_timeout_ms}"

    return {
        "pool_size": pool.min_conns,
        "max_overflow": pool.max_conns - pool.min_conns,
        "pool_recycle": pool.max_conn_lifetime_seconds,
        "pool_timeout": pool.connect_timeout_seconds,
        "pool_pre_ping": True,
        "connect_args": connect_args,
    }


class Database:
    """Connection pool and session scopes for the relational store.

    Thread-safe: sessions are created per operation and never shared.

    Deadlines: on PostgreSQL a hung statement is aborted by the server-side
    statement_timeout, and pool checkout waits at most
    connect_timeout_seconds. SQLite has no per-call deadline; none of the
    pool options apply to it and a statement runs until it completes.
    """

    def __init__(self, config: StoreConfig) -> None:
        """Initialize the engine and, optionally, the schema.

        Args:
            config: Store configuration

        Raises:
            ConfigurationError: If the database backend is not supported
            StoreUnavailableError: If schema creation cannot reach the store
        """
        url = config.database.sqlalchemy_url()
        backend = url.get_backend_name()
        insert = _UPSERT_INSERTS.get(backend)
        if insert is None:
            raise ConfigurationError(
                f"Unsupported database backend: {backend}",
                field="database.url",
            )
        self._insert = insert

        self._engine: Engine = create_engine(
            url,
            echo=config.echo,
            **_engine_options(url, config.pool),
        )
        self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        logger.info(f"Database engine created for {url.render_as_string(hide_password=True)}")

        if config.create_schema:
            self.create_schema()

    @property
    def engine(self) -> Engine:
        """Get the underlying engine."""
        return self._engine

    @property
    def backend(self) -> str:
        """Get the backend name ("postgresql" or "sqlite")."""
        return self._engine.dialect.name

    def insert(self, model: Any) -> Any:
        """Create a backend-specific INSERT supporting ON CONFLICT."""
        return self._insert(model)

    @contextmanager
    def session(self, operation: str, **context: Any) -> Iterator[Session]:
        """Open a session for one operation.

        SQLAlchemy errors escaping the block are translated to StorageError
        kinds carrying the operation name and context.
        """
        try:
            with self._session_factory() as session:
                yield session
        except SQLAlchemyError as exc:
            raise translate_error(exc, operation, context) from exc

    @contextmanager
    def transaction(self, operation: str, **context: Any) -> Iterator[Session]:
        """Open a session with an explicit transaction.

        Commits when the block exits normally. Any exception rolls back
        everything written in the block and is re-raised; a failed commit
        is raised with stage "commit".
        """
        with self.session(operation, **context) as session:
            session.begin()
            try:
                yield session
            except Exception as exc:
                session.rollback()
                logger.warning(f"{operation} rolled back: {exc}")
                raise
            try:
                session.commit()
            except SQLAlchemyError as exc:
                logger.warning(f"{operation} commit failed: {exc}")
                raise translate_error(exc, operation, {**context, "stage": "commit"}) from exc

    def create_schema(self) -> None:
        """Create all tables that do not exist yet."""
        try:
            Base.metadata.create_all(self._engine)
        except SQLAlchemyError as exc:
            raise translate_error(exc, "create_schema") from exc
        logger.info("Database schema ready")

    def ping(self) -> bool:
        """Check connectivity with SELECT 1.

        Returns:
            True if the store answered
        """
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as exc:
            logger.error(f"Database health check failed: {exc}")
            return False

    def close(self) -> None:
        """Close all pooled connections."""
        self._engine.dispose()
        logger.info("Database closed")
