"""Configuration models for the trading store.

Loads and validates configuration from YAML files using pydantic. The
resulting StoreConfig is passed explicitly to the Database; nothing here
is process-wide state.
"""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, model_validator
from sqlalchemy.engine import URL, make_url

from trading_store.domain.errors import ConfigurationError

CONFIG_SECTION = "store"
CONFIG_PATH_ENV = "TRADING_STORE_CONFIG"
DEFAULT_CONFIG_PATH = Path("config") / "store.yaml"


class StorageType(str, Enum):
    """Supported storage implementations."""

    SQL = "sql"


class DatabaseConfig(BaseModel):
    """Relational store connection settings.

    Either give a full SQLAlchemy URL, or the individual PostgreSQL
    connection fields. The password may come from the environment.
    """

    url: str | None = None

    driver: str = "postgresql+psycopg"
    host: str = "localhost"
    port: int = 5432
    user: str = "postgres"
    name: str = "mexc_bot_db"
    sslmode: str = "disable"

    # Credentials (loaded from environment or specified directly)
    password_env: str = "TRADING_STORE_DB_PASSWORD"
    password: str | None = None

    def resolved_password(self) -> str | None:
        """Return the direct password, falling back to the environment."""
        if self.password is not None:
            return self.password
        return os.environ.get(self.password_env)

    def sqlalchemy_url(self) -> URL:
        """Build the SQLAlchemy URL for these settings."""
        if self.url:
            return make_url(self.url)
        return URL.create(
            drivername=self.driver,
            username=self.user,
            password=self.resolved_password(),
            host=self.host,
            port=self.port,
            database=self.name,
            query={"sslmode": self.sslmode},
        )


class PoolConfig(BaseModel):
    """Connection pool sizing and timeouts.

    min_conns connections are kept open; up to max_conns in total are
    opened under load. Connections are checked before use.
    """

    max_conns: int = Field(default=20, ge=1)
    min_conns: int = Field(default=5, ge=1)
    max_conn_lifetime_seconds: int = Field(default=3600, ge=1)
    connect_timeout_seconds: int = Field(default=10, ge=1)

    # Server-side statement timeout, PostgreSQL only. None disables it.
    statement_timeout_ms: int | None = Field(default=None, ge=1)

    @model_validator(mode="after")
    def check_bounds(self) -> PoolConfig:
        """Ensure the idle floor does not exceed the pool ceiling."""
        if self.min_conns > self.max_conns:
            raise ValueError("min_conns must not exceed max_conns")
        return self


class StoreConfig(BaseModel):
    """Root configuration for the trading store."""

    storage: StorageType = StorageType.SQL
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    pool: PoolConfig = Field(default_factory=PoolConfig)

    echo: bool = False  # Log every SQL statement
    create_schema: bool = True  # Create missing tables on startup

    # Logging
    log_level: str = "INFO"
    log_file: str | None = None

    @classmethod
    def from_yaml(cls, path: str | Path) -> StoreConfig:
        """Load configuration from a YAML file.

        Args:
            path: Path to the YAML configuration file

        Returns:
            Validated StoreConfig

        Raises:
            FileNotFoundError: If the config file doesn't exist
            ConfigurationError: If the file is not valid YAML
            ValidationError: If the config is invalid
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as err:
                raise ConfigurationError(
                    f"Malformed config file {path}: {err}",
                    context={"path": str(path)},
                ) from err

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StoreConfig:
        """Validate a configuration mapping.

        The settings may sit at the top level or under a ``store`` key, so
        an embedding application can keep them in its own config file.
        """
        section = data.get(CONFIG_SECTION, data)
        return cls.model_validate(section or {})


def load_config(path: str | Path | None = None) -> StoreConfig:
    """Load store configuration.

    Uses the explicit path if given, else the file named by the
    TRADING_STORE_CONFIG environment variable, else ./config/store.yaml.
    Without any of them the defaults apply.

    Raises:
        FileNotFoundError: If an explicit or environment path is missing
    """
    if path is None:
        path = os.environ.get(CONFIG_PATH_ENV)
    if path:
        return StoreConfig.from_yaml(path)

    if DEFAULT_CONFIG_PATH.exists():
        return StoreConfig.from_yaml(DEFAULT_CONFIG_PATH)
    return StoreConfig()
