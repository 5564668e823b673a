"""Storage factory.

Provides configuration-driven storage instantiation, so the backend is
chosen when the storage is constructed rather than switched at runtime.
"""

from __future__ import annotations

from collections.abc import Callable

from trading_store.core.config import StorageType, StoreConfig
from trading_store.core.logs import setup_logging
from trading_store.domain.errors import ConfigurationError
from trading_store.storage.base import Storage

# Registry of storage factories
_storage_factories: dict[StorageType, Callable[[StoreConfig], Storage]] = {}


def register_storage(
    storage_type: StorageType,
    factory: Callable[[StoreConfig], Storage],
) -> None:
    """Register a storage factory for a storage type.

    Args:
        storage_type: The type of storage
        factory: Function that creates a storage from config
    """
    _storage_factories[storage_type] = factory


def create_storage(
    config: StoreConfig | None = None,
    configure_logging: bool = False,
) -> Storage:
    """Create a storage from configuration.

    Args:
        config: Store configuration (defaults to StoreConfig())
        configure_logging: Also apply the config's logging settings

    Returns:
        Configured storage

    Raises:
        ConfigurationError: If no storage is registered for the type
    """
    config = config or StoreConfig()
    if configure_logging:
        setup_logging(config.log_level, config.log_file, echo=config.echo)

    factory = _storage_factories.get(config.storage)
    if factory is None:
        raise ConfigurationError(
            f"No storage registered for type: {config.storage.value}",
            field="storage",
        )
    return factory(config)


def _create_sql_storage(config: StoreConfig) -> Storage:
    # Imported here: the SQL repositories import this package's base module
    from trading_store.db.store import SqlStorage

    return SqlStorage(config)


register_storage(StorageType.SQL, _create_sql_storage)
