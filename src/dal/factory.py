"""Driver factory with environment-driven provider selection.

Provider selection is controlled via ``DatabaseConfig.provider`` (loaded from
``DB_PROVIDER`` when no config is passed).

Canonical Provider IDs:
    - "sqlite": SqliteDriver (standard-library sqlite3)
    - "mysql": MysqlDriver (PyMySQL; also used for MariaDB)

Example:
    >>> from dal.factory import create_driver
    >>> driver = create_driver(DatabaseConfig(provider="sqlite"))
"""

import logging
from typing import Callable, Dict, Optional

from dal.config import SUPPORTED_PROVIDERS, DatabaseConfig
from dal.contract import DatabaseDriver
from dal.util.env import normalize_provider

logger = logging.getLogger(__name__)

# =============================================================================
# Provider Registry
# =============================================================================

DRIVER_PROVIDERS: Dict[str, Callable[[DatabaseConfig], DatabaseDriver]] = {}


def _register_builtin_providers() -> None:
    # Import implementations lazily so pymysql is only needed when used.
    if "sqlite" not in DRIVER_PROVIDERS:

        def _sqlite(config: DatabaseConfig) -> DatabaseDriver:
            from dal.sqlite import SqliteDriver

            return SqliteDriver(config.sqlite_path)

        DRIVER_PROVIDERS["sqlite"] = _sqlite

    if "mysql" not in DRIVER_PROVIDERS:

        def _mysql(config: DatabaseConfig) -> DatabaseDriver:
            from dal.mysql import MysqlDriver

            return MysqlDriver(config)

        DRIVER_PROVIDERS["mysql"] = _mysql


def create_driver(config: Optional[DatabaseConfig] = None) -> DatabaseDriver:
    """Create a connected driver for the configured provider.

    Args:
        config: Connection settings. Loaded from the environment when omitted.

    Returns:
        A new DatabaseDriver instance. Callers own it and must close it.

    Raises:
        ValueError: If the provider is not a supported provider id.
    """
    _register_builtin_providers()
    config = config or DatabaseConfig.from_env()
    provider = normalize_provider(config.provider)
    if provider not in DRIVER_PROVIDERS:
        allowed_list = ", ".join(sorted(SUPPORTED_PROVIDERS))
        raise ValueError(
            f"Invalid database provider: '{config.provider}'. Allowed values: {allowed_list}"
        )
    logger.info(f"Initializing database driver with provider: {provider}")
    return DRIVER_PROVIDERS[provider](config)
