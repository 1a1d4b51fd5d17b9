"""Global configuration for query compilation and execution.

Settings are held in an immutable :class:`QueryConfig`. The active instance
is process-wide and can be swapped with :func:`set_global_config` or loaded
from ``SQLCHAIN_*`` environment variables.
"""

import os
import threading
from dataclasses import dataclass, replace
from typing import Any, Optional

from sqlchain.exceptions import ImproperConfigurationError
from sqlchain.utils.logging import get_logger

__all__ = (
    "QueryConfig",
    "get_global_config",
    "load_config_from_env",
    "reset_global_config",
    "set_global_config",
)

logger = get_logger("config")


@dataclass(frozen=True)
class QueryConfig:
    """Settings shared by every queryable.

    Attributes:
        dialect: sqlglot dialect used when inlining arguments for ``to_prepared_sql``.
        log_statements: Log each executed statement at DEBUG level.
        count_alias: Alias given to the subquery wrapped by ``select_count``.
    """

    dialect: str = "postgres"
    log_statements: bool = True
    count_alias: str = "temp"

    def __post_init__(self) -> None:
        if not self.count_alias.isidentifier():
            msg = f"count_alias must be a bare identifier, got {self.count_alias!r}"
            raise ImproperConfigurationError(msg)

    def replace(self, **kwargs: Any) -> "QueryConfig":
        return replace(self, **kwargs)


_global_config: Optional[QueryConfig] = None
_config_lock = threading.Lock()


def get_global_config() -> QueryConfig:
    """Get the active configuration, creating the default on first use.

    Returns:
        The process-wide QueryConfig instance
    """
    global _global_config
    if _global_config is None:
        with _config_lock:
            if _global_config is None:
                _global_config = QueryConfig()
    return _global_config


def set_global_config(config: QueryConfig) -> None:
    """Replace the active configuration.

    Args:
        config: New configuration to set globally
    """
    global _global_config
    with _config_lock:
        _global_config = config
    logger.info("Global configuration updated")


def reset_global_config() -> None:
    """Restore the default configuration."""
    set_global_config(QueryConfig())


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def load_config_from_env() -> QueryConfig:
    """Load configuration from environment variables.

    Environment Variables Supported:
    - SQLCHAIN_DIALECT: sqlglot dialect for prepared SQL (string)
    - SQLCHAIN_LOG_STATEMENTS: Log executed statements (true/false)
    - SQLCHAIN_COUNT_ALIAS: Alias for the count subquery (string)

    Returns:
        QueryConfig loaded from environment variables
    """
    defaults = QueryConfig()
    return QueryConfig(
        dialect=os.getenv("SQLCHAIN_DIALECT", defaults.dialect),
        log_statements=_env_bool("SQLCHAIN_LOG_STATEMENTS", defaults.log_statements),
        count_alias=os.getenv("SQLCHAIN_COUNT_ALIAS", defaults.count_alias),
    )
