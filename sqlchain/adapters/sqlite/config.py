"""SQLite database configuration."""

import sqlite3
import uuid
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any, Optional, TypedDict, Union

from typing_extensions import NotRequired

from sqlchain.adapters.sqlite.driver import SqliteDatabase
from sqlchain.utils.logging import get_logger

__all__ = ("SqliteConfig", "SqliteConnectionParams")

logger = get_logger("adapters.sqlite.config")


class SqliteConnectionParams(TypedDict, total=False):
    """SQLite connection parameters."""

    database: NotRequired[str]
    timeout: NotRequired[float]
    detect_types: NotRequired[int]
    isolation_level: "NotRequired[Optional[str]]"
    check_same_thread: NotRequired[bool]
    cached_statements: NotRequired[int]
    uri: NotRequired[bool]


class SqliteConfig:
    """Connection settings for :class:`SqliteDatabase`.

    ``:memory:`` (the default) is turned into a private in-memory URI so each
    connection gets its own database.
    """

    __slots__ = ("autocommit", "connection_config", "source_dialect")

    def __init__(
        self,
        *,
        connection_config: "Optional[Union[SqliteConnectionParams, dict[str, Any]]]" = None,
        autocommit: bool = True,
        source_dialect: Optional[str] = None,
    ) -> None:
        connection_config = dict(connection_config or {})
        if "database" not in connection_config or connection_config["database"] == ":memory:":
            connection_config["database"] = f"file:memory_{uuid.uuid4().hex}?mode=memory&cache=private"
            connection_config["uri"] = True
        elif str(connection_config["database"]).startswith("file:") and not connection_config.get("uri"):
            logger.debug(
                "Database URI detected (%s) but uri=True not set. Auto-enabling URI mode.",
                connection_config["database"],
            )
            connection_config["uri"] = True
        self.connection_config: dict[str, Any] = connection_config
        self.autocommit = autocommit
        self.source_dialect = source_dialect

    def create_connection(self) -> "sqlite3.Connection":
        config = {key: value for key, value in self.connection_config.items() if value is not None}
        return sqlite3.connect(**config)

    @contextmanager
    def provide_connection(self) -> "Generator[sqlite3.Connection, None, None]":
        """Provide a SQLite connection that is closed on exit."""
        connection = self.create_connection()
        try:
            yield connection
        finally:
            connection.close()

    @contextmanager
    def provide_database(self) -> "Generator[SqliteDatabase, None, None]":
        """Provide a :class:`SqliteDatabase` over a fresh connection."""
        with self.provide_connection() as connection:
            yield SqliteDatabase(connection, autocommit=self.autocommit, source_dialect=self.source_dialect)
