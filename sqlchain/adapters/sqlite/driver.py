import datetime
import re
import sqlite3
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from decimal import Decimal
from functools import lru_cache
from typing import Any, Callable, Final, Optional, TypeVar

import sqlglot
from sqlglot import exp
from sqlglot.errors import ParseError, TokenError

from sqlchain.config import get_global_config
from sqlchain.exceptions import DatabaseError, NoResultsError, SQLParsingError
from sqlchain.utils.logging import get_logger
from sqlchain.utils.serializers import to_json

__all__ = ("SqliteCursor", "SqliteDatabase", "convert_placeholders", "transpile_statement")

logger = get_logger("adapters.sqlite")

T = TypeVar("T")

_PLACEHOLDER_REGEX: Final = re.compile(
    r"""
    (?P<squote>'(?:[^']|'')*') |              # Single-quoted strings
    (?P<dquote>"(?:[^"]|"")*") |              # Quoted identifiers
    (?P<line_comment>--[^\r\n]*) |            # Line comments
    (?P<block_comment>/\*[\s\S]*?\*/) |       # Block comments
    \$(?P<position>\d+)                       # $n positional placeholder
    """,
    re.VERBOSE,
)

_TYPE_COERCION_MAP: "Final[dict[type, Callable[[Any], Any]]]" = {
    bool: int,
    datetime.datetime: lambda v: v.isoformat(),
    datetime.date: lambda v: v.isoformat(),
    Decimal: str,
    dict: to_json,
    list: to_json,
    tuple: lambda v: to_json(list(v)),
}


def convert_placeholders(sql: str) -> str:
    """Rewrite ``$n`` placeholders to named ``:pn`` parameters.

    Placeholders inside string literals, quoted identifiers and comments are
    left untouched. Named parameters survive rewrites that repeat a
    placeholder, which positional ``?`` markers do not.
    """

    def replace(match: "re.Match[str]") -> str:
        position = match.group("position")
        return f":p{position}" if position is not None else match.group(0)

    return _PLACEHOLDER_REGEX.sub(replace, sql)


@lru_cache(maxsize=512)
def transpile_statement(sql: str, read: str) -> str:
    """Translate a statement written for the ``read`` dialect into SQLite.

    ``TRUNCATE TABLE`` becomes an unfiltered ``DELETE``. SQLite has no
    equivalent of ``ILIKE``, ``DISTINCT ON`` or a bare ``OFFSET``; sqlglot
    rewrites each of them.

    Args:
        sql: Statement with ``$n`` placeholders.
        read: sqlglot dialect the statement is written in.

    Raises:
        SQLParsingError: If sqlglot cannot parse the statement.

    Returns:
        SQLite statement with ``:pn`` named parameters.
    """
    try:
        expression = sqlglot.parse_one(convert_placeholders(sql), read=read)
    except (ParseError, TokenError) as e:
        msg = f"Failed to parse SQL statement for SQLite: {e}"
        raise SQLParsingError(msg) from e
    if isinstance(expression, exp.TruncateTable):
        expression = exp.delete(expression.expressions[0])
    return expression.sql(dialect="sqlite")


def _coerce(value: Any) -> Any:
    converter = _TYPE_COERCION_MAP.get(type(value))
    return converter(value) if converter is not None else value


class SqliteCursor:
    """Context manager for SQLite cursor management."""

    def __init__(self, connection: "sqlite3.Connection") -> None:
        self.connection = connection
        self.cursor: Optional[sqlite3.Cursor] = None

    def __enter__(self) -> "sqlite3.Cursor":
        self.cursor = self.connection.cursor()
        return self.cursor

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self.cursor is not None:
            self.cursor.close()


class SqliteDatabase:
    """:class:`~sqlchain.protocols.DatabaseProtocol` over a ``sqlite3`` connection.

    Statements are translated into SQLite by sqlglot before they run, so the
    queries rendered for the configured dialect work unchanged.

    Args:
        connection: An open SQLite connection.
        autocommit: Commit after every :meth:`exec` that opened a transaction.
        source_dialect: Dialect incoming statements are written in. Defaults
            to the ``dialect`` of the global :class:`~sqlchain.config.QueryConfig`.
    """

    dialect = "sqlite"

    __slots__ = ("autocommit", "connection", "source_dialect")

    def __init__(
        self,
        connection: "sqlite3.Connection",
        *,
        autocommit: bool = True,
        source_dialect: Optional[str] = None,
    ) -> None:
        self.connection = connection
        self.autocommit = autocommit
        self.source_dialect = source_dialect

    def with_cursor(self) -> SqliteCursor:
        return SqliteCursor(self.connection)

    @contextmanager
    def handle_database_exceptions(self) -> "Iterator[None]":
        """Wrap driver errors in :class:`~sqlchain.exceptions.DatabaseError`."""
        try:
            yield
        except sqlite3.Error as e:
            msg = f"SQLite database error: {e}"
            raise DatabaseError(msg) from e

    def _prepare(self, sql: str, args: "Sequence[Any]") -> "tuple[str, dict[str, Any]]":
        prepared = transpile_statement(sql, self.source_dialect or get_global_config().dialect)
        logger.debug("Executing SQLite statement: %s", prepared)
        return prepared, {f"p{position}": _coerce(arg) for position, arg in enumerate(args, start=1)}

    def exec(self, sql: str, args: "Sequence[Any]" = ()) -> int:
        prepared, parameters = self._prepare(sql, args)
        with self.handle_database_exceptions(), self.with_cursor() as cursor:
            cursor.execute(prepared, parameters)
            rows_affected = cursor.rowcount
            if self.autocommit and self.connection.in_transaction:
                self.connection.commit()
        return max(rows_affected, 0)

    def query(
        self,
        sql: str,
        args: "Sequence[Any]" = (),
        queryable: Optional[str] = None,
        row_handler: "Optional[Callable[[Mapping[str, Any]], T]]" = None,
    ) -> "list[Any]":
        prepared, parameters = self._prepare(sql, args)
        with self.handle_database_exceptions(), self.with_cursor() as cursor:
            cursor.execute(prepared, parameters)
            column_names = [column[0] for column in cursor.description or []]
            rows = [dict(zip(column_names, row)) for row in cursor.fetchall()]
        logger.debug("Fetched %d rows for %s", len(rows), queryable or "query")
        if row_handler is None:
            return rows
        return [row_handler(row) for row in rows]

    def scalar(self, sql: str, args: "Sequence[Any]" = (), queryable: Optional[str] = None) -> Any:
        prepared, parameters = self._prepare(sql, args)
        with self.handle_database_exceptions(), self.with_cursor() as cursor:
            cursor.execute(prepared, parameters)
            row = cursor.fetchone()
        if row is None:
            msg = f"Scalar query for {queryable or 'query'} returned no rows"
            raise NoResultsError(msg)
        return row[0]

    def commit(self) -> None:
        """Commit the current transaction."""
        self.connection.commit()

    def rollback(self) -> None:
        """Rollback the current transaction."""
        self.connection.rollback()
