"""Runtime-checkable protocols for the collaborators a queryable talks to."""

from collections.abc import Mapping, Sequence
from typing import Any, Callable, Optional, Protocol, TypeVar, runtime_checkable

__all__ = ("DatabaseProtocol", "SchemaProtocol")

T = TypeVar("T")


@runtime_checkable
class DatabaseProtocol(Protocol):
    """The connection handle queries execute through.

    Statements use ``$n`` positional placeholders; ``args[n - 1]`` is bound to ``$n``.
    """

    def exec(self, sql: str, args: "Sequence[Any]" = ()) -> int:
        """Execute a statement and return the number of affected rows."""
        ...

    def query(
        self,
        sql: str,
        args: "Sequence[Any]" = (),
        queryable: Optional[str] = None,
        row_handler: "Optional[Callable[[Mapping[str, Any]], T]]" = None,
    ) -> "list[T]":
        """Execute a statement and convert each row with ``row_handler``."""
        ...

    def scalar(self, sql: str, args: "Sequence[Any]" = (), queryable: Optional[str] = None) -> Any:
        """Return the first column of the first row.

        Raises:
            NoResultsError: If the statement returned no rows.
        """
        ...


@runtime_checkable
class SchemaProtocol(Protocol):
    """A record type that knows its table and how to build itself from a row."""

    table_name: str
    primary_key_name: str
    database: Optional[DatabaseProtocol]

    @classmethod
    def column_names(cls) -> "list[str]": ...

    @classmethod
    def from_rs(cls, row: "Mapping[str, Any]") -> Any: ...
