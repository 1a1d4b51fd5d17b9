from typing import Any, Optional

__all__ = (
    "DatabaseError",
    "ImproperConfigurationError",
    "InvalidArgumentError",
    "MissingDatabaseError",
    "NoResultsError",
    "NotFoundError",
    "QueryError",
    "RecordNotFoundError",
    "SQLBuilderError",
    "SQLChainError",
    "SQLParsingError",
)


class SQLChainError(Exception):
    """Base exception class from which all sqlchain exceptions inherit."""

    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``SQLChainError``.

        Args:
            *args: args are converted to :class:`str` before passing to :class:`Exception`
            detail: detail of the exception.
        """
        str_args = [str(arg) for arg in args if arg]
        if not detail:
            if str_args:
                detail, *str_args = str_args
            elif hasattr(self, "detail"):
                detail = self.detail
        self.detail = detail
        super().__init__(*str_args)

    def __repr__(self) -> str:
        if self.detail:
            return f"{self.__class__.__name__} - {self.detail}"
        return self.__class__.__name__

    def __str__(self) -> str:
        return " ".join((*self.args, self.detail)).strip()


class SQLBuilderError(SQLChainError):
    """Issues building or generating SQL statements."""

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "Issues building SQL statement."
        super().__init__(message)


class SQLParsingError(SQLChainError):
    """Issues parsing SQL statements."""

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "Issues parsing SQL statement."
        super().__init__(message)


class InvalidArgumentError(SQLChainError, ValueError):
    """An argument passed to a chain call was not one of the accepted values."""


class ImproperConfigurationError(SQLChainError):
    """Improper configuration error."""


class MissingDatabaseError(ImproperConfigurationError):
    """A model was queried before a database was bound to it."""

    def __init__(self, model: str) -> None:
        super().__init__(f"No database is bound to {model!r}. Call {model}.bind(database) first.")
        self.model = model


class DatabaseError(SQLChainError):
    """An error reported by the database driver."""


# -- Query Errors --
class QueryError(SQLChainError):
    """Base class for query errors."""


class NoResultsError(QueryError):
    """A scalar query returned no rows."""

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "Query returned no rows."
        super().__init__(message)


class NotFoundError(SQLChainError):
    """An identity does not exist."""


class RecordNotFoundError(NotFoundError):
    """``first()`` or ``last()`` found no record.

    Attributes:
        model: Table name the lookup ran against.
        query: The terminal call that was requested, ``"first"`` or ``"last"``.
    """

    model: str
    query: str

    def __init__(self, model: str, query: str) -> None:
        super().__init__(f"Could not find {query} record in {model}")
        self.model = model
        self.query = query
