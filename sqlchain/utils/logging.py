"""Logging helpers for sqlchain.

Every logger handed out by :func:`get_logger` lives under the ``sqlchain``
namespace and stamps records with the correlation ID of the current context,
so the statements issued on behalf of one unit of work can be grouped:

```python
with correlation_context() as correlation_id:
    UserQuery().age.gt(25).results()
```
"""

from __future__ import annotations

import logging
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any, TextIO

from sqlchain.utils.serializers import to_json

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence
    from logging import LogRecord

__all__ = (
    "CorrelationIDFilter",
    "StructuredFormatter",
    "configure_logging",
    "correlation_context",
    "correlation_id_var",
    "get_correlation_id",
    "get_logger",
    "log_with_context",
    "set_correlation_id",
)

ROOT_LOGGER_NAME = "sqlchain"
SIMPLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def set_correlation_id(correlation_id: str | None) -> None:
    """Set the correlation ID for the current context.

    Args:
        correlation_id: The correlation ID to set, or None to clear
    """
    correlation_id_var.set(correlation_id)


def get_correlation_id() -> str | None:
    return correlation_id_var.get()


@contextmanager
def correlation_context(correlation_id: str | None = None) -> Iterator[str]:
    """Bind a correlation ID for the duration of the block.

    Args:
        correlation_id: ID to bind. A random hex ID is generated when omitted.

    Yields:
        The bound correlation ID. The previous value is restored on exit.
    """
    bound = correlation_id or uuid.uuid4().hex
    token = correlation_id_var.set(bound)
    try:
        yield bound
    finally:
        correlation_id_var.reset(token)


class StructuredFormatter(logging.Formatter):
    """JSON formatter that merges ``extra_fields`` into the log entry.

    Args:
        max_sql_length: Truncate an ``sql`` field longer than this many characters.
    """

    def __init__(self, *args: Any, max_sql_length: int | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.max_sql_length = max_sql_length

    def format(self, record: LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        correlation_id = getattr(record, "correlation_id", None) or get_correlation_id()
        if correlation_id:
            log_entry["correlation_id"] = correlation_id

        extra_fields = getattr(record, "extra_fields", None)
        if extra_fields:
            log_entry.update(extra_fields)

        sql = log_entry.get("sql")
        if self.max_sql_length is not None and isinstance(sql, str) and len(sql) > self.max_sql_length:
            log_entry["sql"] = sql[: self.max_sql_length] + "..."

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return to_json(log_entry)


class CorrelationIDFilter(logging.Filter):
    """Copy the context's correlation ID onto each record."""

    def filter(self, record: LogRecord) -> bool:
        if correlation_id := get_correlation_id():
            record.correlation_id = correlation_id  # type: ignore[attr-defined]
        return True


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger under the ``sqlchain`` namespace.

    Args:
        name: Logger name, prefixed with ``sqlchain.`` unless it already is.
            If not provided, returns the root sqlchain logger.

    Returns:
        Logger carrying a :class:`CorrelationIDFilter`.
    """
    if name is None:
        return logging.getLogger(ROOT_LOGGER_NAME)

    if name != ROOT_LOGGER_NAME and not name.startswith(f"{ROOT_LOGGER_NAME}."):
        name = f"{ROOT_LOGGER_NAME}.{name}"

    logger = logging.getLogger(name)
    if not any(isinstance(f, CorrelationIDFilter) for f in logger.filters):
        logger.addFilter(CorrelationIDFilter())
    return logger


def configure_logging(
    level: str | int = "INFO",
    *,
    structured: bool = True,
    stream: TextIO | None = None,
    handlers: Sequence[logging.Handler] | None = None,
    max_sql_length: int | None = None,
) -> logging.Logger:
    """Route sqlchain records to a stream handler of their own.

    Replaces any handlers previously installed on the ``sqlchain`` logger and
    stops propagation to the root logger.

    Args:
        level: Level name or number for the ``sqlchain`` logger.
        structured: Emit JSON lines instead of plain text.
        stream: Stream for the console handler, ``sys.stdout`` by default.
        handlers: Additional handlers to attach.
        max_sql_length: Passed to :class:`StructuredFormatter`.

    Returns:
        The configured ``sqlchain`` logger.
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level.upper() if isinstance(level, str) else level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(stream or sys.stdout)
    formatter: logging.Formatter
    if structured:
        formatter = StructuredFormatter(max_sql_length=max_sql_length)
    else:
        formatter = logging.Formatter(SIMPLE_FORMAT)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    for handler in handlers or ():
        root_logger.addHandler(handler)

    root_logger.propagate = False
    root_logger.debug(
        "sqlchain logging configured",
        extra={"extra_fields": {"structured": structured, "handlers_count": len(root_logger.handlers)}},
    )
    return root_logger


def log_with_context(logger: logging.Logger, level: int, message: str, **extra_fields: Any) -> None:
    """Log ``message`` with ``extra_fields`` attached for :class:`StructuredFormatter`.

    Nothing is built when ``level`` is disabled for ``logger``.
    """
    if not logger.isEnabledFor(level):
        return
    logger.log(level, message, extra={"extra_fields": extra_fields})
