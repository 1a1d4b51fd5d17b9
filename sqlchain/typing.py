from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Callable

from typing_extensions import TypeAlias, TypeVar

if TYPE_CHECKING:
    from sqlchain.model import Model
    from sqlchain.queryable import Queryable

__all__ = ("ModelT", "PreloadCallback", "QueryableT", "RowMapping")

ModelT = TypeVar("ModelT", bound="Model")
"""Type variable for the record type a queryable materializes."""

QueryableT = TypeVar("QueryableT", bound="Queryable[Any]")
"""Type variable for concrete queryable types."""

RowMapping: TypeAlias = Mapping[str, Any]
"""A single result row keyed by column name."""

PreloadCallback: TypeAlias = Callable[[list[Any]], None]
"""Post-processing pass over a freshly materialized batch of records."""
