"""Column-level predicates bound to a queryable.

``UserQuery().age`` returns a :class:`Criteria` for ``users.age``; each
predicate method returns a new queryable with the clause appended.
"""

from collections.abc import Iterable
from typing import Any, Generic, Optional, Union

from sqlchain.builder.clauses import (
    Direction,
    Equal,
    GreaterThan,
    GreaterThanOrEqualTo,
    Ilike,
    In,
    LessThan,
    LessThanOrEqualTo,
    Like,
    NotNull,
    Null,
    NullSorting,
    OrderBy,
    WhereClause,
    negate,
)
from sqlchain.exceptions import InvalidArgumentError
from sqlchain.typing import QueryableT

__all__ = ("Criteria",)


def _parse_nulls(nulls: "Union[str, NullSorting, None]") -> NullSorting:
    if nulls is None:
        return NullSorting.DEFAULT
    if isinstance(nulls, NullSorting):
        return nulls
    try:
        return NullSorting[str(nulls).strip().lstrip(":").upper()]
    except KeyError:
        msg = f"Unknown null sorting {nulls!r}. Accepted values are: :first, :last"
        raise InvalidArgumentError(msg) from None


class Criteria(Generic[QueryableT]):
    """Predicates, orderings and aggregates for one column of a queryable."""

    __slots__ = ("_negate_next", "column", "rows")

    def __init__(self, rows: QueryableT, column: str, *, negate_next: bool = False) -> None:
        self.rows = rows
        self.column = column
        self._negate_next = negate_next

    def __repr__(self) -> str:
        return f"Criteria(column={self.column!r}, negated={self._negate_next!r})"

    def _add(self, clause: WhereClause) -> QueryableT:
        if self._negate_next:
            clause = negate(clause)
        return self.rows.where(clause)

    def not_(self) -> "Criteria[QueryableT]":
        """Negate the next predicate: ``q.age.not_().gt(30)`` renders ``age <= $1``."""
        return Criteria(self.rows, self.column, negate_next=not self._negate_next)

    # -- Predicates --
    def eq(self, value: Any) -> QueryableT:
        if value is None:
            return self.is_nil()
        return self._add(Equal(self.column, value))

    def gt(self, value: Any) -> QueryableT:
        return self._add(GreaterThan(self.column, value))

    def gte(self, value: Any) -> QueryableT:
        return self._add(GreaterThanOrEqualTo(self.column, value))

    def lt(self, value: Any) -> QueryableT:
        return self._add(LessThan(self.column, value))

    def lte(self, value: Any) -> QueryableT:
        return self._add(LessThanOrEqualTo(self.column, value))

    def like(self, pattern: str) -> QueryableT:
        return self._add(Like(self.column, pattern))

    def ilike(self, pattern: str) -> QueryableT:
        return self._add(Ilike(self.column, pattern))

    def in_(self, values: "Iterable[Any]") -> QueryableT:
        return self._add(In(self.column, tuple(values)))

    def is_nil(self) -> QueryableT:
        return self._add(Null(self.column))

    def is_not_nil(self) -> QueryableT:
        return self._add(NotNull(self.column))

    # -- Ordering --
    def asc_order(self, nulls: "Union[str, NullSorting, None]" = None) -> QueryableT:
        return self.rows.order_by(OrderBy(self.column, Direction.ASC, _parse_nulls(nulls)))

    def desc_order(self, nulls: "Union[str, NullSorting, None]" = None) -> QueryableT:
        return self.rows.order_by(OrderBy(self.column, Direction.DESC, _parse_nulls(nulls)))

    # -- Aggregates --
    def select_min(self) -> Optional[Any]:
        return self.rows.exec_scalar(lambda query: query.select_min(self.column))

    def select_max(self) -> Optional[Any]:
        return self.rows.exec_scalar(lambda query: query.select_max(self.column))

    def select_sum(self) -> Optional[Any]:
        return self.rows.exec_scalar(lambda query: query.select_sum(self.column))

    def select_average(self) -> Optional[Any]:
        return self.rows.exec_scalar(lambda query: query.select_average(self.column))

    # -- Builder hooks for Queryable.group / distinct_on / reset_where --
    def private_group(self) -> QueryableT:
        return self.rows._tap(lambda query: query.group_by(self.column))

    def private_distinct_on(self) -> QueryableT:
        return self.rows._tap(lambda query: query.distinct_on(self.column))

    def private_reset_where(self) -> QueryableT:
        return self.rows._tap(lambda query: query.remove_where_on(self.column))
