"""Statement accumulator.

:class:`QueryBuilder` collects where-clauses, orderings, joins and scalar
settings in call order and renders them to a SQL string with ``$n``
positional placeholders plus the matching argument list. Its methods
mutate in place; callers that need immutability work on :meth:`clone`.
"""

import re
from collections.abc import Mapping, Sequence
from typing import Any, Callable, Optional

from sqlglot import exp
from typing_extensions import Self

from sqlchain.builder.clauses import (
    Conjunction,
    JoinClause,
    OrderBy,
    PrecedenceEnd,
    PrecedenceStart,
    WhereClause,
    WhereEntry,
    render_where,
)
from sqlchain.exceptions import SQLBuilderError

__all__ = ("QueryBuilder",)

_PLACEHOLDER_REGEX = re.compile(r"\$(\d+)")

_SELECT = "select"
_DELETE = "delete"
_UPDATE = "update"


def _same_column(target: Optional[str], column: str) -> bool:
    if target is None:
        return False
    target_table, _, target_name = target.rpartition(".")
    table, _, name = column.rpartition(".")
    if target_name != name:
        return False
    return not (target_table and table and target_table != table)


class QueryBuilder:
    """Ordered clause accumulator that renders to ``(statement, args)``.

    Example:
        ```python
        builder = QueryBuilder("users").select(["users.id", "users.name"])
        builder.where(Equal("users.age", 30)).limit(10)
        builder.statement
        # SELECT users.id, users.name FROM users WHERE users.age = $1 LIMIT $2
        builder.args
        # [30, 10]
        ```
    """

    __slots__ = (
        "_aggregate",
        "_assignments",
        "_distinct",
        "_distinct_on",
        "_groups",
        "_joins",
        "_limit",
        "_mode",
        "_offset",
        "_orders",
        "_selections",
        "_wheres",
        "table",
    )

    def __init__(self, table: str) -> None:
        self.table = table
        self._selections: list[str] = []
        self._wheres: list[WhereEntry] = []
        self._orders: list[OrderBy] = []
        self._joins: list[JoinClause] = []
        self._groups: list[str] = []
        self._distinct = False
        self._distinct_on: Optional[str] = None
        self._limit: Optional[int] = None
        self._offset: Optional[int] = None
        self._aggregate: Optional[str] = None
        self._mode = _SELECT
        self._assignments: dict[str, Any] = {}

    def clone(self) -> "QueryBuilder":
        """Copy every clause list and scalar setting into a new builder.

        Clause values are immutable, so copying the containers is enough for
        the two builders to never observe each other's changes.
        """
        cloned = QueryBuilder(self.table)
        cloned._selections = list(self._selections)
        cloned._wheres = list(self._wheres)
        cloned._orders = list(self._orders)
        cloned._joins = list(self._joins)
        cloned._groups = list(self._groups)
        cloned._distinct = self._distinct
        cloned._distinct_on = self._distinct_on
        cloned._limit = self._limit
        cloned._offset = self._offset
        cloned._aggregate = self._aggregate
        cloned._mode = self._mode
        cloned._assignments = dict(self._assignments)
        return cloned

    # -- Selection --
    def select(self, columns: "Sequence[str]") -> Self:
        self._selections = list(columns)
        return self

    def distinct(self) -> Self:
        self._distinct = True
        return self

    def distinct_on(self, column: str) -> Self:
        self._distinct_on = column
        return self

    @property
    def is_distinct(self) -> bool:
        return self._distinct or self._distinct_on is not None

    def select_count(self) -> Self:
        return self._select_aggregate("COUNT(*)")

    def select_min(self, column: str) -> Self:
        return self._select_aggregate(f"MIN({column})")

    def select_max(self, column: str) -> Self:
        return self._select_aggregate(f"MAX({column})")

    def select_sum(self, column: str) -> Self:
        return self._select_aggregate(f"SUM({column})")

    def select_average(self, column: str) -> Self:
        return self._select_aggregate(f"AVG({column})")

    def _select_aggregate(self, expression: str) -> Self:
        self._aggregate = expression
        return self

    # -- Where --
    def where(self, clause: WhereClause, conjunction: Conjunction = Conjunction.AND) -> Self:
        self._wheres.append(WhereEntry(clause, conjunction))
        return self

    @property
    def wheres(self) -> "tuple[WhereEntry, ...]":
        return tuple(self._wheres)

    @property
    def last_where(self) -> Optional[WhereClause]:
        return self._wheres[-1].clause if self._wheres else None

    def or_(self, block: "Optional[Callable[[QueryBuilder], Any]]" = None) -> Self:
        """Join the most recent where-clause to the next one with OR.

        Raises:
            SQLBuilderError: If no where-clause has been added yet.
        """
        if not self._wheres:
            msg = "Cannot use OR without a preceding WHERE clause"
            raise SQLBuilderError(msg)
        self._set_last_conjunction(Conjunction.OR)
        if block is not None:
            block(self)
        return self

    def clear_conjunction(self) -> Self:
        if self._wheres:
            self._set_last_conjunction(Conjunction.NONE)
        return self

    def _set_last_conjunction(self, conjunction: Conjunction) -> None:
        self._wheres[-1] = WhereEntry(self._wheres[-1].clause, conjunction)

    def remove_last_where(self) -> Self:
        if self._wheres:
            self._wheres.pop()
        return self

    def remove_where_on(self, column: str) -> Self:
        """Drop every where-clause that targets ``column``.

        Columns are compared on the part after the last ``.``, so ``users.age``
        also matches a bare ``age``. Qualified names on different tables do not
        match.
        """
        self._wheres = [
            entry for entry in self._wheres if not _same_column(getattr(entry.clause, "column", None), column)
        ]
        return self

    def reset_where(self) -> Self:
        self._wheres = []
        return self

    def merge(self, other: "QueryBuilder") -> Self:
        """Append another builder's where-clauses and joins to this one."""
        self._wheres.extend(other._wheres)
        for join in other._joins:
            self.join(join)
        return self

    # -- Joins, grouping, ordering --
    def join(self, join_clause: JoinClause) -> Self:
        if join_clause not in self._joins:
            self._joins.append(join_clause)
        return self

    @property
    def joins(self) -> "tuple[JoinClause, ...]":
        return tuple(self._joins)

    def group_by(self, column: str) -> Self:
        self._groups.append(column)
        return self

    def order_by(self, order: OrderBy) -> Self:
        self._orders.append(order)
        return self

    @property
    def orders(self) -> "tuple[OrderBy, ...]":
        return tuple(self._orders)

    @property
    def is_ordered(self) -> bool:
        return bool(self._orders)

    def reset_order(self) -> Self:
        self._orders = []
        return self

    def reverse_order(self) -> Self:
        """Flip the direction of every ORDER BY entry."""
        self._orders = [order.reversed() for order in self._orders]
        return self

    # -- Scalars --
    def limit(self, amount: Optional[int]) -> Self:
        self._limit = amount
        return self

    def offset(self, amount: Optional[int]) -> Self:
        self._offset = amount
        return self

    @property
    def limit_value(self) -> Optional[int]:
        return self._limit

    @property
    def offset_value(self) -> Optional[int]:
        return self._offset

    # -- Statement transforms --
    def delete(self) -> Self:
        self._mode = _DELETE
        return self

    def update(self, assignments: "Mapping[str, Any]") -> Self:
        if not assignments:
            msg = "UPDATE requires at least one column assignment"
            raise SQLBuilderError(msg)
        self._mode = _UPDATE
        self._assignments = dict(assignments)
        return self

    # -- Rendering --
    def render(self) -> "tuple[str, list[Any]]":
        """Render the statement and collect its arguments in placeholder order.

        Returns:
            The SQL text and the positional arguments for ``$1..$n``.
        """
        args: list[Any] = []

        def bind(value: Any) -> str:
            args.append(value)
            return f"${len(args)}"

        if self._mode == _DELETE:
            statement = f"DELETE FROM {self.table}{self._where_sql(bind)}"
        elif self._mode == _UPDATE:
            assignments = ", ".join(f"{column} = {bind(value)}" for column, value in self._assignments.items())
            statement = f"UPDATE {self.table} SET {assignments}{self._where_sql(bind)}"
        else:
            statement = self._select_statement(bind)
        return statement, args

    def _select_statement(self, bind: "Callable[[Any], str]") -> str:
        parts = [f"SELECT {self._select_sql()} FROM {self.table}"]
        if self._joins:
            parts.append(" " + " ".join(join.sql for join in self._joins))
        parts.append(self._where_sql(bind))
        if self._groups:
            parts.append(f" GROUP BY {', '.join(self._groups)}")
        if self._aggregate is None:
            if self._orders:
                parts.append(f" ORDER BY {', '.join(order.sql for order in self._orders)}")
            if self._limit is not None:
                parts.append(f" LIMIT {bind(self._limit)}")
            if self._offset is not None:
                parts.append(f" OFFSET {bind(self._offset)}")
        return "".join(parts)

    def _select_sql(self) -> str:
        if self._aggregate is not None:
            return self._aggregate
        columns = ", ".join(self._selections) if self._selections else "*"
        if self._distinct_on is not None:
            return f"DISTINCT ON ({self._distinct_on}) {columns}"
        if self._distinct:
            return f"DISTINCT {columns}"
        return columns

    def _normalized_wheres(self) -> "list[WhereEntry]":
        """Drop precedence groups left empty, e.g. after ``remove_where_on``."""
        entries = list(self._wheres)
        index = 0
        while index < len(entries) - 1:
            if isinstance(entries[index].clause, PrecedenceStart) and isinstance(entries[index + 1].clause, PrecedenceEnd):
                del entries[index : index + 2]
                index = max(index - 1, 0)
                continue
            index += 1
        return entries

    def _where_sql(self, bind: "Callable[[Any], str]") -> str:
        entries = self._normalized_wheres()
        if not entries:
            return ""
        pieces: list[str] = []
        for index, entry in enumerate(entries):
            pieces.append(render_where(entry.clause, bind))
            if index == len(entries) - 1:
                break
            if isinstance(entry.clause, PrecedenceStart) or isinstance(entries[index + 1].clause, PrecedenceEnd):
                continue
            conjunction = entry.conjunction if entry.conjunction is not Conjunction.NONE else Conjunction.AND
            pieces.append(f" {conjunction.value} ")
        return " WHERE " + "".join(pieces)

    @property
    def statement(self) -> str:
        return self.render()[0]

    @property
    def args(self) -> "list[Any]":
        return self.render()[1]

    def to_sql(self) -> "list[Any]":
        """Return the statement followed by its arguments."""
        statement, args = self.render()
        return [statement, *args]

    def to_prepared_sql(self, dialect: Optional[str] = None) -> str:
        """Return the statement with every argument inlined as a SQL literal.

        Args:
            dialect: sqlglot dialect used to format the literals.

        Returns:
            SQL text without placeholders, for logging and debugging only.
        """
        statement, args = self.render()

        def inline(match: "re.Match[str]") -> str:
            position = int(match.group(1))
            if position > len(args):
                return match.group(0)
            return exp.convert(args[position - 1]).sql(dialect=dialect)

        return _PLACEHOLDER_REGEX.sub(inline, statement)

    def __repr__(self) -> str:
        return f"QueryBuilder(table={self.table!r}, statement={self.statement!r})"
