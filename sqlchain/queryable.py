"""Immutable, chainable query objects.

A :class:`Queryable` wraps one :class:`~sqlchain.builder.QueryBuilder`.
Every chain call clones the queryable, changes the clone's builder and
returns the clone, so a query can be branched freely:

```python
adults = UserQuery().age.gte(18)
named_al = adults.where("name", "Al")  # adults is unchanged
adults.order_by("name", "asc").results()
```

Terminal calls (``results``, ``first``, ``select_count``, ``delete``, ...)
render the builder and run it through the model's database.
"""

import copy
import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Generic, Optional, Union, cast, overload

from typing_extensions import Self

from sqlchain.builder import Direction, Equal, OrderBy, PrecedenceEnd, PrecedenceStart, QueryBuilder, Raw, WhereClause
from sqlchain.builder.clauses import WHERE_CLAUSE_TYPES, JoinClause, Null
from sqlchain.config import get_global_config
from sqlchain.criteria import Criteria
from sqlchain.exceptions import (
    ImproperConfigurationError,
    InvalidArgumentError,
    MissingDatabaseError,
    NoResultsError,
    RecordNotFoundError,
    SQLBuilderError,
)
from sqlchain.typing import ModelT, PreloadCallback
from sqlchain.utils.logging import get_logger, log_with_context

if TYPE_CHECKING:
    from sqlchain.protocols import DatabaseProtocol

__all__ = ("BaseQuery", "Queryable")

logger = get_logger("queryable")

_COLUMN_REGEX = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


class Queryable(ABC, Generic[ModelT]):
    """Chainable query over the records of ``model``.

    Subclasses set ``model`` and implement :meth:`update`. Declared columns of
    the model are reachable as attributes returning a
    :class:`~sqlchain.criteria.Criteria`, e.g. ``UserQuery().age.gt(25)``.
    """

    model: "ClassVar[type[Any]]"

    def __init__(self) -> None:
        self._query: Optional[QueryBuilder] = None
        self._preloads: list[PreloadCallback] = []

    # -- Construction --
    @classmethod
    def all(cls) -> Self:
        return cls()

    @classmethod
    def new_with_existing_query(cls, query: QueryBuilder) -> Self:
        queryable = cls()
        queryable.query = query
        return queryable

    @classmethod
    def truncate(cls) -> int:
        """Remove every row of the table, ignoring any where-clauses."""
        queryable = cls()
        return queryable.database.exec(f"TRUNCATE TABLE {queryable.table_name}", [])

    def _defaults(self, block: "Callable[[Self], Queryable[ModelT]]") -> None:
        """Install a default scope from a subclass ``__init__``.

        ```python
        class AdminUserQuery(UserQuery):
            def __init__(self) -> None:
                super().__init__()
                self._defaults(lambda q: q.admin.eq(True))
        ```
        """
        default = self._check_block_result(block(self), "defaults")
        self._query = default.query

    @property
    def query(self) -> QueryBuilder:
        if self._query is None:
            table = self.table_name
            self._query = QueryBuilder(table).select([f"{table}.{column}" for column in self.schema_class.column_names()])
        return self._query

    @query.setter
    def query(self, value: QueryBuilder) -> None:
        self._query = value

    def clone(self) -> Self:
        """Copy this queryable with its own builder.

        Preload registrations are carried over to the copy.
        """
        cloned = copy.copy(self)
        cloned._query = self.query.clone()
        cloned._preloads = list(self._preloads)
        return cloned

    # -- Schema delegation --
    @property
    def schema_class(self) -> "type[ModelT]":
        model = getattr(type(self), "model", None)
        if model is None:
            msg = f"{type(self).__name__} does not declare a model"
            raise ImproperConfigurationError(msg)
        return cast("type[ModelT]", model)

    @property
    def table_name(self) -> str:
        table_name = self.schema_class.table_name
        if not table_name:
            msg = f"{self.schema_class.__name__} does not declare a table_name"
            raise ImproperConfigurationError(msg)
        return table_name

    @property
    def primary_key_name(self) -> str:
        return self.schema_class.primary_key_name

    @property
    def database(self) -> "DatabaseProtocol":
        database = self.schema_class.database
        if database is None:
            raise MissingDatabaseError(self.schema_class.__name__)
        return database

    def column(self, name: str) -> "Criteria[Self]":
        return Criteria(self, f"{self.table_name}.{name}")

    def __getattr__(self, name: str) -> "Criteria[Self]":
        if name.startswith("_"):
            raise AttributeError(name)
        model = getattr(type(self), "model", None)
        if model is not None and name in model.column_names():
            return self.column(name)
        msg = f"{type(self).__name__!r} object has no attribute {name!r}"
        raise AttributeError(msg)

    # -- Chain API --
    def _tap(self, change: "Callable[[QueryBuilder], Any]") -> Self:
        cloned = self.clone()
        change(cloned.query)
        return cloned

    def distinct(self) -> Self:
        return self._tap(lambda query: query.distinct())

    def reset_order(self) -> Self:
        return self._tap(lambda query: query.reset_order())

    def reset_limit(self) -> Self:
        return self._tap(lambda query: query.limit(None))

    def reset_offset(self) -> Self:
        return self._tap(lambda query: query.offset(None))

    def distinct_on(self, block: "Callable[[Self], Criteria[Self]]") -> Self:
        return self._check_criteria(block(self.clone()), "distinct_on").private_distinct_on()

    def reset_where(self, block: "Callable[[Self], Criteria[Self]]") -> Self:
        return self._check_criteria(block(self.clone()), "reset_where").private_reset_where()

    def group(self, block: "Callable[[Self], Criteria[Self]]") -> Self:
        return self._check_criteria(block(self.clone()), "group").private_group()

    @overload
    def where(self, statement: "Callable[[Self], Queryable[ModelT]]") -> Self: ...

    @overload
    def where(self, statement: WhereClause) -> Self: ...

    @overload
    def where(self, statement: str, *bind_vars: Any, args: "Optional[Sequence[Any]]" = None) -> Self: ...

    def where(
        self,
        statement: "Union[str, WhereClause, Callable[[Self], Queryable[ModelT]]]",
        *bind_vars: Any,
        args: "Optional[Sequence[Any]]" = None,
    ) -> Self:
        """Add a where-clause.

        ``statement`` may be:

        - a bare column name followed by exactly one value: an equality test,
          with the value stringified before binding (``None`` becomes ``IS NULL``);
        - any other string: a raw fragment whose ``?`` markers are bound, in
          order, to ``bind_vars`` or ``args``;
        - a where-clause value object;
        - a callable: a parenthesized group built by the callable from the
          cloned queryable it receives.

        Raises:
            SQLBuilderError: If ``statement`` is none of the above.

        Returns:
            A new queryable with the clause appended.
        """
        if isinstance(statement, WHERE_CLAUSE_TYPES):
            clause = cast("WhereClause", statement)
            return self._tap(lambda query: query.where(clause))
        if isinstance(statement, str):
            if args is None and len(bind_vars) == 1 and _COLUMN_REGEX.match(statement):
                value = bind_vars[0]
                column_clause: WhereClause = Null(statement) if value is None else Equal(statement, str(value))
                return self._tap(lambda query: query.where(column_clause))
            raw = Raw(statement, tuple(args) if args is not None else bind_vars)
            return self._tap(lambda query: query.where(raw))
        if callable(statement):
            return self._where_group(statement)
        msg = f"Unsupported where-clause argument of type {type(statement).__name__}"
        raise SQLBuilderError(msg)

    def _where_group(self, block: "Callable[[Self], Queryable[ModelT]]") -> Self:
        cloned = self._tap(lambda query: query.where(PrecedenceStart()))
        result = self._check_block_result(block(cloned), "where")

        # An empty group is dropped rather than rendered as "()".
        if isinstance(result.query.last_where, PrecedenceStart):
            return result._tap(lambda query: query.remove_last_where())
        return result._tap(lambda query: query.clear_conjunction().where(PrecedenceEnd()))

    def or_(self, block: "Optional[Callable[[Self], Queryable[ModelT]]]" = None) -> Self:
        """Join the most recent where-clause to the next one with OR.

        ```python
        UserQuery().where("name", "Al").or_(lambda q: q.where("name", "Bo"))
        UserQuery().where("name", "Al").or_().where("name", "Bo")
        ```
        """
        cloned = self._tap(lambda query: query.or_())
        if block is None:
            return cloned
        return self._check_block_result(block(cloned), "or_")

    def merge_query(self, query_to_merge: QueryBuilder) -> Self:
        return self._tap(lambda query: query.merge(query_to_merge))

    def join(self, join_clause: JoinClause) -> Self:
        return self._tap(lambda query: query.join(join_clause))

    @overload
    def order_by(self, column: OrderBy) -> Self: ...

    @overload
    def order_by(self, column: str, direction: "Union[str, Direction]" = ...) -> Self: ...

    def order_by(self, column: "Union[str, OrderBy]", direction: "Union[str, Direction]" = Direction.ASC) -> Self:
        """Append an ORDER BY entry; repeated calls build a composite ordering.

        Raises:
            InvalidArgumentError: If ``direction`` is not ``asc`` or ``desc``.
        """
        if isinstance(column, OrderBy):
            order = column
            return self._tap(lambda query: query.order_by(order))
        try:
            parsed = Direction.parse(direction)
        except ValueError as e:
            msg = f"{e}. Accepted values are: :asc, :desc"
            raise InvalidArgumentError(msg) from e
        return self.order_by(OrderBy(column, parsed))

    def none(self) -> Self:
        """Match no rows."""
        return self._tap(lambda query: query.where(Raw("1 = 0")))

    def limit(self, amount: Optional[int]) -> Self:
        return self._tap(lambda query: query.limit(amount))

    def offset(self, amount: Optional[int]) -> Self:
        return self._tap(lambda query: query.offset(amount))

    # -- Preloads --
    @property
    def preloads(self) -> "tuple[PreloadCallback, ...]":
        return tuple(self._preloads)

    def add_preload(self, callback: PreloadCallback) -> None:
        """Register a pass run over every batch returned by :meth:`results`.

        Callbacks run in registration order and may change the records in place.
        """
        self._preloads.append(callback)

    def preload(self, callback: PreloadCallback) -> Self:
        cloned = self.clone()
        cloned.add_preload(callback)
        return cloned

    # -- Execution --
    def results(self) -> "list[ModelT]":
        records = self._exec_query()
        for preload in self._preloads:
            preload(records)
        return records

    def _exec_query(self) -> "list[ModelT]":
        statement, args = self.query.render()
        self._log_statement("query", statement, args)
        return self.database.query(statement, args, queryable=self.schema_class.__name__, row_handler=self.schema_class.from_rs)

    def each(self, callback: "Callable[[ModelT], Any]") -> None:
        for record in self.results():
            callback(record)

    def __iter__(self) -> "Iterator[ModelT]":
        return iter(self.results())

    def first_or_none(self) -> Optional[ModelT]:
        records = self._with_ordered_query().limit(1).results()
        return records[0] if records else None

    def first(self) -> ModelT:
        record = self.first_or_none()
        if record is None:
            raise RecordNotFoundError(model=self.table_name, query="first")
        return record

    def last_or_none(self) -> Optional[ModelT]:
        records = self._with_ordered_query()._tap(lambda query: query.reverse_order()).limit(1).results()
        return records[0] if records else None

    def last(self) -> ModelT:
        record = self.last_or_none()
        if record is None:
            raise RecordNotFoundError(model=self.table_name, query="last")
        return record

    def _with_ordered_query(self) -> Self:
        """Ordering applied by ``first``/``last`` so both are deterministic.

        Keeps an existing ORDER BY, otherwise orders by primary key. Override
        to give a query type a different default ordering.
        """
        if self.query.is_ordered:
            return self
        return self.order_by(f"{self.table_name}.{self.primary_key_name}", Direction.ASC)

    def select_count(self) -> int:
        """Count the rows this query would return.

        The current statement is wrapped as a subquery and its arguments are
        reused unchanged.
        """
        statement, args = self.query.render()
        count_query = QueryBuilder(f"({statement}) AS {get_global_config().count_alias}").select_count()
        count_statement = count_query.statement
        self._log_statement("count", count_statement, args)
        try:
            result = self.database.scalar(count_statement, args, queryable=self.schema_class.__name__)
        except NoResultsError:
            return 0
        return int(result or 0)

    def exec_scalar(self, block: "Callable[[QueryBuilder], QueryBuilder]") -> Any:
        """Run a scalar statement built by ``block`` from a copy of the builder.

        ```python
        UserQuery().exec_scalar(lambda query: query.select_max("users.age"))
        ```
        """
        new_query = block(self.query.clone())
        if not isinstance(new_query, QueryBuilder):
            msg = "exec_scalar block must return a QueryBuilder"
            raise SQLBuilderError(msg)
        statement, args = new_query.render()
        self._log_statement("scalar", statement, args)
        return self.database.scalar(statement, args, queryable=self.schema_class.__name__)

    def delete(self) -> int:
        """Delete the rows matched by the where-clauses, or every row if there are none.

        ```python
        # DELETE FROM users WHERE users.age < $1
        UserQuery().age.lt(21).delete()
        ```

        Returns:
            The number of deleted rows.
        """
        return self.clone()._delete()

    def _delete(self) -> int:
        statement, args = self.query.clone().delete().render()
        self._log_statement("delete", statement, args)
        return self.database.exec(statement, args)

    @abstractmethod
    def update(self, **assignments: Any) -> int:
        """Update the rows matched by the where-clauses, or every row if there are none.

        Returns:
            The number of updated rows.
        """

    # -- Inspection --
    def to_sql(self) -> "list[Any]":
        return self.query.to_sql()

    def to_prepared_sql(self) -> str:
        return self.query.to_prepared_sql(dialect=get_global_config().dialect)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.query.statement!r})"

    # -- Helpers --
    def _log_statement(self, operation: str, statement: str, args: "list[Any]") -> None:
        if get_global_config().log_statements:
            log_with_context(
                logger,
                logging.DEBUG,
                f"Executing {operation}",
                sql=statement,
                arg_count=len(args),
                queryable=self.schema_class.__name__,
            )

    def _check_block_result(self, result: Any, method: str) -> "Queryable[Any]":
        if not isinstance(result, Queryable):
            msg = f"The block passed to {method}() must return a queryable, got {type(result).__name__}"
            raise SQLBuilderError(msg)
        return result

    def _check_criteria(self, result: Any, method: str) -> "Criteria[Self]":
        if not isinstance(result, Criteria):
            msg = f"The block passed to {method}() must return a column criteria, got {type(result).__name__}"
            raise SQLBuilderError(msg)
        return result


class BaseQuery(Queryable[ModelT]):
    """Queryable whose ``update`` assigns keyword arguments to columns.

    ```python
    class UserQuery(BaseQuery[User]):
        model = User


    # UPDATE users SET name = $1 WHERE users.age > $2
    UserQuery().age.gt(25).update(name="Old")
    ```
    """

    def update(self, **assignments: Any) -> int:
        statement, args = self.query.clone().update(assignments).render()
        self._log_statement("update", statement, args)
        return self.database.exec(statement, args)
