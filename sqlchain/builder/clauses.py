"""Clause value objects and their SQL rendering.

Every clause is an immutable value. Where-clauses are rendered by
:func:`render_where`, which receives a ``bind`` callback that records an
argument and returns the placeholder to splice into the SQL text, so the
accumulator alone decides placeholder numbering.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, ClassVar, Final, Optional, Union

from sqlchain.exceptions import SQLBuilderError

__all__ = (
    "Conjunction",
    "Direction",
    "Equal",
    "GreaterThan",
    "GreaterThanOrEqualTo",
    "Ilike",
    "In",
    "Join",
    "JoinClause",
    "JoinKind",
    "LessThan",
    "LessThanOrEqualTo",
    "Like",
    "NotEqual",
    "NotIlike",
    "NotIn",
    "NotLike",
    "NotNull",
    "Null",
    "NullSorting",
    "OrderBy",
    "PrecedenceEnd",
    "PrecedenceStart",
    "Raw",
    "RawJoin",
    "WhereClause",
    "WhereEntry",
    "negate",
    "render_where",
)

Binder = Callable[[Any], str]

_RAW_MARKER_REGEX: Final = re.compile(
    r"""
    (?P<squote>'(?:[^']|'')*') |              # Single-quoted strings
    (?P<dquote>"(?:[^"]|"")*") |              # Quoted identifiers
    (?P<line_comment>--[^\r\n]*) |            # Line comments
    (?P<block_comment>/\*[\s\S]*?\*/) |       # Block comments
    (?P<marker>\?)                            # Argument marker
    """,
    re.VERBOSE,
)


class Conjunction(str, Enum):
    """Operator placed between a where-clause and the one after it."""

    AND = "AND"
    OR = "OR"
    NONE = ""


# -- Predicates --
@dataclass(frozen=True)
class _Comparison:
    column: str
    value: Any

    operator: ClassVar[str] = "="

    def prepare(self, bind: Binder) -> str:
        return f"{self.column} {self.operator} {bind(self.value)}"


@dataclass(frozen=True)
class Equal(_Comparison):
    operator: ClassVar[str] = "="


@dataclass(frozen=True)
class NotEqual(_Comparison):
    operator: ClassVar[str] = "!="


@dataclass(frozen=True)
class GreaterThan(_Comparison):
    operator: ClassVar[str] = ">"


@dataclass(frozen=True)
class GreaterThanOrEqualTo(_Comparison):
    operator: ClassVar[str] = ">="


@dataclass(frozen=True)
class LessThan(_Comparison):
    operator: ClassVar[str] = "<"


@dataclass(frozen=True)
class LessThanOrEqualTo(_Comparison):
    operator: ClassVar[str] = "<="


@dataclass(frozen=True)
class Like(_Comparison):
    operator: ClassVar[str] = "LIKE"


@dataclass(frozen=True)
class NotLike(_Comparison):
    operator: ClassVar[str] = "NOT LIKE"


@dataclass(frozen=True)
class Ilike(_Comparison):
    operator: ClassVar[str] = "ILIKE"


@dataclass(frozen=True)
class NotIlike(_Comparison):
    operator: ClassVar[str] = "NOT ILIKE"


@dataclass(frozen=True)
class In:
    """``column IN (...)``. An empty value list matches nothing."""

    column: str
    values: "tuple[Any, ...]" = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", tuple(self.values))

    def prepare(self, bind: Binder) -> str:
        if not self.values:
            return "1 = 0"
        return f"{self.column} IN ({', '.join(bind(value) for value in self.values)})"


@dataclass(frozen=True)
class NotIn:
    """``column NOT IN (...)``. An empty value list matches everything."""

    column: str
    values: "tuple[Any, ...]" = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", tuple(self.values))

    def prepare(self, bind: Binder) -> str:
        if not self.values:
            return "1 = 1"
        return f"{self.column} NOT IN ({', '.join(bind(value) for value in self.values)})"


@dataclass(frozen=True)
class Null:
    column: str

    def prepare(self, bind: Binder) -> str:
        return f"{self.column} IS NULL"


@dataclass(frozen=True)
class NotNull:
    column: str

    def prepare(self, bind: Binder) -> str:
        return f"{self.column} IS NOT NULL"


@dataclass(frozen=True)
class Raw:
    """A literal SQL fragment. Each ``?`` is replaced by the next argument's placeholder.

    A ``?`` inside a string literal, quoted identifier or comment is not a
    marker. The caller keeps the number of markers and arguments in step.
    Markers without an argument are left as written and surplus arguments are
    not bound.
    """

    statement: str
    args: "tuple[Any, ...]" = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", tuple(self.args))

    def prepare(self, bind: Binder) -> str:
        if not self.args:
            return self.statement
        bound = 0

        def replace(match: "re.Match[str]") -> str:
            nonlocal bound
            if match.group("marker") is None or bound >= len(self.args):
                return match.group(0)
            bound += 1
            return bind(self.args[bound - 1])

        return _RAW_MARKER_REGEX.sub(replace, self.statement)


# -- Structural markers --
@dataclass(frozen=True)
class PrecedenceStart:
    def prepare(self, bind: Binder) -> str:
        return "("


@dataclass(frozen=True)
class PrecedenceEnd:
    def prepare(self, bind: Binder) -> str:
        return ")"


WhereClause = Union[
    Equal,
    NotEqual,
    GreaterThan,
    GreaterThanOrEqualTo,
    LessThan,
    LessThanOrEqualTo,
    Like,
    NotLike,
    Ilike,
    NotIlike,
    In,
    NotIn,
    Null,
    NotNull,
    Raw,
    PrecedenceStart,
    PrecedenceEnd,
]

WHERE_CLAUSE_TYPES: "tuple[type, ...]" = (
    Equal,
    NotEqual,
    GreaterThan,
    GreaterThanOrEqualTo,
    LessThan,
    LessThanOrEqualTo,
    Like,
    NotLike,
    Ilike,
    NotIlike,
    In,
    NotIn,
    Null,
    NotNull,
    Raw,
    PrecedenceStart,
    PrecedenceEnd,
)

_NEGATIONS: "dict[type, type]" = {
    Equal: NotEqual,
    NotEqual: Equal,
    GreaterThan: LessThanOrEqualTo,
    LessThanOrEqualTo: GreaterThan,
    GreaterThanOrEqualTo: LessThan,
    LessThan: GreaterThanOrEqualTo,
    Like: NotLike,
    NotLike: Like,
    Ilike: NotIlike,
    NotIlike: Ilike,
    In: NotIn,
    NotIn: In,
    Null: NotNull,
    NotNull: Null,
}


def negate(clause: WhereClause) -> WhereClause:
    """Return the predicate matching exactly the rows ``clause`` rejects.

    Raises:
        SQLBuilderError: If the clause is a raw fragment or a precedence marker.
    """
    negated_type = _NEGATIONS.get(type(clause))
    if negated_type is None:
        msg = f"{type(clause).__name__} clauses cannot be negated"
        raise SQLBuilderError(msg)
    if isinstance(clause, _Comparison):
        return negated_type(clause.column, clause.value)
    if isinstance(clause, (In, NotIn)):
        return negated_type(clause.column, clause.values)
    return negated_type(clause.column)  # type: ignore[call-arg,union-attr]


def render_where(clause: WhereClause, bind: Binder) -> str:
    """Render a single where-clause.

    Args:
        clause: The clause to render.
        bind: Callback that records an argument and returns its placeholder.

    Raises:
        SQLBuilderError: If ``clause`` is not a where-clause value object.

    Returns:
        The SQL text of the clause.
    """
    if not isinstance(clause, WHERE_CLAUSE_TYPES):
        msg = f"Cannot render {type(clause).__name__!r} as a WHERE clause"
        raise SQLBuilderError(msg)
    return clause.prepare(bind)


@dataclass(frozen=True)
class WhereEntry:
    """A where-clause plus the conjunction joining it to the next entry."""

    clause: WhereClause
    conjunction: Conjunction = Conjunction.AND


# -- Ordering --
class Direction(Enum):
    ASC = "ASC"
    DESC = "DESC"

    @classmethod
    def parse(cls, value: "Union[str, Direction]") -> "Direction":
        """Parse ``asc``/``desc`` in any case, with or without a leading colon.

        Raises:
            ValueError: If the value is not a recognized direction.
        """
        if isinstance(value, cls):
            return value
        token = str(value).strip().lstrip(":").upper()
        try:
            return cls[token]
        except KeyError:
            msg = f"Unknown enum Direction value: {value}"
            raise ValueError(msg) from None

    def reversed(self) -> "Direction":
        return Direction.DESC if self is Direction.ASC else Direction.ASC


class NullSorting(Enum):
    DEFAULT = ""
    FIRST = "NULLS FIRST"
    LAST = "NULLS LAST"

    def reversed(self) -> "NullSorting":
        if self is NullSorting.FIRST:
            return NullSorting.LAST
        if self is NullSorting.LAST:
            return NullSorting.FIRST
        return self


@dataclass(frozen=True)
class OrderBy:
    column: str
    direction: Direction = Direction.ASC
    nulls: NullSorting = NullSorting.DEFAULT

    def __post_init__(self) -> None:
        object.__setattr__(self, "direction", Direction.parse(self.direction))

    def reversed(self) -> "OrderBy":
        return OrderBy(self.column, self.direction.reversed(), self.nulls.reversed())

    @property
    def sql(self) -> str:
        if self.nulls is NullSorting.DEFAULT:
            return f"{self.column} {self.direction.value}"
        return f"{self.column} {self.direction.value} {self.nulls.value}"


# -- Joins --
class JoinKind(Enum):
    INNER = "INNER"
    LEFT = "LEFT"
    RIGHT = "RIGHT"
    FULL = "FULL"


@dataclass(frozen=True)
class Join:
    """``<KIND> JOIN to_table ON from_table.primary_key = to_table.foreign_key``."""

    kind: JoinKind
    from_table: str
    to_table: str
    foreign_key: str
    primary_key: str = "id"
    alias: Optional[str] = field(default=None)

    def __post_init__(self) -> None:
        if not self.from_table or not self.to_table or not self.foreign_key:
            msg = "A join needs both table names and a foreign key"
            raise SQLBuilderError(msg)

    @classmethod
    def inner(cls, from_table: str, to_table: str, *, foreign_key: str, primary_key: str = "id", alias: Optional[str] = None) -> "Join":
        return cls(JoinKind.INNER, from_table, to_table, foreign_key, primary_key, alias)

    @classmethod
    def left(cls, from_table: str, to_table: str, *, foreign_key: str, primary_key: str = "id", alias: Optional[str] = None) -> "Join":
        return cls(JoinKind.LEFT, from_table, to_table, foreign_key, primary_key, alias)

    @classmethod
    def right(cls, from_table: str, to_table: str, *, foreign_key: str, primary_key: str = "id", alias: Optional[str] = None) -> "Join":
        return cls(JoinKind.RIGHT, from_table, to_table, foreign_key, primary_key, alias)

    @classmethod
    def full(cls, from_table: str, to_table: str, *, foreign_key: str, primary_key: str = "id", alias: Optional[str] = None) -> "Join":
        return cls(JoinKind.FULL, from_table, to_table, foreign_key, primary_key, alias)

    @property
    def sql(self) -> str:
        target = f"{self.to_table} AS {self.alias}" if self.alias else self.to_table
        reference = self.alias or self.to_table
        return (
            f"{self.kind.value} JOIN {target} "
            f"ON {self.from_table}.{self.primary_key} = {reference}.{self.foreign_key}"
        )


@dataclass(frozen=True)
class RawJoin:
    statement: str

    @property
    def sql(self) -> str:
        return self.statement


JoinClause = Union[Join, RawJoin]
