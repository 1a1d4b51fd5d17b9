"""Clause value objects and the statement accumulator."""

from sqlchain.builder.clauses import (
    Conjunction,
    Direction,
    Equal,
    GreaterThan,
    GreaterThanOrEqualTo,
    Ilike,
    In,
    Join,
    JoinClause,
    JoinKind,
    LessThan,
    LessThanOrEqualTo,
    Like,
    NotEqual,
    NotIlike,
    NotIn,
    NotLike,
    NotNull,
    Null,
    NullSorting,
    OrderBy,
    PrecedenceEnd,
    PrecedenceStart,
    Raw,
    RawJoin,
    WhereClause,
    WhereEntry,
    negate,
    render_where,
)
from sqlchain.builder.query_builder import QueryBuilder

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
    "QueryBuilder",
    "Raw",
    "RawJoin",
    "WhereClause",
    "WhereEntry",
    "negate",
    "render_where",
)
