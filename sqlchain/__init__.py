"""sqlchain: immutable, chainable query objects compiled to parameterized SQL."""

from sqlchain import adapters, builder, config, exceptions, typing, utils
from sqlchain.__metadata__ import __version__
from sqlchain.builder import (
    Conjunction,
    Direction,
    Equal,
    Join,
    NullSorting,
    OrderBy,
    PrecedenceEnd,
    PrecedenceStart,
    QueryBuilder,
    Raw,
    RawJoin,
)
from sqlchain.config import QueryConfig, get_global_config, set_global_config
from sqlchain.criteria import Criteria
from sqlchain.exceptions import (
    InvalidArgumentError,
    NoResultsError,
    NotFoundError,
    RecordNotFoundError,
    SQLBuilderError,
    SQLChainError,
    SQLParsingError,
)
from sqlchain.model import Model
from sqlchain.protocols import DatabaseProtocol, SchemaProtocol
from sqlchain.queryable import BaseQuery, Queryable

__all__ = (
    "BaseQuery",
    "Conjunction",
    "Criteria",
    "DatabaseProtocol",
    "Direction",
    "Equal",
    "InvalidArgumentError",
    "Join",
    "Model",
    "NoResultsError",
    "NotFoundError",
    "NullSorting",
    "OrderBy",
    "PrecedenceEnd",
    "PrecedenceStart",
    "QueryBuilder",
    "QueryConfig",
    "Queryable",
    "Raw",
    "RawJoin",
    "RecordNotFoundError",
    "SQLBuilderError",
    "SQLChainError",
    "SQLParsingError",
    "SchemaProtocol",
    "__version__",
    "adapters",
    "builder",
    "config",
    "exceptions",
    "get_global_config",
    "set_global_config",
    "typing",
    "utils",
)
