"""SQLite adapter for sqlchain."""

from sqlchain.adapters.sqlite.config import SqliteConfig, SqliteConnectionParams
from sqlchain.adapters.sqlite.driver import SqliteCursor, SqliteDatabase, convert_placeholders, transpile_statement

__all__ = (
    "SqliteConfig",
    "SqliteConnectionParams",
    "SqliteCursor",
    "SqliteDatabase",
    "convert_placeholders",
    "transpile_statement",
)
