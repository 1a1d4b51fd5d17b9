from collections.abc import Iterator

import pytest

from sqlchain.adapters.sqlite import SqliteConfig, SqliteDatabase
from tests.models import Post, User


@pytest.fixture
def sqlite_database() -> Iterator[SqliteDatabase]:
    """In-memory database holding three users and their posts, bound to both models."""
    with SqliteConfig().provide_database() as database:
        database.connection.executescript(
            """
            CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT NOT NULL, age INTEGER);
            CREATE TABLE posts (id INTEGER PRIMARY KEY, user_id INTEGER NOT NULL, title TEXT NOT NULL);
            """
        )
        database.exec(
            "INSERT INTO users (id, name, age) VALUES ($1, $2, $3), ($4, $5, $6), ($7, $8, $9)",
            [1, "Al", 30, 2, "Bo", 20, 3, "Cy", 40],
        )
        database.exec(
            "INSERT INTO posts (id, user_id, title) VALUES ($1, $2, $3), ($4, $5, $6), ($7, $8, $9)",
            [10, 1, "Hi", 11, 1, "Again", 12, 3, "Hi"],
        )
        User.bind(database)
        Post.bind(database)
        try:
            yield database
        finally:
            User.bind(None)
            Post.bind(None)
