"""Unit tests for record materialization."""

from sqlchain import SchemaProtocol
from tests.models import Post, User


def test_column_names_follow_field_order() -> None:
    assert User.column_names() == ["id", "name", "age"]
    assert Post.column_names() == ["id", "user_id", "title"]


def test_from_rs_strips_table_prefix() -> None:
    row = {"users.id": 1, "users.name": "Al", "users.age": 30}
    assert User.from_rs(row) == User(id=1, name="Al", age=30)


def test_from_rs_ignores_unknown_columns() -> None:
    row = {"id": 2, "name": "Bo", "age": 20, "posts_count": 4}
    assert User.from_rs(row) == User(id=2, name="Bo", age=20)


def test_bind_is_per_model() -> None:
    sentinel = object()
    try:
        User.bind(sentinel)  # type: ignore[arg-type]
        assert User.database is sentinel
        assert Post.database is None
    finally:
        User.bind(None)


def test_records_satisfy_schema_protocol() -> None:
    assert isinstance(User, SchemaProtocol)
