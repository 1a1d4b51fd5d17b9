"""Unit tests for the terminal calls of Queryable.

Statements are sent to a recording database so the exact SQL and arguments
handed to the driver can be asserted.
"""

import logging
from typing import Any

import pytest

from sqlchain.config import QueryConfig, set_global_config
from sqlchain.exceptions import MissingDatabaseError, RecordNotFoundError, SQLBuilderError
from tests.models import SELECT_USERS, Post, PostQuery, RecordingDatabase, User, UserQuery


def test_results_materializes_records(database: RecordingDatabase) -> None:
    records = UserQuery().age.gt(25).results()

    assert records == [User(id=1, name="Al", age=30), User(id=3, name="Cy", age=40)]
    assert database.last_call == ("query", f"{SELECT_USERS} WHERE users.age > $1", [25])


def test_iteration_and_each(database: RecordingDatabase) -> None:
    names = [user.name for user in UserQuery()]
    seen: list[str] = []
    UserQuery().each(lambda user: seen.append(user.name))

    assert names == seen == ["Al", "Cy"]
    assert [call[0] for call in database.calls] == ["query", "query"]


def test_preloads_run_in_registration_order(database: RecordingDatabase) -> None:
    order: list[str] = []

    def tag_first(records: "list[User]") -> None:
        order.append("first")
        for record in records:
            record.name = record.name.upper()

    def tag_second(records: "list[User]") -> None:
        order.append("second")
        assert [record.name for record in records] == ["AL", "CY"]

    records = UserQuery().preload(tag_first).preload(tag_second).results()

    assert order == ["first", "second"]
    assert [record.name for record in records] == ["AL", "CY"]


def test_preloads_carry_through_chain(database: RecordingDatabase) -> None:
    batches: list[int] = []
    query = UserQuery().preload(lambda records: batches.append(len(records)))

    query.where("name", "Al").results()
    query.first()

    assert batches == [2, 2]


def test_first_orders_by_primary_key(database: RecordingDatabase) -> None:
    assert UserQuery().first() == User(id=1, name="Al", age=30)
    assert database.last_call == ("query", f"{SELECT_USERS} ORDER BY users.id ASC LIMIT $1", [1])


def test_first_keeps_existing_order(database: RecordingDatabase) -> None:
    UserQuery().order_by("users.name", "desc").first_or_none()
    assert database.last_call == ("query", f"{SELECT_USERS} ORDER BY users.name DESC LIMIT $1", [1])


def test_last_reverses_order(database: RecordingDatabase) -> None:
    UserQuery().last()
    assert database.last_call == ("query", f"{SELECT_USERS} ORDER BY users.id DESC LIMIT $1", [1])

    UserQuery().order_by("users.age", "desc").order_by("users.id").last_or_none()
    assert database.last_call[1] == f"{SELECT_USERS} ORDER BY users.age ASC, users.id DESC LIMIT $1"


def test_first_and_last_leave_receiver_untouched(database: RecordingDatabase) -> None:
    query = UserQuery().where("name", "Al")
    query.first()
    query.last()
    assert query.to_sql() == [f"{SELECT_USERS} WHERE name = $1", "Al"]


@pytest.mark.parametrize("terminal", ["first", "last"])
def test_first_and_last_raise_when_empty(database: RecordingDatabase, terminal: str) -> None:
    database.rows = []
    query = UserQuery().where("name", "Nobody")

    with pytest.raises(RecordNotFoundError) as exc_info:
        getattr(query, terminal)()

    assert str(exc_info.value) == f"Could not find {terminal} record in users"
    assert exc_info.value.model == "users"
    assert exc_info.value.query == terminal
    assert getattr(query, f"{terminal}_or_none")() is None


def test_select_count_wraps_statement(database: RecordingDatabase) -> None:
    assert UserQuery().age.gt(25).select_count() == 2
    assert database.last_call == (
        "scalar",
        f"SELECT COUNT(*) FROM ({SELECT_USERS} WHERE users.age > $1) AS temp",
        [25],
    )


def test_select_count_uses_configured_alias(database: RecordingDatabase) -> None:
    set_global_config(QueryConfig(count_alias="counted"))
    UserQuery().select_count()
    assert database.last_call[1] == f"SELECT COUNT(*) FROM ({SELECT_USERS}) AS counted"


@pytest.mark.parametrize("scalar_value,expected", [(None, 0), ("7", 7), (5, 5)])
def test_select_count_coerces_result(database: RecordingDatabase, scalar_value: Any, expected: int) -> None:
    database.scalar_value = scalar_value
    assert UserQuery().select_count() == expected


def test_select_count_without_rows_is_zero(database: RecordingDatabase) -> None:
    database.raise_no_results = True
    assert UserQuery().select_count() == 0


def test_exec_scalar(database: RecordingDatabase) -> None:
    database.scalar_value = 40
    assert UserQuery().age.gt(1).exec_scalar(lambda query: query.select_max("users.age")) == 40
    assert database.last_call == ("scalar", "SELECT MAX(users.age) FROM users WHERE users.age > $1", [1])


def test_exec_scalar_block_must_return_builder(database: RecordingDatabase) -> None:
    with pytest.raises(SQLBuilderError, match="must return a QueryBuilder"):
        UserQuery().exec_scalar(lambda query: None)  # type: ignore[arg-type,return-value]
    assert database.calls == []


def test_delete_all(database: RecordingDatabase) -> None:
    assert UserQuery().order_by("name").limit(3).delete() == 2
    assert database.last_call == ("exec", "DELETE FROM users", [])


def test_delete_with_where(database: RecordingDatabase) -> None:
    query = UserQuery().age.lt(21)
    query.delete()
    assert database.last_call == ("exec", "DELETE FROM users WHERE users.age < $1", [21])
    assert query.to_sql()[0].startswith("SELECT")


def test_update(database: RecordingDatabase) -> None:
    assert UserQuery().age.gt(25).update(name="Old") == 2
    assert database.last_call == ("exec", "UPDATE users SET name = $1 WHERE users.age > $2", ["Old", 25])


def test_update_without_assignments(database: RecordingDatabase) -> None:
    with pytest.raises(SQLBuilderError):
        UserQuery().update()


def test_truncate(database: RecordingDatabase) -> None:
    assert UserQuery.truncate() == 2
    assert database.last_call == ("exec", "TRUNCATE TABLE users", [])


def test_separate_models_share_nothing(database: RecordingDatabase) -> None:
    database.rows = [{"id": 5, "user_id": 1, "title": "Hi"}]
    assert PostQuery().where("posts.user_id", 1).results() == [Post(id=5, user_id=1, title="Hi")]
    assert database.last_call[1] == "SELECT posts.id, posts.user_id, posts.title FROM posts WHERE posts.user_id = $1"


def test_missing_database() -> None:
    with pytest.raises(MissingDatabaseError, match="No database is bound to 'User'"):
        UserQuery().results()


def test_statements_are_logged(database: RecordingDatabase, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG, logger="sqlchain.queryable"):
        UserQuery().age.gt(25).select_count()

    records = [record for record in caplog.records if record.name == "sqlchain.queryable"]
    assert [record.getMessage() for record in records] == ["Executing count"]
    assert records[0].extra_fields == {
        "sql": f"SELECT COUNT(*) FROM ({SELECT_USERS} WHERE users.age > $1) AS temp",
        "arg_count": 1,
        "queryable": "User",
    }


def test_statement_logging_can_be_disabled(database: RecordingDatabase, caplog: pytest.LogCaptureFixture) -> None:
    set_global_config(QueryConfig(log_statements=False))
    with caplog.at_level(logging.DEBUG, logger="sqlchain.queryable"):
        UserQuery().results()
    assert not [record for record in caplog.records if record.name == "sqlchain.queryable"]
