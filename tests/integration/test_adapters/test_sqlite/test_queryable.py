"""End-to-end tests of queryables against an in-memory SQLite database."""

from typing import Any

import pytest

from sqlchain import Join
from sqlchain.adapters.sqlite import SqliteDatabase
from sqlchain.exceptions import RecordNotFoundError
from tests.models import Post, PostQuery, User, UserQuery

pytestmark = [pytest.mark.integration, pytest.mark.usefixtures("sqlite_database")]


def _names(records: "list[User]") -> "list[str]":
    return [record.name for record in records]


def test_filter_order_and_count() -> None:
    query = UserQuery().age.gt(25)

    assert query.order_by("name", "asc").results() == [User(id=1, name="Al", age=30), User(id=3, name="Cy", age=40)]
    assert query.select_count() == 2
    assert UserQuery().select_count() == 3


def test_first_and_last() -> None:
    assert UserQuery().first().name == "Al"
    assert UserQuery().last().name == "Cy"
    assert UserQuery().order_by("age").first().name == "Bo"
    assert UserQuery().order_by("age").last().name == "Cy"


def test_class_level_first_and_last_go_through_all() -> None:
    assert UserQuery.all().first() == UserQuery().first()
    assert UserQuery.all().last_or_none() == User(id=3, name="Cy", age=40)


def test_first_raises_when_nothing_matches() -> None:
    query = UserQuery().where("name", "Nobody")
    assert query.first_or_none() is None
    with pytest.raises(RecordNotFoundError, match="Could not find first record in users"):
        query.first()


def test_or_group() -> None:
    query = UserQuery().where(lambda q: q.where("name", "Al").or_().where("name", "Bo")).age.gt(25)
    assert _names(query.results()) == ["Al"]


def test_or_between_predicates() -> None:
    query = UserQuery().age.lt(25).or_().age.gt(35).order_by("name")
    assert _names(query.results()) == ["Bo", "Cy"]


def test_negation_and_sets() -> None:
    assert _names(UserQuery().id.not_().in_([1, 2]).results()) == ["Cy"]
    assert UserQuery().id.in_([]).results() == []
    assert _names(UserQuery().name.like("A%").results()) == ["Al"]


def test_none_matches_nothing() -> None:
    assert UserQuery().none().results() == []
    assert UserQuery().none().select_count() == 0


def test_limit_and_offset() -> None:
    assert _names(UserQuery().order_by("name").limit(1).offset(1).results()) == ["Bo"]
    assert UserQuery().limit(2).select_count() == 2


def test_offset_without_limit() -> None:
    assert _names(UserQuery().order_by("id").offset(1).results()) == ["Bo", "Cy"]


def test_ilike() -> None:
    assert _names(UserQuery().name.ilike("a%").results()) == ["Al"]
    assert _names(UserQuery().name.not_().ilike("a%").order_by("id").results()) == ["Bo", "Cy"]


def test_distinct_on() -> None:
    posts = PostQuery().distinct_on(lambda q: q.user_id).order_by("posts.id").results()
    assert sorted(post.id for post in posts) == [10, 12]


def test_aggregates() -> None:
    assert UserQuery().age.select_max() == 40
    assert UserQuery().age.select_min() == 20
    assert UserQuery().age.select_sum() == 90
    assert UserQuery().age.gt(25).age.select_average() == 35.0


def test_join() -> None:
    query = UserQuery().join(Join.inner("users", "posts", foreign_key="user_id")).where("posts.title", "Again")
    assert _names(query.results()) == ["Al"]


def test_distinct_with_join() -> None:
    query = UserQuery().distinct().join(Join.inner("users", "posts", foreign_key="user_id")).order_by("users.id")
    assert _names(query.results()) == ["Al", "Cy"]


def test_group_by() -> None:
    assert PostQuery().group(lambda q: q.user_id).select_count() == 2


def test_preload_attaches_related_records() -> None:
    def attach_posts(users: "list[Any]") -> None:
        posts = PostQuery().user_id.in_([user.id for user in users]).order_by("posts.id").results()
        for user in users:
            user.posts = [post for post in posts if post.user_id == user.id]

    users = UserQuery().preload(attach_posts).order_by("id").results()

    assert [[post.title for post in user.posts] for user in users] == [["Hi", "Again"], [], ["Hi"]]


def test_update() -> None:
    assert UserQuery().age.gt(25).update(name="Old") == 2
    assert _names(UserQuery().order_by("id").results()) == ["Old", "Bo", "Old"]


def test_delete() -> None:
    assert UserQuery().age.lt(25).delete() == 1
    assert UserQuery().select_count() == 2

    assert PostQuery().delete() == 3
    assert PostQuery().results() == []


def test_truncate() -> None:
    UserQuery.truncate()
    assert UserQuery().select_count() == 0


def test_row_materialization(sqlite_database: SqliteDatabase) -> None:
    rows = sqlite_database.query("SELECT posts.id, posts.user_id, posts.title FROM posts WHERE posts.id = $1", [12])
    assert [Post.from_rs(row) for row in rows] == [Post(id=12, user_id=3, title="Hi")]
