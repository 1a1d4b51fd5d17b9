from collections.abc import Iterator

import pytest

from sqlchain.config import reset_global_config
from tests.models import Post, RecordingDatabase, User


@pytest.fixture(autouse=True)
def _reset_config() -> Iterator[None]:
    yield
    reset_global_config()


@pytest.fixture
def database() -> Iterator[RecordingDatabase]:
    database = RecordingDatabase(
        rows=[{"id": 1, "name": "Al", "age": 30}, {"id": 3, "name": "Cy", "age": 40}],
        scalar_value=2,
        rows_affected=2,
    )
    User.bind(database)
    Post.bind(database)
    try:
        yield database
    finally:
        User.bind(None)
        Post.bind(None)
