"""Unit tests for global configuration."""

import pytest

from sqlchain.config import (
    QueryConfig,
    get_global_config,
    load_config_from_env,
    reset_global_config,
    set_global_config,
)
from sqlchain.exceptions import ImproperConfigurationError


def test_defaults() -> None:
    config = QueryConfig()
    assert config.dialect == "postgres"
    assert config.log_statements is True
    assert config.count_alias == "temp"


def test_global_config_round_trip() -> None:
    custom = QueryConfig(dialect="sqlite", log_statements=False)
    set_global_config(custom)
    assert get_global_config() is custom

    reset_global_config()
    assert get_global_config() == QueryConfig()


def test_replace_returns_new_instance() -> None:
    config = QueryConfig()
    updated = config.replace(count_alias="counted")
    assert updated.count_alias == "counted"
    assert config.count_alias == "temp"


@pytest.mark.parametrize("alias", ["", "has space", "1st", "x) y"])
def test_count_alias_must_be_identifier(alias: str) -> None:
    with pytest.raises(ImproperConfigurationError, match="count_alias"):
        QueryConfig(count_alias=alias)


def test_load_config_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SQLCHAIN_DIALECT", "mysql")
    monkeypatch.setenv("SQLCHAIN_LOG_STATEMENTS", "off")
    monkeypatch.setenv("SQLCHAIN_COUNT_ALIAS", "sub")

    assert load_config_from_env() == QueryConfig(dialect="mysql", log_statements=False, count_alias="sub")


def test_load_config_from_env_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ("SQLCHAIN_DIALECT", "SQLCHAIN_LOG_STATEMENTS", "SQLCHAIN_COUNT_ALIAS"):
        monkeypatch.delenv(key, raising=False)
    assert load_config_from_env() == QueryConfig()


@pytest.mark.parametrize("value,expected", [("1", True), ("TRUE", True), (" yes ", True), ("0", False), ("no", False)])
def test_log_statements_env_parsing(monkeypatch: pytest.MonkeyPatch, value: str, expected: bool) -> None:
    monkeypatch.setenv("SQLCHAIN_LOG_STATEMENTS", value)
    assert load_config_from_env().log_statements is expected
