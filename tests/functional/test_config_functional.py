"""Functional tests for configuration loading and migrations bootstrap."""

from __future__ import annotations

import json
import logging

import pytest
from pydantic import ValidationError
from sqlalchemy import create_engine, inspect

from positioning.config import DEFAULT_DSN, load_config
from positioning.db.migrations_runner import SQLITE_MIGRATIONS_DIR, apply_migrations, migrations_dir_for
from positioning.logging_setup import LOGIC_LOGGER, build_logging_config, configure_logging


@pytest.fixture()
def isolated_config(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for var in (
        "TEST_DATABASE_URL",
        "DATABASE_URL",
        "POSITION_START",
        "AUTO_APPLY_MIGRATIONS",
        "POSITIONING_LOG_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)
    return tmp_path


def test_defaults(isolated_config) -> None:
    cfg = load_config()
    assert cfg.database.dsn == DEFAULT_DSN
    assert cfg.positioning.default_start_position == 0
    assert cfg.positioning.auto_apply_migrations is True
    assert cfg.positioning.log_level == "INFO"


def test_json_file_then_config_dir_then_env(isolated_config, monkeypatch) -> None:
    (isolated_config / "positioning_config.json").write_text(
        json.dumps({"database": {"dsn": "sqlite:///from-json.db"}, "positioning": {"default_start_position": 5}}),
        encoding="utf-8",
    )
    assert load_config().database.dsn == "sqlite:///from-json.db"
    assert load_config().positioning.default_start_position == 5

    (isolated_config / "config").mkdir()
    (isolated_config / "config" / "database.url").write_text("sqlite:///from-file.db\n", encoding="utf-8")
    assert load_config().database.dsn == "sqlite:///from-file.db"

    monkeypatch.setenv("DATABASE_URL", "sqlite:///from-env.db")
    monkeypatch.setenv("POSITION_START", "1")
    monkeypatch.setenv("AUTO_APPLY_MIGRATIONS", "0")
    cfg = load_config()
    assert cfg.database.dsn == "sqlite:///from-env.db"
    assert cfg.positioning.default_start_position == 1
    assert cfg.positioning.auto_apply_migrations is False


def test_invalid_start_position_raises(isolated_config, monkeypatch) -> None:
    monkeypatch.setenv("POSITION_START", "first")
    with pytest.raises(ValidationError):
        load_config()


def test_migrations_apply_once(tmp_path) -> None:
    engine = create_engine(f"sqlite:///{tmp_path / 'm.db'}")
    journal = tmp_path / "journal.json"
    assert migrations_dir_for(engine) == SQLITE_MIGRATIONS_DIR

    first = apply_migrations(engine, journal_path=journal)
    second = apply_migrations(engine, journal_path=journal)

    assert first == ["001_positioned_tables.sql"]
    assert second == []
    assert {"categories", "books"} <= set(inspect(engine).get_table_names())
    engine.dispose()


def test_log_level_from_env_is_normalized(isolated_config, monkeypatch) -> None:
    monkeypatch.setenv("POSITIONING_LOG_LEVEL", "debug")
    assert load_config().positioning.log_level == "DEBUG"
    monkeypatch.setenv("POSITIONING_LOG_LEVEL", "chatty")
    with pytest.raises(ValidationError):
        load_config()


def test_logic_level_controls_shift_logging() -> None:
    cfg = build_logging_config("debug")
    assert cfg["loggers"][LOGIC_LOGGER]["level"] == "DEBUG"

    configure_logging("DEBUG")
    try:
        assert logging.getLogger("positioning.logic.position_query").isEnabledFor(logging.DEBUG)
    finally:
        configure_logging("INFO")
    assert not logging.getLogger("positioning.logic.position_query").isEnabledFor(logging.DEBUG)
