from __future__ import annotations

"""Functional test bootstrap for the positioning service.

Every test gets its own file-backed SQLite database with the SQLite
migrations applied, so positions never leak between tests. The migration
journal is written next to the database rather than into the repository.
"""

import os
import pathlib

import pytest
from sqlalchemy import create_engine, event

# Disable app startup auto-migrations; fixtures apply SQLite migrations explicitly
os.environ["AUTO_APPLY_MIGRATIONS"] = "0"

from positioning.db.migrations_runner import SQLITE_MIGRATIONS_DIR, apply_migrations  # noqa: E402
from positioning.logic.catalog import BOOKS, CATEGORIES, sample_record_types  # noqa: E402
from positioning.logic.position_control import PositionControl  # noqa: E402
from positioning.logic.repository_positions import PositionedRepository  # noqa: E402


@pytest.fixture()
def engine(tmp_path: pathlib.Path):
    """Fresh SQLite database with the positioned tables created."""
    eng = create_engine(f"sqlite:///{tmp_path / 'positions.db'}")
    apply_migrations(eng, migrations_dir=SQLITE_MIGRATIONS_DIR, journal_path=tmp_path / "_journal.json")
    yield eng
    eng.dispose()


@pytest.fixture()
def record_types():
    return sample_record_types()


@pytest.fixture()
def control() -> PositionControl:
    return PositionControl()


@pytest.fixture()
def categories(engine, record_types, control) -> PositionedRepository:
    return PositionedRepository(record_types.get(CATEGORIES), engine, control=control)


@pytest.fixture()
def books(engine, record_types, control) -> PositionedRepository:
    return PositionedRepository(record_types.get(BOOKS), engine, control=control)


class StatementLog:
    """Collects SELECT/INSERT/UPDATE/DELETE statements sent to the engine."""

    def __init__(self) -> None:
        self.statements: list[str] = []
        self.enabled = False

    def __call__(self, conn, cursor, statement, parameters, context, executemany):  # type: ignore[no-untyped-def]
        if self.enabled and statement.lstrip().split(" ", 1)[0].upper() in {"SELECT", "INSERT", "UPDATE", "DELETE"}:
            self.statements.append(statement)

    def __len__(self) -> int:
        return len(self.statements)


@pytest.fixture()
def statement_log(engine):
    log = StatementLog()
    event.listen(engine, "before_cursor_execute", log)
    yield log
    event.remove(engine, "before_cursor_execute", log)
