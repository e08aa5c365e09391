"""Lightweight SQL migrations runner.

Applies .sql files in lexical order from the local `migrations/` directory.
Skips rollback files and records applied filenames in a file-backed journal
(`migrations/_journal.json` unless another path is given) to avoid reapplying
the same migration. Intended for local development and CI; production
environments should use Alembic or the platform's migration mechanism.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from sqlalchemy.engine import Connection, Engine

logger = logging.getLogger(__name__)

_PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_MIGRATIONS_DIR = _PROJECT_ROOT / "migrations"
SQLITE_MIGRATIONS_DIR = _PROJECT_ROOT / "sqlite_migrations"


def migrations_dir_for(engine: Engine) -> Path:
    """Return the migrations directory matching the engine's dialect."""
    if (engine.dialect.name or "").lower() == "sqlite":
        return SQLITE_MIGRATIONS_DIR
    return DEFAULT_MIGRATIONS_DIR


def _iter_sql_files(root: Path) -> Iterable[Path]:
    for p in sorted(root.glob("*.sql")):
        # Skip rollback scripts in forward runs
        if "rollback" in p.name.lower():
            continue
        yield p


def _exec_sql_compat(conn: Connection, sql: str) -> None:
    """Execute SQL text, tolerating multi-statement files on SQLite.

    SQLite's DB-API (pysqlite) does not allow multiple statements in a single
    execute() call, so statements are split on ';' for SQLite only, ignoring
    empty segments and comments. Other dialects receive the full script as-is.
    """
    name = (conn.dialect.name or "").lower()
    if "sqlite" not in name:
        conn.exec_driver_sql(sql)
        return
    for stmt in sql.split(";"):
        lines = [ln for ln in stmt.splitlines() if not ln.strip().startswith("--")]
        s = "\n".join(lines).strip()
        if not s:
            continue
        if s.upper() in {"BEGIN", "COMMIT", "END"}:
            continue
        conn.exec_driver_sql(s)


def _load_journal(journal_path: Path) -> list[dict]:
    if not journal_path.exists():
        return []
    try:
        data = json.loads(journal_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        logger.error("migration_journal_parse_failed path=%s", str(journal_path), exc_info=True)
        return []
    if not isinstance(data, list):
        return []
    return [e for e in data if isinstance(e, dict)]


def apply_migrations(
    engine: Engine,
    migrations_dir: str | os.PathLike[str] | None = None,
    journal_path: str | os.PathLike[str] | None = None,
) -> list[str]:
    """Apply pending migrations and return the filenames applied in this run."""
    root = Path(migrations_dir) if migrations_dir is not None else migrations_dir_for(engine)
    if not root.exists():  # pragma: no cover - optional
        logger.warning("migrations_dir_missing path=%s", str(root))
        return []

    journal = Path(journal_path) if journal_path is not None else root / "_journal.json"
    journal_entries = _load_journal(journal)
    applied = {
        Path(e["filename"]).name for e in journal_entries if isinstance(e.get("filename"), str)
    }

    newly_applied: list[str] = []
    with engine.begin() as conn:
        for sql_path in _iter_sql_files(root):
            fname = sql_path.name
            if fname in applied:
                continue
            sql = sql_path.read_text(encoding="utf-8")
            if not sql.strip():
                continue
            _exec_sql_compat(conn, sql)
            logger.info("migration_applied file=%s", fname)
            newly_applied.append(fname)

            entry = {
                "filename": f"migrations/{fname}",
                # applied_at is ISO-8601 UTC without fractional seconds
                "applied_at": datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z"),
            }
            journal_entries.append(entry)
            _atomic_write_json(journal, journal_entries)
    return newly_applied


def _atomic_write_json(path: Path, content: list[dict]) -> None:
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(json.dumps(content, ensure_ascii=False, indent=2), encoding="utf-8")
    os.replace(tmp_path, path)
