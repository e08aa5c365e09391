"""SQLAlchemy engine and transaction scope.

The service targets PostgreSQL in production but supports SQLite for local
development and CI. No declarative models are defined here; this module only
manages connection lifecycle. Positioned tables are described by
``positioning.logic.record_types`` and addressed through SQLAlchemy Core.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.pool import StaticPool

from positioning.config import load_config

logger = logging.getLogger(__name__)


# Module-level cached Engine to ensure a single shared connection pool
_ENGINE: Engine | None = None
_ENGINE_URL: str | None = None


def get_engine(url: str | None = None) -> Engine:
    """Return a singleton SQLAlchemy Engine for the given URL.

    Reuses a module-level Engine so repositories share the same pool.
    For SQLite in-memory URLs, use a StaticPool to keep a single connection
    alive across threads during tests.
    """
    global _ENGINE, _ENGINE_URL
    resolved_url = url or load_config().database.dsn

    if _ENGINE is None or _ENGINE_URL != resolved_url:
        kwargs: dict = {"pool_pre_ping": True}
        if resolved_url.startswith("sqlite") and ":memory:" in resolved_url:
            # Keep a single in-memory DB connection shared across the process
            kwargs.update({
                "poolclass": StaticPool,
                "connect_args": {"check_same_thread": False},
            })
        _ENGINE = create_engine(resolved_url, **kwargs)
        _ENGINE_URL = resolved_url
        logger.info("engine_created dialect=%s", _ENGINE.dialect.name)

    return _ENGINE


@contextmanager
def transaction(engine: Engine | None = None) -> Iterator[Connection]:
    """Yield a connection inside a single transaction.

    Commits when the block exits normally; rolls back and re-raises on any
    error so a multi-statement position sequence is applied all or nothing.
    """
    engine = engine or get_engine()
    with engine.connect() as conn:
        trans = conn.begin()
        try:
            yield conn
            trans.commit()
        except Exception:
            trans.rollback()
            logger.error("DB transaction error; rolled back", exc_info=True)
            raise
