"""Database bootstrap utilities for the positioning service.

This module exposes convenience imports for engine/transaction construction
and the migrations runner that applies SQL files from the local migrations/
directory. The DB layer is intentionally minimal and does not leak ORM models
into route handlers.
"""

from positioning.db.base import get_engine, transaction
from positioning.db.migrations_runner import apply_migrations, migrations_dir_for

__all__ = [
    "get_engine",
    "transaction",
    "apply_migrations",
    "migrations_dir_for",
]
