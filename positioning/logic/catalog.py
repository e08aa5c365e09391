"""Record types served by the application.

Both tables are created by the migrations under ``migrations/`` and
``sqlite_migrations/``.
"""

from __future__ import annotations

from positioning.logic.record_types import RecordType, RecordTypeRegistry

CATEGORIES = "categories"
BOOKS = "books"


def sample_record_types(start_position: int = 0) -> RecordTypeRegistry:
    return RecordTypeRegistry(
        [
            RecordType(
                name=CATEGORIES,
                table_name="categories",
                columns=("name",),
                start_position=start_position,
                always_order_by_position=True,
            ),
            RecordType(
                name=BOOKS,
                table_name="books",
                columns=("title", "category_id"),
                group_columns=("category_id",),
                start_position=start_position,
            ),
        ]
    )


__all__ = ["BOOKS", "CATEGORIES", "sample_record_types"]
