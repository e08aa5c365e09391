"""Group-scoped reads and bulk position shifts.

Every statement built here is restricted to one group of one record type
(group columns compared for equality, ``IS NULL`` for missing values) and may
exclude one row by key. Shifts are single ``UPDATE`` statements over a
position range; no per-row loops.

- ``shift_to_end(lower, upper)``: ``position + 1`` for ``lower <= position < upper``
- ``shift_to_start(lower, upper)``: ``position - 1`` for ``lower < position <= upper``

An omitted ``upper`` leaves the range open towards the end of the sequence.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from sqlalchemy import Select, func, select, update
from sqlalchemy.engine import Connection, RowMapping

from positioning.logic.record_types import GroupKey, RecordType

logger = logging.getLogger(__name__)


def order_by_position(stmt: Select, record_type: RecordType) -> Select:
    """Sort a select over ``record_type`` by ascending position."""
    table = record_type.table
    return stmt.order_by(table.c[record_type.position_column].asc(), table.c[record_type.key_column].asc())


def order_by_reverse_position(stmt: Select, record_type: RecordType) -> Select:
    """Sort a select over ``record_type`` by descending position."""
    table = record_type.table
    return stmt.order_by(table.c[record_type.position_column].desc(), table.c[record_type.key_column].desc())


def group_criteria(record_type: RecordType, group: Optional[GroupKey], *, exclude_key: Any = None) -> list:
    """WHERE clauses restricting statements to ``group`` (None means every group)."""
    table = record_type.table
    criteria = []
    if record_type.is_grouped and group is not None:
        for name, value in zip(record_type.group_columns, group):
            col = table.c[name]
            criteria.append(col.is_(None) if value is None else col == value)
    if exclude_key is not None:
        criteria.append(table.c[record_type.key_column] != exclude_key)
    return criteria


class PositionQuery:
    def __init__(
        self,
        conn: Connection,
        record_type: RecordType,
        group: Optional[GroupKey] = None,
        *,
        exclude_key: Any = None,
    ) -> None:
        self.conn = conn
        self.record_type = record_type
        self.group = group
        self.exclude_key = exclude_key

    def excluding(self, key: Any) -> "PositionQuery":
        return PositionQuery(self.conn, self.record_type, self.group, exclude_key=key)

    @property
    def _position(self):
        return self.record_type.table.c[self.record_type.position_column]

    def _criteria(self) -> list:
        return group_criteria(self.record_type, self.group, exclude_key=self.exclude_key)

    def max_position(self) -> Optional[int]:
        stmt = select(func.max(self._position)).where(*self._criteria())
        value = self.conn.execute(stmt).scalar()
        return None if value is None else int(value)

    def count(self) -> int:
        stmt = select(func.count()).select_from(self.record_type.table).where(*self._criteria())
        return int(self.conn.execute(stmt).scalar() or 0)

    def shift_to_end(self, lower: int, upper: Optional[int] = None) -> int:
        """Open a slot at ``lower`` by moving later members one step towards the end."""
        criteria = self._criteria() + [self._position >= lower]
        if upper is not None:
            criteria.append(self._position < upper)
        return self._shift(criteria, +1, lower, upper)

    def shift_to_start(self, lower: int, upper: Optional[int] = None) -> int:
        """Close the slot at ``lower`` by moving later members one step towards the start."""
        criteria = self._criteria() + [self._position > lower]
        if upper is not None:
            criteria.append(self._position <= upper)
        return self._shift(criteria, -1, lower, upper)

    def _shift(self, criteria: list, step: int, lower: int, upper: Optional[int]) -> int:
        stmt = (
            update(self.record_type.table)
            .where(*criteria)
            .values({self.record_type.position_column: self._position + step})
        )
        affected = self.conn.execute(stmt).rowcount
        logger.debug(
            "position_shift type=%s group=%s step=%+d lower=%s upper=%s exclude=%s affected=%s",
            self.record_type.name,
            self.group,
            step,
            lower,
            upper,
            self.exclude_key,
            affected,
        )
        return int(affected or 0)

    def rows(self, *, descending: bool = False) -> List[RowMapping]:
        stmt = select(self.record_type.table).where(*self._criteria())
        if descending:
            stmt = order_by_reverse_position(stmt, self.record_type)
        else:
            stmt = order_by_position(stmt, self.record_type)
        return list(self.conn.execute(stmt).mappings())


__all__ = [
    "PositionQuery",
    "group_criteria",
    "order_by_position",
    "order_by_reverse_position",
]
