"""Data access for positioned records.

The repository owns the row-level statements (insert, update, delete, reads)
for one record type and calls its lifecycle listener around them on the same
connection. Each public write runs in one transaction, so a failed shift rolls
back the insert, update or delete that triggered it.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, List, Mapping, Optional

from sqlalchemy import delete, insert, select, update
from sqlalchemy.engine import Connection, Engine, RowMapping

from positioning.db.base import get_engine, transaction
from positioning.logic.normalizer import normalize_position
from positioning.logic.observer import LifecycleListener, PositionObserver
from positioning.logic.position_control import PositionControl
from positioning.logic.position_query import (
    PositionQuery,
    group_criteria,
    order_by_position,
    order_by_reverse_position,
)
from positioning.logic.record_types import RecordType
from positioning.logic.records import PositionedRecord

logger = logging.getLogger(__name__)

ORDER_ASC = "asc"
ORDER_DESC = "desc"


class RecordNotFoundError(LookupError):
    """Raised when no row exists for the requested key."""


class PositionedRepository:
    def __init__(
        self,
        record_type: RecordType,
        engine: Engine | None = None,
        *,
        control: PositionControl | None = None,
        listener: LifecycleListener | None = None,
    ) -> None:
        self.record_type = record_type
        self.engine = engine or get_engine()
        self.control = control or PositionControl()
        self.listener = listener or PositionObserver(self.control)

    @property
    def table(self):
        return self.record_type.table

    # Reads

    def _load(self, row: Mapping[str, Any]) -> PositionedRecord:
        key_column = self.record_type.key_column
        values = {name: row[name] for name in self.record_type.writable_columns}
        return PositionedRecord(self.record_type, values, key=row[key_column], exists=True)

    def _select_row(self, conn: Connection, key: Any) -> Optional[RowMapping]:
        stmt = select(self.table).where(self.table.c[self.record_type.key_column] == key)
        return conn.execute(stmt).mappings().first()

    def get(self, key: Any) -> PositionedRecord:
        with self.engine.connect() as conn:
            row = self._select_row(conn, key)
        if row is None:
            raise RecordNotFoundError(f"{self.record_type.name} {key!r} not found")
        return self._load(row)

    def fresh(self, record: PositionedRecord) -> PositionedRecord:
        """Reload ``record`` from the database as a new object."""
        return self.get(record.key)

    def list(
        self,
        group: Optional[Mapping[str, Any]] = None,
        *,
        order: Optional[str] = None,
    ) -> List[PositionedRecord]:
        """Return records, optionally limited to one group.

        ``order`` is ``"asc"`` or ``"desc"``; when omitted, types with
        ``always_order_by_position`` sort ascending and others keep key order.
        """
        stmt = select(self.table)
        if group is not None:
            stmt = stmt.where(*group_criteria(self.record_type, self.record_type.group_key(group)))
        if order is None and self.record_type.always_order_by_position:
            order = ORDER_ASC
        if order == ORDER_ASC:
            stmt = order_by_position(stmt, self.record_type)
        elif order == ORDER_DESC:
            stmt = order_by_reverse_position(stmt, self.record_type)
        elif order is None:
            stmt = stmt.order_by(self.table.c[self.record_type.key_column].asc())
        else:
            raise ValueError(f"order must be {ORDER_ASC!r} or {ORDER_DESC!r}, got {order!r}")
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [self._load(row) for row in rows]

    def positions(self, group: Optional[Mapping[str, Any]] = None) -> List[int]:
        """Positions of a group in ascending order."""
        return [r.position for r in self.list(group, order=ORDER_ASC)]

    # Writes

    def new(self, position: Optional[int] = None, **attributes: Any) -> PositionedRecord:
        record = PositionedRecord(self.record_type, attributes)
        record.position = position
        return record

    def create(self, position: Optional[int] = None, **attributes: Any) -> PositionedRecord:
        return self.save(self.new(position, **attributes))

    def save(self, record: PositionedRecord) -> PositionedRecord:
        with transaction(self.engine) as conn:
            self._save(conn, record)
        return record

    def _save(self, conn: Connection, record: PositionedRecord) -> None:
        self.listener.saving(conn, record)
        if record.exists:
            self._perform_update(conn, record)
        else:
            self._perform_insert(conn, record)
        record.sync_original()

    def _perform_insert(self, conn: Connection, record: PositionedRecord) -> None:
        result = conn.execute(insert(self.table).values(record.attributes))
        record.key = result.inserted_primary_key[0]
        record.exists = True
        try:
            record.sync_changes()
            self.listener.created(conn, record)
        except Exception:
            # The surrounding transaction rolls the insert back
            record.key = None
            record.exists = False
            raise
        logger.info(
            "record_created type=%s key=%s position=%s terminal=%s",
            self.record_type.name,
            record.key,
            record.position,
            record.terminal,
        )

    def _perform_update(self, conn: Connection, record: PositionedRecord) -> None:
        dirty = record.dirty()
        if not dirty:
            record.changes = {}
            return
        stmt = (
            update(self.table)
            .where(self.table.c[self.record_type.key_column] == record.key)
            .values(dirty)
        )
        conn.execute(stmt)
        record.sync_changes()
        self.listener.updated(conn, record)
        logger.info(
            "record_updated type=%s key=%s changed=%s position=%s",
            self.record_type.name,
            record.key,
            sorted(record.changes),
            record.position,
        )

    def delete(self, record: PositionedRecord) -> None:
        if not record.exists:
            return
        with transaction(self.engine) as conn:
            stmt = delete(self.table).where(self.table.c[self.record_type.key_column] == record.key)
            if conn.execute(stmt).rowcount == 0:
                raise RecordNotFoundError(f"{self.record_type.name} {record.key!r} not found")
            self.listener.deleted(conn, record)
        record.exists = False
        logger.info(
            "record_deleted type=%s key=%s position=%s",
            self.record_type.name,
            record.key,
            record.original_position,
        )

    # Composite operations

    def move(self, record: PositionedRecord, position: int) -> bool:
        """Move ``record`` to ``position``; returns False when it is already there.

        Relative targets are resolved against the record's group first, so
        ``-1`` on the last record is a no-op too.
        """
        record_type = self.record_type
        with transaction(self.engine) as conn:
            target = position
            if position < record_type.start_position:
                query = PositionQuery(conn, record_type, record.group_key())
                target = normalize_position(
                    position,
                    record_type.start_position,
                    query.count,
                    exists=record.exists,
                    moving_group=False,
                ).position
            if record.position == target:
                return False
            record.position = position
            self._save(conn, record)
        return True

    def swap(self, first: PositionedRecord, second: PositionedRecord) -> None:
        """Exchange two records' positions without shifting anything else."""
        with transaction(self.engine) as conn, self.control.locked(self.record_type):
            first_position, second_position = first.position, second.position
            first.position = second_position
            second.position = first_position
            self._save(conn, first)
            self._save(conn, second)

    @contextmanager
    def without_shifting(self) -> Iterator[None]:
        with self.control.locked(self.record_type):
            yield

    def resequence(self, group: Optional[Mapping[str, Any]] = None) -> int:
        """Rewrite one group densely from the start position in its current order.

        Repairs duplicates or gaps left by writes that bypassed the lifecycle
        hooks or raced each other. Returns the number of rows rewritten.

        Grouped types must name every group column; pass ``None`` as a value
        to address the rows whose group column is NULL.
        """
        group = dict(group or {})
        unknown = sorted(set(group) - set(self.record_type.group_columns))
        missing = sorted(set(self.record_type.group_columns) - set(group))
        if unknown or missing:
            raise ValueError(
                f"resequence of {self.record_type.name} needs exactly the group columns "
                f"{list(self.record_type.group_columns)}; unknown={unknown} missing={missing}"
            )
        group_key = self.record_type.group_key(group)
        key_column = self.record_type.key_column
        position_column = self.record_type.position_column
        changed = 0
        with transaction(self.engine) as conn, self.control.locked(self.record_type):
            rows = PositionQuery(conn, self.record_type, group_key).rows()
            for offset, row in enumerate(rows):
                target = self.record_type.start_position + offset
                if row[position_column] == target:
                    continue
                conn.execute(
                    update(self.table)
                    .where(self.table.c[key_column] == row[key_column])
                    .values({position_column: target})
                )
                changed += 1
        logger.info(
            "group_resequenced type=%s group=%s rows=%s changed=%s",
            self.record_type.name,
            group_key,
            len(rows),
            changed,
        )
        return changed


__all__ = [
    "ORDER_ASC",
    "ORDER_DESC",
    "PositionedRepository",
    "RecordNotFoundError",
]
