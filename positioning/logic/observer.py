"""Lifecycle coordination of position shifts.

The persistence layer calls a ``LifecycleListener`` synchronously around its
own statements, on the same connection and inside the same transaction:

- ``saving``  before every insert or update
- ``created`` after an insert
- ``updated`` after an update, with the record's pre-save values still in
  ``record.original`` and the changed columns in ``record.changes``
- ``deleted`` after a delete

``PositionObserver`` is the listener that keeps every group dense.
"""

from __future__ import annotations

import abc
import logging

from sqlalchemy.engine import Connection

from positioning.logic.normalizer import normalize_position
from positioning.logic.position_control import PositionControl
from positioning.logic.position_query import PositionQuery
from positioning.logic.records import PositionedRecord
from positioning.logic.resolver import resolve_next_position

logger = logging.getLogger(__name__)


class LifecycleListener(abc.ABC):
    @abc.abstractmethod
    def saving(self, conn: Connection, record: PositionedRecord) -> None: ...

    @abc.abstractmethod
    def created(self, conn: Connection, record: PositionedRecord) -> None: ...

    @abc.abstractmethod
    def updated(self, conn: Connection, record: PositionedRecord) -> None: ...

    @abc.abstractmethod
    def deleted(self, conn: Connection, record: PositionedRecord) -> None: ...


class PositionObserver(LifecycleListener):
    def __init__(self, control: PositionControl | None = None) -> None:
        self.control = control or PositionControl()

    # Pre-save

    def saving(self, conn: Connection, record: PositionedRecord) -> None:
        """Assign, mark terminal, then normalize the record's position."""
        record_type = record.record_type
        query = self._group_query(conn, record)

        if record.position is None:
            record.position = resolve_next_position(record, query, self.control)

        normalized = normalize_position(
            record.position,
            record_type.start_position,
            query.count,
            exists=record.exists,
            moving_group=self._is_group_changing(record),
        )
        record.position = normalized.position
        record.terminal = normalized.terminal

    # Post-write hooks

    def created(self, conn: Connection, record: PositionedRecord) -> None:
        if self.control.is_locked_for(record.record_type):
            return
        self._add_to_group(conn, record)

    def updated(self, conn: Connection, record: PositionedRecord) -> None:
        if self.control.is_locked_for(record.record_type):
            return

        if self._was_group_changed(record):
            self._remove_from_group(conn, record)
            self._add_to_group(conn, record)
        elif record.was_changed([record.record_type.position_column]):
            self._move_within_group(conn, record)

    def deleted(self, conn: Connection, record: PositionedRecord) -> None:
        if self.control.is_locked_for(record.record_type):
            return
        self._remove_from_group(conn, record)

    # Shift decisions

    def _add_to_group(self, conn: Connection, record: PositionedRecord) -> None:
        if record.terminal:
            return
        self._group_query(conn, record).excluding(record.key).shift_to_end(record.position)

    def _remove_from_group(self, conn: Connection, record: PositionedRecord) -> None:
        query = PositionQuery(conn, record.record_type, record.original_group_key())
        query.excluding(record.key).shift_to_start(record.original_position)

    def _move_within_group(self, conn: Connection, record: PositionedRecord) -> None:
        current, original = record.position, record.original_position
        query = self._group_query(conn, record).excluding(record.key)
        if current < original:
            query.shift_to_end(current, original)
        elif current > original:
            query.shift_to_start(original, current)

    # Helpers

    def _group_query(self, conn: Connection, record: PositionedRecord) -> PositionQuery:
        return PositionQuery(conn, record.record_type, record.group_key())

    def _is_group_changing(self, record: PositionedRecord) -> bool:
        record_type = record.record_type
        if not record_type.is_grouped or not record.exists:
            return False
        return record.is_dirty(record_type.group_columns)

    def _was_group_changed(self, record: PositionedRecord) -> bool:
        record_type = record.record_type
        if not record_type.is_grouped:
            return False
        return record.was_changed(record_type.group_columns)


__all__ = ["LifecycleListener", "PositionObserver"]
