"""In-memory view of a positioned row with change tracking.

A ``PositionedRecord`` keeps two snapshots of its attributes: the current
values (what the caller wants persisted) and the original values (what the
database held after the last load or save). The repository syncs them around
each write; the lifecycle coordinator compares them to decide which shifts
apply.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional

from positioning.logic.record_types import GroupKey, RecordType


class PositionedRecord:
    def __init__(
        self,
        record_type: RecordType,
        attributes: Optional[Mapping[str, Any]] = None,
        *,
        key: Any = None,
        exists: bool = False,
    ) -> None:
        self.record_type = record_type
        self.key = key
        self.exists = exists
        # Set by the pre-save hook; True means "appended, skip the insert shift"
        self.terminal = False
        # New records carry only the columns the caller set; the rest keep
        # their database defaults on insert
        self.attributes: Dict[str, Any] = {record_type.position_column: None}
        if attributes:
            self.fill(attributes)
        self.original: Dict[str, Any] = dict(self.attributes) if exists else {}
        self.changes: Dict[str, Any] = {}

    def __repr__(self) -> str:
        return f"<PositionedRecord {self.record_type.name} key={self.key!r} position={self.position!r}>"

    def fill(self, values: Mapping[str, Any]) -> "PositionedRecord":
        unknown = [name for name in values if name not in self.record_type.writable_columns]
        if unknown:
            raise ValueError(f"unknown columns for {self.record_type.name}: {sorted(unknown)}")
        self.attributes.update(values)
        return self

    @property
    def position(self) -> Optional[int]:
        value = self.attributes.get(self.record_type.position_column)
        return None if value is None else int(value)

    @position.setter
    def position(self, value: Optional[int]) -> None:
        self.attributes[self.record_type.position_column] = None if value is None else int(value)

    @property
    def original_position(self) -> Optional[int]:
        value = self.original.get(self.record_type.position_column)
        return None if value is None else int(value)

    def group_key(self) -> Optional[GroupKey]:
        return self.record_type.group_key(self.attributes)

    def original_group_key(self) -> Optional[GroupKey]:
        return self.record_type.group_key(self.original)

    def dirty(self) -> Dict[str, Any]:
        """Columns whose current value differs from the original snapshot."""
        if not self.exists:
            return dict(self.attributes)
        return {
            name: value
            for name, value in self.attributes.items()
            if name not in self.original or self.original[name] != value
        }

    def is_dirty(self, columns: Iterable[str] = ()) -> bool:
        dirty = self.dirty()
        names = list(columns)
        if not names:
            return bool(dirty)
        return any(name in dirty for name in names)

    def was_changed(self, columns: Iterable[str] = ()) -> bool:
        names = list(columns)
        if not names:
            return bool(self.changes)
        return any(name in self.changes for name in names)

    def sync_changes(self) -> None:
        self.changes = self.dirty()

    def sync_original(self) -> None:
        self.original = dict(self.attributes)


__all__ = ["PositionedRecord"]
