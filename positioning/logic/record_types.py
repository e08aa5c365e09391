"""Per-type positioning capabilities.

A ``RecordType`` describes one positioned table: which column holds the
position, which columns define the group a row belongs to, the first
position of every group's sequence, and the policy used to pick a position
for rows inserted without one. Everything the lifecycle coordinator needs to
know about a type is resolved through this object rather than by overriding
methods on record classes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Tuple

from sqlalchemy import Column, Integer, MetaData, Table

from positioning.logic.resolver import NextPositionStrategy, append_to_end

logger = logging.getLogger(__name__)

GroupKey = Tuple[Any, ...]


class UnknownRecordTypeError(KeyError):
    """Raised when a record type name is not registered."""


@dataclass(frozen=True)
class RecordType:
    name: str
    table_name: str
    columns: Tuple[str, ...] = ()
    group_columns: Tuple[str, ...] = ()
    key_column: str = "id"
    position_column: str = "position"
    start_position: int = 0
    next_position: NextPositionStrategy = append_to_end
    always_order_by_position: bool = False
    metadata: MetaData = field(default_factory=MetaData, compare=False, repr=False)

    def __post_init__(self) -> None:
        missing = [c for c in self.group_columns if c not in self.columns]
        if missing:
            raise ValueError(f"group columns {missing} are not declared columns of {self.name}")

    @cached_property
    def table(self) -> Table:
        """SQLAlchemy Core table used for every statement against this type."""
        return Table(
            self.table_name,
            self.metadata,
            Column(self.key_column, Integer, primary_key=True),
            Column(self.position_column, Integer, nullable=False),
            *[Column(name) for name in self.columns],
        )

    @property
    def writable_columns(self) -> Tuple[str, ...]:
        return (self.position_column,) + tuple(self.columns)

    @property
    def is_grouped(self) -> bool:
        return bool(self.group_columns)

    def group_key(self, values: Mapping[str, Any]) -> Optional[GroupKey]:
        """Return the group tuple for ``values``, or None for an ungrouped type."""
        if not self.group_columns:
            return None
        return tuple(values.get(c) for c in self.group_columns)


def type_name(record_type: "RecordType | str") -> str:
    return record_type if isinstance(record_type, str) else record_type.name


class RecordTypeRegistry:
    """Name-addressed collection of record types."""

    def __init__(self, record_types: Iterable[RecordType] = ()) -> None:
        self._types: Dict[str, RecordType] = {}
        for rt in record_types:
            self.register(rt)

    def register(self, record_type: RecordType) -> RecordType:
        if record_type.name in self._types:
            logger.warning("record_type_replaced name=%s", record_type.name)
        self._types[record_type.name] = record_type
        return record_type

    def get(self, name: str) -> RecordType:
        try:
            return self._types[name]
        except KeyError:
            raise UnknownRecordTypeError(name) from None

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def __iter__(self) -> Iterator[RecordType]:
        return iter(self._types.values())

    def __len__(self) -> int:
        return len(self._types)


__all__ = [
    "GroupKey",
    "RecordType",
    "RecordTypeRegistry",
    "UnknownRecordTypeError",
    "type_name",
]
