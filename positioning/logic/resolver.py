"""Next-position resolution for rows saved without a position.

Strategies receive the record type and a ``PositionQuery`` scoped to the
row's group and return the raw position to assign. The raw value still goes
through normalization, so a strategy may return a relative-from-end value.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Optional

if TYPE_CHECKING:  # pragma: no cover - typing only
    from positioning.logic.position_control import PositionControl
    from positioning.logic.position_query import PositionQuery
    from positioning.logic.record_types import RecordType
    from positioning.logic.records import PositionedRecord


NextPositionStrategy = Callable[["RecordType", "PositionQuery"], int]


def append_to_end(record_type: "RecordType", query: "PositionQuery") -> int:
    """One past the group's highest position, or the start position when empty."""
    max_position = query.max_position()
    if max_position is None:
        return record_type.start_position
    return max_position + 1


def prepend_to_start(record_type: "RecordType", query: "PositionQuery") -> int:
    """Always the start position; every insert pushes the group back by one."""
    return record_type.start_position


def terminal_append(record_type: "RecordType", query: "PositionQuery") -> int:
    """The terminal sentinel: append through relative addressing, no shift."""
    return record_type.start_position - 1


def resolve_next_position(
    record: "PositionedRecord",
    query: "PositionQuery",
    control: Optional["PositionControl"] = None,
) -> int:
    record_type = record.record_type
    if control is not None:
        forced = control.forced_position(record_type)
        if forced is not None:
            return forced
    return int(record_type.next_position(record_type, query))


__all__ = [
    "NextPositionStrategy",
    "append_to_end",
    "prepend_to_start",
    "terminal_append",
    "resolve_next_position",
]
