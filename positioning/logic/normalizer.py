"""Translation of caller-supplied positions into absolute targets.

Positions at or after the type's start position are absolute. Anything below
it addresses the group from its end: ``-1`` is the last slot, ``-2`` the one
before it, and so on (with a start position of 0). The group count is only
read when a relative value actually needs resolving.
"""

from __future__ import annotations

from typing import Callable, NamedTuple


class NormalizedPosition(NamedTuple):
    position: int
    terminal: bool


def is_terminal(position: int, start_position: int) -> bool:
    return position == start_position - 1


def normalize_position(
    position: int,
    start_position: int,
    group_count: Callable[[], int],
    *,
    exists: bool,
    moving_group: bool,
) -> NormalizedPosition:
    """Return the absolute position and terminal marker for ``position``.

    ``group_count`` returns the number of rows currently persisted in the
    target group. A new row, or one joining the group from another, is not
    among them yet and gets one extra slot.
    """
    terminal = is_terminal(position, start_position)
    if position >= start_position:
        return NormalizedPosition(position, terminal)

    absolute = position + group_count()
    if not exists or moving_group:
        absolute += 1
    return NormalizedPosition(absolute, terminal)


__all__ = ["NormalizedPosition", "is_terminal", "normalize_position"]
