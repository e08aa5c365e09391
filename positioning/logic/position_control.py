"""Lock and force registry for position shifting.

A ``PositionControl`` is an explicit object owned by whoever drives saves (a
repository, a request scope, a seeding script). It is never module-global, so
two requests holding their own controls cannot suppress each other's shifts.

- lock: while a type is locked, the lifecycle hooks skip every shift for it.
  Locking is reentrant; only the outermost section toggles the state.
- force: a fixed next position for a type, used in place of its strategy for
  every insert without an explicit position until cleared.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING, Callable, Dict, Iterator, Optional, Set, TypeVar, Union

from positioning.logic.record_types import type_name

if TYPE_CHECKING:  # pragma: no cover - typing only
    from positioning.logic.record_types import RecordType

logger = logging.getLogger(__name__)

T = TypeVar("T")
TypeRef = Union["RecordType", str]


class PositionControl:
    def __init__(self) -> None:
        self._locked: Set[str] = set()
        self._forced: Dict[str, int] = {}
        self._mutex = threading.RLock()

    def lock_for(self, record_type: TypeRef) -> None:
        with self._mutex:
            self._locked.add(type_name(record_type))

    def unlock_for(self, record_type: TypeRef) -> None:
        with self._mutex:
            self._locked.discard(type_name(record_type))

    def is_locked_for(self, record_type: TypeRef) -> bool:
        return type_name(record_type) in self._locked

    @contextmanager
    def locked(self, record_type: TypeRef) -> Iterator[None]:
        """Suppress shifting for ``record_type`` inside the block."""
        name = type_name(record_type)
        with self._mutex:
            was_locked = name in self._locked
            self._locked.add(name)
        try:
            yield
        finally:
            if not was_locked:
                self.unlock_for(name)

    def with_lock(self, record_type: TypeRef, operation: Callable[[], T]) -> T:
        with self.locked(record_type):
            return operation()

    def force_for(self, record_type: TypeRef, position: Optional[int]) -> None:
        """Force the next position for ``record_type``; ``None`` clears it."""
        name = type_name(record_type)
        with self._mutex:
            if position is None:
                self._forced.pop(name, None)
            else:
                self._forced[name] = int(position)
        logger.debug("position_force type=%s position=%s", name, position)

    def forced_position(self, record_type: TypeRef) -> Optional[int]:
        return self._forced.get(type_name(record_type))

    @contextmanager
    def forced(self, record_type: TypeRef, position: Optional[int]) -> Iterator[None]:
        """Force the next position inside the block, restoring the previous value after."""
        name = type_name(record_type)
        previous = self.forced_position(name)
        self.force_for(name, position)
        try:
            yield
        finally:
            self.force_for(name, previous)


__all__ = ["PositionControl"]
