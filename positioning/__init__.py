"""Positioning service package init.

Keeps a dense, ordered integer position on rows of positioned tables,
optionally per group, and renumbers siblings on every create, move, group
change and delete. Position logic lives in `positioning/logic/`; the FastAPI
surface in `positioning/routes/`.
"""

from __future__ import annotations

from positioning.logic.observer import LifecycleListener, PositionObserver
from positioning.logic.position_control import PositionControl
from positioning.logic.record_types import RecordType, RecordTypeRegistry
from positioning.logic.records import PositionedRecord
from positioning.logic.repository_positions import PositionedRepository, RecordNotFoundError
from positioning.logic.resolver import append_to_end, prepend_to_start, terminal_append
from positioning.main import create_app

__all__ = [
    "LifecycleListener",
    "PositionControl",
    "PositionObserver",
    "PositionedRecord",
    "PositionedRepository",
    "RecordNotFoundError",
    "RecordType",
    "RecordTypeRegistry",
    "append_to_end",
    "create_app",
    "prepend_to_start",
    "terminal_append",
]
