"""Pydantic models for positioned collection request and response bodies."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class RecordCreate(BaseModel):
    position: Optional[int] = None
    attributes: Dict[str, Any] = Field(default_factory=dict)


class RecordPatch(BaseModel):
    """Partial update; omitted fields keep their stored values."""
    position: Optional[int] = None
    attributes: Dict[str, Any] = Field(default_factory=dict)


class MoveRequest(BaseModel):
    position: int


class SwapRequest(BaseModel):
    first: int
    second: int


class ResequenceRequest(BaseModel):
    group: Dict[str, Any] = Field(default_factory=dict)


class RecordOut(BaseModel):
    key: int
    position: int
    attributes: Dict[str, Any]


class RecordList(BaseModel):
    items: List[RecordOut]


class MoveResult(BaseModel):
    moved: bool
    record: RecordOut


class ResequenceResult(BaseModel):
    changed: int


__all__ = [
    "RecordCreate",
    "RecordPatch",
    "MoveRequest",
    "SwapRequest",
    "ResequenceRequest",
    "RecordOut",
    "RecordList",
    "MoveResult",
    "ResequenceResult",
]
