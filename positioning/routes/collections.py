"""Positioned collection endpoints.

Implements, for every registered record type:
- GET    /collections/{type_name}/records            list (optionally one group)
- POST   /collections/{type_name}/records            create at a position or the end
- PATCH  /collections/{type_name}/records/{key}      update attributes and/or position
- POST   /collections/{type_name}/records/{key}/move move within the group
- POST   /collections/{type_name}/records/swap       swap two positions
- DELETE /collections/{type_name}/records/{key}      delete and close the gap
- POST   /collections/{type_name}/resequence         rewrite one group densely

Each request gets its own repository and lock/force control.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response

from positioning.http.problem import problem
from positioning.logic.position_control import PositionControl
from positioning.logic.records import PositionedRecord
from positioning.logic.repository_positions import ORDER_ASC, ORDER_DESC, PositionedRepository
from positioning.models.records import (
    MoveRequest,
    MoveResult,
    RecordCreate,
    RecordList,
    RecordOut,
    RecordPatch,
    ResequenceRequest,
    ResequenceResult,
    SwapRequest,
)

router = APIRouter(prefix="/collections/{type_name}", tags=["Collections"])
logger = logging.getLogger(__name__)


def get_repository(type_name: str, request: Request) -> PositionedRepository:
    record_type = request.app.state.record_types.get(type_name)
    return PositionedRepository(record_type, request.app.state.engine, control=PositionControl())


def _to_out(record: PositionedRecord) -> RecordOut:
    position_column = record.record_type.position_column
    attributes = {k: v for k, v in record.attributes.items() if k != position_column}
    return RecordOut(key=record.key, position=record.position, attributes=attributes)


def _fill(record: PositionedRecord, attributes: Dict[str, Any]) -> None:
    if record.record_type.position_column in attributes:
        raise HTTPException(
            status_code=422,
            detail=problem(422, "Invalid Request", "position must be sent as the top-level 'position' field"),
        )
    try:
        record.fill(attributes)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=problem(422, "Invalid Request", str(exc))) from exc


def _coerce_query_value(value: str) -> Any:
    if value.lower() == "null":
        return None
    try:
        return int(value)
    except ValueError:
        return value


def _group_from_query(repo: PositionedRepository, request: Request) -> Optional[Dict[str, Any]]:
    group_columns = repo.record_type.group_columns
    present = {c: _coerce_query_value(request.query_params[c]) for c in group_columns if c in request.query_params}
    if not present:
        return None
    # Columns left out of a partial filter are matched as NULL
    return {c: present.get(c) for c in group_columns}


@router.get("/records", response_model=RecordList, summary="List records by position")
def list_records(
    request: Request,
    order: Optional[str] = Query(default=None, pattern=f"^({ORDER_ASC}|{ORDER_DESC})$"),
    repo: PositionedRepository = Depends(get_repository),
) -> RecordList:
    records = repo.list(_group_from_query(repo, request), order=order)
    return RecordList(items=[_to_out(r) for r in records])


@router.post("/records", response_model=RecordOut, status_code=201, summary="Create a record")
def create_record(body: RecordCreate, repo: PositionedRepository = Depends(get_repository)) -> RecordOut:
    record = repo.new(body.position)
    _fill(record, body.attributes)
    repo.save(record)
    return _to_out(record)


@router.post("/records/swap", response_model=RecordList, summary="Swap two records' positions")
def swap_records(body: SwapRequest, repo: PositionedRepository = Depends(get_repository)) -> RecordList:
    first, second = repo.get(body.first), repo.get(body.second)
    repo.swap(first, second)
    return RecordList(items=[_to_out(first), _to_out(second)])


@router.patch("/records/{key}", response_model=RecordOut, summary="Update a record")
def update_record(key: int, body: RecordPatch, repo: PositionedRepository = Depends(get_repository)) -> RecordOut:
    record = repo.get(key)
    _fill(record, body.attributes)
    if body.position is not None:
        record.position = body.position
    repo.save(record)
    return _to_out(record)


@router.post("/records/{key}/move", response_model=MoveResult, summary="Move a record within its group")
def move_record(key: int, body: MoveRequest, repo: PositionedRepository = Depends(get_repository)) -> MoveResult:
    record = repo.get(key)
    moved = repo.move(record, body.position)
    return MoveResult(moved=moved, record=_to_out(record))


@router.delete("/records/{key}", status_code=204, summary="Delete a record")
def delete_record(key: int, repo: PositionedRepository = Depends(get_repository)) -> Response:
    repo.delete(repo.get(key))
    return Response(status_code=204)


@router.post("/resequence", response_model=ResequenceResult, summary="Rewrite one group densely")
def resequence_group(body: ResequenceRequest, repo: PositionedRepository = Depends(get_repository)) -> ResequenceResult:
    """Grouped collections must name every group column (``null`` for the NULL group)."""
    try:
        changed = repo.resequence(body.group)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=problem(422, "Invalid Request", str(exc))) from exc
    return ResequenceResult(changed=changed)


__all__ = ["router", "get_repository"]
