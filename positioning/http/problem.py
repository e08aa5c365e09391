"""Problem+JSON utilities and global exception handlers.

Defines the RFC7807 media type and handler callables that produce
application/problem+json responses.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from positioning.logic.record_types import UnknownRecordTypeError
from positioning.logic.repository_positions import RecordNotFoundError

PROBLEM_MEDIA_TYPE = "application/problem+json"

logger = logging.getLogger(__name__)


def problem(status: int, title: str, detail: str = "", **extra: object) -> dict:
    body: dict = {"title": title, "status": status}
    if detail:
        body["detail"] = detail
    body.update(extra)
    return body


async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:  # noqa: D401
    status_code = int(exc.status_code or 500)
    if isinstance(exc.detail, dict):
        detail = exc.detail
    else:
        detail = problem(status_code, "Error", str(exc.detail or ""))
    return JSONResponse(
        detail,
        status_code=status_code,
        media_type=PROBLEM_MEDIA_TYPE,
        headers=dict(exc.headers) if exc.headers else None,
    )


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:  # noqa: D401
    body = problem(422, "Invalid Request", "Request validation failed", errors=list(exc.errors()))
    return JSONResponse(body, status_code=422, media_type=PROBLEM_MEDIA_TYPE)


async def handle_not_found(request: Request, exc: LookupError) -> JSONResponse:  # noqa: D401
    if isinstance(exc, UnknownRecordTypeError):
        detail = f"unknown collection {exc.args[0]!r}"
        code = "COLLECTION_NOT_FOUND"
    else:
        detail = str(exc)
        code = "RECORD_NOT_FOUND"
    logger.info("error_handler.handle code=%s path=%s", code, request.url.path)
    return JSONResponse(problem(404, "Not Found", detail, code=code), status_code=404, media_type=PROBLEM_MEDIA_TYPE)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:  # noqa: D401
    logger.error("unexpected_error path=%s", request.url.path, exc_info=exc)
    return JSONResponse(problem(500, "Internal Server Error"), status_code=500, media_type=PROBLEM_MEDIA_TYPE)


__all__ = [
    "PROBLEM_MEDIA_TYPE",
    "problem",
    "handle_http_exception",
    "handle_request_validation_error",
    "handle_not_found",
    "handle_unexpected_error",
]
