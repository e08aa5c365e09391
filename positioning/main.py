from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from sqlalchemy import text as sql_text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from positioning.config import load_config
from positioning.db.base import get_engine
from positioning.db.migrations_runner import apply_migrations
from positioning.http.problem import (
    handle_http_exception,
    handle_not_found,
    handle_request_validation_error,
    handle_unexpected_error,
)
from positioning.http.request_id import RequestIdMiddleware
from positioning.logging_setup import configure_logging
from positioning.logic.catalog import sample_record_types
from positioning.logic.record_types import RecordTypeRegistry, UnknownRecordTypeError
from positioning.logic.repository_positions import RecordNotFoundError
from positioning.routes import api_router

logger = logging.getLogger(__name__)


def create_app(
    engine: Optional[Engine] = None,
    record_types: Optional[RecordTypeRegistry] = None,
) -> FastAPI:
    """Build the FastAPI application.

    ``engine`` and ``record_types`` default to the configured database and the
    sample collections; tests pass their own.
    """
    config = load_config()
    configure_logging(config.positioning.log_level)

    app = FastAPI(title="Positioning Service")
    app.state.engine = engine or get_engine(config.database.dsn)
    if record_types is None:
        record_types = sample_record_types(config.positioning.default_start_position)
    app.state.record_types = record_types

    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(RecordNotFoundError, handle_not_found)
    app.add_exception_handler(UnknownRecordTypeError, handle_not_found)
    app.add_exception_handler(Exception, handle_unexpected_error)
    app.add_middleware(RequestIdMiddleware)

    # Apply migrations on startup (guarded) to avoid import-time side effects
    @app.on_event("startup")
    def _apply_migrations() -> None:  # pragma: no cover - exercised via deployment
        if not config.positioning.auto_apply_migrations:
            logger.info("AUTO_APPLY_MIGRATIONS disabled; skipping migrations at startup")
            return
        try:
            applied = apply_migrations(app.state.engine)
            logger.info("startup_migrations_applied files=%s", applied)
        except SQLAlchemyError:
            logger.error("Failed to apply migrations at startup", exc_info=True)
            raise

    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health")
    def health() -> dict:
        try:
            with app.state.engine.connect() as conn:
                conn.execute(sql_text("SELECT 1"))
            return {"status": "ok", "db": True}
        except SQLAlchemyError as e:
            logger.error("Health DB check failed", exc_info=True)
            return {"status": "degraded", "db": False, "reason": str(e)}

    logger.info("app_created collections=%s", [rt.name for rt in app.state.record_types])
    return app
