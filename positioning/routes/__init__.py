"""APIRouter registration for the positioning service."""

from __future__ import annotations

from fastapi import APIRouter

from positioning.routes.collections import router as collections_router

api_router = APIRouter()
api_router.include_router(collections_router)

__all__ = ["api_router"]
