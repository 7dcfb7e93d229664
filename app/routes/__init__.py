"""APIRouter registration for the audit logic service."""

from __future__ import annotations

from fastapi import APIRouter

from app.routes.responses import router as responses_router
from app.routes.sessions import router as sessions_router
from app.routes.templates import router as templates_router

api_router = APIRouter()
api_router.include_router(templates_router, tags=["Templates"])  # tags applied per-operation
api_router.include_router(sessions_router, tags=["Sessions"])  # tags applied per-operation
api_router.include_router(responses_router, tags=["Responses"])  # tags applied per-operation

__all__ = ["api_router"]
