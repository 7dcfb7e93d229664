from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from sqlalchemy import text as sql_text
from sqlalchemy.exc import SQLAlchemyError

from app.config import get_config
from app.db.base import get_engine
from app.db.migrations_runner import apply_migrations
from app.http.problem import (
    handle_http_exception,
    handle_request_validation_error,
    handle_unexpected_error,
)
from app.http.request_id import RequestIdMiddleware
from app.logging_setup import configure_logging
from app.middleware.cors import apply_cors
from app.routes import api_router

logger = logging.getLogger(__name__)


def _health() -> dict:
    try:
        with get_engine().connect() as conn:
            conn.execute(sql_text("SELECT 1"))
        return {"status": "ok", "db": True}
    except SQLAlchemyError:
        logger.warning("health_db_unavailable", exc_info=True)
        return {"status": "degraded", "db": False}


def create_app() -> FastAPI:
    """Build the FastAPI application with problem+json errors and the v1 API."""
    configure_logging()
    config = get_config()

    app = FastAPI(title="Audit Logic & Scoring Service", version="1.0.0")

    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    apply_cors(app)
    app.add_middleware(RequestIdMiddleware)

    if config.auto_apply_migrations:
        apply_migrations(get_engine())

    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health", include_in_schema=False)
    def health():  # pragma: no cover - trivial
        return _health()

    logger.info(
        "app_created cascade_mode=%s critical_forces_fail=%s",
        config.engine.cascade_mode,
        config.engine.critical_forces_fail,
    )
    return app
