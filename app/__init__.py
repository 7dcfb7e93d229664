"""FastAPI application package for the audit logic service.

This package exposes the application factory. It wires cross-cutting
middleware (request-id and CORS) and mounts the API routers. Engine and
persistence code lives in `app/logic/`, route handlers in `app/routes/`.
"""

from __future__ import annotations

from app.main import create_app

__all__ = ["create_app"]
