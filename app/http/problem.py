"""Problem+JSON utilities and global exception handlers.

Defines the RFC7807 media type and handler callables that produce
application/problem+json responses.
"""

from __future__ import annotations

import logging
from fastapi import HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

PROBLEM_MEDIA_TYPE = "application/problem+json"

logger = logging.getLogger(__name__)


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:  # noqa: D401
    status_code = int(exc.status_code or 500)
    if isinstance(exc.detail, dict):
        body = dict(exc.detail)
    else:
        body = {"title": "Error", "status": status_code, "detail": str(exc.detail or "")}
    body.setdefault("status", status_code)
    headers = {str(k): str(v) for k, v in (exc.headers or {}).items()}
    return JSONResponse(
        jsonable_encoder(body),
        status_code=status_code,
        media_type=PROBLEM_MEDIA_TYPE,
        headers=headers or None,
    )


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:  # noqa: D401
    logger.info(
        "request_validation_failed path=%s request_id=%s errors=%d",
        request.url.path,
        _request_id(request),
        len(exc.errors()),
    )
    problem = {
        "title": "Invalid Request",
        "status": 422,
        "detail": "Request validation failed",
        "errors": jsonable_encoder(exc.errors()),
    }
    return JSONResponse(problem, status_code=422, media_type=PROBLEM_MEDIA_TYPE)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:  # noqa: D401
    logger.error(
        "unexpected_error path=%s request_id=%s",
        request.url.path,
        _request_id(request),
        exc_info=exc,
    )
    return JSONResponse({"title": "Internal Server Error", "status": 500}, status_code=500, media_type=PROBLEM_MEDIA_TYPE)


__all__ = [
    "PROBLEM_MEDIA_TYPE",
    "handle_http_exception",
    "handle_request_validation_error",
    "handle_unexpected_error",
]
