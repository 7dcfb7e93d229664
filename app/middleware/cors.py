"""CORS configuration helpers.

Provides a small utility for applying CORS with the headers browsers must be
able to read from API responses.
"""

from __future__ import annotations

from typing import Iterable
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware


EXPOSE_HEADERS: list[str] = ["X-Request-Id"]


def apply_cors(app: FastAPI, *, origins: Iterable[str] | None = None) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(origins or ["*"]),
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=EXPOSE_HEADERS,
    )


__all__ = ["EXPOSE_HEADERS", "apply_cors"]
