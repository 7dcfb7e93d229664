"""SQLAlchemy engine and connection helpers for the document store.

Templates and responses are stored as JSON documents keyed by generated
identifiers. The service targets PostgreSQL in production but supports
SQLite for local development and CI. No declarative models are defined here;
this module only manages connection lifecycle.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


def _db_url() -> str:
    from app.config import get_config

    return os.getenv("TEST_DATABASE_URL") or get_config().database.dsn


# Module-level cached Engine to ensure a single shared connection/engine
_ENGINE: Engine | None = None
_ENGINE_URL: str | None = None


def get_engine(url: str | None = None) -> Engine:
    """Return a singleton SQLAlchemy Engine for the given URL.

    For SQLite in-memory URLs, use a StaticPool to keep a single connection
    alive across sessions and threads during tests.
    """
    global _ENGINE, _ENGINE_URL
    resolved_url = url or _db_url()

    if _ENGINE is None or _ENGINE_URL != resolved_url:
        kwargs: dict = {"future": True, "pool_pre_ping": True}
        if resolved_url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in resolved_url:
                kwargs["poolclass"] = StaticPool
        _ENGINE = create_engine(resolved_url, **kwargs)
        _ENGINE_URL = resolved_url
        logger.info("db_engine_created dialect=%s", _ENGINE.dialect.name)

    return _ENGINE


@contextmanager
def transaction() -> Iterator[Connection]:
    """Yield a connection inside a transaction, rolling back on error."""
    try:
        with get_engine().begin() as conn:
            yield conn
    except Exception:
        logger.error("DB transaction error; rolled back", exc_info=True)
        raise


__all__ = ["get_engine", "transaction"]
