"""Database bootstrap utilities for the audit logic service.

This module exposes convenience imports for engine construction and the
migrations runner that applies SQL files from the local migrations/
directory. The DB layer is intentionally minimal and does not leak ORM
models into route handlers.
"""

from app.db.base import get_engine, transaction
from app.db.migrations_runner import apply_migrations

__all__ = [
    "get_engine",
    "transaction",
    "apply_migrations",
]
