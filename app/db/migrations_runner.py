"""Lightweight SQL migrations runner.

Applies .sql files in lexical order from the local `migrations/` directory.
Skips rollback files and records applied filenames in a `schema_migrations`
table of the target database so each database tracks its own history.
Intended for local development and CI; production environments should use
Alembic or the platform's migration mechanism.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection, Engine

logger = logging.getLogger(__name__)

DEFAULT_MIGRATIONS_DIR = Path(__file__).resolve().parents[2] / "migrations"


def _iter_sql_files(root: Path) -> Iterable[Path]:
    for p in sorted(root.glob("*.sql")):
        if "rollback" in p.name.lower():
            continue
        yield p


def _split_statements(sql: str) -> list[str]:
    statements: list[str] = []
    for stmt in sql.split(";"):
        lines = [ln for ln in stmt.splitlines() if not ln.strip().startswith("--")]
        s = "\n".join(lines).strip()
        if s and s.upper() not in {"BEGIN", "COMMIT", "END"}:
            statements.append(s)
    return statements


def _ensure_journal(conn: Connection) -> set[str]:
    conn.execute(
        sql_text(
            "CREATE TABLE IF NOT EXISTS schema_migrations ("
            " filename VARCHAR(255) PRIMARY KEY, applied_at VARCHAR(32) NOT NULL)"
        )
    )
    rows = conn.execute(sql_text("SELECT filename FROM schema_migrations")).fetchall()
    return {str(r[0]) for r in rows}


def apply_migrations(engine: Engine, migrations_dir: str | os.PathLike[str] | None = None) -> list[str]:
    """Apply pending migrations and return the filenames applied."""
    root = Path(migrations_dir) if migrations_dir is not None else DEFAULT_MIGRATIONS_DIR
    if not root.exists():  # pragma: no cover - optional
        logger.warning("migrations_dir_missing path=%s", root)
        return []

    applied_now: list[str] = []
    with engine.begin() as conn:
        applied = _ensure_journal(conn)
        for sql_path in _iter_sql_files(root):
            fname = sql_path.name
            if fname in applied:
                continue
            for statement in _split_statements(sql_path.read_text(encoding="utf-8")):
                conn.exec_driver_sql(statement)
            conn.execute(
                sql_text("INSERT INTO schema_migrations (filename, applied_at) VALUES (:f, :t)"),
                {
                    "f": fname,
                    "t": datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z"),
                },
            )
            applied_now.append(fname)
    if applied_now:
        logger.info("migrations_applied files=%s", applied_now)
    return applied_now


__all__ = ["apply_migrations", "DEFAULT_MIGRATIONS_DIR"]
