"""Response document data access helpers.

Responses are written once and never updated.
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import text as sql_text

from app.db.base import get_engine, transaction
from app.models.response import ResponseRecord


def save_response(record: ResponseRecord) -> ResponseRecord:
    with transaction() as conn:
        conn.execute(
            sql_text(
                "INSERT INTO responses (response_id, template_id, document, created_at)"
                " VALUES (:id, :tid, :doc, :ts)"
            ),
            {
                "id": record.id,
                "tid": record.template_id,
                "doc": record.model_dump_json(),
                "ts": record.meta.created_at.isoformat(),
            },
        )
    return record


def get_response(response_id: str) -> Optional[ResponseRecord]:
    with get_engine().connect() as conn:
        row = conn.execute(
            sql_text("SELECT document FROM responses WHERE response_id = :id"),
            {"id": response_id},
        ).fetchone()
    return ResponseRecord.model_validate_json(row[0]) if row else None


def list_responses(template_id: str | None = None) -> List[ResponseRecord]:
    with get_engine().connect() as conn:
        if template_id is None:
            rows = conn.execute(
                sql_text("SELECT document FROM responses ORDER BY created_at ASC, response_id ASC")
            ).fetchall()
        else:
            rows = conn.execute(
                sql_text(
                    "SELECT document FROM responses WHERE template_id = :tid"
                    " ORDER BY created_at ASC, response_id ASC"
                ),
                {"tid": template_id},
            ).fetchall()
    return [ResponseRecord.model_validate_json(r[0]) for r in rows]


def template_has_responses(template_id: str) -> bool:
    with get_engine().connect() as conn:
        row = conn.execute(
            sql_text("SELECT 1 FROM responses WHERE template_id = :tid LIMIT 1"),
            {"tid": template_id},
        ).fetchone()
    return row is not None


__all__ = ["save_response", "get_response", "list_responses", "template_has_responses"]
