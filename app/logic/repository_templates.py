"""Template document data access helpers.

Templates are persisted whole as JSON documents keyed by a generated id;
`name` and `status` are projected into columns for listing.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import List, Optional
import logging

from sqlalchemy import text as sql_text

from app.db.base import get_engine, transaction
from app.models.template import Template, TemplateStatus

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def _load(document: str) -> Template:
    return Template.model_validate_json(document)


def create_template(template: Template) -> Template:
    stored = template.model_copy(update={"id": str(uuid.uuid4())})
    ts = _now()
    with transaction() as conn:
        conn.execute(
            sql_text(
                "INSERT INTO templates (template_id, name, status, document, created_at, updated_at)"
                " VALUES (:id, :name, :status, :doc, :ts, :ts)"
            ),
            {"id": stored.id, "name": stored.name, "status": stored.status, "doc": stored.model_dump_json(), "ts": ts},
        )
    logger.info("template_created template_id=%s questions=%d rules=%d", stored.id, len(stored.questions), len(stored.logic_rules))
    return stored


def get_template(template_id: str) -> Optional[Template]:
    with get_engine().connect() as conn:
        row = conn.execute(
            sql_text("SELECT document FROM templates WHERE template_id = :id"),
            {"id": template_id},
        ).fetchone()
    return _load(row[0]) if row else None


def list_templates() -> List[Template]:
    with get_engine().connect() as conn:
        rows = conn.execute(
            sql_text("SELECT document FROM templates ORDER BY created_at ASC, template_id ASC")
        ).fetchall()
    return [_load(r[0]) for r in rows]


def replace_template(template_id: str, template: Template) -> Optional[Template]:
    stored = template.model_copy(update={"id": template_id})
    with transaction() as conn:
        result = conn.execute(
            sql_text(
                "UPDATE templates SET name = :name, status = :status, document = :doc, updated_at = :ts"
                " WHERE template_id = :id"
            ),
            {"id": template_id, "name": stored.name, "status": stored.status, "doc": stored.model_dump_json(), "ts": _now()},
        )
    if result.rowcount == 0:
        return None
    logger.info("template_replaced template_id=%s", template_id)
    return stored


def set_template_status(template_id: str, status: TemplateStatus) -> Optional[Template]:
    current = get_template(template_id)
    if current is None:
        return None
    return replace_template(template_id, current.model_copy(update={"status": status}))


def delete_template(template_id: str) -> bool:
    with transaction() as conn:
        result = conn.execute(
            sql_text("DELETE FROM templates WHERE template_id = :id"),
            {"id": template_id},
        )
    deleted = result.rowcount > 0
    if deleted:
        logger.info("template_deleted template_id=%s", template_id)
    return deleted


__all__ = [
    "create_template",
    "get_template",
    "list_templates",
    "replace_template",
    "set_template_status",
    "delete_template",
]
