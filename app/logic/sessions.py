"""Respondent session lifecycle over the in-memory session registry.

Sessions are dropped when submitted or discarded, when their template is
replaced or deleted, and when left idle longer than the configured limit.
"""

from __future__ import annotations

import time
import uuid
from typing import List, Optional, Tuple
import logging

from app.logic.answer_store import AnswerStore
from app.logic.inmemory_state import SESSION_TOUCHED, SESSIONS
from app.models.template import Template

logger = logging.getLogger(__name__)


def prune_idle_sessions(max_idle_seconds: int, now: Optional[float] = None) -> List[str]:
    """Close sessions untouched for longer than ``max_idle_seconds``; 0 keeps them all."""
    if max_idle_seconds <= 0:
        return []
    now = time.monotonic() if now is None else now
    expired = [sid for sid, touched in SESSION_TOUCHED.items() if now - touched > max_idle_seconds]
    for sid in expired:
        SESSIONS.pop(sid, None)
        SESSION_TOUCHED.pop(sid, None)
    if expired:
        logger.info("sessions_expired count=%d max_idle_seconds=%d", len(expired), max_idle_seconds)
    return expired


def create_session(template: Template, cascade_mode: str, max_idle_seconds: int = 0) -> Tuple[str, AnswerStore]:
    prune_idle_sessions(max_idle_seconds)
    session_id = str(uuid.uuid4())
    store = AnswerStore(template, cascade_mode=cascade_mode)
    SESSIONS[session_id] = store
    SESSION_TOUCHED[session_id] = time.monotonic()
    logger.info(
        "session_created session_id=%s template_id=%s cascade_mode=%s",
        session_id,
        template.id,
        cascade_mode,
    )
    return session_id, store


def get_session(session_id: str) -> Optional[AnswerStore]:
    store = SESSIONS.get(session_id)
    if store is not None:
        SESSION_TOUCHED[session_id] = time.monotonic()
    return store


def close_session(session_id: str) -> bool:
    removed = SESSIONS.pop(session_id, None) is not None
    SESSION_TOUCHED.pop(session_id, None)
    if removed:
        logger.info("session_closed session_id=%s", session_id)
    return removed


def close_sessions_for_template(template_id: str) -> List[str]:
    """Close every open session answering ``template_id``; returns their ids."""
    closed = [sid for sid, store in SESSIONS.items() if str(store.template.id) == str(template_id)]
    for sid in closed:
        close_session(sid)
    return closed


__all__ = [
    "prune_idle_sessions",
    "create_session",
    "get_session",
    "close_session",
    "close_sessions_for_template",
]
