"""Central in-memory state holders (process-local).

Defines the single source of truth for respondent sessions. Each session is
an AnswerStore bound to one template; sessions are not persisted and vanish
with the process or once left idle too long.
"""

from __future__ import annotations

from typing import Dict

from app.logic.answer_store import AnswerStore

# Respondent sessions: session_id -> AnswerStore
SESSIONS: Dict[str, AnswerStore] = {}

# Last access per session on the monotonic clock: session_id -> seconds
SESSION_TOUCHED: Dict[str, float] = {}

__all__ = ["SESSIONS", "SESSION_TOUCHED"]
