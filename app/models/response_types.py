"""Pydantic models for respondent session response bodies."""

from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel

from app.models.visibility import VisibilityDelta


class ProgressView(BaseModel):
    answered: int
    total: int
    percent: int


class BlockingItem(BaseModel):
    question_id: str
    question_text: str
    reason: str


class GatingView(BaseModel):
    ok: bool
    blocking_items: List[BlockingItem]


class SessionView(BaseModel):
    session_id: str
    template_id: str
    version: int
    answers: Dict[str, Any]
    visibility: Dict[str, bool]
    progress: ProgressView
    gating: GatingView


class SavedResult(BaseModel):
    saved: bool
    question_id: str
    session: SessionView
    visibility_delta: VisibilityDelta
    suppressed_answers: List[str]


class RuleSummary(BaseModel):
    question: str | None
    target: str
    action: str
    summary: str


__all__ = [
    "ProgressView",
    "BlockingItem",
    "GatingView",
    "SessionView",
    "SavedResult",
    "RuleSummary",
]
