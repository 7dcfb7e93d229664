"""Visibility-related reusable types."""

from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, Field


class VisibilityDelta(BaseModel):
    now_visible: List[str] = Field(default_factory=list)
    now_hidden: List[str] = Field(default_factory=list)


class VisibilityRequest(BaseModel):
    """Answer snapshot submitted for a stateless visibility check."""

    answers: Dict[str, Any] = Field(default_factory=dict)


class VisibilityResult(BaseModel):
    visibility: Dict[str, bool]
    visible_questions: List[str]
    # target -> referenced questions that still need an answer
    unanswered_references: Dict[str, List[str]] = Field(default_factory=dict)


__all__ = ["VisibilityDelta", "VisibilityRequest", "VisibilityResult"]
