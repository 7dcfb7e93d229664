"""Pydantic models for submissions and stored responses."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AnswerItem(BaseModel):
    """One submitted answer as sent over the wire."""

    model_config = ConfigDict(populate_by_name=True)

    question_text: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("question_text", "questionText")
    )
    question_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("question_id", "questionId")
    )
    section: Optional[str] = None
    type: Optional[str] = None
    value: Any = None

    @field_validator("question_id", mode="before")
    @classmethod
    def _coerce_question_id(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class Location(BaseModel):
    lat: float
    lng: float


class SubmissionMeta(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("user_id", "userId"))
    location: Optional[Location] = None
    created_at: datetime = Field(
        default_factory=_utcnow, validation_alias=AliasChoices("created_at", "createdAt")
    )


class SubmissionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    template_id: str = Field(validation_alias=AliasChoices("template_id", "templateId"))
    answers: list[AnswerItem] = Field(default_factory=list)
    meta: SubmissionMeta = Field(default_factory=SubmissionMeta)


class ScoreResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    score: Optional[int] = None
    passed: Optional[bool] = None
    obtained: float = 0
    total_weight: float = 0
    failed_critical: list[str] = Field(default_factory=list)


class ResponseRecord(BaseModel):
    """Immutable record of one submission."""

    model_config = ConfigDict(frozen=True)

    id: str
    template_id: str
    answers: list[AnswerItem]
    score: Optional[int] = None
    passed: Optional[bool] = None
    failed_critical: list[str] = Field(default_factory=list)
    meta: SubmissionMeta = Field(default_factory=SubmissionMeta)


__all__ = [
    "AnswerItem",
    "Location",
    "SubmissionMeta",
    "SubmissionRequest",
    "ScoreResult",
    "ResponseRecord",
]
