"""Pydantic models describing an authored audit template.

A template owns its sections, questions and logic rules. Questions carry a
stable ``id`` separate from their display ``text``; rule references may use
either, and `app.logic.validation.validate_template` rewrites text references
to ids before a template is stored.
"""

from __future__ import annotations

import uuid
from typing import Any, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from app.models.question_kind import QuestionKindName


Operator = Literal["==", "!=", "<", ">", "<=", ">="]
Connective = Literal["AND", "OR"]
ActionType = Literal["show", "hide", "skip"]
TemplateStatus = Literal["draft", "published"]

NUMERIC_OPERATORS = frozenset({"<", ">", "<=", ">="})


def _new_id() -> str:
    return str(uuid.uuid4())


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Option(_Model):
    value: str


class Section(_Model):
    title: str
    description: Optional[str] = None


class Question(_Model):
    id: str = Field(default_factory=_new_id, validation_alias=AliasChoices("id", "_id"))
    section: str = ""
    type: QuestionKindName
    text: str
    options: list[Option] = Field(default_factory=list)
    mandatory: bool = False
    min: Optional[float] = None
    max: Optional[float] = None
    weight: float = Field(default=1, ge=0)
    critical: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, v: Any) -> Any:
        # Numeric ids from older clients are accepted as opaque strings
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("options", mode="before")
    @classmethod
    def _coerce_options(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, (list, tuple)):
            return [{"value": item} if isinstance(item, str) else item for item in v]
        return v

    @field_validator("weight", mode="before")
    @classmethod
    def _default_weight(cls, v: Any) -> Any:
        return 1 if v is None else v

    @property
    def key(self) -> str:
        return self.id

    def option_values(self) -> list[str]:
        return [o.value for o in self.options]


class Condition(_Model):
    question: str
    operator: Operator
    value: Any
    logic_op: Connective = Field(default="AND", validation_alias=AliasChoices("logic_op", "logicOp"))


class Action(_Model):
    type: ActionType
    target: str

    @model_validator(mode="before")
    @classmethod
    def _legacy_shape(cls, data: Any) -> Any:
        # Older builders stored ``{"show": "<target>"}``
        if isinstance(data, dict) and not data.get("type") and "show" in data:
            return {"type": "show", "target": data.get("show") or ""}
        return data


class LogicRule(_Model):
    question: Optional[str] = None
    conditions: list[Condition] = Field(default_factory=list)
    action: Action

    @model_validator(mode="after")
    def _default_owner(self) -> "LogicRule":
        if not self.question and self.conditions:
            self.question = self.conditions[0].question
        return self


class Template(_Model):
    id: Optional[str] = None
    name: str
    description: Optional[str] = None
    audit_category: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("audit_category", "auditCategory")
    )
    sections: list[Section] = Field(default_factory=list)
    questions: list[Question] = Field(default_factory=list)
    logic_rules: list[LogicRule] = Field(
        default_factory=list, validation_alias=AliasChoices("logic_rules", "logicRules")
    )
    scoring_enabled: bool = Field(
        default=False, validation_alias=AliasChoices("scoring_enabled", "scoringEnabled")
    )
    compliance_threshold: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("compliance_threshold", "complianceThreshold")
    )
    status: TemplateStatus = "draft"

    def question_by_key(self, ref: str | None) -> Question | None:
        """Return the question whose id equals ``ref``, else whose text does."""
        if ref is None:
            return None
        for q in self.questions:
            if q.id == ref:
                return q
        for q in self.questions:
            if q.text == ref:
                return q
        return None

    def question_keys(self) -> list[str]:
        return [q.key for q in self.questions]


__all__ = [
    "Operator",
    "Connective",
    "ActionType",
    "TemplateStatus",
    "NUMERIC_OPERATORS",
    "Option",
    "Section",
    "Question",
    "Condition",
    "Action",
    "LogicRule",
    "Template",
]
