"""Save-time template validation and answer value checks.

The engine assumes well-formed templates; this module is where malformed
ones are rejected. `validate_template` collects every problem before raising
so authors see the full list, and returns a normalized copy in which rule
references given as question text are rewritten to question ids.
"""

from __future__ import annotations

from typing import Any, List
import logging

from app.logic.answer_canonical import coerce_number, is_unanswered
from app.models.question_kind import CHOICE_KINDS, QuestionKind
from app.models.template import Condition, LogicRule, Question, Template

logger = logging.getLogger(__name__)


class TemplateValidationError(ValueError):
    def __init__(self, errors: List[str]) -> None:
        super().__init__("; ".join(errors))
        self.errors = list(errors)


class AnswerValidationError(ValueError):
    pass


def _check_sections(template: Template, errors: List[str]) -> set[str]:
    titles: set[str] = set()
    for i, section in enumerate(template.sections):
        title = section.title.strip()
        if not title:
            errors.append(f"sections[{i}].title: required")
        elif title in titles:
            errors.append(f"sections[{i}].title: duplicate section '{title}'")
        titles.add(title)
    return titles


def _normalize_question(q: Question, i: int, titles: set[str], errors: List[str]) -> Question:
    label = f"questions[{i}]"
    if not q.text.strip():
        errors.append(f"{label}.text: required")
    if q.section and q.section.strip() not in titles:
        errors.append(f"{label}.section: unknown section '{q.section}'")

    update: dict[str, Any] = {}
    if q.type in CHOICE_KINDS:
        options = [o for o in q.options if o.value.strip()]
        if len(options) < 2:
            errors.append(f"{label}.options: at least two options are required")
        update["options"] = options
    else:
        update["options"] = []

    if q.type == QuestionKind.NUMERIC:
        if q.min is not None and q.max is not None and q.min > q.max:
            errors.append(f"{label}: min cannot be greater than max")
    else:
        update["min"] = None
        update["max"] = None
    return q.model_copy(update=update)


def _resolve(template: Template, ref: str | None, label: str, errors: List[str]) -> str | None:
    q = template.question_by_key(ref)
    if q is None:
        errors.append(f"{label}: unknown question '{ref}'")
        return None
    return q.key


def _normalize_rule(template: Template, rule: LogicRule, j: int, errors: List[str]) -> LogicRule:
    label = f"logic_rules[{j}]"
    owner = _resolve(template, rule.question, f"{label}.question", errors) if rule.question else None

    conditions: list[Condition] = []
    for k, cond in enumerate(rule.conditions):
        clabel = f"{label}.conditions[{k}]"
        key = _resolve(template, cond.question, f"{clabel}.question", errors)
        if cond.value is None or (isinstance(cond.value, str) and cond.value == ""):
            errors.append(f"{clabel}.value: a comparison value is required")
        conditions.append(cond.model_copy(update={"question": key or cond.question}))

    target = _resolve(template, rule.action.target, f"{label}.action.target", errors)
    if (
        rule.action.type in {"show", "skip"}
        and owner is not None
        and target is not None
        and owner == target
    ):
        errors.append(f"{label}.action: a rule cannot target its own question")

    return rule.model_copy(
        update={
            "question": owner or rule.question,
            "conditions": conditions,
            "action": rule.action.model_copy(update={"target": target or rule.action.target}),
        }
    )


def validate_template(template: Template) -> Template:
    """Validate ``template`` and return its normalized form.

    Raises TemplateValidationError listing every problem found.
    """
    errors: List[str] = []
    if not template.name.strip():
        errors.append("name: required")

    titles = _check_sections(template, errors)

    seen_ids: set[str] = set()
    seen_texts: set[str] = set()
    questions: list[Question] = []
    for i, q in enumerate(template.questions):
        if q.id in seen_ids:
            errors.append(f"questions[{i}].id: duplicate id '{q.id}'")
        if q.text in seen_texts:
            errors.append(f"questions[{i}].text: duplicate question text '{q.text}'")
        seen_ids.add(q.id)
        seen_texts.add(q.text)
        questions.append(_normalize_question(q, i, titles, errors))

    threshold = template.compliance_threshold
    if threshold is not None and not 0 <= threshold <= 100:
        errors.append("compliance_threshold: must be between 0 and 100")

    normalized = template.model_copy(update={"questions": questions})
    rules = [_normalize_rule(normalized, rule, j, errors) for j, rule in enumerate(template.logic_rules)]

    if errors:
        logger.info("template_validation_failed name=%s errors=%d", template.name, len(errors))
        raise TemplateValidationError(errors)
    return normalized.model_copy(update={"logic_rules": rules})


def carry_question_ids(current: Template, incoming: Template) -> Template:
    """Give questions sent without an id the stored id of the question with the same text.

    Keeps answers held by open sessions and rule references to ids valid when a
    client replaces a template without echoing its question ids back.
    """
    by_text = {q.text.strip(): q.key for q in current.questions}
    taken = {q.key for q in incoming.questions if "id" in q.model_fields_set}
    questions: List[Question] = []
    for q in incoming.questions:
        stored_id = by_text.get(q.text.strip())
        if "id" not in q.model_fields_set and stored_id is not None and stored_id not in taken:
            taken.add(stored_id)
            q = q.model_copy(update={"id": stored_id})
        questions.append(q)
    return incoming.model_copy(update={"questions": questions})


def validate_answer_value(question: Question, value: Any) -> None:
    """Reject values a question of this type can never hold.

    Clearing an answer (None, "" or an empty selection) is always allowed.
    """
    if is_unanswered(value):
        return
    if question.type == QuestionKind.NUMERIC:
        number = coerce_number(value)
        if number is None:
            raise AnswerValidationError(f"type_mismatch: expected number for '{question.text}'")
        if question.min is not None and number < question.min:
            raise AnswerValidationError(f"out_of_range: '{question.text}' must be >= {question.min:g}")
        if question.max is not None and number > question.max:
            raise AnswerValidationError(f"out_of_range: '{question.text}' must be <= {question.max:g}")
        return
    if question.type in CHOICE_KINDS:
        allowed = set(question.option_values())
        values = value if isinstance(value, (list, tuple, set, frozenset)) else [value]
        if question.type != QuestionKind.MULTIPLE and len(values) != 1:
            raise AnswerValidationError(f"type_mismatch: '{question.text}' accepts a single option")
        unknown = [v for v in values if not is_unanswered(v) and str(v) not in allowed]
        if unknown:
            raise AnswerValidationError(f"unknown_option: {unknown!r} for '{question.text}'")


__all__ = [
    "TemplateValidationError",
    "AnswerValidationError",
    "validate_template",
    "carry_question_ids",
    "validate_answer_value",
]
