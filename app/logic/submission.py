"""Submission handling: snapshot assembly, mandatory gating, scoring, persistence.

Submitted answers are matched to template questions by ``question_id`` first
and ``question_text`` second. The resulting snapshot goes through the same
visibility cascade as the respondent store so answers to hidden questions
never reach scoring or storage.
"""

from __future__ import annotations

import uuid
from typing import Any, Dict, List, Mapping, Tuple
import logging

from app.logic.answer_store import CASCADE_SINGLE_PASS, AnswerState, apply_mutation, cascade
from app.logic.gating import missing_mandatory
from app.logic.repository_responses import save_response
from app.logic.scoring import score_answers
from app.logic.validation import AnswerValidationError, validate_answer_value
from app.logic.visibility_rules import is_question_visible
from app.models.question_kind import QuestionKind
from app.models.response import AnswerItem, ResponseRecord, SubmissionMeta, SubmissionRequest
from app.models.template import Question, Template

logger = logging.getLogger(__name__)


class MissingMandatoryAnswersError(ValueError):
    """Raised when visible mandatory questions are unanswered; lists all of them."""

    def __init__(self, missing: List[Question]) -> None:
        self.missing = [{"question_id": q.key, "question_text": q.text} for q in missing]
        super().__init__("missing mandatory answers: " + ", ".join(q.text for q in missing))


class InvalidAnswersError(ValueError):
    """Raised when submitted values do not fit their questions; lists every problem."""

    def __init__(self, errors: List[Dict[str, Any]]) -> None:
        self.errors = errors
        super().__init__("invalid answers: " + "; ".join(e["message"] for e in errors))


def match_question(template: Template, item: AnswerItem) -> Question | None:
    if item.question_id:
        q = template.question_by_key(item.question_id)
        if q is not None:
            return q
    if item.question_text:
        return template.question_by_key(item.question_text)
    return None


def _stored_value(question: Question, value: Any) -> Any:
    if question.type == QuestionKind.MULTIPLE:
        return apply_mutation(question, None, value)
    return value


def snapshot_from_answers(template: Template, answers: List[AnswerItem]) -> Dict[str, Any]:
    """Map submitted items onto question keys; raises InvalidAnswersError."""
    snapshot: Dict[str, Any] = {}
    errors: List[Dict[str, Any]] = []
    for item in answers:
        q = match_question(template, item)
        if q is None:
            logger.warning(
                "submission_unknown_question template_id=%s question_id=%s question_text=%s",
                template.id,
                item.question_id,
                item.question_text,
            )
            continue
        try:
            validate_answer_value(q, item.value)
        except AnswerValidationError as exc:
            errors.append({"question_id": q.key, "question_text": q.text, "message": str(exc)})
            continue
        snapshot[q.key] = _stored_value(q, item.value)
    if errors:
        logger.info(
            "submission_rejected template_id=%s invalid=%s",
            template.id,
            [e["question_id"] for e in errors],
        )
        raise InvalidAnswersError(errors)
    return snapshot


def resolve_submission(
    template: Template,
    answers: List[AnswerItem],
    cascade_mode: str = CASCADE_SINGLE_PASS,
) -> Tuple[Dict[str, Any], Dict[str, bool]]:
    """Return the cascaded snapshot and full visibility map for submitted answers."""
    snapshot, resolved, purged = cascade(template, snapshot_from_answers(template, answers), cascade_mode)
    if purged:
        logger.info("submission_hidden_answers_dropped template_id=%s keys=%s", template.id, purged)
    visibility = {q.key: is_question_visible(q.key, resolved) for q in template.questions}
    return snapshot, visibility


def answer_items(template: Template, snapshot: Mapping[str, Any]) -> List[AnswerItem]:
    """Build the ordered wire answer list for the questions present in ``snapshot``."""
    items: List[AnswerItem] = []
    for q in template.questions:
        if q.key not in snapshot:
            continue
        value = snapshot[q.key]
        items.append(
            AnswerItem(
                question_text=q.text,
                question_id=q.key,
                section=q.section,
                type=q.type,
                value=list(value) if isinstance(value, tuple) else value,
            )
        )
    return items


def answer_items_from_state(template: Template, state: AnswerState) -> List[AnswerItem]:
    return answer_items(template, state.answers)


def submit_response(
    template: Template,
    request: SubmissionRequest,
    *,
    cascade_mode: str = CASCADE_SINGLE_PASS,
    critical_forces_fail: bool = False,
) -> ResponseRecord:
    """Gate, score and persist one submission.

    Raises InvalidAnswersError before gating, then MissingMandatoryAnswersError.
    """
    snapshot, visibility = resolve_submission(template, request.answers, cascade_mode)

    missing = missing_mandatory(template, snapshot, visibility)
    if missing:
        logger.info(
            "submission_rejected template_id=%s missing=%s",
            template.id,
            [q.key for q in missing],
        )
        raise MissingMandatoryAnswersError(missing)

    result = score_answers(template, snapshot, critical_forces_fail=critical_forces_fail)
    record = ResponseRecord(
        id=str(uuid.uuid4()),
        template_id=str(template.id),
        answers=answer_items(template, snapshot),
        score=result.score,
        passed=result.passed,
        failed_critical=result.failed_critical,
        meta=request.meta or SubmissionMeta(),
    )
    save_response(record)
    logger.info(
        "response_saved response_id=%s template_id=%s score=%s passed=%s",
        record.id,
        record.template_id,
        record.score,
        record.passed,
    )
    return record


__all__ = [
    "MissingMandatoryAnswersError",
    "InvalidAnswersError",
    "match_question",
    "snapshot_from_answers",
    "resolve_submission",
    "answer_items",
    "answer_items_from_state",
    "submit_response",
]
