"""Weighted compliance scoring.

Scoring is a pure function of a template and a final answer snapshot:

- every question's weight counts towards the total, answered or not;
- single-choice and dropdown answers earn full weight when they read "yes";
- numeric answers earn full weight when strictly greater than zero;
- file answers earn half weight when any value is present;
- every other type earns nothing.

The score is the obtained share of the total on a 0-100 scale, rounded half
up. ``passed`` is only computed when the template sets a compliance
threshold. Critical questions that earned nothing are reported in
``failed_critical``; they force a fail only when ``critical_forces_fail`` is
set.
"""

from __future__ import annotations

import math
from typing import Any, Mapping, Optional
import logging

from app.logic.answer_canonical import coerce_number, is_unanswered
from app.models.question_kind import QuestionKind, YES_NO_KINDS
from app.models.response import ScoreResult
from app.models.template import Question, Template

logger = logging.getLogger(__name__)

SCORED_KINDS = YES_NO_KINDS | {QuestionKind.NUMERIC, QuestionKind.FILE}


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def question_credit(question: Question, value: Any) -> float:
    """Return the weight a single answered question earns."""
    if is_unanswered(value):
        return 0.0
    weight = float(question.weight)
    if question.type in YES_NO_KINDS:
        return weight if str(value).lower() == "yes" else 0.0
    if question.type == QuestionKind.NUMERIC:
        number = coerce_number(value)
        return weight if number is not None and number > 0 else 0.0
    if question.type == QuestionKind.FILE:
        return weight * 0.5
    return 0.0


def score_answers(
    template: Template,
    answers: Mapping[str, Any],
    *,
    critical_forces_fail: bool = False,
) -> ScoreResult:
    if not template.scoring_enabled:
        return ScoreResult(score=None, passed=None)

    total_weight = 0.0
    obtained = 0.0
    failed_critical: list[str] = []
    for q in template.questions:
        total_weight += float(q.weight)
        credit = question_credit(q, answers.get(q.key))
        obtained += credit
        if q.critical and q.type in SCORED_KINDS and credit == 0:
            failed_critical.append(q.key)

    score: Optional[int] = None
    if total_weight > 0:
        score = round_half_up(100 * obtained / total_weight)

    passed: Optional[bool] = None
    # A threshold of 0 means no threshold was set
    if template.compliance_threshold and score is not None:
        passed = score >= template.compliance_threshold
        if critical_forces_fail and failed_critical:
            passed = False

    logger.info(
        "score_computed template_id=%s obtained=%s total_weight=%s score=%s passed=%s failed_critical=%d",
        template.id,
        obtained,
        total_weight,
        score,
        passed,
        len(failed_critical),
    )
    return ScoreResult(
        score=score,
        passed=passed,
        obtained=obtained,
        total_weight=total_weight,
        failed_critical=failed_critical,
    )


__all__ = ["SCORED_KINDS", "round_half_up", "question_credit", "score_answers"]
