"""Mandatory-answer gating verdict.

Computes a gating verdict with the shape ``{ok: bool, blocking_items: []}``
ahead of scoring. A question is blocking when it is mandatory, currently
visible, and has no answer; hidden questions cannot be answered and are
exempt. Every blocking question is reported, not just the first.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping
import logging

from app.logic.answer_canonical import is_blank
from app.logic.visibility_rules import is_question_visible
from app.models.template import Question, Template

logger = logging.getLogger(__name__)


def missing_mandatory(
    template: Template,
    answers: Mapping[str, Any],
    visibility: Mapping[str, bool],
) -> List[Question]:
    return [
        q
        for q in template.questions
        if q.mandatory and is_question_visible(q.key, visibility) and is_blank(answers.get(q.key))
    ]


def evaluate_gating(
    template: Template,
    answers: Mapping[str, Any],
    visibility: Mapping[str, bool],
) -> Dict[str, Any]:
    missing = missing_mandatory(template, answers, visibility)
    items = [
        {"question_id": q.key, "question_text": q.text, "reason": "missing_required_answer"}
        for q in missing
    ]
    logger.info(
        "gating_verdict template_id=%s missing=%s",
        template.id,
        [q.key for q in missing],
    )
    return {"ok": not items, "blocking_items": items}


__all__ = ["missing_mandatory", "evaluate_gating"]
