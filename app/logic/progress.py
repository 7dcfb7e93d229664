"""Respondent progress over currently visible questions."""

from __future__ import annotations

from typing import NamedTuple

from app.logic.answer_canonical import is_unanswered
from app.logic.answer_store import AnswerState
from app.logic.scoring import round_half_up
from app.models.template import Template


class Progress(NamedTuple):
    answered: int
    total: int
    percent: int


def compute_progress(template: Template, state: AnswerState) -> Progress:
    visible = [q for q in template.questions if state.is_visible(q.key)]
    answered = sum(1 for q in visible if not is_unanswered(state.answers.get(q.key)))
    total = len(visible)
    percent = 0 if total == 0 else round_half_up(100 * answered / total)
    return Progress(answered=answered, total=total, percent=percent)


__all__ = ["Progress", "compute_progress"]
