"""Condition evaluation for conditional visibility.

A condition compares the current answer of one referenced question with a
literal. An unanswered reference never satisfies a condition, whatever the
operator. Ordering operators compare numerically; equality operators compare
canonical strings, so ``==`` against a multiple-choice selection checks the
joined selection (``"A,B"``), not membership.
"""

from __future__ import annotations

import operator as _op
from typing import Any, Callable, Mapping

from app.logic.answer_canonical import (
    canonicalize_answer_value,
    coerce_number,
    is_unanswered,
)
from app.models.template import NUMERIC_OPERATORS, Condition

_NUMERIC: dict[str, Callable[[float, float], bool]] = {
    "<": _op.lt,
    ">": _op.gt,
    "<=": _op.le,
    ">=": _op.ge,
}


def evaluate_condition(condition: Condition, snapshot: Mapping[str, Any]) -> bool:
    raw = snapshot.get(condition.question)
    if is_unanswered(raw):
        return False

    if condition.operator in NUMERIC_OPERATORS:
        left = coerce_number(raw)
        right = coerce_number(condition.value)
        if left is None or right is None:
            return False
        return _NUMERIC[condition.operator](left, right)

    left_s = canonicalize_answer_value(raw)
    right_s = canonicalize_answer_value(condition.value)
    if condition.operator == "==":
        return left_s == right_s
    if condition.operator == "!=":
        return left_s != right_s
    return False


__all__ = ["evaluate_condition"]
