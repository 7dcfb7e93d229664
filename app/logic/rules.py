"""Rule evaluation: folding a rule's conditions into a single verdict."""

from __future__ import annotations

from typing import Any, Mapping

from app.logic.answer_canonical import is_unanswered
from app.logic.conditions import evaluate_condition
from app.models.template import Condition, LogicRule


def evaluate_conditions(conditions: list[Condition], snapshot: Mapping[str, Any]) -> list[bool]:
    """Evaluate every condition independently, in order."""
    return [evaluate_condition(c, snapshot) for c in conditions]


def fold_conditions(conditions: list[Condition], values: list[bool]) -> bool:
    """Left-fold condition results using each condition's connective.

    The first condition seeds the accumulator and its connective is unused.
    An empty list never fires.
    """
    if not conditions:
        return False
    acc = values[0]
    for cond, value in zip(conditions[1:], values[1:]):
        if cond.logic_op == "OR":
            acc = acc or value
        else:
            acc = acc and value
    return acc


def rule_fires(rule: LogicRule, snapshot: Mapping[str, Any]) -> bool:
    return fold_conditions(rule.conditions, evaluate_conditions(rule.conditions, snapshot))


def unanswered_references(rule: LogicRule, snapshot: Mapping[str, Any]) -> list[str]:
    """Return referenced question keys that are currently unanswered (deduplicated, in order)."""
    seen: list[str] = []
    for cond in rule.conditions:
        if is_unanswered(snapshot.get(cond.question)) and cond.question not in seen:
            seen.append(cond.question)
    return seen


def unanswered_by_target(rules: list[LogicRule], snapshot: Mapping[str, Any]) -> dict[str, list[str]]:
    """Map each rule target to the unanswered questions its non-firing rules still wait on."""
    pending: dict[str, list[str]] = {}
    for rule in rules:
        if rule_fires(rule, snapshot):
            continue
        for key in unanswered_references(rule, snapshot):
            waiting = pending.setdefault(rule.action.target, [])
            if key not in waiting:
                waiting.append(key)
    return pending


def _format_value(value: Any) -> str:
    return f'"{value}"'


def describe_rule(rule: LogicRule, labels: Mapping[str, str] | None = None) -> str:
    """Render a rule as a one-line human readable sentence.

    ``labels`` maps question keys to display text; unknown keys render as-is.
    Example: ``If [Smoke alarm fitted] == "No" => SHOW [Reason]``.
    """
    labels = labels or {}
    parts: list[str] = []
    for i, cond in enumerate(rule.conditions):
        label = labels.get(cond.question, cond.question)
        prefix = f"{cond.logic_op} " if i > 0 else ""
        parts.append(f"{prefix}[{label}] {cond.operator} {_format_value(cond.value)}")
    target = labels.get(rule.action.target, rule.action.target)
    clause = " ".join(parts) if parts else "(no conditions)"
    return f"If {clause} => {rule.action.type.upper()} [{target}]"


__all__ = [
    "evaluate_conditions",
    "fold_conditions",
    "rule_fires",
    "unanswered_references",
    "unanswered_by_target",
    "describe_rule",
]
