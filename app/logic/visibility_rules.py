"""Visibility resolution for conditional follow-up questions.

Centralizes the show/hide precedence used by the answer store, the stateless
visibility endpoint and submission handling to avoid duplication and drift.

Resolution per target question:

- any firing ``hide`` rule hides the target, whatever its show rules say;
- otherwise a target with show rules is visible only when one of them fires;
- a target with only hide rules (none firing) stays visible;
- a question no show/hide rule targets is not conditional and always visible.

``skip`` actions are reserved for navigation and never affect visibility.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Iterable, Mapping
import logging

from app.logic.rules import rule_fires
from app.models.template import LogicRule, Template

logger = logging.getLogger(__name__)

VISIBILITY_ACTIONS = frozenset({"show", "hide"})

def _visibility_rules(rules: Iterable[LogicRule]) -> list[LogicRule]:
    return [r for r in rules if r.action.type in VISIBILITY_ACTIONS]

def conditional_targets(rules: Iterable[LogicRule]) -> set[str]:
    """Return the keys of questions targeted by at least one show/hide rule."""
    return {r.action.target for r in _visibility_rules(rules)}

def resolve_visibility(rules: Iterable[LogicRule], snapshot: Mapping[str, Any]) -> dict[str, bool]:
    """Compute visibility for every conditional target given an answer snapshot."""
    grouped: dict[str, list[LogicRule]] = defaultdict(list)
    for rule in _visibility_rules(rules):
        grouped[rule.action.target].append(rule)

    visibility: dict[str, bool] = {}
    for target, target_rules in grouped.items():
        show_matched = False
        hide_matched = False
        has_show = False
        for rule in target_rules:
            fired = rule_fires(rule, snapshot)
            if rule.action.type == "show":
                has_show = True
                show_matched = show_matched or fired
            else:
                hide_matched = hide_matched or fired
        if hide_matched:
            visibility[target] = False
        elif has_show:
            visibility[target] = show_matched
        else:
            visibility[target] = True
    logger.debug(
        "visibility_resolved target_count=%d hidden=%s",
        len(visibility),
        sorted(t for t, v in visibility.items() if not v),
    )
    return visibility

def is_question_visible(key: str, visibility: Mapping[str, bool]) -> bool:
    """Return the resolved visibility, defaulting to visible for non-targets."""
    return bool(visibility.get(key, True))

def visibility_map(template: Template, snapshot: Mapping[str, Any]) -> dict[str, bool]:
    """Return visibility for every question of the template, in template order."""
    resolved = resolve_visibility(template.logic_rules, snapshot)
    return {q.key: is_question_visible(q.key, resolved) for q in template.questions}


__all__ = [
    "VISIBILITY_ACTIONS",
    "conditional_targets",
    "resolve_visibility",
    "is_question_visible",
    "visibility_map",
]
