"""Respondent answer store with visibility cascade.

The store owns one respondent's answers for one template. Every mutation
builds a candidate snapshot, resolves visibility on it, purges the entries of
conditional questions that resolved hidden, and publishes the purged answers
together with the visibility map as a single immutable `AnswerState`.
Listeners only ever observe committed states.

Two cascade modes are supported:

- ``single_pass``: resolve once on the candidate, purge once. Visibility is
  the one computed from the pre-purge candidate, so a follow-up that depends
  on a just-purged answer can stay visible until the next mutation.
- ``fixed_point``: repeat resolve and purge until no hidden target holds an
  entry, so chains of follow-ups (A shows B shows C) collapse immediately.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Tuple
import logging

from app.logic.answer_canonical import is_unanswered
from app.logic.visibility_delta import compute_visibility_delta, suppressed_answers
from app.logic.visibility_rules import is_question_visible, resolve_visibility
from app.models.question_kind import QuestionKind
from app.models.template import Question, Template

logger = logging.getLogger(__name__)

CASCADE_SINGLE_PASS = "single_pass"
CASCADE_FIXED_POINT = "fixed_point"
CASCADE_MODES = frozenset({CASCADE_SINGLE_PASS, CASCADE_FIXED_POINT})


class UnknownQuestionError(KeyError):
    """Raised when a mutation names a question the template does not define."""


@dataclass(frozen=True)
class AnswerState:
    answers: Mapping[str, Any]
    visibility: Mapping[str, bool]
    version: int = 0

    def is_visible(self, key: str) -> bool:
        return is_question_visible(key, self.visibility)

    def visible_keys(self) -> List[str]:
        return [k for k, v in self.visibility.items() if v]


@dataclass(frozen=True)
class MutationResult:
    state: AnswerState
    question: str
    now_visible: Tuple[str, ...] = field(default_factory=tuple)
    now_hidden: Tuple[str, ...] = field(default_factory=tuple)
    suppressed_answers: Tuple[str, ...] = field(default_factory=tuple)


def default_value(question: Question) -> Any:
    if question.type == QuestionKind.MULTIPLE:
        return ()
    if question.type == QuestionKind.DROPDOWN:
        return ""
    return None


def default_answers(template: Template) -> Dict[str, Any]:
    """Return the declared default snapshot: every question at its empty value."""
    return {q.key: default_value(q) for q in template.questions}


def apply_mutation(question: Question, current: Any, value: Any) -> Any:
    """Return the new stored value for ``question`` after applying ``value``.

    Multiple-choice questions toggle membership of a scalar value and replace
    the selection when given a collection; an unanswered value clears the
    selection and blank members are never stored. Every other type replaces.
    """
    if question.type != QuestionKind.MULTIPLE:
        return value
    if is_unanswered(value):
        return ()
    if isinstance(value, (list, tuple, set, frozenset)):
        return tuple(dict.fromkeys(v for v in value if not is_unanswered(v)))
    selected = tuple(current or ())
    if value in selected:
        return tuple(v for v in selected if v != value)
    return selected + (value,)


def cascade(
    template: Template,
    candidate: Dict[str, Any],
    mode: str = CASCADE_SINGLE_PASS,
) -> Tuple[Dict[str, Any], Dict[str, bool], List[str]]:
    """Resolve visibility on ``candidate`` and purge hidden conditional questions.

    Mutates and returns ``candidate`` along with the resolved target
    visibility and the purged keys in purge order.
    """
    purged: List[str] = []
    while True:
        resolved = resolve_visibility(template.logic_rules, candidate)
        hidden = [t for t, visible in resolved.items() if not visible and t in candidate]
        for key in hidden:
            del candidate[key]
        purged.extend(hidden)
        if mode != CASCADE_FIXED_POINT or not hidden:
            return candidate, resolved, purged


def _full_visibility(template: Template, resolved: Mapping[str, bool]) -> Dict[str, bool]:
    return {q.key: is_question_visible(q.key, resolved) for q in template.questions}


class AnswerStore:
    """Holds a respondent's answers and keeps them consistent with visibility."""

    def __init__(self, template: Template, cascade_mode: str = CASCADE_SINGLE_PASS) -> None:
        if cascade_mode not in CASCADE_MODES:
            raise ValueError(f"cascade_mode must be one of {sorted(CASCADE_MODES)}")
        self._template = template
        self._cascade_mode = cascade_mode
        self._listeners: List[Callable[[AnswerState], None]] = []
        self._state = self._baseline(version=0)

    @property
    def template(self) -> Template:
        return self._template

    @property
    def cascade_mode(self) -> str:
        return self._cascade_mode

    @property
    def state(self) -> AnswerState:
        return self._state

    def subscribe(self, listener: Callable[[AnswerState], None]) -> Callable[[], None]:
        """Register ``listener`` for committed states; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def set_answer(self, question: str, value: Any) -> MutationResult:
        q = self._template.question_by_key(question)
        if q is None:
            raise UnknownQuestionError(question)

        previous = self._state
        candidate = dict(previous.answers)
        candidate[q.key] = apply_mutation(q, candidate.get(q.key), value)
        pre_purge = dict(candidate)

        answers, resolved, purged = cascade(self._template, candidate, self._cascade_mode)
        state = AnswerState(
            answers=MappingProxyType(answers),
            visibility=MappingProxyType(_full_visibility(self._template, resolved)),
            version=previous.version + 1,
        )
        now_visible, now_hidden = compute_visibility_delta(previous.visible_keys(), state.visible_keys())
        suppressed = suppressed_answers(purged, pre_purge)
        if suppressed:
            logger.info(
                "answers_suppressed question=%s suppressed=%s version=%d",
                q.key,
                suppressed,
                state.version,
            )
        self._commit(state)
        return MutationResult(
            state=state,
            question=q.key,
            now_visible=tuple(now_visible),
            now_hidden=tuple(now_hidden),
            suppressed_answers=tuple(suppressed),
        )

    def reset(self) -> AnswerState:
        """Restore template defaults and re-resolve visibility from that baseline."""
        state = self._baseline(version=self._state.version + 1)
        logger.info("answers_reset template_id=%s version=%d", self._template.id, state.version)
        self._commit(state)
        return state

    def _baseline(self, version: int) -> AnswerState:
        answers, resolved, _purged = cascade(self._template, default_answers(self._template), self._cascade_mode)
        return AnswerState(
            answers=MappingProxyType(answers),
            visibility=MappingProxyType(_full_visibility(self._template, resolved)),
            version=version,
        )

    def _commit(self, state: AnswerState) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state)


__all__ = [
    "CASCADE_SINGLE_PASS",
    "CASCADE_FIXED_POINT",
    "CASCADE_MODES",
    "UnknownQuestionError",
    "AnswerState",
    "MutationResult",
    "default_value",
    "default_answers",
    "apply_mutation",
    "cascade",
    "AnswerStore",
]
