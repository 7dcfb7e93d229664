"""Respondent session endpoints.

A session wraps an in-memory AnswerStore. Each answer PATCH returns the new
answers and visibility together with the visibility delta and the answers the
cascade suppressed.
"""

from __future__ import annotations

from typing import Any, Dict
import logging

from fastapi import APIRouter, Body, Depends

from app.config import AppConfig, get_config
from app.logic.answer_store import AnswerStore
from app.logic.gating import evaluate_gating
from app.logic.problem_factory import (
    problem_answer_invalid,
    problem_answers_invalid,
    problem_missing_mandatory,
    problem_question_not_found,
    problem_session_not_found,
    problem_template_not_found,
    raise_problem,
)
from app.logic.progress import compute_progress
from app.logic.repository_templates import get_template
from app.logic.sessions import close_session, create_session, get_session
from app.logic.submission import (
    InvalidAnswersError,
    MissingMandatoryAnswersError,
    answer_items_from_state,
    submit_response,
)
from app.logic.validation import AnswerValidationError, validate_answer_value
from app.models.answer_upsert import AnswerUpsertModel
from app.models.response import ResponseRecord, SubmissionMeta, SubmissionRequest
from app.models.response_types import GatingView, ProgressView, SavedResult, SessionView
from app.models.visibility import VisibilityDelta
from app.routes.templates import load_template_or_404


router = APIRouter()
logger = logging.getLogger(__name__)


def _session_or_404(session_id: str) -> AnswerStore:
    store = get_session(session_id)
    if store is None:
        raise_problem(problem_session_not_found(session_id))
    return store


def _jsonable_answers(answers: Dict[str, Any]) -> Dict[str, Any]:
    return {k: list(v) if isinstance(v, tuple) else v for k, v in answers.items()}


def session_view(session_id: str, store: AnswerStore) -> SessionView:
    state = store.state
    progress = compute_progress(store.template, state)
    return SessionView(
        session_id=session_id,
        template_id=str(store.template.id),
        version=state.version,
        answers=_jsonable_answers(dict(state.answers)),
        visibility=dict(state.visibility),
        progress=ProgressView(**progress._asdict()),
        gating=GatingView(**evaluate_gating(store.template, state.answers, state.visibility)),
    )


@router.post(
    "/templates/{template_id}/sessions",
    status_code=201,
    response_model=SessionView,
    summary="Start a respondent session for a template",
    operation_id="createSession",
    tags=["Sessions"],
)
def create_session_route(template_id: str, config: AppConfig = Depends(get_config)) -> SessionView:
    template = load_template_or_404(template_id)
    session_id, store = create_session(template, config.engine.cascade_mode, config.engine.session_idle_seconds)
    return session_view(session_id, store)


@router.get(
    "/sessions/{session_id}",
    response_model=SessionView,
    summary="Read a session's answers, visibility and progress",
    operation_id="getSession",
    tags=["Sessions"],
)
def get_session_route(session_id: str) -> SessionView:
    return session_view(session_id, _session_or_404(session_id))


@router.patch(
    "/sessions/{session_id}/answers/{question}",
    response_model=SavedResult,
    summary="Set an answer and re-resolve visibility",
    operation_id="setAnswer",
    tags=["Sessions"],
)
def set_answer_route(session_id: str, question: str, body: AnswerUpsertModel) -> SavedResult:
    store = _session_or_404(session_id)
    q = store.template.question_by_key(question)
    if q is None:
        raise_problem(problem_question_not_found(question))
    try:
        validate_answer_value(q, body.value)
    except AnswerValidationError as exc:
        raise_problem(problem_answer_invalid(str(exc)))

    result = store.set_answer(q.key, body.value)
    return SavedResult(
        saved=True,
        question_id=result.question,
        session=session_view(session_id, store),
        visibility_delta=VisibilityDelta(
            now_visible=list(result.now_visible),
            now_hidden=list(result.now_hidden),
        ),
        suppressed_answers=list(result.suppressed_answers),
    )


@router.post(
    "/sessions/{session_id}/reset",
    response_model=SessionView,
    summary="Reset a session to the template defaults",
    operation_id="resetSession",
    tags=["Sessions"],
)
def reset_session_route(session_id: str) -> SessionView:
    store = _session_or_404(session_id)
    store.reset()
    return session_view(session_id, store)


@router.post(
    "/sessions/{session_id}/submit",
    status_code=201,
    response_model=ResponseRecord,
    summary="Submit a session's answers for scoring",
    operation_id="submitSession",
    tags=["Sessions", "Responses"],
)
def submit_session_route(
    session_id: str,
    meta: SubmissionMeta | None = Body(default=None),
    config: AppConfig = Depends(get_config),
) -> ResponseRecord:
    store = _session_or_404(session_id)
    template_id = str(store.template.id)
    # Score against the stored template, which may have been removed meanwhile
    template = get_template(template_id)
    if template is None:
        raise_problem(problem_template_not_found(template_id))
    request = SubmissionRequest(
        template_id=template_id,
        answers=answer_items_from_state(template, store.state),
        meta=meta or SubmissionMeta(),
    )
    try:
        record = submit_response(
            template,
            request,
            cascade_mode=config.engine.cascade_mode,
            critical_forces_fail=config.engine.critical_forces_fail,
        )
    except InvalidAnswersError as exc:
        raise_problem(problem_answers_invalid(exc.errors))
    except MissingMandatoryAnswersError as exc:
        raise_problem(problem_missing_mandatory(exc.missing))
    close_session(session_id)
    return record


@router.delete(
    "/sessions/{session_id}",
    summary="Discard a session",
    operation_id="deleteSession",
    tags=["Sessions"],
)
def delete_session_route(session_id: str) -> Dict[str, Any]:
    _session_or_404(session_id)
    close_session(session_id)
    return {"deleted": True, "session_id": session_id}


__all__ = ["router", "session_view"]
