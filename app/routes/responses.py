"""Response submission and retrieval endpoints."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends

from app.config import AppConfig, get_config
from app.logic.problem_factory import (
    problem_answers_invalid,
    problem_missing_mandatory,
    problem_response_not_found,
    problem_template_not_found,
    raise_problem,
)
from app.logic.repository_responses import get_response, list_responses
from app.logic.repository_templates import get_template
from app.logic.submission import InvalidAnswersError, MissingMandatoryAnswersError, submit_response
from app.models.response import ResponseRecord, SubmissionRequest
from app.routes.templates import load_template_or_404


router = APIRouter()


@router.post(
    "/responses",
    status_code=201,
    response_model=ResponseRecord,
    summary="Submit answers; rejects missing mandatory answers, then scores and stores",
    operation_id="submitResponse",
    tags=["Responses"],
)
def submit_response_route(body: SubmissionRequest, config: AppConfig = Depends(get_config)) -> ResponseRecord:
    template = get_template(body.template_id)
    if template is None:
        raise_problem(problem_template_not_found(body.template_id))
    try:
        return submit_response(
            template,
            body,
            cascade_mode=config.engine.cascade_mode,
            critical_forces_fail=config.engine.critical_forces_fail,
        )
    except InvalidAnswersError as exc:
        raise_problem(problem_answers_invalid(exc.errors))
    except MissingMandatoryAnswersError as exc:
        raise_problem(problem_missing_mandatory(exc.missing))


@router.get(
    "/responses",
    response_model=List[ResponseRecord],
    summary="List responses, optionally for one template",
    operation_id="listResponses",
    tags=["Responses"],
)
def list_responses_route(template_id: Optional[str] = None) -> List[ResponseRecord]:
    return list_responses(template_id)


@router.get(
    "/responses/{response_id}",
    response_model=ResponseRecord,
    summary="Get a stored response",
    operation_id="getResponse",
    tags=["Responses"],
)
def get_response_route(response_id: str) -> ResponseRecord:
    record = get_response(response_id)
    if record is None:
        raise_problem(problem_response_not_found(response_id))
    return record


@router.get(
    "/templates/{template_id}/responses",
    response_model=List[ResponseRecord],
    summary="List responses submitted against a template",
    operation_id="listTemplateResponses",
    tags=["Responses"],
)
def list_template_responses_route(template_id: str) -> List[ResponseRecord]:
    load_template_or_404(template_id)
    return list_responses(template_id)


__all__ = ["router"]
