"""Template authoring endpoints: CRUD, publishing and rule previews."""

from __future__ import annotations

from typing import Any, Dict, List
import logging

from fastapi import APIRouter

from app.logic.problem_factory import (
    problem_template_invalid,
    problem_template_locked,
    problem_template_not_found,
    raise_problem,
)
from app.logic.repository_responses import template_has_responses
from app.logic.repository_templates import (
    create_template,
    delete_template,
    get_template,
    list_templates,
    replace_template,
    set_template_status,
)
from app.logic.rules import describe_rule, unanswered_by_target
from app.logic.sessions import close_sessions_for_template
from app.logic.validation import TemplateValidationError, carry_question_ids, validate_template
from app.logic.visibility_rules import visibility_map
from app.models.question_kind import QuestionKind
from app.models.response_types import RuleSummary
from app.models.template import Template
from app.models.visibility import VisibilityRequest, VisibilityResult


router = APIRouter()
logger = logging.getLogger(__name__)


def load_template_or_404(template_id: str) -> Template:
    template = get_template(template_id)
    if template is None:
        raise_problem(problem_template_not_found(template_id))
    return template


def _validated(template: Template) -> Template:
    try:
        return validate_template(template)
    except TemplateValidationError as exc:
        raise_problem(problem_template_invalid(exc.errors))


@router.post(
    "/templates",
    status_code=201,
    response_model=Template,
    summary="Create a template (validated at save time)",
    operation_id="createTemplate",
    tags=["Templates"],
)
def create_template_route(template: Template) -> Template:
    return create_template(_validated(template))


@router.get(
    "/templates",
    response_model=List[Template],
    summary="List templates",
    operation_id="listTemplates",
    tags=["Templates"],
)
def list_templates_route() -> List[Template]:
    return list_templates()


@router.get(
    "/templates/{template_id}",
    response_model=Template,
    summary="Get a template",
    operation_id="getTemplate",
    tags=["Templates"],
)
def get_template_route(template_id: str) -> Template:
    return load_template_or_404(template_id)


@router.put(
    "/templates/{template_id}",
    response_model=Template,
    summary="Replace a template that no response references yet",
    operation_id="replaceTemplate",
    tags=["Templates"],
)
def replace_template_route(template_id: str, template: Template) -> Template:
    current = load_template_or_404(template_id)
    if template_has_responses(template_id):
        raise_problem(problem_template_locked(template_id))
    stored = replace_template(template_id, _validated(carry_question_ids(current, template)))
    if stored is None:
        raise_problem(problem_template_not_found(template_id))
    # Open sessions still hold the previous definition
    closed = close_sessions_for_template(template_id)
    if closed:
        logger.info("template_sessions_closed template_id=%s count=%d", template_id, len(closed))
    return stored


@router.delete(
    "/templates/{template_id}",
    summary="Delete a template that no response references yet",
    operation_id="deleteTemplate",
    tags=["Templates"],
)
def delete_template_route(template_id: str) -> Dict[str, Any]:
    load_template_or_404(template_id)
    if template_has_responses(template_id):
        raise_problem(problem_template_locked(template_id))
    delete_template(template_id)
    close_sessions_for_template(template_id)
    return {"deleted": True, "template_id": template_id}


@router.post(
    "/templates/{template_id}/publish",
    response_model=Template,
    summary="Publish a draft template",
    operation_id="publishTemplate",
    tags=["Templates"],
)
def publish_template_route(template_id: str) -> Template:
    current = load_template_or_404(template_id)
    _validated(current)
    published = set_template_status(template_id, "published")
    if published is None:
        raise_problem(problem_template_not_found(template_id))
    logger.info("template_published template_id=%s", template_id)
    return published


@router.get(
    "/templates/{template_id}/rules",
    response_model=List[RuleSummary],
    summary="Human-readable summaries of a template's logic rules",
    operation_id="describeTemplateRules",
    tags=["Logic"],
)
def describe_rules_route(template_id: str) -> List[RuleSummary]:
    template = load_template_or_404(template_id)
    labels = {q.key: q.text for q in template.questions}
    return [
        RuleSummary(
            question=rule.question,
            target=rule.action.target,
            action=rule.action.type,
            summary=describe_rule(rule, labels),
        )
        for rule in template.logic_rules
    ]


@router.post(
    "/templates/{template_id}/visibility",
    response_model=VisibilityResult,
    summary="Resolve question visibility for an answer snapshot",
    operation_id="resolveVisibility",
    tags=["Logic"],
)
def resolve_visibility_route(template_id: str, body: VisibilityRequest) -> VisibilityResult:
    template = load_template_or_404(template_id)
    snapshot: Dict[str, Any] = {}
    for ref, value in body.answers.items():
        q = template.question_by_key(ref)
        if q is None:
            continue
        if q.type == QuestionKind.MULTIPLE and isinstance(value, list):
            value = tuple(value)
        snapshot[q.key] = value
    full = visibility_map(template, snapshot)
    return VisibilityResult(
        visibility=full,
        visible_questions=[k for k, v in full.items() if v],
        unanswered_references=unanswered_by_target(template.logic_rules, snapshot),
    )


__all__ = ["router", "load_template_or_404"]
