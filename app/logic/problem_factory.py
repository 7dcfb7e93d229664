"""Centralised construction of problem+json payloads.

Provides helpers that return dicts with stable codes so route modules do not
embed string literals, and a raising shortcut for handlers.
"""

from __future__ import annotations

from typing import Any, Dict, List, NoReturn
import logging

from fastapi import HTTPException


logger = logging.getLogger(__name__)


def _problem(status: int, title: str, detail: str, code: str, **extra: Any) -> Dict[str, Any]:
    problem: Dict[str, Any] = {"title": title, "status": status, "detail": detail, "code": code}
    problem.update(extra)
    logger.info("error_handler.handle code=%s status=%d", code, status)
    return problem


def problem_template_not_found(template_id: str) -> Dict[str, Any]:
    return _problem(404, "Template not found", f"No template with id {template_id}", "TEMPLATE_NOT_FOUND")


def problem_template_invalid(errors: List[str]) -> Dict[str, Any]:
    return _problem(422, "Invalid template", "Template failed validation", "TEMPLATE_INVALID", errors=list(errors))


def problem_template_locked(template_id: str) -> Dict[str, Any]:
    """Return a 409 problem: a template referenced by a response is immutable."""
    return _problem(
        409,
        "Conflict",
        f"Template {template_id} is referenced by submitted responses and cannot change",
        "TEMPLATE_LOCKED",
    )


def problem_session_not_found(session_id: str) -> Dict[str, Any]:
    return _problem(404, "Session not found", f"No session with id {session_id}", "SESSION_NOT_FOUND")


def problem_question_not_found(question: str) -> Dict[str, Any]:
    return _problem(404, "Question not found", f"No question '{question}' in template", "QUESTION_NOT_FOUND")


def problem_answer_invalid(message: str) -> Dict[str, Any]:
    return _problem(422, "Invalid answer", message, "ANSWER_INVALID")


def problem_answers_invalid(errors: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Return a 422 problem listing every submitted answer that failed its checks."""
    return _problem(
        422,
        "Invalid answers",
        "One or more answers do not fit their questions",
        "ANSWERS_INVALID",
        errors=list(errors),
    )


def problem_missing_mandatory(missing: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Return a 422 problem listing every unanswered mandatory question."""
    return _problem(
        422,
        "Missing mandatory answers",
        "Please answer all mandatory questions",
        "MISSING_MANDATORY_ANSWERS",
        missing_questions=list(missing),
    )


def problem_response_not_found(response_id: str) -> Dict[str, Any]:
    return _problem(404, "Response not found", f"No response with id {response_id}", "RESPONSE_NOT_FOUND")


def raise_problem(problem: Dict[str, Any]) -> NoReturn:
    raise HTTPException(status_code=int(problem["status"]), detail=problem)


__all__ = [
    "problem_template_not_found",
    "problem_template_invalid",
    "problem_template_locked",
    "problem_session_not_found",
    "problem_question_not_found",
    "problem_answer_invalid",
    "problem_answers_invalid",
    "problem_missing_mandatory",
    "problem_response_not_found",
    "raise_problem",
]
