"""Functional tests for save-time template validation and answer checks."""

from __future__ import annotations

import pytest

from app.logic.gating import evaluate_gating, missing_mandatory
from app.logic.validation import (
    AnswerValidationError,
    TemplateValidationError,
    carry_question_ids,
    validate_answer_value,
    validate_template,
)
from app.models.template import Question, Template


def test_valid_template_is_returned_normalized(scenario_template):
    validated = validate_template(scenario_template)
    assert validated.question_keys() == ["q1", "q2"]
    assert validated.logic_rules[0].action.target == "q2"


def test_text_references_are_rewritten_to_ids(make_template):
    template = make_template(
        logicRules=[
            {
                "conditions": [{"question": "Fire exits clear?", "operator": "==", "value": "Yes"}],
                "action": {"type": "show", "target": "Extinguishers checked"},
            }
        ]
    )
    rule = validate_template(template).logic_rules[0]
    # Assert 1: condition and target use ids
    assert rule.conditions[0].question == "q1"
    assert rule.action.target == "q2"
    # Assert 2: owner defaulted from the first condition then resolved
    assert rule.question == "q1"


def test_legacy_action_shape_is_accepted(make_template):
    template = make_template(
        logicRules=[
            {
                "question": "q1",
                "conditions": [{"question": "q1", "operator": "==", "value": "Yes"}],
                "action": {"show": "q2"},
            }
        ]
    )
    action = validate_template(template).logic_rules[0].action
    assert action.type == "show"
    assert action.target == "q2"


def test_every_problem_is_collected_before_raising():
    template = Template.model_validate(
        {
            "name": "  ",
            "sections": [{"title": "A"}, {"title": "A"}],
            "questions": [
                {"id": "x", "type": "single", "text": "Choose", "options": ["only", " "]},
                {"id": "x", "type": "numeric", "text": "Count", "min": 5, "max": 1},
                {"id": "y", "type": "text", "text": "Count", "section": "Missing"},
            ],
            "logicRules": [
                {
                    "conditions": [{"question": "ghost", "operator": "==", "value": ""}],
                    "action": {"type": "show", "target": "nowhere"},
                }
            ],
            "complianceThreshold": 120,
        }
    )
    with pytest.raises(TemplateValidationError) as exc:
        validate_template(template)
    errors = exc.value.errors
    expected_fragments = [
        "name: required",
        "duplicate section 'A'",
        "at least two options",
        "duplicate id 'x'",
        "min cannot be greater than max",
        "duplicate question text 'Count'",
        "unknown section 'Missing'",
        "unknown question 'ghost'",
        "a comparison value is required",
        "unknown question 'nowhere'",
        "compliance_threshold",
    ]
    for fragment in expected_fragments:
        assert any(fragment in e for e in errors), f"missing error containing {fragment!r}: {errors}"


def test_rule_cannot_show_its_own_question(make_template):
    template = make_template(
        logicRules=[
            {
                "question": "q2",
                "conditions": [{"question": "q1", "operator": "==", "value": "Yes"}],
                "action": {"type": "show", "target": "q2"},
            }
        ]
    )
    with pytest.raises(TemplateValidationError) as exc:
        validate_template(template)
    assert any("cannot target its own question" in e for e in exc.value.errors)


def test_hide_rule_may_target_its_own_question(make_template):
    template = make_template(
        logicRules=[
            {
                "question": "q2",
                "conditions": [{"question": "q1", "operator": "==", "value": "No"}],
                "action": {"type": "hide", "target": "q2"},
            }
        ]
    )
    assert validate_template(template).logic_rules[0].action.type == "hide"


def test_non_numeric_questions_drop_bounds_and_blank_options(make_template):
    template = make_template(
        questions=[
            {"id": "q1", "type": "single", "text": "Fire exits clear?", "options": ["Yes", "", "No"]},
            {"id": "q2", "type": "text", "text": "Extinguishers checked", "min": 1, "max": 2},
        ]
    )
    validated = validate_template(template)
    assert validated.questions[0].option_values() == ["Yes", "No"]
    assert validated.questions[1].min is None and validated.questions[1].max is None


def test_numeric_answer_checks():
    question = Question(id="n", type="numeric", text="Count", min=0, max=10)
    # Assert 1: clearing always allowed
    validate_answer_value(question, None)
    validate_answer_value(question, "")
    # Assert 2: within range
    validate_answer_value(question, "7")
    # Assert 3: not a number / out of range
    with pytest.raises(AnswerValidationError, match="type_mismatch"):
        validate_answer_value(question, "seven")
    with pytest.raises(AnswerValidationError, match="out_of_range"):
        validate_answer_value(question, 11)


def test_choice_answer_checks():
    single = Question(id="s", type="single", text="Pick", options=["Yes", "No"])
    multi = Question(id="m", type="multiple", text="Many", options=["A", "B"])

    validate_answer_value(single, "Yes")
    validate_answer_value(multi, ["A", "B"])
    validate_answer_value(multi, "A")
    with pytest.raises(AnswerValidationError, match="unknown_option"):
        validate_answer_value(single, "Maybe")
    with pytest.raises(AnswerValidationError, match="single option"):
        validate_answer_value(single, ["Yes", "No"])
    with pytest.raises(AnswerValidationError, match="unknown_option"):
        validate_answer_value(multi, ["A", "C"])


def test_gating_reports_every_visible_unanswered_mandatory_question(make_template):
    template = make_template(
        questions=[
            {"id": "q1", "type": "single", "text": "Fire exits clear?", "options": ["Yes", "No"], "mandatory": True},
            {"id": "q2", "type": "numeric", "text": "Extinguishers checked", "mandatory": True},
            {"id": "q3", "type": "text", "text": "Notes", "mandatory": True},
        ]
    )
    visibility = {"q1": True, "q2": False, "q3": True}

    # Assert 1: hidden q2 exempt, whitespace-only text counts as missing
    verdict = evaluate_gating(template, {"q1": "No", "q3": "   "}, visibility)
    assert verdict["ok"] is False
    assert [item["question_id"] for item in verdict["blocking_items"]] == ["q3"]

    # Assert 2: all visible mandatory answered
    assert evaluate_gating(template, {"q1": "No", "q3": "ok"}, visibility) == {"ok": True, "blocking_items": []}
    assert missing_mandatory(template, {}, visibility) == [template.questions[0], template.questions[2]]


def test_replacement_questions_without_ids_keep_stored_ids(scenario_template):
    incoming = Template.model_validate(
        {
            "name": "Site safety audit v2",
            "sections": [{"title": "General"}],
            "questions": [
                {"section": "General", "type": "single", "text": "Fire exits clear?", "options": ["Yes", "No"]},
                {"id": "fresh", "section": "General", "type": "numeric", "text": "Extinguishers checked"},
                {"section": "General", "type": "text", "text": "Inspector name"},
            ],
        }
    )
    carried = carry_question_ids(scenario_template, incoming)
    keys = carried.question_keys()
    # Assert 1: same text and no explicit id reuses the stored id
    assert keys[0] == "q1"
    # Assert 2: an explicit id is never overridden
    assert keys[1] == "fresh"
    # Assert 3: new questions keep their generated id
    assert keys[2] not in {"q1", "q2", "fresh"}
    assert keys[2] == incoming.questions[2].id
