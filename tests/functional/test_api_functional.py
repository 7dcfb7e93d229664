"""End-to-end functional tests for the HTTP API using FastAPI TestClient."""

from __future__ import annotations

from typing import Any, Dict


API = "/api/v1"


def _create(client, payload: Dict[str, Any]) -> Dict[str, Any]:
    resp = client.post(f"{API}/templates", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()


def _mandatory_payload(base: Dict[str, Any]) -> Dict[str, Any]:
    payload = dict(base)
    payload["questions"] = [
        {"id": "q1", "section": "General", "type": "single", "text": "Fire exits clear?", "options": ["Yes", "No"], "mandatory": True},
        {"id": "q2", "section": "General", "type": "numeric", "text": "Extinguishers checked", "mandatory": True},
        {"id": "q3", "section": "General", "type": "text", "text": "Inspector name", "mandatory": True},
    ]
    return payload


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_template_crud_round_trip(client, template_payload):
    created = _create(client, template_payload())
    template_id = created["id"]
    # Assert 1: server assigns id, starts as draft
    assert template_id
    assert created["status"] == "draft"
    assert [q["id"] for q in created["questions"]] == ["q1", "q2"]

    # Assert 2: read and list
    assert client.get(f"{API}/templates/{template_id}").json()["name"] == "Site safety audit"
    assert template_id in [t["id"] for t in client.get(f"{API}/templates").json()]

    # Assert 3: replace
    payload = template_payload()
    payload["name"] = "Site safety audit v2"
    replaced = client.put(f"{API}/templates/{template_id}", json=payload)
    assert replaced.status_code == 200
    assert replaced.json()["id"] == template_id
    assert replaced.json()["name"] == "Site safety audit v2"

    # Assert 4: publish
    published = client.post(f"{API}/templates/{template_id}/publish")
    assert published.json()["status"] == "published"

    # Assert 5: delete then 404
    assert client.delete(f"{API}/templates/{template_id}").json()["deleted"] is True
    missing = client.get(f"{API}/templates/{template_id}")
    assert missing.status_code == 404
    assert missing.headers["content-type"].startswith("application/problem+json")
    assert missing.json()["code"] == "TEMPLATE_NOT_FOUND"


def test_invalid_template_lists_every_error(client, template_payload):
    payload = template_payload()
    payload["name"] = ""
    payload["complianceThreshold"] = 150
    payload["logicRules"][0]["action"]["target"] = "ghost"
    resp = client.post(f"{API}/templates", json=payload)
    assert resp.status_code == 422
    body = resp.json()
    assert body["code"] == "TEMPLATE_INVALID"
    assert len(body["errors"]) == 3


def test_malformed_body_is_a_problem_response(client):
    resp = client.post(f"{API}/templates", json={"questions": "nope"})
    assert resp.status_code == 422
    assert resp.headers["content-type"].startswith("application/problem+json")
    assert resp.json()["errors"]


def test_rule_summaries_use_question_text(client, template_payload):
    template_id = _create(client, template_payload())["id"]
    rules = client.get(f"{API}/templates/{template_id}/rules").json()
    assert rules == [
        {
            "question": "q1",
            "target": "q2",
            "action": "show",
            "summary": 'If [Fire exits clear?] == "Yes" => SHOW [Extinguishers checked]',
        }
    ]


def test_stateless_visibility_accepts_ids_or_text(client, template_payload):
    template_id = _create(client, template_payload())["id"]
    # Assert 1: empty snapshot hides the follow-up
    body = client.post(f"{API}/templates/{template_id}/visibility", json={"answers": {}}).json()
    assert body["visibility"] == {"q1": True, "q2": False}
    assert body["visible_questions"] == ["q1"]
    assert body["unanswered_references"] == {"q2": ["q1"]}
    # Assert 2: answering by text shows it
    body = client.post(
        f"{API}/templates/{template_id}/visibility",
        json={"answers": {"Fire exits clear?": "Yes"}},
    ).json()
    assert body["visible_questions"] == ["q1", "q2"]
    assert body["unanswered_references"] == {}


def test_session_patch_returns_delta_and_suppressed_answers(client, template_payload):
    template_id = _create(client, template_payload())["id"]
    session = client.post(f"{API}/templates/{template_id}/sessions")
    assert session.status_code == 201
    sid = session.json()["session_id"]
    assert session.json()["visibility"] == {"q1": True, "q2": False}
    assert session.json()["progress"] == {"answered": 0, "total": 1, "percent": 0}

    # Assert 1: showing the follow-up
    shown = client.patch(f"{API}/sessions/{sid}/answers/q1", json={"value": "Yes"}).json()
    assert shown["visibility_delta"] == {"now_visible": ["q2"], "now_hidden": []}
    assert shown["session"]["visibility"]["q2"] is True

    client.patch(f"{API}/sessions/{sid}/answers/q2", json={"value": 12})

    # Assert 2: hiding it purges the answer and reports it
    hidden = client.patch(f"{API}/sessions/{sid}/answers/q1", json={"value": "No"}).json()
    assert hidden["visibility_delta"] == {"now_visible": [], "now_hidden": ["q2"]}
    assert hidden["suppressed_answers"] == ["q2"]
    assert "q2" not in hidden["session"]["answers"]

    # Assert 3: session read reflects the same state
    assert client.get(f"{API}/sessions/{sid}").json()["version"] == 3


def test_session_rejects_unknown_question_and_invalid_values(client, template_payload):
    template_id = _create(client, template_payload())["id"]
    sid = client.post(f"{API}/templates/{template_id}/sessions").json()["session_id"]

    unknown = client.patch(f"{API}/sessions/{sid}/answers/nope", json={"value": "x"})
    assert unknown.status_code == 404
    assert unknown.json()["code"] == "QUESTION_NOT_FOUND"

    bad_option = client.patch(f"{API}/sessions/{sid}/answers/q1", json={"value": "Maybe"})
    assert bad_option.status_code == 422
    assert bad_option.json()["code"] == "ANSWER_INVALID"

    client.patch(f"{API}/sessions/{sid}/answers/q1", json={"value": "Yes"})
    out_of_range = client.patch(f"{API}/sessions/{sid}/answers/q2", json={"value": 99})
    assert out_of_range.status_code == 422

    assert client.get(f"{API}/sessions/unknown").status_code == 404


def test_session_reset_restores_defaults(client, template_payload):
    template_id = _create(client, template_payload())["id"]
    sid = client.post(f"{API}/templates/{template_id}/sessions").json()["session_id"]
    client.patch(f"{API}/sessions/{sid}/answers/q1", json={"value": "Yes"})
    client.patch(f"{API}/sessions/{sid}/answers/q2", json={"value": "3"})

    reset = client.post(f"{API}/sessions/{sid}/reset").json()
    assert reset["answers"] == {"q1": None}
    assert reset["visibility"] == {"q1": True, "q2": False}


def test_session_submit_scores_and_closes_session(client, template_payload):
    template_id = _create(client, template_payload())["id"]
    sid = client.post(f"{API}/templates/{template_id}/sessions").json()["session_id"]
    client.patch(f"{API}/sessions/{sid}/answers/q1", json={"value": "Yes"})
    client.patch(f"{API}/sessions/{sid}/answers/q2", json={"value": "10"})

    resp = client.post(f"{API}/sessions/{sid}/submit", json={"userId": "inspector-7"})
    assert resp.status_code == 201
    record = resp.json()
    # Assert 1: score and verdict
    assert record["score"] == 100
    assert record["passed"] is True
    assert record["meta"]["user_id"] == "inspector-7"
    # Assert 2: the session is gone, the response is stored
    assert client.get(f"{API}/sessions/{sid}").status_code == 404
    assert client.get(f"{API}/responses/{record['id']}").json()["score"] == 100


def test_submit_drops_answers_to_hidden_questions(client, template_payload):
    template_id = _create(client, template_payload())["id"]
    resp = client.post(
        f"{API}/responses",
        json={
            "templateId": template_id,
            "answers": [
                {"questionId": "q1", "value": "No"},
                {"questionText": "Extinguishers checked", "value": "10"},
            ],
        },
    )
    assert resp.status_code == 201
    record = resp.json()
    assert [a["question_id"] for a in record["answers"]] == ["q1"]
    assert record["score"] == 0
    assert record["passed"] is False


def test_missing_mandatory_answers_are_all_listed(client, template_payload):
    template_id = _create(client, _mandatory_payload(template_payload()))["id"]
    resp = client.post(
        f"{API}/responses",
        json={"templateId": template_id, "answers": [{"questionId": "q1", "value": "Yes"}]},
    )
    assert resp.status_code == 422
    body = resp.json()
    assert body["code"] == "MISSING_MANDATORY_ANSWERS"
    assert [m["question_id"] for m in body["missing_questions"]] == ["q2", "q3"]


def test_hidden_mandatory_question_is_exempt(client, template_payload):
    template_id = _create(client, _mandatory_payload(template_payload()))["id"]
    resp = client.post(
        f"{API}/responses",
        json={
            "templateId": template_id,
            "answers": [
                {"questionId": "q1", "value": "No"},
                {"questionId": "q3", "value": "Sam"},
            ],
        },
    )
    assert resp.status_code == 201


def test_submission_rejects_values_outside_their_questions(client, template_payload):
    template_id = _create(client, template_payload())["id"]

    # Assert 1: numeric answer above max is refused, nothing stored
    out_of_range = client.post(
        f"{API}/responses",
        json={
            "templateId": template_id,
            "answers": [{"questionId": "q1", "value": "Yes"}, {"questionId": "q2", "value": 9999}],
        },
    )
    assert out_of_range.status_code == 422
    body = out_of_range.json()
    assert body["code"] == "ANSWERS_INVALID"
    assert [e["question_id"] for e in body["errors"]] == ["q2"]
    assert "out_of_range" in body["errors"][0]["message"]
    assert client.get(f"{API}/templates/{template_id}/responses").json() == []

    # Assert 2: every invalid answer is listed together
    both = client.post(
        f"{API}/responses",
        json={
            "templateId": template_id,
            "answers": [{"questionId": "q1", "value": "Maybe"}, {"questionId": "q2", "value": "lots"}],
        },
    ).json()
    assert both["code"] == "ANSWERS_INVALID"
    assert [e["question_id"] for e in both["errors"]] == ["q1", "q2"]
    assert "unknown_option" in both["errors"][0]["message"]
    assert "type_mismatch" in both["errors"][1]["message"]


def test_templates_with_responses_are_locked(client, template_payload):
    template_id = _create(client, template_payload())["id"]
    client.post(
        f"{API}/responses",
        json={"templateId": template_id, "answers": [{"questionId": "q1", "value": "No"}]},
    )

    assert client.put(f"{API}/templates/{template_id}", json=template_payload()).status_code == 409
    assert client.delete(f"{API}/templates/{template_id}").status_code == 409

    listed = client.get(f"{API}/templates/{template_id}/responses").json()
    assert len(listed) == 1
    filtered = client.get(f"{API}/responses", params={"template_id": template_id}).json()
    assert [r["id"] for r in filtered] == [listed[0]["id"]]


def test_submission_for_unknown_template_is_404(client):
    resp = client.post(f"{API}/responses", json={"templateId": "missing", "answers": []})
    assert resp.status_code == 404
    assert client.get(f"{API}/responses/missing").status_code == 404


def test_request_id_is_echoed_or_generated(client):
    echoed = client.get("/health", headers={"X-Request-Id": "abc-123"})
    assert echoed.headers["X-Request-Id"] == "abc-123"
    generated = client.get("/health")
    assert generated.headers["X-Request-Id"]


def test_session_view_reports_gating_verdict(client, template_payload):
    template_id = _create(client, _mandatory_payload(template_payload()))["id"]
    sid = client.post(f"{API}/templates/{template_id}/sessions").json()["session_id"]

    # Assert 1: hidden q2 is not blocking, visible q1 and q3 are
    gating = client.get(f"{API}/sessions/{sid}").json()["gating"]
    assert gating["ok"] is False
    assert [b["question_id"] for b in gating["blocking_items"]] == ["q1", "q3"]
    assert {b["reason"] for b in gating["blocking_items"]} == {"missing_required_answer"}

    # Assert 2: showing q2 makes it blocking too
    saved = client.patch(f"{API}/sessions/{sid}/answers/q1", json={"value": "Yes"}).json()
    assert [b["question_id"] for b in saved["session"]["gating"]["blocking_items"]] == ["q2", "q3"]

    # Assert 3: answering every visible mandatory question clears the gate
    client.patch(f"{API}/sessions/{sid}/answers/q2", json={"value": 4})
    client.patch(f"{API}/sessions/{sid}/answers/q3", json={"value": "Sam"})
    assert client.get(f"{API}/sessions/{sid}").json()["gating"] == {"ok": True, "blocking_items": []}


def test_replace_without_ids_keeps_question_ids_and_closes_sessions(client, template_payload):
    template_id = _create(client, template_payload())["id"]
    sid = client.post(f"{API}/templates/{template_id}/sessions").json()["session_id"]
    client.patch(f"{API}/sessions/{sid}/answers/q1", json={"value": "Yes"})

    payload = template_payload()
    payload["questions"] = [{k: v for k, v in q.items() if k != "id"} for q in payload["questions"]]
    replaced = client.put(f"{API}/templates/{template_id}", json=payload)
    # Assert 1: ids matched by text survive, so id references in rules still resolve
    assert replaced.status_code == 200, replaced.text
    assert [q["id"] for q in replaced.json()["questions"]] == ["q1", "q2"]
    assert replaced.json()["logic_rules"][0]["action"]["target"] == "q2"

    # Assert 2: sessions on the previous definition are closed
    assert client.get(f"{API}/sessions/{sid}").json()["code"] == "SESSION_NOT_FOUND"

    # Assert 3: deleting the template closes its sessions too
    sid = client.post(f"{API}/templates/{template_id}/sessions").json()["session_id"]
    client.delete(f"{API}/templates/{template_id}")
    assert client.get(f"{API}/sessions/{sid}").status_code == 404
