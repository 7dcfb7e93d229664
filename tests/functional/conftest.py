from __future__ import annotations

"""Functional test bootstrap.

Points the app at a file-backed SQLite database before any import of
app.main so configuration and the engine pick it up, and exposes template
builders shared by the engine and API tests.
"""

import os
import pathlib
from typing import Any, Dict, Iterator

import pytest

_ROOT = pathlib.Path(__file__).resolve().parents[2]
_DB_FILE = _ROOT / "tmp" / "functional_tests.db"
_DB_FILE.parent.mkdir(parents=True, exist_ok=True)
if _DB_FILE.exists():
    _DB_FILE.unlink()

os.environ["TEST_DATABASE_URL"] = f"sqlite:///{_DB_FILE}"
os.environ["DATABASE_URL"] = os.environ["TEST_DATABASE_URL"]
os.environ["AUTO_APPLY_MIGRATIONS"] = "1"
os.environ.setdefault("CASCADE_MODE", "single_pass")

from app.models.template import Template  # noqa: E402


def scenario_template_payload() -> Dict[str, Any]:
    """Q1 (single Yes/No, weight 2) shows Q2 (numeric, weight 1) when answered Yes."""
    return {
        "name": "Site safety audit",
        "description": "Monthly walk-through",
        "auditCategory": "safety",
        "sections": [{"title": "General"}],
        "questions": [
            {
                "id": "q1",
                "section": "General",
                "type": "single",
                "text": "Fire exits clear?",
                "options": ["Yes", "No"],
                "weight": 2,
            },
            {
                "id": "q2",
                "section": "General",
                "type": "numeric",
                "text": "Extinguishers checked",
                "min": 0,
                "max": 50,
                "weight": 1,
            },
        ],
        "logicRules": [
            {
                "question": "q1",
                "conditions": [{"question": "q1", "operator": "==", "value": "Yes"}],
                "action": {"type": "show", "target": "q2"},
            }
        ],
        "scoringEnabled": True,
        "complianceThreshold": 80,
    }


def build_template(**overrides: Any) -> Template:
    payload = scenario_template_payload()
    payload.update(overrides)
    return Template.model_validate(payload)


@pytest.fixture
def scenario_template() -> Template:
    return build_template()


@pytest.fixture
def client() -> Iterator[Any]:
    from fastapi.testclient import TestClient

    from app.main import create_app

    with TestClient(create_app()) as c:
        yield c


@pytest.fixture
def make_template():
    """Return a builder producing the scenario template with field overrides."""
    return build_template


@pytest.fixture
def template_payload():
    """Return a builder for a fresh scenario template request body."""
    return scenario_template_payload
