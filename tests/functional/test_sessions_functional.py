"""Functional tests for the respondent session registry lifecycle."""

from __future__ import annotations

import pytest

from app.logic.inmemory_state import SESSION_TOUCHED, SESSIONS
from app.logic.sessions import (
    close_sessions_for_template,
    create_session,
    get_session,
    prune_idle_sessions,
)


@pytest.fixture
def registry():
    saved = (dict(SESSIONS), dict(SESSION_TOUCHED))
    SESSIONS.clear()
    SESSION_TOUCHED.clear()
    yield SESSIONS
    SESSIONS.clear()
    SESSION_TOUCHED.clear()
    SESSIONS.update(saved[0])
    SESSION_TOUCHED.update(saved[1])


def test_idle_sessions_are_pruned(registry, scenario_template):
    stale, _ = create_session(scenario_template, "single_pass")
    fresh, _ = create_session(scenario_template, "single_pass")
    SESSION_TOUCHED[stale] = 100.0
    SESSION_TOUCHED[fresh] = 950.0

    # Assert 1: a zero limit keeps everything
    assert prune_idle_sessions(0, now=1000.0) == []
    # Assert 2: only the session idle past the limit goes
    assert prune_idle_sessions(600, now=1000.0) == [stale]
    assert get_session(stale) is None
    assert get_session(fresh) is not None
    assert stale not in SESSION_TOUCHED


def test_sessions_close_with_their_template(registry, scenario_template, make_template):
    other = make_template(id="other-template")
    own = scenario_template.model_copy(update={"id": "own-template"})
    first, _ = create_session(own, "single_pass")
    second, _ = create_session(own, "fixed_point")
    keep, _ = create_session(other, "single_pass")

    assert sorted(close_sessions_for_template("own-template")) == sorted([first, second])
    assert list(registry) == [keep]
    assert close_sessions_for_template("own-template") == []
