"""Tests for the read-only store selectors."""

from __future__ import annotations

import pytest

from core.errors import NetworkError
from session import selectors
from session.state import Completed, Error, Paused, Running
from session.store import SessionStore
from tests.conftest import MAIN_BRANCH_ID, make_branch, make_consensus, make_turn


@pytest.fixture
def idle() -> SessionStore:
    return SessionStore()


def _with_session(session) -> SessionStore:
    store = SessionStore()
    store.session = session
    return store


class TestSessionViews:
    def test_idle(self, idle):
        assert not selectors.is_running(idle)
        assert selectors.current_round(idle) == 0
        assert selectors.turns(idle) == ()
        assert selectors.last_turn(idle) is None
        assert selectors.debate_id(idle) is None
        assert selectors.consensus(idle) is None
        assert selectors.debate_error(idle) is None
        assert not selectors.is_terminal(idle)

    def test_running_totals(self):
        first = make_turn(tokens_used=100, cost_usd=0.25)
        second = make_turn(tokens_used=50, cost_usd=0.5)
        store = _with_session(Running(debate_id="d1", current_round=2, turns=(first, second)))

        assert selectors.is_running(store)
        assert selectors.current_round(store) == 2
        assert selectors.turn_count(store) == 2
        assert selectors.has_turns(store)
        assert selectors.last_turn(store) == second
        assert selectors.total_tokens(store) == 150
        assert selectors.total_cost_usd(store) == pytest.approx(0.75)
        assert selectors.debate_id(store) == "d1"

    def test_completed(self):
        consensus = make_consensus()
        store = _with_session(Completed(debate_id="d1", consensus=consensus, turns=(make_turn(),)))
        assert selectors.consensus(store) == consensus
        assert selectors.is_terminal(store)
        assert selectors.turn_count(store) == 1

    def test_error(self):
        error = NetworkError(message="down")
        store = _with_session(Error(error=error))
        assert selectors.debate_error(store) == error
        assert selectors.is_terminal(store)
        assert selectors.debate_id(store) is None

    @pytest.mark.parametrize("can_resume", [True, False])
    def test_paused(self, can_resume):
        store = _with_session(Paused(debate_id="d1", reason="break", can_resume=can_resume))
        assert selectors.is_paused(store)
        assert selectors.can_resume(store) is can_resume
        assert selectors.debate_id(store) == "d1"
        assert selectors.turns(store) == ()


class TestBranchViews:
    def test_branches(self, idle):
        root = make_branch(MAIN_BRANCH_ID)
        idle.add_branch(root)
        idle.select_branch(MAIN_BRANCH_ID)
        assert selectors.active_branch(idle) == root
        assert selectors.branch_count(idle) == 1
        assert selectors.all_branches(idle) == [root]
        assert selectors.get_branch(idle, MAIN_BRANCH_ID) == root
        assert selectors.get_branch(idle, "missing") is None

    def test_can_fork_only_while_running_without_draft(self):
        store = _with_session(Running(debate_id="d1"))
        assert selectors.can_fork(store)
        store.forest.start_fork("t1", MAIN_BRANCH_ID, "save")
        assert not selectors.can_fork(store)
        assert selectors.fork_draft(store).parent_turn_id == "t1"

    def test_cannot_fork_when_idle(self, idle):
        assert not selectors.can_fork(idle)


class TestConfigValidity:
    def test_incomplete(self, idle):
        assert not selectors.is_config_valid(idle)
        idle.update_config(question="Is remote work better?", participants=["a"])
        assert not selectors.is_config_valid(idle)

    def test_ready(self, idle):
        idle.update_config(question="Is remote work better?", participants=["a", "b"])
        assert selectors.is_config_valid(idle)
