"""Transition table for the debate session.

``can_transition`` decides legality; ``transition`` applies a legal action and
returns the next state.  Illegal actions are no-ops: ``transition`` hands back
the very same state object, so callers detect rejection with ``is``.

Resuming a paused debate restarts at round 1 with no turns, because
``Paused`` does not carry the round or turn history.
"""

from __future__ import annotations

import logging

from session.actions import (
    ACTION_TYPES,
    DebateAction,
    DebateComplete,
    DebateStarted,
    Fail,
    PauseDebate,
    ReceiveTurn,
    Reset,
    ResumeDebate,
    RoundComplete,
    StartDebate,
    UpdateConfig,
)
from session.state import (
    Completed,
    Configuring,
    DebateSession,
    Error,
    Idle,
    Paused,
    Running,
    Starting,
)

logger = logging.getLogger(__name__)


_ALLOWED: dict[type, frozenset[type]] = {
    Idle: frozenset({UpdateConfig, StartDebate, Reset}),
    Configuring: frozenset({UpdateConfig, StartDebate, Reset}),
    Starting: frozenset({DebateStarted, Fail}),
    Running: frozenset({ReceiveTurn, RoundComplete, PauseDebate, DebateComplete, Fail}),
    Paused: frozenset({ResumeDebate, Reset}),
    Completed: frozenset({Reset}),
    Error: frozenset({Reset}),
}


def can_transition(state: DebateSession, action: DebateAction) -> bool:
    """Return True if *action* is legal from *state*."""
    allowed = _ALLOWED.get(type(state))
    if allowed is None:
        raise AssertionError(f"Unhandled session state: {state!r}")
    if type(action) not in ACTION_TYPES:
        raise AssertionError(f"Unhandled action: {action!r}")

    if type(action) not in allowed:
        return False
    if isinstance(state, Paused) and isinstance(action, ResumeDebate):
        return state.can_resume
    return True


def transition(state: DebateSession, action: DebateAction) -> DebateSession:
    """Apply *action* to *state*, or return *state* unchanged if illegal."""
    if not can_transition(state, action):
        logger.debug(
            "Rejected %s in state %s", type(action).__name__, type(state).__name__
        )
        return state

    if isinstance(action, Reset):
        return Idle()
    if isinstance(action, UpdateConfig):
        draft = dict(state.draft) if isinstance(state, Configuring) else {}
        draft.update(action.changes)
        return Configuring(draft=draft)
    if isinstance(action, StartDebate):
        return Starting(config=action.config)
    if isinstance(action, DebateStarted):
        return Running(debate_id=action.debate_id, current_round=1, turns=())
    if isinstance(action, Fail):
        return Error(error=action.error, recoverable=action.recoverable)
    if isinstance(action, ResumeDebate):
        assert isinstance(state, Paused)
        return Running(debate_id=state.debate_id, current_round=1, turns=())

    # Everything left is only legal while running.
    assert isinstance(state, Running)
    if isinstance(action, ReceiveTurn):
        return Running(
            debate_id=state.debate_id,
            current_round=state.current_round,
            turns=state.turns + (action.turn,),
        )
    if isinstance(action, RoundComplete):
        return Running(
            debate_id=state.debate_id,
            current_round=action.round,
            turns=state.turns,
        )
    if isinstance(action, PauseDebate):
        return Paused(debate_id=state.debate_id, reason=action.reason, can_resume=True)
    if isinstance(action, DebateComplete):
        return Completed(
            debate_id=state.debate_id,
            consensus=action.consensus,
            turns=state.turns,
        )
    raise AssertionError(f"Unhandled action: {action!r}")
