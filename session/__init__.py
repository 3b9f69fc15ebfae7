"""Debate session – lifecycle states, transition table and the store."""

from session.actions import (
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
from session.machine import can_transition, transition
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
from session.store import SessionStore, StreamStatus

__all__ = [
    "Completed",
    "Configuring",
    "DebateAction",
    "DebateComplete",
    "DebateSession",
    "DebateStarted",
    "Error",
    "Fail",
    "Idle",
    "PauseDebate",
    "Paused",
    "ReceiveTurn",
    "Reset",
    "ResumeDebate",
    "RoundComplete",
    "Running",
    "SessionStore",
    "StartDebate",
    "Starting",
    "StreamStatus",
    "UpdateConfig",
    "can_transition",
    "transition",
]
