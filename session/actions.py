"""Actions accepted by the session state machine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Union

from core.errors import ApiError
from core.models import ConsensusResult, DebateConfig, Turn


@dataclass(frozen=True)
class UpdateConfig:
    changes: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class StartDebate:
    config: DebateConfig


@dataclass(frozen=True)
class DebateStarted:
    debate_id: str


@dataclass(frozen=True)
class ReceiveTurn:
    turn: Turn


@dataclass(frozen=True)
class RoundComplete:
    round: int


@dataclass(frozen=True)
class PauseDebate:
    reason: str


@dataclass(frozen=True)
class ResumeDebate:
    pass


@dataclass(frozen=True)
class DebateComplete:
    consensus: ConsensusResult


@dataclass(frozen=True)
class Fail:
    """Move the session into its ``Error`` state."""

    error: ApiError
    recoverable: bool = False


@dataclass(frozen=True)
class Reset:
    pass


DebateAction = Union[
    UpdateConfig,
    StartDebate,
    DebateStarted,
    ReceiveTurn,
    RoundComplete,
    PauseDebate,
    ResumeDebate,
    DebateComplete,
    Fail,
    Reset,
]

ACTION_TYPES: tuple[type, ...] = (
    UpdateConfig,
    StartDebate,
    DebateStarted,
    ReceiveTurn,
    RoundComplete,
    PauseDebate,
    ResumeDebate,
    DebateComplete,
    Fail,
    Reset,
)
