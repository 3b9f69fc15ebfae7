"""Debate session lifecycle states.

Exactly one variant is current at a time.  Each is a frozen dataclass so a
transition always produces a new value and the previous one stays intact.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Union

from core.errors import ApiError
from core.models import ConsensusResult, DebateConfig, Turn


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Configuring:
    draft: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Starting:
    config: DebateConfig


@dataclass(frozen=True)
class Running:
    debate_id: str
    current_round: int = 1
    turns: tuple[Turn, ...] = ()


@dataclass(frozen=True)
class Paused:
    debate_id: str
    reason: str
    can_resume: bool = True


@dataclass(frozen=True)
class Completed:
    debate_id: str
    consensus: ConsensusResult
    turns: tuple[Turn, ...] = ()


@dataclass(frozen=True)
class Error:
    error: ApiError
    recoverable: bool = False


DebateSession = Union[Idle, Configuring, Starting, Running, Paused, Completed, Error]

SESSION_TYPES: tuple[type, ...] = (
    Idle,
    Configuring,
    Starting,
    Running,
    Paused,
    Completed,
    Error,
)


def state_name(state: DebateSession) -> str:
    return type(state).__name__
