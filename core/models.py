"""Pydantic models for every record that crosses the wire.

Attributes are snake_case; JSON payloads use camelCase aliases
(``turnId``, ``tokensUsed`` ...), and both spellings are accepted on input.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

ForkMode = Literal["save", "explore"]
ParticipantType = Literal["model", "human"]
ConsensusLevel = Literal["strong", "moderate", "weak", "none"]
DebateStatus = Literal["pending", "running", "paused", "completed", "error"]


def _check_uuid(value: str) -> str:
    uuid.UUID(value)
    return value


UuidStr = Annotated[str, AfterValidator(_check_uuid)]


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_wire(self) -> dict[str, Any]:
        """Dump with camelCase keys, ready for JSON encoding."""
        return self.model_dump(mode="json", by_alias=True)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

class DebateConfig(_WireModel):
    """Validated debate configuration; frozen once built."""

    question: str = Field(min_length=10, max_length=500)
    participants: list[str] = Field(min_length=2, max_length=7)
    rounds: int = Field(default=4, ge=1, le=10)
    consensus_threshold: float = Field(default=0.8, ge=0.5, le=1.0)
    fork_mode: ForkMode = "save"

    @field_validator("participants")
    @classmethod
    def _unique_participants(cls, value: list[str]) -> list[str]:
        if len(set(value)) != len(value):
            raise ValueError("Participants must be unique")
        return value


CONFIG_DEFAULTS: dict[str, Any] = {
    "rounds": 4,
    "consensus_threshold": 0.8,
    "fork_mode": "save",
}


# ---------------------------------------------------------------------------
# Turns & consensus
# ---------------------------------------------------------------------------

class Turn(_WireModel):
    """A single speaking turn as delivered by the server."""

    turn_id: UuidStr
    branch_id: UuidStr
    participant_id: str
    participant_type: ParticipantType
    content: str
    confidence: float | None = Field(default=None, ge=0, le=1)
    tokens_used: int = Field(ge=0)
    cost_usd: float = Field(ge=0)
    latency_ms: int = Field(ge=0)
    created_at: datetime


class ConsensusResult(_WireModel):
    """Final agreement measurement, produced once per debate."""

    level: ConsensusLevel
    percentage: float = Field(ge=0, le=1)
    supporting: int = Field(ge=0)
    dissenting: int = Field(ge=0)
    confidence: float = Field(ge=0, le=1)


# ---------------------------------------------------------------------------
# Branches
# ---------------------------------------------------------------------------

class BranchInfo(_WireModel):
    """One node of the branch forest.

    A root has neither a parent nor a fork turn and sits at depth 0; every
    other branch has both.  The depth-versus-parent rule across branches is
    checked by ``BranchForest.check_invariants``.
    """

    branch_id: UuidStr
    parent_branch_id: UuidStr | None = None
    fork_turn_id: UuidStr | None = None
    name: str
    fork_mode: ForkMode
    depth: int = Field(ge=0)
    created_at: datetime

    @model_validator(mode="after")
    def _root_shape(self) -> BranchInfo:
        if (self.parent_branch_id is None) != (self.depth == 0):
            raise ValueError("depth must be 0 exactly when parentBranchId is null")
        if (self.parent_branch_id is None) != (self.fork_turn_id is None):
            raise ValueError("forkTurnId must be null exactly when parentBranchId is null")
        return self

    @property
    def is_root(self) -> bool:
        return self.parent_branch_id is None


# ---------------------------------------------------------------------------
# Debate snapshot (one-shot API)
# ---------------------------------------------------------------------------

class DebateResponse(_WireModel):
    """Server-side snapshot of a debate."""

    debate_id: UuidStr
    status: DebateStatus
    question: str
    current_round: int = Field(ge=0)
    total_rounds: int = Field(gt=0)
    turns: list[Turn]
    created_at: datetime
    updated_at: datetime
