"""Read-only views derived from a ``SessionStore``.

Each selector is a pure function of the store's current contents and never
mutates it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from branching.forest import ForkDraft
from core.errors import ApiError
from core.models import BranchInfo, ConsensusResult, Turn
from session.state import Completed, Error, Paused, Running

if TYPE_CHECKING:
    from session.store import SessionStore


def is_running(store: SessionStore) -> bool:
    return isinstance(store.session, Running)


def current_round(store: SessionStore) -> int:
    """Round in progress, or 0 when the debate is not running."""
    session = store.session
    return session.current_round if isinstance(session, Running) else 0


def turns(store: SessionStore) -> tuple[Turn, ...]:
    """Turns of a running or completed debate, empty otherwise."""
    session = store.session
    if isinstance(session, (Running, Completed)):
        return session.turns
    return ()


def turn_count(store: SessionStore) -> int:
    return len(turns(store))


def has_turns(store: SessionStore) -> bool:
    return turn_count(store) > 0


def last_turn(store: SessionStore) -> Turn | None:
    history = turns(store)
    return history[-1] if history else None


def total_tokens(store: SessionStore) -> int:
    return sum(t.tokens_used for t in turns(store))


def total_cost_usd(store: SessionStore) -> float:
    return sum(t.cost_usd for t in turns(store))


def debate_id(store: SessionStore) -> str | None:
    session = store.session
    if isinstance(session, (Running, Paused, Completed)):
        return session.debate_id
    return None


def debate_error(store: SessionStore) -> ApiError | None:
    session = store.session
    return session.error if isinstance(session, Error) else None


def consensus(store: SessionStore) -> ConsensusResult | None:
    session = store.session
    return session.consensus if isinstance(session, Completed) else None


def is_terminal(store: SessionStore) -> bool:
    return isinstance(store.session, (Completed, Error))


def is_paused(store: SessionStore) -> bool:
    return isinstance(store.session, Paused)


def can_resume(store: SessionStore) -> bool:
    session = store.session
    return isinstance(session, Paused) and session.can_resume


def active_branch(store: SessionStore) -> BranchInfo | None:
    return store.forest.active_branch


def can_fork(store: SessionStore) -> bool:
    """A fork may start while running and no other draft is open."""
    return is_running(store) and store.forest.fork_draft is None


def fork_draft(store: SessionStore) -> ForkDraft | None:
    return store.forest.fork_draft


def branch_count(store: SessionStore) -> int:
    return len(store.forest)


def all_branches(store: SessionStore) -> list[BranchInfo]:
    return store.forest.branches


def get_branch(store: SessionStore, branch_id: str) -> BranchInfo | None:
    return store.forest.get(branch_id)


def is_config_valid(store: SessionStore) -> bool:
    """Cheap readiness check: a long-enough question and two participants."""
    question = store.config.get("question") or ""
    participants = store.config.get("participants") or []
    return len(question) >= 10 and len(participants) >= 2
