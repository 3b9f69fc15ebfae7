"""Shared fixtures for the test suite.

Provides a FakeConnector that stands in for the SSE push channel, a
FakeTimer that records reconnect delays and fires them on demand, plus
pre-built turns, consensus results and branches.
"""

from __future__ import annotations

import asyncio
import json
import uuid
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Callable

import pytest

from core.models import BranchInfo, ConsensusResult, Turn
from session.store import SessionStore
from streaming.transport import StreamOptions, StreamTransport


# ---------------------------------------------------------------------------
# Fake push channel
# ---------------------------------------------------------------------------

_DROP = object()


class FakeConnection:
    """One scripted channel: tests push payloads in, the transport reads them."""

    def __init__(self, url: str) -> None:
        self.url = url
        self.closed = False
        self._queue: asyncio.Queue[Any] = asyncio.Queue()

    def send(self, payload: str | dict[str, Any]) -> None:
        if not isinstance(payload, str):
            payload = json.dumps(payload)
        self._queue.put_nowait(payload)

    def drop(self, error: Exception | None = None) -> None:
        """End the channel, cleanly or by raising *error*."""
        self._queue.put_nowait(error if error is not None else _DROP)

    async def messages(self) -> AsyncIterator[str]:
        try:
            while True:
                item = await self._queue.get()
                if item is _DROP:
                    return
                if isinstance(item, Exception):
                    raise item
                yield item
        finally:
            self.closed = True


class FakeConnector:
    """Connector that records every connection the transport opens."""

    def __init__(self) -> None:
        self.connections: list[FakeConnection] = []

    def __call__(self, url: str) -> AsyncIterator[str]:
        connection = FakeConnection(url)
        self.connections.append(connection)
        return connection.messages()

    @property
    def latest(self) -> FakeConnection:
        return self.connections[-1]


# ---------------------------------------------------------------------------
# Manual timer
# ---------------------------------------------------------------------------

class FakeTimerHandle:
    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self.delay = delay
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeTimer:
    """Records scheduled reconnects instead of waiting for them."""

    def __init__(self) -> None:
        self.handles: list[FakeTimerHandle] = []

    def __call__(self, delay: float, callback: Callable[[], None]) -> FakeTimerHandle:
        handle = FakeTimerHandle(delay, callback)
        self.handles.append(handle)
        return handle

    @property
    def delays_ms(self) -> list[int]:
        return [round(h.delay * 1000) for h in self.handles]

    @property
    def pending(self) -> list[FakeTimerHandle]:
        return [h for h in self.handles if not h.cancelled and not h.fired]

    def fire(self) -> None:
        """Run every pending callback, as if its delay had elapsed."""
        for handle in self.pending:
            handle.fired = True
            handle.callback()


async def drain(cycles: int = 10) -> None:
    """Let scheduled tasks run until they block again."""
    for _ in range(cycles):
        await asyncio.sleep(0)


# ---------------------------------------------------------------------------
# Sample records
# ---------------------------------------------------------------------------

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
MAIN_BRANCH_ID = "00000000-0000-4000-8000-000000000001"


def make_turn(content: str = "Remote work raises output.", tokens_used: int = 150, **overrides: Any) -> Turn:
    fields: dict[str, Any] = {
        "turn_id": str(uuid.uuid4()),
        "branch_id": MAIN_BRANCH_ID,
        "participant_id": "a",
        "participant_type": "model",
        "content": content,
        "confidence": 0.7,
        "tokens_used": tokens_used,
        "cost_usd": 0.002,
        "latency_ms": 420,
        "created_at": NOW,
    }
    fields.update(overrides)
    return Turn(**fields)


def make_consensus(percentage: float = 0.9, **overrides: Any) -> ConsensusResult:
    fields: dict[str, Any] = {
        "level": "strong",
        "percentage": percentage,
        "supporting": 9,
        "dissenting": 1,
        "confidence": 0.85,
    }
    fields.update(overrides)
    return ConsensusResult(**fields)


def make_branch(
    branch_id: str | None = None,
    parent: BranchInfo | None = None,
    name: str = "main",
    **overrides: Any,
) -> BranchInfo:
    """A root branch, or a child of *parent* forked at a fresh turn."""
    fields: dict[str, Any] = {
        "branch_id": branch_id or str(uuid.uuid4()),
        "parent_branch_id": parent.branch_id if parent else None,
        "fork_turn_id": str(uuid.uuid4()) if parent else None,
        "name": name,
        "fork_mode": "save",
        "depth": parent.depth + 1 if parent else 0,
        "created_at": NOW,
    }
    fields.update(overrides)
    return BranchInfo(**fields)


def turn_event(turn: Turn) -> dict[str, Any]:
    return {"type": "turn", "data": turn.to_wire()}


def consensus_event(result: ConsensusResult) -> dict[str, Any]:
    return {"type": "consensus", "data": result.to_wire()}


def error_event(message: str, recoverable: bool) -> dict[str, Any]:
    return {"type": "error", "data": {"message": message, "recoverable": recoverable}}


def complete_event(debate_id: str) -> dict[str, Any]:
    return {"type": "complete", "data": {"debateId": debate_id}}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def timer() -> FakeTimer:
    return FakeTimer()


@pytest.fixture
def store(connector: FakeConnector, timer: FakeTimer) -> SessionStore:
    """Store whose transports run over the fake channel and manual timer."""

    def factory(debate_id: str, handler: Any) -> StreamTransport:
        return StreamTransport(
            debate_id,
            handler,
            base_url="http://test/api",
            options=StreamOptions(),
            connector=connector,
            timer=timer,
        )

    return SessionStore(transport_factory=factory)


@pytest.fixture
def sample_turn() -> Turn:
    return make_turn()


@pytest.fixture
def sample_consensus() -> ConsensusResult:
    return make_consensus()
