"""Resilient push-channel transport for a single debate.

``StreamTransport`` keeps one push connection open for as long as the caller
wants events.  Messages are classified against the event vocabulary in
``streaming.events`` and forwarded to a handler; anything that does not
classify is dropped without closing the channel.  When the channel itself
drops, reconnects are scheduled with exponential backoff, and once the retry
budget is spent a single non-recoverable ``error`` event is emitted instead
of raising.

The transport's resources are held in one supervisor slot that is always in
exactly one of three states: idle, waiting on a retry timer, or running a
connection.  Every state change goes through ``_replace``, which releases the
previous occupant before the new one takes over, so there is never more than
one connection or one pending timer.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Protocol

from streaming.events import (
    CompleteEvent,
    ConsensusEvent,
    ErrorEvent,
    TurnEvent,
    classify,
    unrecoverable,
)
from streaming.sse import Connector, SSEConnector

logger = logging.getLogger(__name__)

StreamEventHandler = Callable[[TurnEvent | ConsensusEvent | ErrorEvent | CompleteEvent], None]

MAX_RETRIES_MESSAGE = "Maximum reconnection attempts exceeded"


class TimerHandle(Protocol):
    def cancel(self) -> Any: ...


Timer = Callable[[float, Callable[[], None]], TimerHandle]


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StreamOptions:
    """Reconnection behaviour."""

    max_retries: int = 5
    initial_retry_delay_ms: int = 1000
    max_retry_delay_ms: int = 30_000

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        if self.initial_retry_delay_ms < 0 or self.max_retry_delay_ms < 0:
            raise ValueError("retry delays must be non-negative")

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any] | None) -> StreamOptions:
        """Build options from a config section, ignoring unknown keys."""
        raw = raw or {}
        known = {k: int(raw[k]) for k in ("max_retries", "initial_retry_delay_ms", "max_retry_delay_ms") if k in raw}
        return cls(**known)


def compute_retry_delay(retry_count: int, options: StreamOptions) -> int:
    """Backoff in ms after ``retry_count`` earlier consecutive failures."""
    return min(options.initial_retry_delay_ms * 2**retry_count, options.max_retry_delay_ms)


# ---------------------------------------------------------------------------
# Supervisor slot
# ---------------------------------------------------------------------------

class _Idle:
    pass


@dataclass(eq=False)
class _PendingRetry:
    delay_ms: int
    handle: TimerHandle | None = None


@dataclass(eq=False)
class _OpenConnection:
    task: asyncio.Task[None] | None = None


_Slot = _Idle | _PendingRetry | _OpenConnection


def _current_task() -> asyncio.Task[Any] | None:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------

class StreamTransport:
    """Push-channel connection for one debate with automatic reconnection.

    Must be created while an asyncio event loop is running: construction
    opens the first connection immediately.

    Parameters
    ----------
    debate_id : str
        Debate whose stream is followed.
    on_event : StreamEventHandler
        Called synchronously with every classified event.
    base_url : str
        API root; the stream lives at ``{base_url}/debates/{debate_id}/stream``.
    options : StreamOptions | None
        Retry budget and backoff bounds.
    connector : Connector | None
        Opens the channel; defaults to SSE over ``httpx``.
    timer : Timer | None
        Schedules reconnects; defaults to the running loop's ``call_later``.
    """

    def __init__(
        self,
        debate_id: str,
        on_event: StreamEventHandler,
        *,
        base_url: str = "",
        options: StreamOptions | None = None,
        connector: Connector | None = None,
        timer: Timer | None = None,
    ) -> None:
        self.debate_id = debate_id
        self.url = f"{base_url.rstrip('/')}/debates/{debate_id}/stream"
        self.options = options or StreamOptions()
        self._on_event = on_event
        self._connector: Connector = connector or SSEConnector()
        self._timer = timer
        self._retry_count = 0
        self._slot: _Slot = _Idle()
        self._closed = False

        logger.info("Opening stream for debate %s at %s", debate_id, self.url)
        self._connect()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Cancel any pending reconnect and close the connection. Idempotent."""
        if not self._closed:
            logger.info("Closing stream for debate %s", self.debate_id)
        self._closed = True
        self._replace(_Idle())

    def reconnect(self) -> None:
        """Drop the current connection and reconnect now, skipping backoff."""
        logger.info("Manual reconnect for debate %s", self.debate_id)
        self._closed = False
        self._retry_count = 0
        self._replace(_Idle())
        self._connect()

    @property
    def retry_count(self) -> int:
        return self._retry_count

    @property
    def is_connected(self) -> bool:
        return isinstance(self._slot, _OpenConnection)

    @property
    def has_pending_retry(self) -> bool:
        return isinstance(self._slot, _PendingRetry)

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Supervisor
    # ------------------------------------------------------------------

    def _replace(self, new: _Slot) -> None:
        old, self._slot = self._slot, new
        if isinstance(old, _PendingRetry) and old.handle is not None:
            old.handle.cancel()
        elif isinstance(old, _OpenConnection) and old.task is not None:
            # A connection replacing itself (from inside its own handler)
            # notices the lost ownership and exits on its own.
            if not old.task.done() and old.task is not _current_task():
                old.task.cancel()

    def _connect(self) -> None:
        slot = _OpenConnection()
        self._replace(slot)
        slot.task = asyncio.get_running_loop().create_task(
            self._consume(slot), name=f"stream:{self.debate_id}"
        )

    def _schedule_retry(self, delay_ms: int) -> None:
        slot = _PendingRetry(delay_ms=delay_ms)
        timer = self._timer or asyncio.get_running_loop().call_later
        slot.handle = timer(delay_ms / 1000, lambda: self._fire_retry(slot))
        self._replace(slot)

    def _fire_retry(self, slot: _PendingRetry) -> None:
        if self._slot is not slot:
            return
        logger.debug("Reconnecting stream for debate %s", self.debate_id)
        self._connect()

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    async def _consume(self, slot: _OpenConnection) -> None:
        failure: Exception | None = None
        try:
            stream = self._connector(self.url)
            try:
                async for raw in stream:
                    if self._slot is not slot:
                        return
                    self._on_message(raw)
                    if self._slot is not slot:
                        return
            finally:
                aclose = getattr(stream, "aclose", None)
                if aclose is not None:
                    await aclose()
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001
            failure = exc

        if self._slot is slot:
            self._on_connection_lost(failure)

    def _on_message(self, raw: str) -> None:
        event = classify(raw)
        if event is None:
            return
        self._retry_count = 0
        self._dispatch(event)

    def _on_connection_lost(self, failure: Exception | None) -> None:
        reason = str(failure) if failure is not None else "stream ended"
        if self._retry_count < self.options.max_retries:
            delay_ms = compute_retry_delay(self._retry_count, self.options)
            self._retry_count += 1
            logger.warning(
                "Stream for debate %s lost (%s). Retrying in %d ms (attempt %d/%d)",
                self.debate_id,
                reason,
                delay_ms,
                self._retry_count,
                self.options.max_retries,
            )
            self._schedule_retry(delay_ms)
            return

        logger.error(
            "Stream for debate %s lost (%s); max retries exceeded", self.debate_id, reason
        )
        self._replace(_Idle())
        self._dispatch(unrecoverable(MAX_RETRIES_MESSAGE))

    def _dispatch(self, event: TurnEvent | ConsensusEvent | ErrorEvent | CompleteEvent) -> None:
        try:
            self._on_event(event)
        except Exception:  # noqa: BLE001
            logger.exception(
                "Stream handler failed on %s event for debate %s", event.type, self.debate_id
            )

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(debate_id={self.debate_id!r}, "
            f"state={type(self._slot).__name__.lstrip('_')}, retries={self._retry_count})"
        )
