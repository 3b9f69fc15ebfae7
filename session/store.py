"""SessionStore – the single mutable owner of session, branches and stream.

The store runs every debate action through the transition table, keeps the
branch forest and fork draft, and supervises the stream transport: a
transport exists exactly while the session is ``Running`` and is torn down
whenever the session leaves that state or the store is closed.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable

import pydantic

from branching.forest import BranchForest, ForkDraft
from core.errors import (
    ApiError,
    ApiResult,
    ConflictError,
    NetworkError,
    error_from_exception,
    validation_error_from_pydantic,
)
from core.models import CONFIG_DEFAULTS, BranchInfo, ConsensusResult, DebateConfig, Turn
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
from session.state import DebateSession, Idle, Running, state_name
from streaming.events import CompleteEvent, ConsensusEvent, ErrorEvent, TurnEvent
from streaming.transport import StreamEventHandler, StreamOptions, StreamTransport

logger = logging.getLogger(__name__)

TransportFactory = Callable[[str, StreamEventHandler], StreamTransport]
Listener = Callable[["SessionStore"], None]


class StreamStatus(str, Enum):
    """Connection status surfaced to observers."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"
    ERROR = "error"


class SessionStore:
    """Owns the debate session, the branch forest and the live transport.

    Parameters
    ----------
    transport_factory : TransportFactory | None
        Builds a transport for ``(debate_id, handler)``.  Defaults to a
        ``StreamTransport`` against *base_url* with *stream_options*.
    base_url : str
        API root used by the default factory.
    stream_options : StreamOptions | None
        Reconnection settings used by the default factory.
    """

    def __init__(
        self,
        *,
        transport_factory: TransportFactory | None = None,
        base_url: str = "",
        stream_options: StreamOptions | None = None,
    ) -> None:
        self.base_url = base_url
        self.stream_options = stream_options or StreamOptions()
        self._transport_factory = transport_factory or self._default_transport

        self.session: DebateSession = Idle()
        self.forest = BranchForest()
        self.config: dict[str, Any] = dict(CONFIG_DEFAULTS)
        self.stream_status = StreamStatus.DISCONNECTED
        self.stream_error: str | None = None

        self._transport: StreamTransport | None = None
        self._listeners: list[Listener] = []

    # ------------------------------------------------------------------
    # Debate lifecycle
    # ------------------------------------------------------------------

    def update_config(self, **changes: Any) -> bool:
        """Merge *changes* into the draft configuration."""
        applied = self.dispatch(UpdateConfig(changes=changes))
        if applied:
            self.config.update(changes)
        return applied

    def start_debate(self) -> ApiResult[DebateConfig]:
        """Validate the merged configuration and enter ``Starting``.

        An invalid configuration returns a ``ValidationError`` and leaves the
        session untouched, as does calling this from a state that cannot start.
        """
        try:
            config = DebateConfig.model_validate(self.config)
        except pydantic.ValidationError as exc:
            error = validation_error_from_pydantic(exc)
            logger.info("Debate configuration rejected: %d issue(s)", len(error.issues))
            return ApiResult.failure(error)

        if not self.dispatch(StartDebate(config=config)):
            return ApiResult.failure(
                ConflictError(
                    message=f"Cannot start a debate while {state_name(self.session)}",
                    conflicting_resource="session",
                )
            )
        return ApiResult.success(config)

    def debate_started(self, debate_id: str) -> bool:
        return self.dispatch(DebateStarted(debate_id=debate_id))

    def receive_turn(self, turn: Turn) -> bool:
        return self.dispatch(ReceiveTurn(turn=turn))

    def round_complete(self, round: int) -> bool:
        return self.dispatch(RoundComplete(round=round))

    def pause_debate(self, reason: str) -> bool:
        return self.dispatch(PauseDebate(reason=reason))

    def resume_debate(self) -> bool:
        return self.dispatch(ResumeDebate())

    def complete_debate(self, consensus: ConsensusResult) -> bool:
        return self.dispatch(DebateComplete(consensus=consensus))

    def fail(self, error: ApiError, recoverable: bool = False) -> bool:
        return self.dispatch(Fail(error=error, recoverable=recoverable))

    def reset(self) -> bool:
        """Return to ``Idle`` and forget branches, draft, configuration and stream errors."""
        if not can_transition(self.session, Reset()):
            logger.debug("Ignored Reset while %s", state_name(self.session))
            return False
        self.forest.clear()
        self.config = dict(CONFIG_DEFAULTS)
        self.stream_status = StreamStatus.DISCONNECTED
        self.stream_error = None
        return self.dispatch(Reset())

    def dispatch(self, action: DebateAction) -> bool:
        """Run *action* through the transition table; False if it was rejected."""
        previous = self.session
        nxt = transition(previous, action)
        if nxt is previous:
            logger.debug(
                "Ignored %s while %s", type(action).__name__, state_name(previous)
            )
            return False

        self.session = nxt
        if type(nxt) is not type(previous):
            logger.info("Session %s -> %s", state_name(previous), state_name(nxt))
        self._sync_transport()
        self._notify()
        return True

    # ------------------------------------------------------------------
    # Branching
    # ------------------------------------------------------------------

    def add_branch(self, branch: BranchInfo) -> None:
        self.forest.add_branch(branch)
        self._notify()

    def select_branch(self, branch_id: str | None) -> None:
        self.forest.select_branch(branch_id)
        self._notify()

    def start_fork(self, turn_id: str, branch_id: str) -> ForkDraft:
        """Start a draft using the configured default fork mode."""
        draft = self.forest.start_fork(turn_id, branch_id, self.config.get("fork_mode", "save"))
        self._notify()
        return draft

    def update_fork_draft(self, content: str) -> bool:
        updated = self.forest.update_fork_draft(content)
        if updated:
            self._notify()
        return updated

    def cancel_fork(self) -> None:
        self.forest.cancel_fork()
        self._notify()

    def complete_fork(self, new_branch_id: str) -> None:
        self.forest.complete_fork(new_branch_id)
        self._notify()

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* after every change; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:  # noqa: BLE001
                logger.exception("Store listener %r failed", listener)

    # ------------------------------------------------------------------
    # Transport supervision
    # ------------------------------------------------------------------

    @property
    def transport(self) -> StreamTransport | None:
        return self._transport

    def reconnect(self) -> bool:
        """Force the live transport to reconnect now; False if there is none."""
        if self._transport is None:
            return False
        self._set_status(StreamStatus.CONNECTING)
        self._transport.reconnect()
        return True

    def close(self) -> None:
        """Tear down the transport. The session itself is left as it is."""
        self._close_transport()

    def __enter__(self) -> SessionStore:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _sync_transport(self) -> None:
        session = self.session
        if isinstance(session, Running):
            if self._transport is not None and self._transport.debate_id == session.debate_id:
                return
            self._close_transport()
            self.stream_error = None
            self.stream_status = StreamStatus.CONNECTING
            try:
                self._transport = self._transport_factory(session.debate_id, self._handle_event)
            except Exception as exc:  # noqa: BLE001
                logger.exception("Could not open stream for debate %s", session.debate_id)
                error = error_from_exception(exc)
                self.stream_status = StreamStatus.ERROR
                self.stream_error = error.message
                self.fail(error, recoverable=False)
            return
        self._close_transport()

    def _close_transport(self) -> None:
        transport, self._transport = self._transport, None
        if transport is None:
            return
        transport.close()
        if self.stream_status is not StreamStatus.ERROR:
            self.stream_status = StreamStatus.DISCONNECTED

    def _default_transport(self, debate_id: str, handler: StreamEventHandler) -> StreamTransport:
        return StreamTransport(
            debate_id,
            handler,
            base_url=self.base_url,
            options=self.stream_options,
        )

    def _set_status(self, status: StreamStatus, error: str | None = None) -> None:
        if status is self.stream_status and error == self.stream_error:
            return
        self.stream_status = status
        self.stream_error = error
        self._notify()

    def _handle_event(self, event: TurnEvent | ConsensusEvent | ErrorEvent | CompleteEvent) -> None:
        if isinstance(event, ErrorEvent):
            if event.data.recoverable:
                logger.warning("Recoverable stream error: %s", event.data.message)
                self._set_status(StreamStatus.RECONNECTING, event.data.message)
                return
            logger.error("Unrecoverable stream error: %s", event.data.message)
            self.stream_status = StreamStatus.ERROR
            self.stream_error = event.data.message
            self.fail(NetworkError(message=event.data.message), recoverable=False)
            return

        if self.stream_status is not StreamStatus.CONNECTED:
            self._set_status(StreamStatus.CONNECTED)

        if isinstance(event, TurnEvent):
            self.receive_turn(event.data)
        elif isinstance(event, ConsensusEvent):
            self.complete_debate(event.data)
        elif isinstance(event, CompleteEvent):
            logger.info("Stream for debate %s complete", event.data.debate_id)
            self._close_transport()
            self._notify()
        else:
            raise AssertionError(f"Unhandled stream event: {event!r}")
