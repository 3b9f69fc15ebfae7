"""Push-channel transport – event vocabulary, SSE connector and reconnection."""

from streaming.events import (
    CompleteEvent,
    ConsensusEvent,
    ErrorEvent,
    StreamEvent,
    TurnEvent,
    classify,
)
from streaming.sse import SSEConnector
from streaming.transport import (
    StreamOptions,
    StreamTransport,
    compute_retry_delay,
)

__all__ = [
    "CompleteEvent",
    "ConsensusEvent",
    "ErrorEvent",
    "SSEConnector",
    "StreamEvent",
    "StreamOptions",
    "StreamTransport",
    "TurnEvent",
    "classify",
    "compute_retry_delay",
]
