"""Stream event vocabulary and payload classification.

A push-channel message is one JSON object ``{"type": ..., "data": ...}``
where ``type`` is one of ``turn | consensus | error | complete``.  Anything
else is not an event: ``classify`` returns None for it.
"""

from __future__ import annotations

import json
import logging
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from core.models import ConsensusResult, Turn

logger = logging.getLogger(__name__)


class _EventModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class ErrorPayload(_EventModel):
    message: str
    recoverable: bool


class CompletePayload(_EventModel):
    debate_id: str


class TurnEvent(_EventModel):
    type: Literal["turn"] = "turn"
    data: Turn


class ConsensusEvent(_EventModel):
    type: Literal["consensus"] = "consensus"
    data: ConsensusResult


class ErrorEvent(_EventModel):
    type: Literal["error"] = "error"
    data: ErrorPayload


class CompleteEvent(_EventModel):
    type: Literal["complete"] = "complete"
    data: CompletePayload


StreamEvent = Annotated[
    Union[TurnEvent, ConsensusEvent, ErrorEvent, CompleteEvent],
    Field(discriminator="type"),
]

_EVENT_ADAPTER: TypeAdapter[StreamEvent] = TypeAdapter(StreamEvent)


def classify(raw: str | bytes) -> TurnEvent | ConsensusEvent | ErrorEvent | CompleteEvent | None:
    """Parse and validate one message payload, or return None if it is not an event."""
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError) as exc:
        logger.warning("Failed to parse stream event: %s", exc)
        return None

    try:
        return _EVENT_ADAPTER.validate_python(payload)
    except PydanticValidationError as exc:
        logger.warning("Invalid stream event (%d issues): %s", exc.error_count(), raw)
        return None


def unrecoverable(message: str) -> ErrorEvent:
    return ErrorEvent(data=ErrorPayload(message=message, recoverable=False))
