"""Typed wrappers for the debate endpoints."""

from __future__ import annotations

import logging
from typing import Any, TypeVar

import pydantic
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from client.http_client import HttpClient
from core.errors import ApiResult, validation_error_from_pydantic
from core.models import DebateConfig, DebateResponse, Turn

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _CreatedDebate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    debate_id: str = Field(alias="debateId", min_length=1)


_TURNS = TypeAdapter(list[Turn])


def validate_payload(adapter: TypeAdapter[T], result: ApiResult[Any]) -> ApiResult[T]:
    """Validate a successful payload; pass failures through untouched."""
    if not result.ok:
        return ApiResult.failure(result.error)  # type: ignore[arg-type]
    try:
        return ApiResult.success(adapter.validate_python(result.value))
    except pydantic.ValidationError as exc:
        logger.warning("Response failed validation: %d issue(s)", exc.error_count())
        return ApiResult.failure(validation_error_from_pydantic(exc))


def discard_payload(result: ApiResult[Any]) -> ApiResult[None]:
    if not result.ok:
        return ApiResult.failure(result.error)  # type: ignore[arg-type]
    return ApiResult.success(None)


class DebateApi:
    """Debate endpoints under ``/api/debates``."""

    def __init__(self, http: HttpClient) -> None:
        self.http = http

    async def create_debate(self, config: DebateConfig) -> ApiResult[str]:
        """Create a debate and return its id."""
        result = validate_payload(
            TypeAdapter(_CreatedDebate),
            await self.http.post("/api/debates", config.to_wire()),
        )
        if not result.ok:
            return ApiResult.failure(result.error)  # type: ignore[arg-type]
        return ApiResult.success(result.value.debate_id)  # type: ignore[union-attr]

    async def get_debate(self, debate_id: str) -> ApiResult[DebateResponse]:
        return validate_payload(
            TypeAdapter(DebateResponse),
            await self.http.get(f"/api/debates/{debate_id}"),
        )

    async def start_debate(self, debate_id: str) -> ApiResult[None]:
        return discard_payload(await self.http.post(f"/api/debates/{debate_id}/start"))

    async def pause_debate(self, debate_id: str) -> ApiResult[None]:
        return discard_payload(await self.http.post(f"/api/debates/{debate_id}/pause"))

    async def resume_debate(self, debate_id: str) -> ApiResult[None]:
        return discard_payload(await self.http.post(f"/api/debates/{debate_id}/resume"))

    async def get_turns(
        self, debate_id: str, branch_id: str | None = None
    ) -> ApiResult[list[Turn]]:
        params = {"branchId": branch_id} if branch_id else None
        return validate_payload(
            _TURNS, await self.http.get(f"/api/debates/{debate_id}/turns", params=params)
        )

    async def submit_turn(
        self, debate_id: str, content: str, branch_id: str | None = None
    ) -> ApiResult[Turn]:
        """Post a human turn, optionally onto a specific branch."""
        body: dict[str, str] = {"content": content}
        if branch_id:
            body["branchId"] = branch_id
        return validate_payload(
            TypeAdapter(Turn),
            await self.http.post(f"/api/debates/{debate_id}/turns", body),
        )
