"""Typed wrappers for the branch and fork endpoints."""

from __future__ import annotations

from pydantic import TypeAdapter

from client.debate_api import discard_payload, validate_payload
from client.http_client import HttpClient
from core.errors import ApiResult
from core.models import BranchInfo, ForkMode, Turn

_BRANCH = TypeAdapter(BranchInfo)
_BRANCHES = TypeAdapter(list[BranchInfo])
_TURNS = TypeAdapter(list[Turn])


class BranchApi:
    """Branch endpoints under ``/api/debates/{debate_id}``."""

    def __init__(self, http: HttpClient) -> None:
        self.http = http

    async def list_branches(self, debate_id: str) -> ApiResult[list[BranchInfo]]:
        return validate_payload(
            _BRANCHES, await self.http.get(f"/api/debates/{debate_id}/branches")
        )

    async def get_branch(self, debate_id: str, branch_id: str) -> ApiResult[BranchInfo]:
        return validate_payload(
            _BRANCH, await self.http.get(f"/api/debates/{debate_id}/branches/{branch_id}")
        )

    async def create_fork(
        self,
        debate_id: str,
        turn_id: str,
        content: str,
        fork_mode: ForkMode,
        name: str | None = None,
    ) -> ApiResult[BranchInfo]:
        """Fork the debate at *turn_id*; the server answers with the new branch."""
        body: dict[str, str] = {"content": content, "forkMode": fork_mode}
        if name is not None:
            body["name"] = name
        return validate_payload(
            _BRANCH,
            await self.http.post(f"/api/debates/{debate_id}/turns/{turn_id}/fork", body),
        )

    async def get_branch_turns(self, debate_id: str, branch_id: str) -> ApiResult[list[Turn]]:
        return validate_payload(
            _TURNS,
            await self.http.get(f"/api/debates/{debate_id}/branches/{branch_id}/turns"),
        )

    async def delete_branch(self, debate_id: str, branch_id: str) -> ApiResult[None]:
        """Delete an ``explore`` branch."""
        return discard_payload(await self.http.delete(f"/api/debates/{debate_id}/branches/{branch_id}"))

    async def merge_branch(self, debate_id: str, branch_id: str) -> ApiResult[None]:
        """Merge a ``save`` branch back."""
        return discard_payload(
            await self.http.post(f"/api/debates/{debate_id}/branches/{branch_id}/merge")
        )
