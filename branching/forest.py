"""In-memory branch forest and the single in-progress fork draft.

Branches live in an id-keyed arena and refer to each other only by id, so
the active-branch pointer and every ``parent_branch_id`` are weak references:
they may name a branch that is not (or not yet) in the forest.

No operation here raises; ``check_invariants`` reports problems as data.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from core.models import BranchInfo, ForkMode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ForkDraft:
    """User-edited content for a branch that has not been submitted yet."""

    parent_turn_id: str
    parent_branch_id: str
    content: str
    fork_mode: ForkMode


@dataclass
class InvariantReport:
    """Outcome of a forest well-formedness check."""

    valid: bool
    issues: list[str]

    def __bool__(self) -> bool:
        return self.valid


class BranchForest:
    """Arena of ``BranchInfo`` records plus the active pointer and fork draft."""

    def __init__(self) -> None:
        self._branches: dict[str, BranchInfo] = {}
        self.active_branch_id: str | None = None
        self.fork_draft: ForkDraft | None = None

    # ------------------------------------------------------------------
    # Branches
    # ------------------------------------------------------------------

    def add_branch(self, branch: BranchInfo) -> None:
        """Insert *branch*; an existing entry with the same id is overwritten."""
        if branch.branch_id in self._branches:
            logger.debug("Overwriting branch %s", branch.branch_id)
        self._branches[branch.branch_id] = branch

    def select_branch(self, branch_id: str | None) -> None:
        self.active_branch_id = branch_id

    def get(self, branch_id: str) -> BranchInfo | None:
        return self._branches.get(branch_id)

    @property
    def active_branch(self) -> BranchInfo | None:
        """The selected branch, or None if nothing (or a missing id) is selected."""
        if self.active_branch_id is None:
            return None
        return self._branches.get(self.active_branch_id)

    @property
    def branches(self) -> list[BranchInfo]:
        return list(self._branches.values())

    def roots(self) -> list[BranchInfo]:
        return [b for b in self._branches.values() if b.parent_branch_id is None]

    def children(self, branch_id: str) -> list[BranchInfo]:
        return [b for b in self._branches.values() if b.parent_branch_id == branch_id]

    def lineage(self, branch_id: str) -> list[BranchInfo]:
        """Branches from *branch_id* up to its root, nearest first.

        The walk stops at a missing parent and never takes more steps than
        the forest has branches, so a cycle cannot make it loop.
        """
        chain: list[BranchInfo] = []
        current = self._branches.get(branch_id)
        while current is not None and len(chain) < len(self._branches):
            chain.append(current)
            if current.parent_branch_id is None:
                break
            current = self._branches.get(current.parent_branch_id)
        return chain

    def clear(self) -> None:
        self._branches.clear()
        self.active_branch_id = None
        self.fork_draft = None

    def __len__(self) -> int:
        return len(self._branches)

    def __contains__(self, branch_id: object) -> bool:
        return branch_id in self._branches

    # ------------------------------------------------------------------
    # Fork draft
    # ------------------------------------------------------------------

    def start_fork(self, turn_id: str, branch_id: str, fork_mode: ForkMode) -> ForkDraft:
        """Begin a fresh draft, discarding any previous one entirely."""
        if self.fork_draft is not None:
            logger.debug("Discarding fork draft from turn %s", self.fork_draft.parent_turn_id)
        self.fork_draft = ForkDraft(
            parent_turn_id=turn_id,
            parent_branch_id=branch_id,
            content="",
            fork_mode=fork_mode,
        )
        return self.fork_draft

    def update_fork_draft(self, content: str) -> bool:
        """Replace the draft's content; returns False when there is no draft."""
        if self.fork_draft is None:
            return False
        self.fork_draft = replace(self.fork_draft, content=content)
        return True

    def cancel_fork(self) -> None:
        self.fork_draft = None

    def complete_fork(self, new_branch_id: str) -> None:
        """Drop the draft once the server has accepted the fork.

        The new branch itself arrives separately through ``add_branch``.
        """
        logger.debug("Fork completed as branch %s", new_branch_id)
        self.fork_draft = None

    # ------------------------------------------------------------------
    # Invariants
    # ------------------------------------------------------------------

    def check_invariants(self) -> InvariantReport:
        """Verify depth bookkeeping and that every parent chain ends at a root."""
        issues: list[str] = []
        limit = len(self._branches)

        for branch in self._branches.values():
            if branch.parent_branch_id is None:
                if branch.depth != 0:
                    issues.append(f"Root {branch.branch_id} has depth {branch.depth}")
                continue

            parent = self._branches.get(branch.parent_branch_id)
            if parent is None:
                issues.append(
                    f"Branch {branch.branch_id} references missing parent "
                    f"{branch.parent_branch_id}"
                )
            elif branch.depth != parent.depth + 1:
                issues.append(
                    f"Branch {branch.branch_id} has depth {branch.depth}, "
                    f"expected {parent.depth + 1}"
                )

            steps = 0
            current: BranchInfo | None = branch
            while current is not None and current.parent_branch_id is not None:
                steps += 1
                if steps > limit:
                    issues.append(f"Branch {branch.branch_id} is part of a cycle")
                    break
                current = self._branches.get(current.parent_branch_id)

        return InvariantReport(valid=not issues, issues=issues)
