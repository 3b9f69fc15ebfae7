"""Branch forest and fork drafting."""

from branching.forest import BranchForest, ForkDraft, InvariantReport

__all__ = ["BranchForest", "ForkDraft", "InvariantReport"]
