"""Helpers for classifying and building consensus results."""

from __future__ import annotations

from core.models import ConsensusLevel, ConsensusResult


def calculate_consensus_level(percentage: float) -> ConsensusLevel:
    """Bucket an agreement ratio.

    >>> calculate_consensus_level(0.85), calculate_consensus_level(0.5)
    ('strong', 'none')
    """
    if percentage >= 0.8:
        return "strong"
    if percentage >= 0.65:
        return "moderate"
    if percentage > 0.5:
        return "weak"
    return "none"


def create_consensus_result(
    supporting: int,
    dissenting: int,
    confidence: float,
) -> ConsensusResult:
    """Build a validated result from vote counts (0 votes means 0%)."""
    total = supporting + dissenting
    percentage = supporting / total if total else 0.0
    return ConsensusResult(
        level=calculate_consensus_level(percentage),
        percentage=percentage,
        supporting=supporting,
        dissenting=dissenting,
        confidence=confidence,
    )


def meets_threshold(result: ConsensusResult, threshold: float) -> bool:
    return result.percentage >= threshold


def is_strong_consensus(result: ConsensusResult) -> bool:
    return result.level == "strong"


def has_consensus(result: ConsensusResult) -> bool:
    return result.level != "none"
