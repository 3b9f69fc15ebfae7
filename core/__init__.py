"""Core types – error taxonomy, wire models and consensus helpers."""

from core.consensus import (
    calculate_consensus_level,
    create_consensus_result,
    has_consensus,
    is_strong_consensus,
    meets_threshold,
)
from core.errors import (
    ApiError,
    ApiResult,
    AuthError,
    ConflictError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    ServerError,
    ValidationError,
    ValidationIssue,
    error_from_exception,
    error_from_status,
    format_api_error,
)
from core.models import (
    BranchInfo,
    ConsensusResult,
    DebateConfig,
    DebateResponse,
    Turn,
)

__all__ = [
    "ApiError",
    "ApiResult",
    "AuthError",
    "BranchInfo",
    "ConflictError",
    "ConsensusResult",
    "DebateConfig",
    "DebateResponse",
    "NetworkError",
    "NotFoundError",
    "RateLimitError",
    "ServerError",
    "Turn",
    "ValidationError",
    "ValidationIssue",
    "calculate_consensus_level",
    "create_consensus_result",
    "error_from_exception",
    "error_from_status",
    "format_api_error",
    "has_consensus",
    "is_strong_consensus",
    "meets_threshold",
]
