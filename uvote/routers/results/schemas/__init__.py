from .results import (
    CandidateTally,
    PositionResult,
    ElectionResults,
    ResultsResponse,
    PositionStatistics,
    DailyBallots,
    GroupParticipation,
    VoteStatistics,
)

__all__ = [
    "CandidateTally",
    "PositionResult",
    "ElectionResults",
    "ResultsResponse",
    "PositionStatistics",
    "DailyBallots",
    "GroupParticipation",
    "VoteStatistics",
]
