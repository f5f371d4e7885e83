from .voting import (
    ABSTAIN,
    CastBallotRequest,
    BallotReceipt,
    CandidateOption,
    BallotPosition,
    BallotStatus,
    MyVote,
)

__all__ = [
    "ABSTAIN",
    "CastBallotRequest",
    "BallotReceipt",
    "CandidateOption",
    "BallotPosition",
    "BallotStatus",
    "MyVote",
]
