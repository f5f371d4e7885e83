from typing import List, Optional
from pydantic import BaseModel


class CandidateTally(BaseModel):
    candidate_id: int
    name: str
    votes: int
    percentage: float


class PositionResult(BaseModel):
    position: str
    total_votes: int
    abstain_count: int
    candidates: List[CandidateTally]
    leaders: List[int]


class ElectionResults(BaseModel):
    election_id: int
    title: str
    status: str
    is_final: bool
    ballots_cast: int
    eligible_voters: int
    participation_rate: float
    positions: List[PositionResult]


class ResultsResponse(BaseModel):
    success: bool
    status: int
    message: str
    data: Optional[ElectionResults]


# =============================
# Analytics
# =============================
class PositionStatistics(BaseModel):
    position: str
    total_votes: int
    abstain_count: int
    candidate_count: int
    competition_level: str
    leaders: List[int]


class DailyBallots(BaseModel):
    date: str
    ballots: int


class GroupParticipation(BaseModel):
    group: str
    ballots: int
    eligible: int
    participation_rate: float


class VoteStatistics(BaseModel):
    election_id: int
    unique_voters: int
    position_rows: int
    candidate_votes: int
    abstentions: int
    eligible_voters: int
    participation_rate: float
    positions: List[PositionStatistics]
    votes_over_time: List[DailyBallots]
    department_participation: List[GroupParticipation]
    year_level_participation: List[GroupParticipation]
