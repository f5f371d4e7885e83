from datetime import datetime
from typing import Dict, List, Optional, Union
from pydantic import BaseModel, Field

ABSTAIN = "abstain"


class CastBallotRequest(BaseModel):
    # position -> candidate id, or "abstain"
    selections: Dict[str, Union[int, str]] = Field(default_factory=dict)
    access_code: Optional[str] = None


class BallotReceipt(BaseModel):
    ballot_id: int
    election_id: int
    user_id: str
    cast_at: datetime
    selections: Dict[str, Optional[int]]
    abstained: List[str]


class CandidateOption(BaseModel):
    id: int
    name: str
    bio: Optional[str] = None
    image_url: Optional[str] = None
    department: Optional[str] = None
    year_level: Optional[str] = None


class BallotPosition(BaseModel):
    position: str
    candidates: List[CandidateOption]


class BallotStatus(BaseModel):
    election_id: int
    status: str
    eligible: bool
    has_voted: bool
    can_vote: bool
    reason: Optional[str] = None
    ballot: List[BallotPosition] = []


class MyVote(BaseModel):
    election_id: int
    title: str
    status: str
    cast_at: datetime
