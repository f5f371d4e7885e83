from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


# =============================
# Topics & comments
# =============================
class TopicCreate(BaseModel):
    election_id: int
    title: str = Field(..., min_length=1, max_length=255)
    content: Optional[str] = None


class TopicUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[str] = None
    # admin only
    is_pinned: Optional[bool] = None
    is_locked: Optional[bool] = None


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1)
    parent_id: Optional[int] = None


class CommentData(BaseModel):
    id: int
    topic_id: int
    user_id: str
    content: str
    parent_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TopicData(BaseModel):
    id: int
    election_id: int
    title: str
    content: Optional[str] = None
    created_by: str
    is_pinned: bool
    is_locked: bool
    view_count: int
    comment_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TopicDetail(TopicData):
    comments: List[CommentData] = []


# =============================
# Polls
# =============================
class PollCreate(BaseModel):
    election_id: int
    topic_id: Optional[int] = None
    question: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    options: List[str] = Field(..., min_length=2)
    multiple_choice: bool = False
    ends_at: Optional[datetime] = None


class PollVoteRequest(BaseModel):
    options: List[str] = Field(..., min_length=1)


class PollOption(BaseModel):
    id: str
    text: str


class PollData(BaseModel):
    id: int
    election_id: int
    topic_id: Optional[int] = None
    question: str
    description: Optional[str] = None
    options: List[PollOption]
    multiple_choice: bool
    is_closed: bool
    ends_at: Optional[datetime] = None
    created_by: str
    created_at: Optional[datetime] = None
    total_voters: int = 0
    my_vote: List[str] = []


class PollOptionResult(PollOption):
    votes: int
    percentage: float


class PollResults(BaseModel):
    poll_id: int
    question: str
    is_closed: bool
    total_voters: int
    options: List[PollOptionResult]
