from .discussions import (
    TopicCreate,
    TopicUpdate,
    CommentCreate,
    CommentData,
    TopicData,
    TopicDetail,
    PollCreate,
    PollVoteRequest,
    PollOption,
    PollData,
    PollOptionResult,
    PollResults,
)

__all__ = [
    "TopicCreate",
    "TopicUpdate",
    "CommentCreate",
    "CommentData",
    "TopicData",
    "TopicDetail",
    "PollCreate",
    "PollVoteRequest",
    "PollOption",
    "PollData",
    "PollOptionResult",
    "PollResults",
]
