from .elections import ElectionStatusEnum, Election, EligibleVoter

# Models the election cascades into; registered here so the mapper can resolve them.
from uvote.routers.candidates.models import Candidate, CandidateApplication  # noqa: E402
from uvote.routers.voting.models import Vote  # noqa: E402
from uvote.routers.discussions.models import DiscussionTopic, DiscussionComment, Poll, PollVote  # noqa: E402

__all__ = [
    "ElectionStatusEnum",
    "Election",
    "EligibleVoter",
    "Candidate",
    "CandidateApplication",
    "Vote",
    "DiscussionTopic",
    "DiscussionComment",
    "Poll",
    "PollVote",
]
