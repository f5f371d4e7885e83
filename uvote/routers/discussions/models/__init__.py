from .discussions import DiscussionTopic, DiscussionComment, Poll, PollVote

__all__ = ["DiscussionTopic", "DiscussionComment", "Poll", "PollVote"]
