from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, TIMESTAMP, JSON, ForeignKey,
    UniqueConstraint, func,
)
from sqlalchemy.orm import relationship
from uvote.database import Base


# -------------------------
#  Discussion Topics
# -------------------------
class DiscussionTopic(Base):
    __tablename__ = "discussion_topics"

    id = Column(Integer, primary_key=True, autoincrement=True)
    election_id = Column(Integer, ForeignKey("elections.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=True)
    created_by = Column(String(64), nullable=False)
    is_pinned = Column(Boolean, nullable=False, default=False)
    is_locked = Column(Boolean, nullable=False, default=False)
    view_count = Column(Integer, nullable=False, default=0)
    created_at = Column(TIMESTAMP, server_default=func.now(), nullable=False)
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now(), nullable=False)

    election = relationship("Election", back_populates="topics")
    comments = relationship(
        "DiscussionComment",
        back_populates="topic",
        cascade="all, delete-orphan",
        order_by="DiscussionComment.id",
    )


class DiscussionComment(Base):
    __tablename__ = "discussion_comments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    topic_id = Column(Integer, ForeignKey("discussion_topics.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(64), nullable=False)
    content = Column(Text, nullable=False)
    parent_id = Column(Integer, ForeignKey("discussion_comments.id", ondelete="CASCADE"), nullable=True)
    created_at = Column(TIMESTAMP, server_default=func.now(), nullable=False)
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now(), nullable=False)

    topic = relationship("DiscussionTopic", back_populates="comments")


# -------------------------
#  Polls
# -------------------------
class Poll(Base):
    __tablename__ = "polls"

    id = Column(Integer, primary_key=True, autoincrement=True)
    election_id = Column(Integer, ForeignKey("elections.id", ondelete="CASCADE"), nullable=False, index=True)
    topic_id = Column(Integer, ForeignKey("discussion_topics.id", ondelete="SET NULL"), nullable=True)
    question = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    # {"<option id>": "<option text>"}, insertion ordered
    options = Column(JSON, nullable=False, default=dict)
    multiple_choice = Column(Boolean, nullable=False, default=False)
    is_closed = Column(Boolean, nullable=False, default=False)
    ends_at = Column(DateTime, nullable=True)
    created_by = Column(String(64), nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now(), nullable=False)

    election = relationship("Election", back_populates="polls")
    votes = relationship("PollVote", back_populates="poll", cascade="all, delete-orphan")


class PollVote(Base):
    __tablename__ = "poll_votes"
    __table_args__ = (UniqueConstraint("poll_id", "user_id", name="uq_poll_votes_poll_user"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    poll_id = Column(Integer, ForeignKey("polls.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(64), nullable=False)
    # list of chosen option ids
    options = Column(JSON, nullable=False, default=list)
    created_at = Column(TIMESTAMP, server_default=func.now(), nullable=False)

    poll = relationship("Poll", back_populates="votes")
