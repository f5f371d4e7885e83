import enum
from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, TIMESTAMP, JSON, ForeignKey,
    Enum as SAEnum, UniqueConstraint, func,
)
from sqlalchemy.orm import relationship
from uvote.database import Base


class ElectionStatusEnum(enum.Enum):
    upcoming = "upcoming"
    active = "active"
    completed = "completed"


# -------------------------
#  Election Table
# -------------------------
class Election(Base):
    __tablename__ = "elections"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    candidacy_start_date = Column(DateTime, nullable=True)
    candidacy_end_date = Column(DateTime, nullable=True)

    status = Column(
        SAEnum(ElectionStatusEnum, name="election_status_enum"),
        nullable=False,
        default=ElectionStatusEnum.upcoming,
    )

    positions = Column(JSON, nullable=False, default=list)
    departments = Column(JSON, nullable=False, default=list)
    eligible_year_levels = Column(JSON, nullable=False, default=list)
    restrict_voting = Column(Boolean, nullable=False, default=False)

    is_private = Column(Boolean, nullable=False, default=False)
    access_code = Column(String(100), nullable=True)
    banner_urls = Column(JSON, nullable=False, default=list)

    created_by = Column(String(64), nullable=True)
    created_at = Column(TIMESTAMP, server_default=func.now(), nullable=False)
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships (deleting an election removes everything hanging off it)
    candidates = relationship("Candidate", back_populates="election", cascade="all, delete-orphan")
    applications = relationship("CandidateApplication", back_populates="election", cascade="all, delete-orphan")
    eligible_voters = relationship("EligibleVoter", back_populates="election", cascade="all, delete-orphan")
    votes = relationship("Vote", back_populates="election", cascade="all, delete-orphan")
    topics = relationship("DiscussionTopic", back_populates="election", cascade="all, delete-orphan")
    polls = relationship("Poll", back_populates="election", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Election(id={self.id}, title={self.title}, status={self.status.value})>"


# -------------------------
#  Eligible Voters (allow-list)
# -------------------------
class EligibleVoter(Base):
    __tablename__ = "eligible_voters"
    __table_args__ = (UniqueConstraint("election_id", "user_id", name="uq_eligible_voters_election_user"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    election_id = Column(Integer, ForeignKey("elections.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(64), nullable=False)
    added_by = Column(String(64), nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now(), nullable=False)

    election = relationship("Election", back_populates="eligible_voters")

    def __repr__(self):
        return f"<EligibleVoter(election_id={self.election_id}, user_id={self.user_id})>"
