from sqlalchemy import (
    Column, Integer, String, DateTime, ForeignKey, Index, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from uvote.database import Base
from uvote.utils.timeutils import utcnow


# -------------------------
#  Vote Table
# -------------------------
class Vote(Base):
    """
    One row of a ballot.

    position is NULL                       -> completion marker (exactly one per ballot)
    position set, candidate_id set         -> concrete vote for that position
    position set, candidate_id is NULL     -> explicit abstention for that position
    """
    __tablename__ = "votes"
    __table_args__ = (
        UniqueConstraint("election_id", "user_id", "position", name="uq_votes_election_user_position"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    election_id = Column(Integer, ForeignKey("elections.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    position = Column(String(150), nullable=True)
    candidate_id = Column(Integer, ForeignKey("candidates.id"), nullable=True, index=True)
    cast_at = Column(DateTime, nullable=False, default=utcnow)

    election = relationship("Election", back_populates="votes")

    @property
    def is_marker(self) -> bool:
        return self.position is None

    @property
    def is_abstain(self) -> bool:
        return self.position is not None and self.candidate_id is None

    def __repr__(self):
        return (f"<Vote(election_id={self.election_id}, user_id={self.user_id}, "
                f"position={self.position}, candidate_id={self.candidate_id})>")


# A second completion marker for the same voter and election is rejected by the store.
Index(
    "uq_votes_ballot_marker",
    Vote.election_id,
    Vote.user_id,
    unique=True,
    postgresql_where=Vote.position.is_(None),
    sqlite_where=Vote.position.is_(None),
)
