import enum
from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, TIMESTAMP, ForeignKey,
    Enum as SAEnum, func,
)
from sqlalchemy.orm import relationship
from uvote.database import Base


class ApplicationStatusEnum(enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    disqualified = "disqualified"


# -------------------------
#  Candidate Table
# -------------------------
class Candidate(Base):
    __tablename__ = "candidates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    election_id = Column(Integer, ForeignKey("elections.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    position = Column(String(150), nullable=False)
    bio = Column(Text, nullable=True)
    image_url = Column(String(500), nullable=True)
    student_id = Column(String(50), nullable=True)
    department = Column(String(150), nullable=True)
    year_level = Column(String(50), nullable=True)
    application_id = Column(Integer, ForeignKey("candidate_applications.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(TIMESTAMP, server_default=func.now(), nullable=False)

    election = relationship("Election", back_populates="candidates")

    def __repr__(self):
        return f"<Candidate(id={self.id}, name={self.name}, position={self.position})>"


# -------------------------
#  Candidate Application Table
# -------------------------
class CandidateApplication(Base):
    __tablename__ = "candidate_applications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    election_id = Column(Integer, ForeignKey("elections.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    position = Column(String(150), nullable=False)
    bio = Column(Text, nullable=True)
    image_url = Column(String(500), nullable=True)
    student_id = Column(String(50), nullable=True)
    department = Column(String(150), nullable=True)
    year_level = Column(String(50), nullable=True)
    is_faculty = Column(Boolean, nullable=False, default=False)
    faculty_position = Column(String(150), nullable=True)

    status = Column(
        SAEnum(ApplicationStatusEnum, name="application_status_enum"),
        nullable=False,
        default=ApplicationStatusEnum.pending,
    )
    feedback = Column(Text, nullable=True)
    reviewed_by = Column(String(64), nullable=True)
    reviewed_at = Column(DateTime, nullable=True)

    created_at = Column(TIMESTAMP, server_default=func.now(), nullable=False)
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now(), nullable=False)

    election = relationship("Election", back_populates="applications")

    def __repr__(self):
        return f"<CandidateApplication(id={self.id}, user_id={self.user_id}, status={self.status.value})>"
