import enum
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class ApplicationStatusEnum(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    disqualified = "disqualified"


# =============================
# Candidates
# =============================
class CandidateBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    position: str = Field(..., min_length=1, max_length=150)
    bio: Optional[str] = None
    image_url: Optional[str] = Field(None, max_length=500)
    student_id: Optional[str] = Field(None, max_length=50)
    department: Optional[str] = Field(None, max_length=150)
    year_level: Optional[str] = Field(None, max_length=50)


class CandidateCreate(CandidateBase):
    election_id: int


class CandidateUpdate(BaseModel):
    """Profile fields only. Position and election are fixed once votes may exist."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    bio: Optional[str] = None
    image_url: Optional[str] = Field(None, max_length=500)
    student_id: Optional[str] = Field(None, max_length=50)
    department: Optional[str] = Field(None, max_length=150)
    year_level: Optional[str] = Field(None, max_length=50)


class CandidateData(CandidateBase):
    id: int
    election_id: int
    application_id: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CandidateResponse(BaseModel):
    success: bool
    status: int
    message: str
    data: Optional[CandidateData]


class CandidateFilters(BaseModel):
    election_id: int
    position: Optional[str] = None


# =============================
# Applications
# =============================
class ApplicationCreate(CandidateCreate):
    is_faculty: bool = False
    faculty_position: Optional[str] = Field(None, max_length=150)


class ApplicationReview(BaseModel):
    status: ApplicationStatusEnum
    feedback: Optional[str] = None


class ApplicationData(CandidateBase):
    id: int
    election_id: int
    user_id: str
    is_faculty: bool
    faculty_position: Optional[str] = None
    status: ApplicationStatusEnum
    feedback: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ApplicationResponse(BaseModel):
    success: bool
    status: int
    message: str
    data: Optional[ApplicationData]


class ApplicationFilters(BaseModel):
    election_id: Optional[int] = None
    status: Optional[ApplicationStatusEnum] = None
