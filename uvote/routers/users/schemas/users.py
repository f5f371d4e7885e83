import enum
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field


class RoleEnum(str, enum.Enum):
    admin = "admin"
    voter = "voter"


# =============================
# Profile
# =============================
class ProfileBase(BaseModel):
    first_name: str = Field(..., max_length=100)
    last_name: str = Field("", max_length=100)
    student_id: Optional[str] = Field(None, max_length=50)
    department: Optional[str] = Field(None, max_length=150)
    year_level: Optional[str] = Field(None, max_length=50)
    image_url: Optional[str] = None


class CreateProfileSchema(ProfileBase):
    # Falls back to the token's `email` claim when omitted.
    email: Optional[EmailStr] = None


class UpdateProfileSchema(BaseModel):
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    student_id: Optional[str] = Field(None, max_length=50)
    department: Optional[str] = Field(None, max_length=150)
    year_level: Optional[str] = Field(None, max_length=50)
    image_url: Optional[str] = None


class ProfileData(BaseModel):
    id: str
    email: str
    first_name: str
    last_name: str
    student_id: Optional[str] = None
    department: Optional[str] = None
    year_level: Optional[str] = None
    image_url: Optional[str] = None
    is_verified: bool
    roles: List[RoleEnum] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ProfileResponse(BaseModel):
    success: bool
    status: int
    message: str
    data: Optional[ProfileData]


# =============================
# Admin
# =============================
class UserFilters(BaseModel):
    search: Optional[str] = None
    role: Optional[RoleEnum] = None
    verified: Optional[bool] = None
    department: Optional[str] = None
    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1, le=100)


class VerificationUpdate(BaseModel):
    is_verified: bool


class BulkVerificationUpdate(VerificationUpdate):
    user_ids: List[str] = Field(..., min_length=1)


class RoleUpdate(BaseModel):
    role: RoleEnum
