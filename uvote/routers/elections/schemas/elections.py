import enum
from datetime import datetime
from typing import Any, List, Optional
from pydantic import AliasChoices, BaseModel, Field, model_validator


class ElectionStatusEnum(str, enum.Enum):
    upcoming = "upcoming"
    active = "active"
    completed = "completed"


def _legacy_eligibility_fields(data: Any) -> Any:
    """Fold the legacy single `department` field into `departments`."""
    if isinstance(data, dict) and "department" in data:
        data = dict(data)
        legacy = data.pop("department")
        if legacy and not (data.get("departments") or data.get("colleges")):
            data["departments"] = [legacy]
    return data


class ElectionCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    start_date: datetime
    end_date: datetime
    candidacy_start_date: Optional[datetime] = None
    candidacy_end_date: Optional[datetime] = None
    positions: List[str] = []
    departments: List[str] = Field(default=[], validation_alias=AliasChoices("departments", "colleges"))
    eligible_year_levels: List[str] = Field(
        default=[], validation_alias=AliasChoices("eligible_year_levels", "eligibleYearLevels")
    )
    restrict_voting: bool = False
    is_private: bool = False
    access_code: Optional[str] = Field(None, max_length=100)
    banner_urls: List[str] = []

    @model_validator(mode="before")
    @classmethod
    def fold_legacy_department(cls, data: Any) -> Any:
        return _legacy_eligibility_fields(data)


class ElectionUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    candidacy_start_date: Optional[datetime] = None
    candidacy_end_date: Optional[datetime] = None
    status: Optional[ElectionStatusEnum] = None
    positions: Optional[List[str]] = None
    departments: Optional[List[str]] = Field(
        default=None, validation_alias=AliasChoices("departments", "colleges")
    )
    eligible_year_levels: Optional[List[str]] = Field(
        default=None, validation_alias=AliasChoices("eligible_year_levels", "eligibleYearLevels")
    )
    restrict_voting: Optional[bool] = None
    is_private: Optional[bool] = None
    access_code: Optional[str] = Field(None, max_length=100)
    banner_urls: Optional[List[str]] = None

    @model_validator(mode="before")
    @classmethod
    def fold_legacy_department(cls, data: Any) -> Any:
        return _legacy_eligibility_fields(data)


class ElectionData(BaseModel):
    id: int
    title: str
    description: str
    start_date: datetime
    end_date: datetime
    candidacy_start_date: Optional[datetime] = None
    candidacy_end_date: Optional[datetime] = None
    status: ElectionStatusEnum
    positions: List[str]
    departments: List[str]
    eligible_year_levels: List[str]
    restrict_voting: bool
    is_private: bool
    access_code: Optional[str] = None
    banner_urls: List[str]
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ElectionResponse(BaseModel):
    success: bool
    status: int
    message: str
    data: Optional[ElectionData]


class ElectionFilters(BaseModel):
    status: Optional[ElectionStatusEnum] = None
    search: Optional[str] = None
    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1, le=100)


# =============================
# Eligible voters
# =============================
class EligibleVotersAdd(BaseModel):
    user_ids: List[str] = Field(..., min_length=1)


class EligibleVoterData(BaseModel):
    user_id: str
    added_by: str
    created_at: Optional[datetime] = None
    name: Optional[str] = None
    email: Optional[str] = None
    department: Optional[str] = None
    year_level: Optional[str] = None
    is_verified: Optional[bool] = None
