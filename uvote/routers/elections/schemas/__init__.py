from .elections import (
    ElectionStatusEnum,
    ElectionCreate,
    ElectionUpdate,
    ElectionData,
    ElectionResponse,
    ElectionFilters,
    EligibleVotersAdd,
    EligibleVoterData,
)

__all__ = [
    "ElectionStatusEnum",
    "ElectionCreate",
    "ElectionUpdate",
    "ElectionData",
    "ElectionResponse",
    "ElectionFilters",
    "EligibleVotersAdd",
    "EligibleVoterData",
]
