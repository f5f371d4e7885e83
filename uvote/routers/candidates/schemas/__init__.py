from .candidates import (
    ApplicationStatusEnum,
    CandidateBase,
    CandidateCreate,
    CandidateUpdate,
    CandidateData,
    CandidateResponse,
    CandidateFilters,
    ApplicationCreate,
    ApplicationReview,
    ApplicationData,
    ApplicationResponse,
    ApplicationFilters,
)

__all__ = [
    "ApplicationStatusEnum",
    "CandidateBase",
    "CandidateCreate",
    "CandidateUpdate",
    "CandidateData",
    "CandidateResponse",
    "CandidateFilters",
    "ApplicationCreate",
    "ApplicationReview",
    "ApplicationData",
    "ApplicationResponse",
    "ApplicationFilters",
]
