from .users import (
    RoleEnum,
    ProfileBase,
    CreateProfileSchema,
    UpdateProfileSchema,
    ProfileData,
    ProfileResponse,
    UserFilters,
    VerificationUpdate,
    BulkVerificationUpdate,
    RoleUpdate,
)

__all__ = [
    "RoleEnum",
    "ProfileBase",
    "CreateProfileSchema",
    "UpdateProfileSchema",
    "ProfileData",
    "ProfileResponse",
    "UserFilters",
    "VerificationUpdate",
    "BulkVerificationUpdate",
    "RoleUpdate",
]
