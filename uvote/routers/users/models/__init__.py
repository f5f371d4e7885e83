from .users import RoleEnum, Profile, UserRole

__all__ = ["RoleEnum", "Profile", "UserRole"]
