import enum
from sqlalchemy import (
    Column, Integer, String, Boolean, TIMESTAMP, ForeignKey, Enum as SAEnum,
    UniqueConstraint, Index, func,
)
from sqlalchemy.orm import relationship, validates
from uvote.database import Base


# =============================
# Enums
# =============================
class RoleEnum(enum.Enum):
    admin = "admin"
    voter = "voter"


# =============================
# Profiles (1 per identity provider user)
# =============================
class Profile(Base):
    __tablename__ = "profiles"

    # Matches the identity provider's opaque user id.
    id = Column(String(64), primary_key=True)
    email = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False, default="")
    last_name = Column(String(100), nullable=False, default="")
    student_id = Column(String(50), nullable=True)
    department = Column(String(150), nullable=True)
    year_level = Column(String(50), nullable=True)
    image_url = Column(String(500), nullable=True)
    is_verified = Column(Boolean, nullable=False, default=False)

    created_at = Column(TIMESTAMP, server_default=func.now(), nullable=False)
    updated_at = Column(TIMESTAMP, server_default=func.now(),
                        onupdate=func.now(), nullable=False)

    roles = relationship(
        "UserRole",
        back_populates="profile",
        cascade="all, delete-orphan",
    )

    @validates("email")
    def validate_email(self, key, email: str):
        if not email or "@" not in email:
            raise ValueError("Invalid email address")
        return email

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    @property
    def role_names(self):
        return sorted(r.role.value for r in self.roles)

    def __repr__(self):
        return f"<Profile(id={self.id}, email={self.email}, verified={self.is_verified})>"


Index("idx_profiles_email_lower", func.lower(Profile.email), unique=True)


# =============================
# Roles (many per profile)
# =============================
class UserRole(Base):
    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    role = Column(SAEnum(RoleEnum, name="user_role"), nullable=False, default=RoleEnum.voter)
    created_at = Column(TIMESTAMP, server_default=func.now(), nullable=False)

    profile = relationship("Profile", back_populates="roles")

    def __repr__(self):
        return f"<UserRole(user_id={self.user_id}, role={self.role.value})>"
