# uvote/routers/users/controller.py
from typing import List, Optional, Set
from fastapi import HTTPException, status
from loguru import logger
from rapidfuzz import fuzz, process, utils as fuzz_utils
from sqlalchemy import func
from sqlalchemy.orm import Session

from . import models, schemas
from uvote.config import BOOTSTRAP_ADMIN_IDS
from uvote.database import commit_changes

SEARCH_SCORE_CUTOFF = 80


def profile_to_data(profile: models.Profile) -> schemas.ProfileData:
    return schemas.ProfileData(
        id=profile.id,
        email=profile.email,
        first_name=profile.first_name or "",
        last_name=profile.last_name or "",
        student_id=profile.student_id,
        department=profile.department,
        year_level=profile.year_level,
        image_url=profile.image_url,
        is_verified=bool(profile.is_verified),
        roles=profile.role_names,
        created_at=profile.created_at,
        updated_at=profile.updated_at,
    )


def get_profile(db: Session, user_id: str) -> Optional[models.Profile]:
    return db.query(models.Profile).filter(models.Profile.id == user_id).first()


def get_profile_or_404(db: Session, user_id: str) -> models.Profile:
    profile = get_profile(db, user_id)
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found.")
    return profile


def get_role_names(db: Session, user_id: str) -> Set[str]:
    rows = db.query(models.UserRole.role).filter(models.UserRole.user_id == user_id).all()
    return {r.role.value for r in rows}


def is_admin(db: Session, user_id: str) -> bool:
    return models.RoleEnum.admin.value in get_role_names(db, user_id)


def ensure_admin(db: Session, user_id: str) -> None:
    if not is_admin(db, user_id):
        logger.warning(f"Admin-only operation refused for user {user_id}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to perform this action.",
        )


def create_profile(
    db: Session, user_id: str, token_email: Optional[str], payload: schemas.CreateProfileSchema
) -> models.Profile:
    if get_profile(db, user_id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Profile already exists.")

    email = payload.email or token_email
    if not email:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="An email address is required.")

    taken = db.query(models.Profile).filter(func.lower(models.Profile.email) == email.lower()).first()
    if taken:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="This email is already registered.")

    profile = models.Profile(
        id=user_id,
        email=email,
        first_name=payload.first_name,
        last_name=payload.last_name,
        student_id=payload.student_id,
        department=payload.department,
        year_level=payload.year_level,
        image_url=payload.image_url,
        is_verified=False,
    )
    if user_id in BOOTSTRAP_ADMIN_IDS:
        profile.roles.append(models.UserRole(role=models.RoleEnum.admin))
        logger.warning(f"Profile {user_id} starts with the admin role")
    db.add(profile)
    commit_changes(db, "create the profile")
    db.refresh(profile)
    logger.info(f"Profile created for user {user_id}")
    return profile


def update_profile(db: Session, user_id: str, payload: schemas.UpdateProfileSchema) -> models.Profile:
    profile = get_profile_or_404(db, user_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(profile, field, value)
    commit_changes(db, "update the profile")
    db.refresh(profile)
    return profile


def list_users(db: Session, filters: schemas.UserFilters):
    query = db.query(models.Profile)
    if filters.verified is not None:
        query = query.filter(models.Profile.is_verified == filters.verified)
    if filters.department:
        query = query.filter(func.lower(models.Profile.department) == filters.department.strip().lower())
    if filters.role is not None:
        query = query.filter(
            models.Profile.roles.any(models.UserRole.role == models.RoleEnum(filters.role.value))
        )

    profiles: List[models.Profile] = query.order_by(models.Profile.created_at.desc(), models.Profile.id).all()

    if filters.search:
        haystack = [f"{p.full_name} {p.email}" for p in profiles]
        matches = process.extract(
            filters.search,
            haystack,
            scorer=fuzz.partial_ratio,
            processor=fuzz_utils.default_process,
            limit=None,
            score_cutoff=SEARCH_SCORE_CUTOFF,
        )
        # Best score first; ties keep the listing order.
        matches = sorted(matches, key=lambda m: (-m[1], m[2]))
        profiles = [profiles[m[2]] for m in matches]

    total = len(profiles)
    offset = (filters.page - 1) * filters.limit
    page_items = profiles[offset: offset + filters.limit]
    return {
        "items": [profile_to_data(p) for p in page_items],
        "pagination": {
            "total": total,
            "page": filters.page,
            "limit": filters.limit,
            "has_next": offset + filters.limit < total,
            "has_prev": filters.page > 1,
        },
    }


def _apply_verification(db: Session, profiles: List[models.Profile], is_verified: bool) -> None:
    for profile in profiles:
        profile.is_verified = is_verified
    if not is_verified and profiles:
        # The voter role is only held by verified profiles.
        db.query(models.UserRole).filter(
            models.UserRole.user_id.in_([p.id for p in profiles]),
            models.UserRole.role == models.RoleEnum.voter,
        ).delete(synchronize_session=False)


def set_verification(db: Session, user_id: str, is_verified: bool, actor_id: str) -> models.Profile:
    profile = get_profile_or_404(db, user_id)
    _apply_verification(db, [profile], is_verified)
    commit_changes(db, "update the verification")
    db.refresh(profile)
    logger.info(f"User {actor_id} set verification of {user_id} to {is_verified}")
    return profile


def bulk_set_verification(db: Session, user_ids: List[str], is_verified: bool, actor_id: str) -> dict:
    """Verify or unverify many profiles at once. Unknown ids are reported, not fatal."""
    requested = list(dict.fromkeys(u.strip() for u in user_ids if u and u.strip()))
    if not requested:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No user ids were given.")

    profiles = db.query(models.Profile).filter(models.Profile.id.in_(requested)).all()
    found = {p.id for p in profiles}
    _apply_verification(db, profiles, is_verified)
    commit_changes(db, "update the verification")

    updated = [u for u in requested if u in found]
    not_found = [u for u in requested if u not in found]
    logger.info(f"User {actor_id} set verification of {len(updated)} profile(s) to {is_verified}")
    return {"updated": updated, "not_found": not_found, "is_verified": is_verified}


def assign_role(db: Session, user_id: str, role: schemas.RoleEnum, actor_id: str) -> models.Profile:
    profile = get_profile_or_404(db, user_id)
    role_enum = models.RoleEnum(role.value)

    if role_enum == models.RoleEnum.voter and not profile.is_verified:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only verified profiles can be granted the voter role.",
        )

    if role.value not in get_role_names(db, user_id):
        db.add(models.UserRole(user_id=user_id, role=role_enum))
        commit_changes(db, "grant the role")
        logger.info(f"User {actor_id} granted role {role.value} to {user_id}")
    db.refresh(profile)
    return profile


def revoke_role(db: Session, user_id: str, role: schemas.RoleEnum, actor_id: str) -> models.Profile:
    profile = get_profile_or_404(db, user_id)
    if role == schemas.RoleEnum.admin and user_id == actor_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot revoke your own admin role.")
    deleted = db.query(models.UserRole).filter(
        models.UserRole.user_id == user_id,
        models.UserRole.role == models.RoleEnum(role.value),
    ).delete(synchronize_session=False)
    commit_changes(db, "revoke the role")
    db.refresh(profile)
    if deleted:
        logger.info(f"User {actor_id} revoked role {role.value} from {user_id}")
    return profile
