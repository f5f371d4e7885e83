from fastapi import APIRouter, Body, Depends, status
from loguru import logger
from sqlalchemy.orm import Session

from . import controller, schemas
from uvote.database import get_db
from uvote.utils.jwt import get_current_claims, get_current_user_id

# Defining the router
router = APIRouter(
    prefix="/api/users",
    tags=["Users"],
    responses={404: {"description": "Not found"}},
)


# ----------------------
# Own profile
# ----------------------
@router.post("/me", response_model=schemas.ProfileResponse, status_code=status.HTTP_201_CREATED)
def create_my_profile(
    payload: schemas.CreateProfileSchema = Body(...),
    claims: dict = Depends(get_current_claims),
    db: Session = Depends(get_db),
):
    """
    Create the profile of the signed-in user. The id comes from the token.
    """
    profile = controller.create_profile(db, str(claims["sub"]), claims.get("email"), payload)
    return {
        "success": True,
        "status": 201,
        "message": "Profile created successfully.",
        "data": controller.profile_to_data(profile),
    }


@router.get("/me", response_model=schemas.ProfileResponse)
def get_my_profile(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    profile = controller.get_profile_or_404(db, user_id)
    return {
        "success": True,
        "status": 200,
        "message": "Profile found successfully.",
        "data": controller.profile_to_data(profile),
    }


@router.put("/me", response_model=schemas.ProfileResponse)
def update_my_profile(
    payload: schemas.UpdateProfileSchema = Body(...),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    profile = controller.update_profile(db, user_id, payload)
    logger.info(f"Profile updated for user {user_id}")
    return {
        "success": True,
        "status": 200,
        "message": "Profile updated successfully.",
        "data": controller.profile_to_data(profile),
    }


# ----------------------
# Administration
# ----------------------
@router.get("/")
def list_users(
    filters: schemas.UserFilters = Depends(),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """List profiles with pagination, filters and fuzzy search. Admin only."""
    controller.ensure_admin(db, user_id)
    result = controller.list_users(db, filters)
    return {
        "success": True,
        "status": 200,
        "message": f"Fetched {len(result['items'])} user(s).",
        "data": result["items"],
        "pagination": result["pagination"],
    }


@router.put("/verification")
def bulk_set_verification(
    payload: schemas.BulkVerificationUpdate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Verify or unverify several users in one call. Admin only."""
    controller.ensure_admin(db, user_id)
    result = controller.bulk_set_verification(db, payload.user_ids, payload.is_verified, user_id)
    return {
        "success": True,
        "status": 200,
        "message": f"Verification updated for {len(result['updated'])} user(s).",
        "data": result,
    }


@router.put("/{target_id}/verification", response_model=schemas.ProfileResponse)
def set_verification(
    target_id: str,
    payload: schemas.VerificationUpdate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    controller.ensure_admin(db, user_id)
    profile = controller.set_verification(db, target_id, payload.is_verified, user_id)
    return {
        "success": True,
        "status": 200,
        "message": "Verification updated.",
        "data": controller.profile_to_data(profile),
    }


@router.post("/{target_id}/roles", response_model=schemas.ProfileResponse)
def assign_role(
    target_id: str,
    payload: schemas.RoleUpdate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    controller.ensure_admin(db, user_id)
    profile = controller.assign_role(db, target_id, payload.role, user_id)
    return {
        "success": True,
        "status": 200,
        "message": f"Role {payload.role.value} granted.",
        "data": controller.profile_to_data(profile),
    }


@router.delete("/{target_id}/roles/{role}", response_model=schemas.ProfileResponse)
def revoke_role(
    target_id: str,
    role: schemas.RoleEnum,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    controller.ensure_admin(db, user_id)
    profile = controller.revoke_role(db, target_id, role, user_id)
    return {
        "success": True,
        "status": 200,
        "message": f"Role {role.value} revoked.",
        "data": controller.profile_to_data(profile),
    }
