from typing import Optional
from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session

from . import controller, schemas
from .utilities import election_to_data
from uvote.database import get_db
from uvote.routers.users.controller import ensure_admin, is_admin
from uvote.utils.jwt import get_current_user_id

# Defining the router
router = APIRouter(
    prefix="/api/elections",
    tags=["Elections"],
    responses={404: {"description": "Not found"}},
)


@router.post("/", response_model=schemas.ElectionResponse, status_code=status.HTTP_201_CREATED)
def create_election(
    payload: schemas.ElectionCreate = Body(...),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Create an election. Admin only."""
    ensure_admin(db, user_id)
    election = controller.create_election(db, payload, created_by=user_id)
    return {
        "success": True,
        "status": 201,
        "message": "Election created successfully.",
        "data": election_to_data(election, include_access_code=True),
    }


@router.get("/")
def list_elections(
    filters: schemas.ElectionFilters = Depends(),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    result = controller.list_elections(db, filters, include_access_code=is_admin(db, user_id))
    return {
        "success": True,
        "status": 200,
        "message": f"Fetched {len(result['items'])} election(s).",
        "data": result["items"],
        "pagination": result["pagination"],
    }


@router.get("/{election_id}", response_model=schemas.ElectionResponse)
def get_election(
    election_id: int,
    access_code: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    admin = is_admin(db, user_id)
    election = controller.get_election_for_viewer(db, election_id, access_code, admin)
    return {
        "success": True,
        "status": 200,
        "message": "Election found.",
        "data": election_to_data(election, include_access_code=admin),
    }


@router.put("/{election_id}", response_model=schemas.ElectionResponse)
def update_election(
    election_id: int,
    payload: schemas.ElectionUpdate = Body(...),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    ensure_admin(db, user_id)
    election = controller.update_election(db, election_id, payload, user_id)
    return {
        "success": True,
        "status": 200,
        "message": "Election updated successfully.",
        "data": election_to_data(election, include_access_code=True),
    }


@router.post("/{election_id}/complete", response_model=schemas.ElectionResponse)
def complete_election(
    election_id: int,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """End voting early."""
    ensure_admin(db, user_id)
    election = controller.complete_election(db, election_id, user_id)
    return {
        "success": True,
        "status": 200,
        "message": "Election marked as completed.",
        "data": election_to_data(election, include_access_code=True),
    }


@router.post("/{election_id}/reset-votes")
def reset_votes(
    election_id: int,
    confirm: bool = Query(False),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    ensure_admin(db, user_id)
    removed = controller.reset_votes(db, election_id, user_id, confirm)
    return {
        "success": True,
        "status": 200,
        "message": "Election votes have been reset.",
        "data": {"removed_rows": removed},
    }


@router.delete("/{election_id}")
def delete_election(
    election_id: int,
    confirm: bool = Query(False),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    ensure_admin(db, user_id)
    controller.delete_election(db, election_id, user_id, confirm)
    return {
        "success": True,
        "status": 200,
        "message": "Election deleted.",
        "data": None,
    }


# ----------------------
# Eligible voters
# ----------------------
@router.get("/{election_id}/eligible-voters")
def list_eligible_voters(
    election_id: int,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    ensure_admin(db, user_id)
    voters = controller.list_eligible_voters(db, election_id)
    return {
        "success": True,
        "status": 200,
        "message": f"Fetched {len(voters)} eligible voter(s).",
        "data": voters,
    }


@router.post("/{election_id}/eligible-voters")
def add_eligible_voters(
    election_id: int,
    payload: schemas.EligibleVotersAdd = Body(...),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    ensure_admin(db, user_id)
    result = controller.add_eligible_voters(db, election_id, payload.user_ids, added_by=user_id)
    return {
        "success": True,
        "status": 200,
        "message": f"{len(result['added'])} voter(s) added.",
        "data": result,
    }


@router.delete("/{election_id}/eligible-voters/{voter_id}")
def remove_eligible_voter(
    election_id: int,
    voter_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    ensure_admin(db, user_id)
    controller.remove_eligible_voter(db, election_id, voter_id, user_id)
    return {"success": True, "status": 200, "message": "Voter removed.", "data": None}


@router.delete("/{election_id}/eligible-voters")
def clear_eligible_voters(
    election_id: int,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    ensure_admin(db, user_id)
    removed = controller.clear_eligible_voters(db, election_id, user_id)
    return {"success": True, "status": 200, "message": "Eligible voter list cleared.", "data": {"removed": removed}}
