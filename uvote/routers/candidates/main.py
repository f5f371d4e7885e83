from typing import Optional
from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session

from . import controller, schemas
from uvote.database import get_db
from uvote.routers.elections.controller import get_election_for_viewer
from uvote.routers.users.controller import ensure_admin, is_admin
from uvote.utils.jwt import get_current_user_id

# Defining the router
router = APIRouter(
    prefix="/api/candidates",
    tags=["Candidates"],
    responses={404: {"description": "Not found"}},
)


# ----------------------
# Applications
# ----------------------
@router.post("/applications", response_model=schemas.ApplicationResponse, status_code=status.HTTP_201_CREATED)
def submit_application(
    payload: schemas.ApplicationCreate = Body(...),
    access_code: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Apply to run for a position. Only while the candidacy window is open."""
    get_election_for_viewer(db, payload.election_id, access_code, is_admin(db, user_id))
    application = controller.submit_application(db, user_id, payload)
    return {
        "success": True,
        "status": 201,
        "message": "Application submitted. An administrator will review it.",
        "data": controller.application_to_data(application),
    }


@router.get("/applications")
def list_applications(
    filters: schemas.ApplicationFilters = Depends(),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Admins see every application; everyone else sees their own."""
    owner = None if is_admin(db, user_id) else user_id
    applications = controller.list_applications(db, filters, user_id=owner)
    return {
        "success": True,
        "status": 200,
        "message": f"Fetched {len(applications)} application(s).",
        "data": [controller.application_to_data(a) for a in applications],
    }


@router.put("/applications/{application_id}/review", response_model=schemas.ApplicationResponse)
def review_application(
    application_id: int,
    payload: schemas.ApplicationReview = Body(...),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    ensure_admin(db, user_id)
    application = controller.review_application(db, application_id, payload, user_id)
    return {
        "success": True,
        "status": 200,
        "message": f"Application {application.status.value}.",
        "data": controller.application_to_data(application),
    }


@router.delete("/applications/{application_id}")
def delete_application(
    application_id: int,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    controller.delete_application(db, application_id, user_id, is_admin(db, user_id))
    return {"success": True, "status": 200, "message": "Application deleted.", "data": None}


# ----------------------
# Candidates
# ----------------------
@router.get("/")
def list_candidates(
    election_id: int = Query(...),
    position: Optional[str] = Query(None),
    access_code: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    get_election_for_viewer(db, election_id, access_code, is_admin(db, user_id))
    candidates = controller.list_candidates(db, election_id, position)
    return {
        "success": True,
        "status": 200,
        "message": f"Fetched {len(candidates)} candidate(s).",
        "data": [schemas.CandidateData.model_validate(c) for c in candidates],
    }


@router.post("/", response_model=schemas.CandidateResponse, status_code=status.HTTP_201_CREATED)
def add_candidate(
    payload: schemas.CandidateCreate = Body(...),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    ensure_admin(db, user_id)
    candidate = controller.add_candidate(db, payload, user_id)
    return {
        "success": True,
        "status": 201,
        "message": "Candidate added successfully.",
        "data": schemas.CandidateData.model_validate(candidate),
    }


@router.get("/{candidate_id}", response_model=schemas.CandidateResponse)
def get_candidate(
    candidate_id: int,
    access_code: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    candidate = controller.get_candidate_or_404(db, candidate_id)
    get_election_for_viewer(db, candidate.election_id, access_code, is_admin(db, user_id))
    return {
        "success": True,
        "status": 200,
        "message": "Candidate found.",
        "data": schemas.CandidateData.model_validate(candidate),
    }


@router.put("/{candidate_id}", response_model=schemas.CandidateResponse)
def update_candidate(
    candidate_id: int,
    payload: schemas.CandidateUpdate = Body(...),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    ensure_admin(db, user_id)
    candidate = controller.update_candidate(db, candidate_id, payload, user_id)
    return {
        "success": True,
        "status": 200,
        "message": "Candidate updated successfully.",
        "data": schemas.CandidateData.model_validate(candidate),
    }


@router.delete("/{candidate_id}")
def delete_candidate(
    candidate_id: int,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    ensure_admin(db, user_id)
    controller.delete_candidate(db, candidate_id, user_id)
    return {"success": True, "status": 200, "message": "Candidate deleted.", "data": None}
