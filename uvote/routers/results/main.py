from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from . import controller, schemas
from uvote.database import get_db
from uvote.routers.elections.controller import check_access_code
from uvote.routers.users.controller import ensure_admin, is_admin
from uvote.routers.voting.controller import get_election
from uvote.routers.voting.exceptions import VotingError
from uvote.utils.jwt import get_current_user_id

# Defining the router
router = APIRouter(
    prefix="/api/results",
    tags=["Results"],
    responses={404: {"description": "Not found"}},
)


@router.get("/{election_id}", response_model=schemas.ResultsResponse)
def election_results(
    election_id: int,
    access_code: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Live tallies while voting is open, final ones once the election is completed."""
    try:
        election = get_election(db, election_id)
        if not is_admin(db, user_id) and not check_access_code(election, access_code):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                                detail="This election is private. A valid access code is required.")
        results = controller.compute_results(db, election_id)
    except VotingError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return {
        "success": True,
        "status": 200,
        "message": "Final results." if results.is_final else "Live results.",
        "data": results,
    }


@router.get("/{election_id}/statistics")
def vote_statistics(
    election_id: int,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    ensure_admin(db, user_id)
    try:
        stats = controller.compute_vote_statistics(db, election_id)
    except VotingError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return {
        "success": True,
        "status": 200,
        "message": "Vote statistics computed.",
        "data": stats,
    }
