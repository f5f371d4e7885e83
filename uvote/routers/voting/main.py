from typing import Optional
from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from . import controller, schemas
from .exceptions import VotingError
from uvote.database import get_db
from uvote.utils.jwt import get_current_user_id

# Defining the router
router = APIRouter(
    prefix="/api/voting",
    tags=["Voting"],
    responses={404: {"description": "Not found"}},
)


def _to_http(error: VotingError) -> HTTPException:
    return HTTPException(status_code=error.status_code, detail=error.message)


@router.get("/me")
def my_votes(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    """Elections the signed-in user has voted in."""
    votes = controller.get_my_votes(db, user_id)
    return {
        "success": True,
        "status": 200,
        "message": f"Fetched {len(votes)} ballot(s).",
        "data": votes,
    }


@router.get("/{election_id}/status")
def ballot_status(
    election_id: int,
    access_code: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Everything the voting page needs on load: whether the user may vote, why not,
    and the ballot to fill in.
    """
    try:
        result = controller.get_ballot_status(db, user_id, election_id, access_code)
    except VotingError as e:
        raise _to_http(e)
    return {
        "success": True,
        "status": 200,
        "message": "You can vote in this election." if result.can_vote else f"You cannot vote: {result.reason}.",
        "data": result,
    }


@router.post("/{election_id}/ballot", status_code=status.HTTP_201_CREATED)
def cast_ballot(
    election_id: int,
    payload: schemas.CastBallotRequest = Body(...),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    try:
        receipt = controller.cast_ballot(
            db, user_id, election_id, payload.selections, access_code=payload.access_code
        )
    except VotingError as e:
        raise _to_http(e)
    return {
        "success": True,
        "status": 201,
        "message": "Your vote has been recorded.",
        "data": receipt,
    }
