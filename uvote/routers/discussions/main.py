from typing import Optional
from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session

from . import controller, schemas
from uvote.database import get_db
from uvote.routers.elections.controller import get_election_for_viewer
from uvote.routers.users.controller import is_admin
from uvote.utils.jwt import get_current_user_id

# Defining the router
router = APIRouter(
    prefix="/api/discussions",
    tags=["Discussions"],
    responses={404: {"description": "Not found"}},
)


def _ensure_access(db: Session, election_id: int, access_code: Optional[str], user_id: str) -> None:
    """Private elections keep their discussions behind the access code."""
    get_election_for_viewer(db, election_id, access_code, is_admin(db, user_id))


# ----------------------
# Topics
# ----------------------
@router.get("/topics")
def list_topics(
    election_id: int = Query(...),
    access_code: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    _ensure_access(db, election_id, access_code, user_id)
    topics = controller.list_topics(db, election_id)
    return {"success": True, "status": 200, "message": f"Fetched {len(topics)} topic(s).", "data": topics}


@router.post("/topics", status_code=status.HTTP_201_CREATED)
def create_topic(
    payload: schemas.TopicCreate = Body(...),
    access_code: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    _ensure_access(db, payload.election_id, access_code, user_id)
    topic = controller.create_topic(db, payload, user_id)
    return {"success": True, "status": 201, "message": "Topic created.", "data": controller.topic_to_data(topic)}


@router.get("/topics/{topic_id}")
def view_topic(
    topic_id: int,
    access_code: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Topic with its comments. Counts as a view."""
    _ensure_access(db, controller.get_topic_or_404(db, topic_id).election_id, access_code, user_id)
    return {"success": True, "status": 200, "message": "Topic found.", "data": controller.view_topic(db, topic_id)}


@router.put("/topics/{topic_id}")
def update_topic(
    topic_id: int,
    payload: schemas.TopicUpdate = Body(...),
    access_code: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    _ensure_access(db, controller.get_topic_or_404(db, topic_id).election_id, access_code, user_id)
    topic = controller.update_topic(db, topic_id, payload, user_id, is_admin(db, user_id))
    return {"success": True, "status": 200, "message": "Topic updated.", "data": controller.topic_to_data(topic)}


@router.delete("/topics/{topic_id}")
def delete_topic(
    topic_id: int,
    access_code: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    _ensure_access(db, controller.get_topic_or_404(db, topic_id).election_id, access_code, user_id)
    controller.delete_topic(db, topic_id, user_id, is_admin(db, user_id))
    return {"success": True, "status": 200, "message": "Topic deleted.", "data": None}


# ----------------------
# Comments
# ----------------------
@router.post("/topics/{topic_id}/comments", status_code=status.HTTP_201_CREATED)
def add_comment(
    topic_id: int,
    payload: schemas.CommentCreate = Body(...),
    access_code: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    _ensure_access(db, controller.get_topic_or_404(db, topic_id).election_id, access_code, user_id)
    comment = controller.add_comment(db, topic_id, payload, user_id)
    return {
        "success": True,
        "status": 201,
        "message": "Comment posted.",
        "data": schemas.CommentData.model_validate(comment),
    }


@router.delete("/comments/{comment_id}")
def delete_comment(
    comment_id: int,
    access_code: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    comment = controller.get_comment_or_404(db, comment_id)
    _ensure_access(db, controller.get_topic_or_404(db, comment.topic_id).election_id, access_code, user_id)
    removed = controller.delete_comment(db, comment_id, user_id, is_admin(db, user_id))
    return {"success": True, "status": 200, "message": "Comment deleted.", "data": {"removed": removed}}


# ----------------------
# Polls
# ----------------------
@router.get("/polls")
def list_polls(
    election_id: int = Query(...),
    access_code: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    _ensure_access(db, election_id, access_code, user_id)
    polls = controller.list_polls(db, election_id)
    return {
        "success": True,
        "status": 200,
        "message": f"Fetched {len(polls)} poll(s).",
        "data": [controller.poll_to_data(p, user_id) for p in polls],
    }


@router.post("/polls", status_code=status.HTTP_201_CREATED)
def create_poll(
    payload: schemas.PollCreate = Body(...),
    access_code: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    _ensure_access(db, payload.election_id, access_code, user_id)
    poll = controller.create_poll(db, payload, user_id)
    return {"success": True, "status": 201, "message": "Poll created.", "data": controller.poll_to_data(poll, user_id)}


@router.post("/polls/{poll_id}/vote")
def vote_poll(
    poll_id: int,
    payload: schemas.PollVoteRequest = Body(...),
    access_code: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    _ensure_access(db, controller.get_poll_or_404(db, poll_id).election_id, access_code, user_id)
    controller.vote_poll(db, poll_id, payload.options, user_id)
    return {
        "success": True,
        "status": 200,
        "message": "Your poll vote has been recorded.",
        "data": controller.poll_results(db, poll_id),
    }


@router.get("/polls/{poll_id}/results")
def poll_results(
    poll_id: int,
    access_code: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    _ensure_access(db, controller.get_poll_or_404(db, poll_id).election_id, access_code, user_id)
    return {"success": True, "status": 200, "message": "Poll results.", "data": controller.poll_results(db, poll_id)}


@router.post("/polls/{poll_id}/close")
def close_poll(
    poll_id: int,
    access_code: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    _ensure_access(db, controller.get_poll_or_404(db, poll_id).election_id, access_code, user_id)
    poll = controller.close_poll(db, poll_id, user_id, is_admin(db, user_id))
    return {"success": True, "status": 200, "message": "Poll closed.", "data": controller.poll_to_data(poll, user_id)}


@router.delete("/polls/{poll_id}")
def delete_poll(
    poll_id: int,
    access_code: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    _ensure_access(db, controller.get_poll_or_404(db, poll_id).election_id, access_code, user_id)
    controller.delete_poll(db, poll_id, user_id, is_admin(db, user_id))
    return {"success": True, "status": 200, "message": "Poll deleted.", "data": None}
