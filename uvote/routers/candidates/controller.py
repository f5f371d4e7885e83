# uvote/routers/candidates/controller.py
from datetime import datetime
from typing import List, Optional
from fastapi import HTTPException, status
from loguru import logger
from sqlalchemy import func
from sqlalchemy.orm import Session

from . import models, schemas
from uvote.database import commit_changes
from uvote.routers.elections import models as election_models
from uvote.routers.elections.controller import get_election_or_404
from uvote.routers.elections.utilities import candidacy_open
from uvote.routers.users.controller import get_profile
from uvote.routers.voting import models as vote_models
from uvote.utils.timeutils import utcnow

Status = models.ApplicationStatusEnum

# current status -> statuses a reviewer may move it to
REVIEW_TRANSITIONS = {
    Status.pending: {Status.approved, Status.rejected, Status.disqualified},
    Status.approved: {Status.disqualified},
    Status.rejected: {Status.pending},
    Status.disqualified: set(),
}

PROFILE_FIELDS = ("name", "bio", "image_url", "student_id", "department", "year_level")


def application_to_data(application: models.CandidateApplication) -> schemas.ApplicationData:
    return schemas.ApplicationData(
        id=application.id,
        election_id=application.election_id,
        user_id=application.user_id,
        name=application.name,
        position=application.position,
        bio=application.bio,
        image_url=application.image_url,
        student_id=application.student_id,
        department=application.department,
        year_level=application.year_level,
        is_faculty=bool(application.is_faculty),
        faculty_position=application.faculty_position,
        status=application.status.value,
        feedback=application.feedback,
        reviewed_by=application.reviewed_by,
        reviewed_at=application.reviewed_at,
        created_at=application.created_at,
        updated_at=application.updated_at,
    )


def check_position(election: election_models.Election, position: Optional[str]) -> str:
    """Positions are checked against the election's list; free-form when it has none."""
    name = (position or "").strip()
    if not name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="A position is required.")
    if election.positions and name not in election.positions:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"'{name}' is not a position in this election. Choose one of: {', '.join(election.positions)}",
        )
    return name


# -------------------------
# Candidates
# -------------------------
def get_candidate_or_404(db: Session, candidate_id: int) -> models.Candidate:
    candidate = db.query(models.Candidate).filter(models.Candidate.id == candidate_id).first()
    if not candidate:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Candidate not found.")
    return candidate


def candidate_vote_count(db: Session, candidate_id: int) -> int:
    return db.query(func.count(vote_models.Vote.id)).filter(
        vote_models.Vote.candidate_id == candidate_id
    ).scalar() or 0


def list_candidates(db: Session, election_id: int, position: Optional[str] = None) -> List[models.Candidate]:
    get_election_or_404(db, election_id)
    query = db.query(models.Candidate).filter(models.Candidate.election_id == election_id)
    if position:
        query = query.filter(models.Candidate.position == position.strip())
    return query.order_by(models.Candidate.position, models.Candidate.id).all()


def add_candidate(db: Session, payload: schemas.CandidateCreate, actor_id: str) -> models.Candidate:
    election = get_election_or_404(db, payload.election_id)
    candidate = models.Candidate(
        election_id=election.id,
        name=payload.name.strip(),
        position=check_position(election, payload.position),
        bio=payload.bio,
        image_url=payload.image_url,
        student_id=payload.student_id,
        department=payload.department,
        year_level=payload.year_level,
    )
    db.add(candidate)
    commit_changes(db, "add the candidate")
    db.refresh(candidate)
    logger.info(f"Candidate {candidate.id} ({candidate.position}) added to election {election.id} by {actor_id}")
    return candidate


def update_candidate(db: Session, candidate_id: int, payload: schemas.CandidateUpdate,
                     actor_id: str) -> models.Candidate:
    candidate = get_candidate_or_404(db, candidate_id)
    changes = payload.model_dump(exclude_unset=True)
    for field, value in changes.items():
        if field == "name" and not value:
            continue
        setattr(candidate, field, value.strip() if field == "name" else value)
    commit_changes(db, "update the candidate")
    db.refresh(candidate)
    logger.info(f"Candidate {candidate_id} updated by {actor_id}: {sorted(changes)}")
    return candidate


def _ensure_no_votes(db: Session, candidate: models.Candidate) -> None:
    votes = candidate_vote_count(db, candidate.id)
    if votes:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Candidate {candidate.name} already has {votes} vote(s) and cannot be removed.",
        )


def delete_candidate(db: Session, candidate_id: int, actor_id: str) -> None:
    candidate = get_candidate_or_404(db, candidate_id)
    _ensure_no_votes(db, candidate)
    db.delete(candidate)
    commit_changes(db, "delete the candidate")
    logger.info(f"Candidate {candidate_id} deleted by {actor_id}")


# -------------------------
# Applications
# -------------------------
def get_application_or_404(db: Session, application_id: int) -> models.CandidateApplication:
    application = db.query(models.CandidateApplication).filter(
        models.CandidateApplication.id == application_id
    ).first()
    if not application:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Application not found.")
    return application


def submit_application(db: Session, user_id: str, payload: schemas.ApplicationCreate,
                       now: Optional[datetime] = None) -> models.CandidateApplication:
    election = get_election_or_404(db, payload.election_id)
    if not candidacy_open(election, now):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail="Candidacy applications are closed for this election.")
    position = check_position(election, payload.position)

    existing = db.query(models.CandidateApplication).filter(
        models.CandidateApplication.election_id == election.id,
        models.CandidateApplication.user_id == user_id,
        models.CandidateApplication.status != Status.rejected,
    ).first()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT,
                            detail="You already have an application for this election.")

    profile = get_profile(db, user_id)
    application = models.CandidateApplication(
        election_id=election.id,
        user_id=user_id,
        name=payload.name.strip(),
        position=position,
        bio=payload.bio,
        image_url=payload.image_url,
        student_id=payload.student_id or (profile.student_id if profile else None),
        department=payload.department or (profile.department if profile else None),
        year_level=payload.year_level or (profile.year_level if profile else None),
        is_faculty=payload.is_faculty,
        faculty_position=payload.faculty_position if payload.is_faculty else None,
        status=Status.pending,
    )
    db.add(application)
    commit_changes(db, "submit the application")
    db.refresh(application)
    logger.info(f"Application {application.id} for {position} submitted by {user_id} (election {election.id})")
    return application


def review_application(db: Session, application_id: int, payload: schemas.ApplicationReview,
                       reviewer_id: str, now: Optional[datetime] = None) -> models.CandidateApplication:
    application = get_application_or_404(db, application_id)
    current = application.status
    target = Status(payload.status.value)
    if target not in REVIEW_TRANSITIONS[current]:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"An application that is {current.value} cannot be marked {target.value}.",
        )

    if target == Status.approved:
        election = get_election_or_404(db, application.election_id)
        db.add(models.Candidate(
            election_id=application.election_id,
            name=application.name,
            position=check_position(election, application.position),
            bio=application.bio,
            image_url=application.image_url,
            student_id=application.student_id,
            department=application.department,
            year_level=application.year_level,
            application_id=application.id,
        ))
    elif current == Status.approved:
        linked = db.query(models.Candidate).filter(models.Candidate.application_id == application.id).all()
        for candidate in linked:
            _ensure_no_votes(db, candidate)
            db.delete(candidate)

    application.status = target
    application.feedback = payload.feedback
    application.reviewed_by = reviewer_id
    application.reviewed_at = now or utcnow()
    commit_changes(db, "review the application")
    db.refresh(application)
    logger.info(f"Application {application_id}: {current.value} -> {target.value} by {reviewer_id}")
    return application


def list_applications(db: Session, filters: schemas.ApplicationFilters,
                      user_id: Optional[str] = None) -> List[models.CandidateApplication]:
    """All applications matching the filters; only the user's own when `user_id` is given."""
    query = db.query(models.CandidateApplication)
    if user_id is not None:
        query = query.filter(models.CandidateApplication.user_id == user_id)
    if filters.election_id is not None:
        query = query.filter(models.CandidateApplication.election_id == filters.election_id)
    if filters.status is not None:
        query = query.filter(models.CandidateApplication.status == Status(filters.status.value))
    return query.order_by(models.CandidateApplication.created_at.desc(), models.CandidateApplication.id.desc()).all()


def delete_application(db: Session, application_id: int, actor_id: str, actor_is_admin: bool) -> None:
    application = get_application_or_404(db, application_id)
    if not actor_is_admin:
        if application.user_id != actor_id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                                detail="You can only withdraw your own application.")
        if application.status != Status.pending:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                                detail="Only pending applications can be withdrawn.")

    db.query(models.Candidate).filter(models.Candidate.application_id == application.id).update(
        {models.Candidate.application_id: None}, synchronize_session=False
    )
    db.delete(application)
    commit_changes(db, "delete the application")
    logger.info(f"Application {application_id} deleted by {actor_id}")
