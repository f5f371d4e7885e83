# uvote/routers/elections/controller.py
from datetime import datetime
from typing import List, Optional
from fastapi import HTTPException, status
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import models, schemas
from .utilities import effective_status, election_to_data, unique_names
from uvote.database import commit_changes
from uvote.routers.users import models as user_models
from uvote.utils.timeutils import as_naive_utc, utcnow


def get_election_or_404(db: Session, election_id: int) -> models.Election:
    election = db.query(models.Election).filter(models.Election.id == election_id).first()
    if not election:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Election not found.")
    return election


def _naive(value: Optional[datetime]) -> Optional[datetime]:
    return as_naive_utc(value) if value is not None else None


def _validate_election(election: models.Election) -> None:
    if election.end_date <= election.start_date:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail="The end date must be after the start date.")
    cs, ce = election.candidacy_start_date, election.candidacy_end_date
    if cs and ce and ce < cs:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail="The candidacy period must end after it starts.")
    if ce and ce > election.end_date:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail="The candidacy period must end before voting ends.")
    if election.is_private and not (election.access_code or "").strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail="Private elections need an access code.")


def create_election(db: Session, payload: schemas.ElectionCreate, created_by: str,
                    now: Optional[datetime] = None) -> models.Election:
    election = models.Election(
        title=payload.title.strip(),
        description=payload.description,
        start_date=as_naive_utc(payload.start_date),
        end_date=as_naive_utc(payload.end_date),
        candidacy_start_date=_naive(payload.candidacy_start_date),
        candidacy_end_date=_naive(payload.candidacy_end_date),
        positions=unique_names(payload.positions),
        departments=unique_names(payload.departments),
        eligible_year_levels=unique_names(payload.eligible_year_levels),
        restrict_voting=payload.restrict_voting,
        is_private=payload.is_private,
        access_code=payload.access_code.strip() if payload.access_code else None,
        banner_urls=list(payload.banner_urls),
        created_by=created_by,
        status=models.ElectionStatusEnum.upcoming,
    )
    _validate_election(election)
    election.status = effective_status(election, now)

    db.add(election)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Database commit failed while creating election '{payload.title}'")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                            detail="Could not save the election. Please try again.")
    db.refresh(election)
    logger.info(f"Election {election.id} created by {created_by}")
    return election


def update_election(db: Session, election_id: int, payload: schemas.ElectionUpdate,
                    actor_id: str) -> models.Election:
    election = get_election_or_404(db, election_id)
    changes = payload.model_dump(exclude_unset=True)

    for field in ("start_date", "end_date", "candidacy_start_date", "candidacy_end_date"):
        if field in changes:
            changes[field] = _naive(changes[field])
    for field in ("positions", "departments", "eligible_year_levels"):
        if field in changes:
            changes[field] = unique_names(changes[field])
    if changes.get("status") is not None:
        changes["status"] = models.ElectionStatusEnum(changes["status"].value)
    if "access_code" in changes and changes["access_code"]:
        changes["access_code"] = changes["access_code"].strip()

    for field, value in changes.items():
        if value is None and field in ("title", "start_date", "end_date", "status", "positions",
                                       "departments", "eligible_year_levels", "restrict_voting",
                                       "is_private", "banner_urls"):
            continue
        setattr(election, field, value)

    _validate_election(election)
    commit_changes(db, "update the election")
    db.refresh(election)
    logger.info(f"Election {election_id} updated by {actor_id}: {sorted(changes)}")
    return election


def list_elections(db: Session, filters: schemas.ElectionFilters, include_access_code: bool = False,
                   now: Optional[datetime] = None):
    now = now or utcnow()
    query = db.query(models.Election)
    if filters.search:
        query = query.filter(models.Election.title.ilike(f"%{filters.search.strip()}%"))
    elections: List[models.Election] = query.order_by(models.Election.start_date.desc(),
                                                      models.Election.id.desc()).all()
    if filters.status is not None:
        elections = [e for e in elections if effective_status(e, now).value == filters.status.value]

    total = len(elections)
    offset = (filters.page - 1) * filters.limit
    items = [election_to_data(e, include_access_code, now) for e in elections[offset: offset + filters.limit]]
    return {
        "items": items,
        "pagination": {
            "total": total,
            "page": filters.page,
            "limit": filters.limit,
            "has_next": offset + filters.limit < total,
            "has_prev": filters.page > 1,
        },
    }


def check_access_code(election: models.Election, access_code: Optional[str]) -> bool:
    if not election.is_private:
        return True
    return bool(access_code) and access_code.strip() == (election.access_code or "")


def get_election_for_viewer(db: Session, election_id: int, access_code: Optional[str],
                            viewer_is_admin: bool) -> models.Election:
    election = get_election_or_404(db, election_id)
    if not viewer_is_admin and not check_access_code(election, access_code):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                            detail="This election is private. A valid access code is required.")
    return election


def complete_election(db: Session, election_id: int, actor_id: str) -> models.Election:
    election = get_election_or_404(db, election_id)
    election.status = models.ElectionStatusEnum.completed
    commit_changes(db, "complete the election")
    db.refresh(election)
    logger.info(f"Election {election_id} marked completed by {actor_id}")
    return election


def _require_confirmation(confirm: bool, action: str) -> None:
    if not confirm:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail=f"{action} cannot be undone. Repeat the request with confirm=true.")


def reset_votes(db: Session, election_id: int, actor_id: str, confirm: bool) -> int:
    """Remove every vote row of the election so everyone can vote again."""
    _require_confirmation(confirm, "Resetting votes")
    get_election_or_404(db, election_id)
    try:
        removed = db.query(models.Vote).filter(models.Vote.election_id == election_id).delete(
            synchronize_session=False
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Vote reset failed for election {election_id} (actor {actor_id})")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                            detail="Could not reset votes. Please try again.")
    logger.warning(f"Election {election_id}: {removed} vote row(s) removed by {actor_id}")
    return removed


def delete_election(db: Session, election_id: int, actor_id: str, confirm: bool) -> None:
    _require_confirmation(confirm, "Deleting an election")
    election = get_election_or_404(db, election_id)
    try:
        # Children first so foreign keys hold on stores that enforce them.
        db.query(models.Vote).filter(models.Vote.election_id == election_id).delete(synchronize_session=False)
        poll_ids = [p.id for p in db.query(models.Poll.id).filter(models.Poll.election_id == election_id)]
        if poll_ids:
            db.query(models.PollVote).filter(models.PollVote.poll_id.in_(poll_ids)).delete(synchronize_session=False)
        db.query(models.Poll).filter(models.Poll.election_id == election_id).delete(synchronize_session=False)
        topic_ids = [t.id for t in db.query(models.DiscussionTopic.id).filter(
            models.DiscussionTopic.election_id == election_id)]
        if topic_ids:
            db.query(models.DiscussionComment).filter(
                models.DiscussionComment.topic_id.in_(topic_ids)).delete(synchronize_session=False)
        db.query(models.DiscussionTopic).filter(
            models.DiscussionTopic.election_id == election_id).delete(synchronize_session=False)
        db.query(models.Candidate).filter(models.Candidate.election_id == election_id).delete(
            synchronize_session=False)
        db.query(models.CandidateApplication).filter(
            models.CandidateApplication.election_id == election_id).delete(synchronize_session=False)
        db.query(models.EligibleVoter).filter(models.EligibleVoter.election_id == election_id).delete(
            synchronize_session=False)
        db.expire(election)
        db.delete(election)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Deleting election {election_id} failed (actor {actor_id})")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                            detail="Could not delete the election. Please try again.")
    logger.warning(f"Election {election_id} deleted by {actor_id}")


# -------------------------
# Eligible voters
# -------------------------
def get_allowed_voter_ids(db: Session, election_id: int) -> set:
    rows = db.query(models.EligibleVoter.user_id).filter(models.EligibleVoter.election_id == election_id).all()
    return {r.user_id for r in rows}


def add_eligible_voters(db: Session, election_id: int, user_ids: List[str], added_by: str) -> dict:
    get_election_or_404(db, election_id)
    requested = unique_names(user_ids)

    known = {
        p.id for p in db.query(user_models.Profile.id).filter(user_models.Profile.id.in_(requested))
    }
    missing = [u for u in requested if u not in known]
    if missing:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND,
                            detail=f"No profile found for: {', '.join(missing)}")

    existing = get_allowed_voter_ids(db, election_id)
    added = [u for u in requested if u not in existing]
    skipped = [u for u in requested if u in existing]
    db.add_all(models.EligibleVoter(election_id=election_id, user_id=u, added_by=added_by) for u in added)
    commit_changes(db, "add the eligible voters")
    logger.info(f"Election {election_id}: {len(added)} eligible voter(s) added by {added_by}")
    return {"added": added, "skipped": skipped}


def remove_eligible_voter(db: Session, election_id: int, user_id: str, actor_id: str) -> None:
    deleted = db.query(models.EligibleVoter).filter(
        models.EligibleVoter.election_id == election_id,
        models.EligibleVoter.user_id == user_id,
    ).delete(synchronize_session=False)
    commit_changes(db, "remove the eligible voter")
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Voter is not on the eligible list.")
    logger.info(f"Election {election_id}: {user_id} removed from eligible voters by {actor_id}")


def clear_eligible_voters(db: Session, election_id: int, actor_id: str) -> int:
    get_election_or_404(db, election_id)
    removed = db.query(models.EligibleVoter).filter(models.EligibleVoter.election_id == election_id).delete(
        synchronize_session=False
    )
    commit_changes(db, "clear the eligible voters")
    logger.info(f"Election {election_id}: eligible voter list cleared by {actor_id} ({removed} removed)")
    return removed


def list_eligible_voters(db: Session, election_id: int) -> List[schemas.EligibleVoterData]:
    get_election_or_404(db, election_id)
    rows = (
        db.query(models.EligibleVoter, user_models.Profile)
        .outerjoin(user_models.Profile, user_models.Profile.id == models.EligibleVoter.user_id)
        .filter(models.EligibleVoter.election_id == election_id)
        .order_by(models.EligibleVoter.id)
        .all()
    )
    return [
        schemas.EligibleVoterData(
            user_id=entry.user_id,
            added_by=entry.added_by,
            created_at=entry.created_at,
            name=profile.full_name if profile else None,
            email=profile.email if profile else None,
            department=profile.department if profile else None,
            year_level=profile.year_level if profile else None,
            is_verified=bool(profile.is_verified) if profile else None,
        )
        for entry, profile in rows
    ]
