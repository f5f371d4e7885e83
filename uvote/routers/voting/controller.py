# uvote/routers/voting/controller.py
"""
Ballot casting.

Every route that checks or records a vote goes through this module; no other code
writes to the `votes` table except the admin reset and election deletion.
"""
from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence
from loguru import logger
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from . import models, schemas
from .eligibility import EligibilityConstraints, EligibilityResult, is_eligible
from .exceptions import (
    AccessCodeError, AlreadyVotedError, BallotValidationError, BallotWriteError,
    ElectionNotFoundError, IneligibleVoterError, VotingClosedError,
)
from uvote.routers.candidates import models as candidate_models
from uvote.routers.elections import models as election_models
from uvote.routers.elections.controller import check_access_code, get_allowed_voter_ids
from uvote.routers.elections.utilities import effective_status, unique_names
from uvote.routers.users import models as user_models
from uvote.utils.timeutils import utcnow

ACTIVE = election_models.ElectionStatusEnum.active
NO_POSITIONS = "there are no positions to vote for"


def get_election(db: Session, election_id: int) -> election_models.Election:
    election = db.query(election_models.Election).filter(election_models.Election.id == election_id).first()
    if election is None:
        raise ElectionNotFoundError(election_id)
    return election


def get_candidates(db: Session, election_id: int) -> List[candidate_models.Candidate]:
    return (
        db.query(candidate_models.Candidate)
        .filter(candidate_models.Candidate.election_id == election_id)
        .order_by(candidate_models.Candidate.id)
        .all()
    )


def evaluate_eligibility(db: Session, user_id: str, election: election_models.Election) -> EligibilityResult:
    profile = db.query(user_models.Profile).filter(user_models.Profile.id == user_id).first()
    allowed = get_allowed_voter_ids(db, election.id) if election.restrict_voting else ()
    return is_eligible(profile, EligibilityConstraints.from_election(election, allowed))


# -------------------------
# Duplicate-vote guard
# -------------------------
def has_voted(db: Session, user_id: str, election_id: int) -> bool:
    """Any vote row, the completion marker included, means the ballot was cast."""
    row = (
        db.query(models.Vote.id)
        .filter(models.Vote.election_id == election_id, models.Vote.user_id == user_id)
        .first()
    )
    return row is not None


# -------------------------
# Ballot shape
# -------------------------
def ballot_positions(election: election_models.Election, candidates: Sequence[Any]) -> List[str]:
    """The election's own positions; failing that, the positions its candidates stand for."""
    if election.positions:
        return unique_names(election.positions)
    return unique_names(c.position for c in candidates)


def normalize_selections(
    positions: Sequence[str], candidates: Sequence[Any], selections: Mapping[str, Any]
) -> Dict[str, Optional[int]]:
    """
    Check a ballot against the positions on offer and map each position to a
    candidate id, or None for an abstention.
    """
    if not positions:
        raise BallotValidationError(NO_POSITIONS)

    missing = [p for p in positions if selections.get(p) in (None, "")]
    if missing:
        raise BallotValidationError(f"missing selection for: {', '.join(missing)}", missing)

    unknown = [p for p in selections if p not in positions]
    if unknown:
        raise BallotValidationError(f"unknown position(s): {', '.join(unknown)}", unknown)

    running = defaultdict(set)
    for candidate in candidates:
        running[candidate.position].add(candidate.id)

    normalized: Dict[str, Optional[int]] = {}
    for position in positions:
        choice = selections[position]
        if isinstance(choice, str) and choice.strip().lower() == schemas.ABSTAIN:
            normalized[position] = None
            continue
        if isinstance(choice, bool):
            raise BallotValidationError(f"invalid selection for {position}", [position])
        try:
            candidate_id = int(choice)
        except (TypeError, ValueError):
            raise BallotValidationError(f"invalid selection for {position}", [position])
        if candidate_id not in running[position]:
            raise BallotValidationError(
                f"candidate {candidate_id} is not running for {position}", [position]
            )
        normalized[position] = candidate_id
    return normalized


# -------------------------
# Page-load gate
# -------------------------
def get_ballot_status(
    db: Session, user_id: str, election_id: int, access_code: Optional[str] = None,
    now: Optional[datetime] = None,
) -> schemas.BallotStatus:
    election = get_election(db, election_id)
    state = effective_status(election, now)
    eligibility = evaluate_eligibility(db, user_id, election)
    voted = has_voted(db, user_id, election_id)
    access_ok = check_access_code(election, access_code)

    reason = None
    if state != ACTIVE:
        reason = VotingClosedError().message
    elif not access_ok:
        reason = AccessCodeError().message
    elif not eligibility.eligible:
        reason = eligibility.reason
    elif voted:
        reason = AlreadyVotedError().message

    can_vote = reason is None
    ballot: List[schemas.BallotPosition] = []
    if can_vote:
        candidates = get_candidates(db, election_id)
        for position in ballot_positions(election, candidates):
            ballot.append(schemas.BallotPosition(
                position=position,
                candidates=[
                    schemas.CandidateOption(
                        id=c.id, name=c.name, bio=c.bio, image_url=c.image_url,
                        department=c.department, year_level=c.year_level,
                    )
                    for c in candidates if c.position == position
                ],
            ))
        if not ballot:
            # Same refusal the recorder gives an empty ballot.
            reason = NO_POSITIONS
            can_vote = False

    return schemas.BallotStatus(
        election_id=election_id,
        status=state.value,
        eligible=eligibility.eligible,
        has_voted=voted,
        can_vote=can_vote,
        reason=reason,
        ballot=ballot,
    )


# -------------------------
# Ballot recorder
# -------------------------
def cast_ballot(
    db: Session,
    user_id: str,
    election_id: int,
    selections: Mapping[str, Any],
    access_code: Optional[str] = None,
    now: Optional[datetime] = None,
) -> schemas.BallotReceipt:
    """
    Record a full ballot: one completion marker plus one row per position.

    Raises a VotingError subclass when the ballot is refused; nothing is written then.
    """
    context = f"cast_ballot election={election_id} user={user_id}"
    now = now or utcnow()

    election = get_election(db, election_id)

    if effective_status(election, now) != ACTIVE:
        logger.info(f"{context}: refused, voting closed")
        raise VotingClosedError()

    if not check_access_code(election, access_code):
        logger.info(f"{context}: refused, invalid access code")
        raise AccessCodeError()

    eligibility = evaluate_eligibility(db, user_id, election)
    if not eligibility.eligible:
        logger.info(f"{context}: refused, {eligibility.reason}")
        raise IneligibleVoterError(eligibility.reason)

    if has_voted(db, user_id, election_id):
        logger.warning(f"{context}: refused, already voted")
        raise AlreadyVotedError()

    candidates = get_candidates(db, election_id)
    try:
        normalized = normalize_selections(ballot_positions(election, candidates), candidates, selections)
    except BallotValidationError as e:
        logger.info(f"{context}: invalid ballot, {e.message}")
        raise

    marker = models.Vote(election_id=election_id, user_id=user_id, position=None,
                         candidate_id=None, cast_at=now)
    try:
        db.add(marker)
        # The marker goes first so a racing duplicate fails before any position row.
        db.flush()
        db.add_all(
            models.Vote(election_id=election_id, user_id=user_id, position=position,
                        candidate_id=candidate_id, cast_at=now)
            for position, candidate_id in normalized.items()
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        if has_voted(db, user_id, election_id):
            logger.warning(f"{context}: concurrent duplicate ballot rejected by the store")
            raise AlreadyVotedError()
        logger.exception(f"{context}: integrity error while writing the ballot")
        raise BallotWriteError()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"{context}: ballot write failed")
        raise BallotWriteError()

    logger.info(f"{context}: ballot recorded ({len(normalized)} position(s))")
    return schemas.BallotReceipt(
        ballot_id=marker.id,
        election_id=election_id,
        user_id=user_id,
        cast_at=now,
        selections=normalized,
        abstained=[p for p, c in normalized.items() if c is None],
    )


def get_my_votes(db: Session, user_id: str, now: Optional[datetime] = None) -> List[schemas.MyVote]:
    rows = (
        db.query(models.Vote, election_models.Election)
        .join(election_models.Election, election_models.Election.id == models.Vote.election_id)
        .filter(models.Vote.user_id == user_id, models.Vote.position.is_(None))
        .order_by(models.Vote.cast_at.desc())
        .all()
    )
    return [
        schemas.MyVote(
            election_id=election.id,
            title=election.title,
            status=effective_status(election, now).value,
            cast_at=vote.cast_at,
        )
        for vote, election in rows
    ]
