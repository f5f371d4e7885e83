# uvote/routers/results/controller.py
from collections import Counter
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from . import schemas
from .tally import competition_level, percentage, tally_positions
from uvote.routers.elections import models as election_models
from uvote.routers.elections.controller import get_allowed_voter_ids
from uvote.routers.elections.utilities import effective_status
from uvote.routers.users import models as user_models
from uvote.routers.voting import models as vote_models
from uvote.routers.voting.controller import get_candidates, get_election
from uvote.routers.voting.eligibility import EligibilityConstraints, eligible_profiles

UNSPECIFIED = "Unspecified"

Vote = vote_models.Vote


def eligible_voter_profiles(db: Session, election: election_models.Election) -> List[user_models.Profile]:
    """Profiles that may vote right now; recomputed on every call."""
    allowed = get_allowed_voter_ids(db, election.id) if election.restrict_voting else ()
    constraints = EligibilityConstraints.from_election(election, allowed)
    verified = db.query(user_models.Profile).filter(user_models.Profile.is_verified.is_(True)).all()
    return eligible_profiles(verified, constraints)


def count_eligible_voters(db: Session, election: election_models.Election) -> int:
    return len(eligible_voter_profiles(db, election))


def count_ballots(db: Session, election_id: int) -> int:
    return (
        db.query(func.count(Vote.id))
        .filter(Vote.election_id == election_id, Vote.position.is_(None))
        .scalar()
    ) or 0


def _concrete_votes(db: Session, election_id: int) -> List[tuple]:
    rows = (
        db.query(Vote.position, Vote.candidate_id)
        .filter(
            Vote.election_id == election_id,
            Vote.position.isnot(None),
            Vote.candidate_id.isnot(None),
        )
        .all()
    )
    return [(r.position, r.candidate_id) for r in rows]


def compute_results(db: Session, election_id: int, now: Optional[datetime] = None) -> schemas.ElectionResults:
    """Per-position tallies and participation, read fresh from the votes table."""
    election = get_election(db, election_id)
    state = effective_status(election, now)
    candidates = get_candidates(db, election_id)
    ballots = count_ballots(db, election_id)
    eligible = count_eligible_voters(db, election)

    return schemas.ElectionResults(
        election_id=election.id,
        title=election.title,
        status=state.value,
        is_final=state == election_models.ElectionStatusEnum.completed,
        ballots_cast=ballots,
        eligible_voters=eligible,
        participation_rate=percentage(ballots, eligible),
        positions=tally_positions(election.positions, candidates, _concrete_votes(db, election_id), ballots),
    )


def _group_participation(
    voters: Iterable[Any], eligible: Iterable[Any], attribute: str
) -> List[schemas.GroupParticipation]:
    ballots = Counter((getattr(p, attribute, None) or UNSPECIFIED) for p in voters)
    pool = Counter((getattr(p, attribute, None) or UNSPECIFIED) for p in eligible)
    groups = sorted(set(ballots) | set(pool))
    return [
        schemas.GroupParticipation(
            group=group,
            ballots=ballots[group],
            eligible=pool[group],
            participation_rate=percentage(ballots[group], pool[group]),
        )
        for group in groups
    ]


def compute_vote_statistics(db: Session, election_id: int) -> schemas.VoteStatistics:
    election = get_election(db, election_id)
    candidates = get_candidates(db, election_id)
    rows: List[Vote] = db.query(Vote).filter(Vote.election_id == election_id).all()

    markers = [v for v in rows if v.is_marker]
    position_rows = [v for v in rows if not v.is_marker]
    concrete = [(v.position, v.candidate_id) for v in position_rows if v.candidate_id is not None]

    eligible = eligible_voter_profiles(db, election)
    voter_ids = {v.user_id for v in markers}
    voters = (
        db.query(user_models.Profile).filter(user_models.Profile.id.in_(voter_ids)).all() if voter_ids else []
    )
    # Ballots cast by users whose profile has since gone count as unspecified.
    voters = list(voters) + [None] * (len(voter_ids) - len(voters))

    per_day: Dict[str, int] = Counter(v.cast_at.date().isoformat() for v in markers if v.cast_at)

    results = tally_positions(election.positions, candidates, concrete, len(markers))
    positions = [
        schemas.PositionStatistics(
            position=r.position,
            total_votes=r.total_votes,
            abstain_count=r.abstain_count,
            candidate_count=len(r.candidates),
            competition_level=competition_level(len(r.candidates)),
            leaders=r.leaders,
        )
        for r in results
    ]

    return schemas.VoteStatistics(
        election_id=election.id,
        unique_voters=len(voter_ids),
        position_rows=len(position_rows),
        candidate_votes=len(concrete),
        abstentions=len(position_rows) - len(concrete),
        eligible_voters=len(eligible),
        participation_rate=percentage(len(voter_ids), len(eligible)),
        positions=positions,
        votes_over_time=[schemas.DailyBallots(date=d, ballots=n) for d, n in sorted(per_day.items())],
        department_participation=_group_participation(voters, eligible, "department"),
        year_level_participation=_group_participation(voters, eligible, "year_level"),
    )
