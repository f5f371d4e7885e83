"""
Vote tallying.

Works on plain values (candidates, (position, candidate_id) pairs, counts) so it can be
checked without a database. Every percentage is guarded against a zero denominator.
"""
from collections import Counter
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from .schemas import CandidateTally, PositionResult

CONTESTED = "Contested"
UNCONTESTED = "Uncontested"
VACANT = "Vacant"


def percentage(part: int, whole: int) -> float:
    if not whole:
        return 0.0
    return part / whole * 100


def order_positions(
    election_positions: Optional[Sequence[str]],
    candidates: Sequence[Any],
    voted_positions: Iterable[Optional[str]] = (),
) -> List[str]:
    """
    The ballot's positions (the election's list, or the candidates' positions when
    it is empty), then any other position that recorded votes mention.
    """
    ballot = election_positions or [c.position for c in candidates]
    ordered: List[str] = []
    for source in (ballot, voted_positions):
        for position in source:
            if position and position not in ordered:
                ordered.append(position)
    return ordered


def tally_position(
    position: str,
    candidates: Sequence[Any],
    counts: Counter,
    ballots_cast: int,
) -> PositionResult:
    """
    `counts` maps (position, candidate_id) to concrete votes. Abstentions are the
    ballots that carry no concrete vote for the position.
    """
    running = [c for c in candidates if c.position == position]
    votes = [counts.get((position, c.id), 0) for c in running]
    total = sum(votes)

    tallies = [
        CandidateTally(candidate_id=c.id, name=c.name, votes=v, percentage=percentage(v, total))
        for c, v in zip(running, votes)
    ]
    leaders: List[int] = []
    if total:
        top = max(votes)
        leaders = [t.candidate_id for t in tallies if t.votes == top]

    return PositionResult(
        position=position,
        total_votes=total,
        abstain_count=max(ballots_cast - total, 0),
        candidates=tallies,
        leaders=leaders,
    )


def tally_positions(
    election_positions: Optional[Sequence[str]],
    candidates: Sequence[Any],
    concrete_votes: Iterable[Tuple[str, int]],
    ballots_cast: int,
) -> List[PositionResult]:
    counts = Counter((position, candidate_id) for position, candidate_id in concrete_votes)
    positions = order_positions(election_positions, candidates, (p for p, _ in counts))
    return [tally_position(p, candidates, counts, ballots_cast) for p in positions]


def competition_level(candidate_count: int) -> str:
    if candidate_count > 1:
        return CONTESTED
    if candidate_count == 1:
        return UNCONTESTED
    return VACANT
