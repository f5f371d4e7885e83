from datetime import datetime
from typing import Iterable, List, Optional
from uvote.utils.timeutils import utcnow
from .models import Election, ElectionStatusEnum


def effective_status(election: Election, now: Optional[datetime] = None) -> ElectionStatusEnum:
    """Status from the voting window, unless an admin already completed the election."""
    now = now or utcnow()
    if election.status == ElectionStatusEnum.completed:
        return ElectionStatusEnum.completed
    if now < election.start_date:
        return ElectionStatusEnum.upcoming
    if now <= election.end_date:
        return ElectionStatusEnum.active
    return ElectionStatusEnum.completed


def candidacy_open(election: Election, now: Optional[datetime] = None) -> bool:
    now = now or utcnow()
    if effective_status(election, now) == ElectionStatusEnum.completed:
        return False
    if election.candidacy_start_date and now < election.candidacy_start_date:
        return False
    if election.candidacy_end_date and now > election.candidacy_end_date:
        return False
    return True


def unique_names(values: Optional[Iterable[str]]) -> List[str]:
    """Strip blanks and drop duplicates, keeping the first occurrence."""
    seen = set()
    result = []
    for value in values or []:
        if value is None:
            continue
        name = str(value).strip()
        if name and name not in seen:
            seen.add(name)
            result.append(name)
    return result


def election_to_data(election: Election, include_access_code: bool = False,
                     now: Optional[datetime] = None) -> dict:
    return {
        "id": election.id,
        "title": election.title,
        "description": election.description or "",
        "start_date": election.start_date,
        "end_date": election.end_date,
        "candidacy_start_date": election.candidacy_start_date,
        "candidacy_end_date": election.candidacy_end_date,
        "status": effective_status(election, now).value,
        "positions": list(election.positions or []),
        "departments": list(election.departments or []),
        "eligible_year_levels": list(election.eligible_year_levels or []),
        "restrict_voting": bool(election.restrict_voting),
        "is_private": bool(election.is_private),
        "access_code": election.access_code if include_access_code else None,
        "banner_urls": list(election.banner_urls or []),
        "created_by": election.created_by,
        "created_at": election.created_at,
        "updated_at": election.updated_at,
    }
