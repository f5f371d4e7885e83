"""
Voter eligibility.

Pure functions: nothing here touches the database, so the result always reflects the
constraints and profile handed in. Callers re-evaluate on every request instead of
caching a verdict, because an admin may edit the constraints at any time.
"""
from typing import Any, FrozenSet, Iterable, Optional, Tuple
from pydantic import BaseModel, ConfigDict

UNIVERSITY_WIDE = "University-wide"
ALL_YEAR_LEVELS = "All Year Levels"

REASON_PROFILE_NOT_FOUND = "profile not found"
REASON_NOT_VERIFIED = "profile not verified"
REASON_NOT_ON_LIST = "not on eligible voter list"
REASON_DEPARTMENT = "department not eligible"
REASON_YEAR_LEVEL = "year level not eligible"


class EligibilityConstraints(BaseModel):
    """The one canonical constraint set of an election."""
    departments: Tuple[str, ...] = ()
    year_levels: Tuple[str, ...] = ()
    restrict_voting: bool = False
    allowed_voter_ids: FrozenSet[str] = frozenset()

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_election(cls, election: Any, allowed_voter_ids: Iterable[str] = ()) -> "EligibilityConstraints":
        return cls(
            departments=tuple(election.departments or ()),
            year_levels=tuple(election.eligible_year_levels or ()),
            restrict_voting=bool(election.restrict_voting),
            allowed_voter_ids=frozenset(allowed_voter_ids or ()),
        )

    @property
    def restricts_department(self) -> bool:
        return bool(self.departments) and UNIVERSITY_WIDE not in self.departments

    @property
    def restricts_year_level(self) -> bool:
        return bool(self.year_levels) and ALL_YEAR_LEVELS not in self.year_levels


class EligibilityResult(BaseModel):
    eligible: bool
    reason: Optional[str] = None

    model_config = ConfigDict(frozen=True)


def is_eligible(profile: Any, constraints: EligibilityConstraints) -> EligibilityResult:
    """
    Decide whether a voter may cast a ballot. The first failing check gives the reason.

    `profile` is anything exposing `id`, `is_verified`, `department` and `year_level`.
    """
    if profile is None:
        return EligibilityResult(eligible=False, reason=REASON_PROFILE_NOT_FOUND)

    if not getattr(profile, "is_verified", False):
        return EligibilityResult(eligible=False, reason=REASON_NOT_VERIFIED)

    if constraints.restrict_voting and str(profile.id) not in constraints.allowed_voter_ids:
        return EligibilityResult(eligible=False, reason=REASON_NOT_ON_LIST)

    if constraints.restricts_department and profile.department not in constraints.departments:
        return EligibilityResult(eligible=False, reason=REASON_DEPARTMENT)

    if constraints.restricts_year_level and profile.year_level not in constraints.year_levels:
        return EligibilityResult(eligible=False, reason=REASON_YEAR_LEVEL)

    return EligibilityResult(eligible=True)


def eligible_profiles(profiles: Iterable[Any], constraints: EligibilityConstraints) -> list:
    return [p for p in profiles if is_eligible(p, constraints).eligible]
