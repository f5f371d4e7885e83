# tests/test_eligibility.py
from types import SimpleNamespace

import pytest

from uvote.routers.voting.eligibility import (
    ALL_YEAR_LEVELS, UNIVERSITY_WIDE, EligibilityConstraints, eligible_profiles, is_eligible,
)


def profile(id="v1", verified=True, department="CS", year_level="2nd Year"):
    return SimpleNamespace(id=id, is_verified=verified, department=department, year_level=year_level)


def test_unrestricted_election_accepts_verified_voter():
    result = is_eligible(profile(), EligibilityConstraints())
    assert result.eligible
    assert result.reason is None


def test_missing_profile_is_ineligible():
    assert is_eligible(None, EligibilityConstraints()).reason == "profile not found"


def test_unverified_profile_is_ineligible_first():
    constraints = EligibilityConstraints(departments=("EE",), restrict_voting=True)
    result = is_eligible(profile(verified=False), constraints)
    assert not result.eligible
    assert result.reason == "profile not verified"


def test_allow_list_checked_before_department():
    constraints = EligibilityConstraints(departments=("EE",), restrict_voting=True, allowed_voter_ids={"other"})
    assert is_eligible(profile(), constraints).reason == "not on eligible voter list"


def test_department_not_eligible():
    constraints = EligibilityConstraints(departments=("CS",))
    result = is_eligible(profile(department="EE"), constraints)
    assert not result.eligible
    assert result.reason == "department not eligible"


def test_year_level_not_eligible():
    constraints = EligibilityConstraints(year_levels=("4th Year",))
    assert is_eligible(profile(), constraints).reason == "year level not eligible"


@pytest.mark.parametrize("constraints", [
    EligibilityConstraints(departments=(UNIVERSITY_WIDE,)),
    EligibilityConstraints(departments=("EE", UNIVERSITY_WIDE)),
    EligibilityConstraints(year_levels=(ALL_YEAR_LEVELS,)),
    EligibilityConstraints(year_levels=("1st Year", ALL_YEAR_LEVELS)),
])
def test_sentinels_lift_restrictions(constraints):
    assert is_eligible(profile(department="Nursing", year_level="5th Year"), constraints).eligible


def test_allow_list_does_not_bypass_department():
    constraints = EligibilityConstraints(departments=("EE",), restrict_voting=True, allowed_voter_ids={"v1"})
    assert is_eligible(profile(), constraints).reason == "department not eligible"


def test_allow_list_membership_with_matching_groups():
    constraints = EligibilityConstraints(departments=("CS",), restrict_voting=True, allowed_voter_ids={"v1"})
    assert is_eligible(profile(), constraints).eligible


@pytest.mark.parametrize("voter", [
    profile(department="CS", year_level="1st Year"),
    profile(department="EE", year_level="2nd Year"),
    profile(department="Math", year_level="4th Year"),
])
def test_adding_own_group_never_makes_voter_ineligible(voter):
    before = EligibilityConstraints(departments=("Physics",), year_levels=("3rd Year",))
    after = EligibilityConstraints(
        departments=before.departments + (voter.department,),
        year_levels=before.year_levels + (voter.year_level,),
    )
    assert not is_eligible(voter, before).eligible
    assert is_eligible(voter, after).eligible


def test_removing_own_department_makes_voter_ineligible():
    with_dept = EligibilityConstraints(departments=("CS", "EE"))
    without = EligibilityConstraints(departments=("EE",))
    assert is_eligible(profile(), with_dept).eligible
    assert not is_eligible(profile(), without).eligible


def test_constraints_from_election_uses_canonical_fields():
    election = SimpleNamespace(departments=["CS"], eligible_year_levels=None, restrict_voting=1)
    constraints = EligibilityConstraints.from_election(election, ["a", "b"])
    assert constraints.departments == ("CS",)
    assert constraints.year_levels == ()
    assert constraints.restrict_voting is True
    assert constraints.allowed_voter_ids == frozenset({"a", "b"})


def test_eligible_profiles_filters_population():
    people = [profile(id="a"), profile(id="b", department="EE"), profile(id="c", verified=False)]
    kept = eligible_profiles(people, EligibilityConstraints(departments=("CS",)))
    assert [p.id for p in kept] == ["a"]
