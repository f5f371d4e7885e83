# tests/test_results.py
from collections import Counter
from types import SimpleNamespace

import pytest

from conftest import auth, make_candidate, make_election, make_profile
from uvote.routers.elections import models as election_models
from uvote.routers.results import controller
from uvote.routers.results.tally import (
    competition_level, order_positions, percentage, tally_position, tally_positions,
)
from uvote.routers.voting import controller as voting


def candidate(id, position, name=None):
    return SimpleNamespace(id=id, position=position, name=name or f"C{id}")


# ----------------------
# Pure tally
# ----------------------
def test_percentage_is_zero_safe():
    assert percentage(0, 0) == 0.0
    assert percentage(3, 0) == 0.0
    assert percentage(1, 4) == 25.0


def test_tally_conserves_votes():
    candidates = [candidate(1, "President"), candidate(2, "President"), candidate(3, "President")]
    votes = [("President", 1)] * 5 + [("President", 2)] * 2 + [("President", 3)]
    result = tally_positions(["President"], candidates, votes, ballots_cast=10)[0]

    assert result.total_votes == 8
    assert sum(c.votes for c in result.candidates) == result.total_votes
    for c in result.candidates:
        assert c.percentage == c.votes / result.total_votes * 100
    assert result.abstain_count == 2
    assert result.leaders == [1]


def test_tie_reports_every_leader():
    counts = Counter({("VP", 1): 2, ("VP", 2): 2})
    result = tally_position("VP", [candidate(1, "VP"), candidate(2, "VP")], counts, ballots_cast=4)
    assert result.leaders == [1, 2]


def test_position_without_candidates_or_votes():
    result = tally_positions(["Treasurer"], [], [], ballots_cast=0)
    assert len(result) == 1
    assert result[0].position == "Treasurer"
    assert result[0].total_votes == 0
    assert result[0].candidates == []
    assert result[0].leaders == []
    assert result[0].abstain_count == 0


def test_no_positions_at_all():
    assert tally_positions([], [], [], ballots_cast=3) == []


def test_position_order():
    candidates = [candidate(1, "Auditor"), candidate(2, "President")]
    assert order_positions(["President", "Secretary"], candidates, ["PRO", None]) == [
        "President", "Secretary", "PRO",
    ]
    assert order_positions([], candidates, ["PRO"]) == ["Auditor", "President", "PRO"]


def test_positions_off_the_ballot_are_left_out(db, voter, council):
    election, c = council
    make_candidate(db, election, "Ada", "Auditor")
    voting.cast_ballot(db, "voter", election.id, {"President": c["P1"].id, "Secretary": "abstain"})

    positions = [p.position for p in controller.compute_results(db, election.id).positions]
    assert positions == ["President", "Secretary"]


def test_abstain_count_never_negative():
    counts = Counter({("President", 1): 3})
    assert tally_position("President", [candidate(1, "President")], counts, ballots_cast=1).abstain_count == 0


@pytest.mark.parametrize("count, level", [(0, "Vacant"), (1, "Uncontested"), (2, "Contested"), (5, "Contested")])
def test_competition_level(count, level):
    assert competition_level(count) == level


# ----------------------
# Against the store
# ----------------------
def test_results_after_one_ballot(db, voter, council):
    election, c = council
    voting.cast_ballot(db, "voter", election.id, {"President": c["P1"].id, "Secretary": "abstain"})

    results = controller.compute_results(db, election.id)
    president, secretary = results.positions

    assert president.position == "President"
    assert president.total_votes == 1
    assert [(t.candidate_id, t.votes, t.percentage) for t in president.candidates] == [
        (c["P1"].id, 1, 100.0),
        (c["P2"].id, 0, 0.0),
    ]
    assert president.abstain_count == 0
    assert secretary.total_votes == 0
    assert secretary.abstain_count == 1
    assert results.ballots_cast == 1
    assert not results.is_final


def test_results_are_stable_between_reads(db, voter, council):
    election, c = council
    voting.cast_ballot(db, "voter", election.id, {"President": c["P2"].id, "Secretary": c["S1"].id})
    assert controller.compute_results(db, election.id) == controller.compute_results(db, election.id)


def test_empty_election_results(db):
    election = make_election(db, positions=["Treasurer"])
    results = controller.compute_results(db, election.id)
    assert results.ballots_cast == 0
    assert results.eligible_voters == 0
    assert results.participation_rate == 0.0
    assert results.positions[0].position == "Treasurer"
    assert results.positions[0].candidates == []


def test_participation_uses_current_rosters(db, council):
    election, c = council
    for user_id, department in [("a", "CS"), ("b", "CS"), ("c", "EE"), ("d", "CS")]:
        make_profile(db, user_id, department=department)
    make_profile(db, "unverified", verified=False)
    voting.cast_ballot(db, "a", election.id, {"President": c["P1"].id, "Secretary": "abstain"})

    assert controller.compute_results(db, election.id).participation_rate == 25.0

    election.departments = ["CS"]
    db.commit()
    results = controller.compute_results(db, election.id)
    assert results.eligible_voters == 3
    assert results.participation_rate == pytest.approx(100 / 3)


def test_completed_election_results_are_final(db, council):
    election, _ = council
    election.status = election_models.ElectionStatusEnum.completed
    db.commit()
    assert controller.compute_results(db, election.id).is_final


def test_vote_statistics(db, council):
    election, c = council
    make_profile(db, "a", department="CS", year_level="1st Year")
    make_profile(db, "b", department="EE", year_level="1st Year")
    make_profile(db, "c", department="EE", year_level="2nd Year")
    election.positions = ["President", "Secretary", "Treasurer"]
    db.commit()
    make_candidate(db, election, "Tomas", "Treasurer")
    ballots = {
        "a": {"President": c["P1"].id, "Secretary": c["S1"].id},
        "b": {"President": c["P1"].id, "Secretary": "abstain"},
    }
    for user_id, ballot in ballots.items():
        voting.cast_ballot(db, user_id, election.id, {**ballot, "Treasurer": "abstain"})

    stats = controller.compute_vote_statistics(db, election.id)
    assert stats.unique_voters == 2
    assert stats.position_rows == 6
    assert stats.candidate_votes == 3
    assert stats.abstentions == 3
    assert stats.eligible_voters == 3
    assert stats.participation_rate == pytest.approx(200 / 3)
    assert len(stats.votes_over_time) == 1
    assert stats.votes_over_time[0].ballots == 2

    by_position = {p.position: p for p in stats.positions}
    assert by_position["President"].competition_level == "Contested"
    assert by_position["President"].leaders == [c["P1"].id]
    assert by_position["Secretary"].competition_level == "Uncontested"
    assert by_position["Treasurer"].abstain_count == 2

    departments = {g.group: (g.ballots, g.eligible) for g in stats.department_participation}
    assert departments == {"CS": (1, 1), "EE": (1, 2)}
    years = {g.group: g.participation_rate for g in stats.year_level_participation}
    assert years == {"1st Year": 100.0, "2nd Year": 0.0}


# ----------------------
# HTTP
# ----------------------
def test_results_endpoint_respects_private_elections(client, db, voter, admin):
    election = make_election(db, is_private=True, access_code="letmein")
    url = f"/api/results/{election.id}"

    assert client.get(url, headers=auth("voter")).status_code == 403
    assert client.get(url, params={"access_code": "letmein"}, headers=auth("voter")).status_code == 200
    assert client.get(url, headers=auth("admin")).status_code == 200


def test_statistics_are_admin_only(client, db, voter, admin, council):
    election, _ = council
    url = f"/api/results/{election.id}/statistics"
    assert client.get(url, headers=auth("voter")).status_code == 403
    response = client.get(url, headers=auth("admin"))
    assert response.status_code == 200
    assert response.json()["data"]["unique_voters"] == 0
