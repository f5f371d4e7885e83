# tests/test_ballot.py
from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from conftest import auth, make_candidate, make_election, make_profile
from uvote.routers.elections import models as election_models
from uvote.routers.voting import controller
from uvote.routers.voting.exceptions import (
    AccessCodeError, AlreadyVotedError, BallotValidationError, BallotWriteError,
    ElectionNotFoundError, IneligibleVoterError, VotingClosedError,
)
from uvote.routers.voting.models import Vote


def vote_rows(db, election_id, user_id):
    db.expire_all()
    return db.query(Vote).filter(Vote.election_id == election_id, Vote.user_id == user_id).all()


def test_ballot_with_abstention_writes_marker_and_position_rows(db, voter, council):
    election, c = council
    receipt = controller.cast_ballot(db, "voter", election.id, {"President": c["P1"].id, "Secretary": "abstain"})

    rows = vote_rows(db, election.id, "voter")
    markers = [r for r in rows if r.is_marker]
    assert len(markers) == 1
    assert markers[0].candidate_id is None
    assert {(r.position, r.candidate_id) for r in rows if not r.is_marker} == {
        ("President", c["P1"].id),
        ("Secretary", None),
    }
    assert receipt.ballot_id == markers[0].id
    assert receipt.selections == {"President": c["P1"].id, "Secretary": None}
    assert receipt.abstained == ["Secretary"]


def test_all_abstain_ballot_still_counts_as_voted(db, voter, council):
    election, _ = council
    controller.cast_ballot(db, "voter", election.id, {"President": "ABSTAIN", "Secretary": " abstain "})
    assert controller.has_voted(db, "voter", election.id)


def test_second_ballot_is_rejected_without_new_rows(db, voter, council):
    election, c = council
    controller.cast_ballot(db, "voter", election.id, {"President": c["P1"].id, "Secretary": c["S1"].id})
    before = len(vote_rows(db, election.id, "voter"))

    with pytest.raises(AlreadyVotedError) as exc:
        controller.cast_ballot(db, "voter", election.id, {"President": c["P2"].id, "Secretary": "abstain"})

    assert exc.value.message == "already voted"
    assert exc.value.status_code == 409
    assert len(vote_rows(db, election.id, "voter")) == before


def test_racing_duplicate_is_stopped_by_the_store(db, voter, council, monkeypatch):
    election, c = council
    controller.cast_ballot(db, "voter", election.id, {"President": c["P1"].id, "Secretary": c["S1"].id})

    # Simulate a second request whose guard check ran before the first ballot landed.
    answers = iter([False, True])
    monkeypatch.setattr(controller, "has_voted", lambda *args: next(answers))

    with pytest.raises(AlreadyVotedError):
        controller.cast_ballot(db, "voter", election.id, {"President": c["P2"].id, "Secretary": "abstain"})

    rows = vote_rows(db, election.id, "voter")
    assert len([r for r in rows if r.is_marker]) == 1
    assert ("President", c["P1"].id) in {(r.position, r.candidate_id) for r in rows}


def test_store_failure_is_retryable_and_writes_nothing(db, voter, council, monkeypatch):
    election, c = council

    def broken_flush(*args, **kwargs):
        raise OperationalError("INSERT INTO votes", {}, Exception("database is locked"))

    monkeypatch.setattr(db, "flush", broken_flush)
    with pytest.raises(BallotWriteError) as exc:
        controller.cast_ballot(db, "voter", election.id, {"President": c["P1"].id, "Secretary": "abstain"})
    monkeypatch.undo()

    assert exc.value.retryable
    assert vote_rows(db, election.id, "voter") == []
    # The voter may simply try again.
    controller.cast_ballot(db, "voter", election.id, {"President": c["P1"].id, "Secretary": "abstain"})
    assert controller.has_voted(db, "voter", election.id)


def test_missing_positions_are_named(db, voter, council):
    election, c = council
    with pytest.raises(BallotValidationError) as exc:
        controller.cast_ballot(db, "voter", election.id, {"President": c["P1"].id})
    assert exc.value.positions == ["Secretary"]
    assert "Secretary" in exc.value.message
    assert vote_rows(db, election.id, "voter") == []


@pytest.mark.parametrize("selections", [
    {"President": "abstain", "Secretary": "abstain", "Treasurer": "abstain"},
    {"President": "not-a-number", "Secretary": "abstain"},
    {"President": True, "Secretary": "abstain"},
])
def test_malformed_ballots_are_rejected(db, voter, council, selections):
    election, _ = council
    with pytest.raises(BallotValidationError):
        controller.cast_ballot(db, "voter", election.id, selections)
    assert not controller.has_voted(db, "voter", election.id)


def test_candidate_must_stand_for_the_position(db, voter, council):
    election, c = council
    with pytest.raises(BallotValidationError) as exc:
        controller.cast_ballot(db, "voter", election.id, {"President": c["S1"].id, "Secretary": "abstain"})
    assert exc.value.positions == ["President"]


def test_candidate_ids_may_arrive_as_strings(db, voter, council):
    election, c = council
    receipt = controller.cast_ballot(db, "voter", election.id, {"President": str(c["P2"].id), "Secretary": "abstain"})
    assert receipt.selections["President"] == c["P2"].id


def test_positions_fall_back_to_candidate_positions(db, voter):
    election = make_election(db, positions=())
    mayor = make_candidate(db, election, "Mara", "Mayor")
    with pytest.raises(BallotValidationError):
        controller.cast_ballot(db, "voter", election.id, {})
    receipt = controller.cast_ballot(db, "voter", election.id, {"Mayor": mayor.id})
    assert receipt.selections == {"Mayor": mayor.id}


def test_election_without_positions_cannot_be_voted(db, voter):
    election = make_election(db, positions=())
    with pytest.raises(BallotValidationError):
        controller.cast_ballot(db, "voter", election.id, {})


@pytest.mark.parametrize("starts_in, ends_in", [
    (timedelta(days=1), timedelta(days=2)),
    (timedelta(days=-3), timedelta(days=-1)),
])
def test_voting_outside_the_window_is_closed(db, voter, starts_in, ends_in):
    election = make_election(db, starts_in=starts_in, ends_in=ends_in)
    with pytest.raises(VotingClosedError) as exc:
        controller.cast_ballot(db, "voter", election.id, {"President": "abstain", "Secretary": "abstain"})
    assert exc.value.message == "voting closed"


def test_early_completion_closes_voting(db, voter, council):
    election, _ = council
    election.status = election_models.ElectionStatusEnum.completed
    db.commit()
    with pytest.raises(VotingClosedError):
        controller.cast_ballot(db, "voter", election.id, {"President": "abstain", "Secretary": "abstain"})


def test_ineligible_voter_gets_the_reason(db):
    make_profile(db, "ee-student", department="EE")
    election = make_election(db, departments=["CS"])
    with pytest.raises(IneligibleVoterError) as exc:
        controller.cast_ballot(db, "ee-student", election.id, {"President": "abstain", "Secretary": "abstain"})
    assert exc.value.message == "department not eligible"


def test_voter_without_profile_is_refused(db, council):
    election, _ = council
    with pytest.raises(IneligibleVoterError) as exc:
        controller.cast_ballot(db, "ghost", election.id, {"President": "abstain", "Secretary": "abstain"})
    assert exc.value.message == "profile not found"


def test_private_election_needs_the_access_code(db, voter):
    election = make_election(db, is_private=True, access_code="s3cret")
    ballot = {"President": "abstain", "Secretary": "abstain"}
    with pytest.raises(AccessCodeError):
        controller.cast_ballot(db, "voter", election.id, ballot, access_code="wrong")
    controller.cast_ballot(db, "voter", election.id, ballot, access_code="s3cret")


def test_restricted_election_uses_the_allow_list(db, voter):
    election = make_election(db, restrict_voting=True)
    ballot = {"President": "abstain", "Secretary": "abstain"}
    with pytest.raises(IneligibleVoterError) as exc:
        controller.cast_ballot(db, "voter", election.id, ballot)
    assert exc.value.message == "not on eligible voter list"

    db.add(election_models.EligibleVoter(election_id=election.id, user_id="voter", added_by="admin"))
    db.commit()
    controller.cast_ballot(db, "voter", election.id, ballot)


def test_unknown_election(db, voter):
    with pytest.raises(ElectionNotFoundError):
        controller.cast_ballot(db, "voter", 999, {})


def test_ballot_status_gates_the_form(db, voter, council):
    election, c = council
    status = controller.get_ballot_status(db, "voter", election.id)
    assert status.can_vote
    assert status.reason is None
    assert [p.position for p in status.ballot] == ["President", "Secretary"]
    assert [o.name for o in status.ballot[0].candidates] == ["Paula", "Pedro"]

    controller.cast_ballot(db, "voter", election.id, {"President": c["P1"].id, "Secretary": "abstain"})
    status = controller.get_ballot_status(db, "voter", election.id)
    assert status.has_voted
    assert not status.can_vote
    assert status.reason == "already voted"
    assert status.ballot == []


def test_ballot_status_hides_the_form_when_nothing_is_contested(db, voter):
    election = make_election(db, positions=())
    status = controller.get_ballot_status(db, "voter", election.id)
    assert status.eligible
    assert not status.can_vote
    assert status.reason == "there are no positions to vote for"
    assert status.ballot == []

    with pytest.raises(BallotValidationError) as exc:
        controller.cast_ballot(db, "voter", election.id, {})
    assert exc.value.message == status.reason


def test_ballot_status_reflects_constraint_edits(db, voter, council):
    election, _ = council
    assert controller.get_ballot_status(db, "voter", election.id).eligible
    election.departments = ["EE"]
    db.commit()
    status = controller.get_ballot_status(db, "voter", election.id)
    assert not status.eligible
    assert status.reason == "department not eligible"


def test_my_votes_lists_ballots(db, voter, council):
    election, c = council
    assert controller.get_my_votes(db, "voter") == []
    controller.cast_ballot(db, "voter", election.id, {"President": c["P1"].id, "Secretary": "abstain"})
    votes = controller.get_my_votes(db, "voter")
    assert [(v.election_id, v.status) for v in votes] == [(election.id, "active")]


# ----------------------
# HTTP
# ----------------------
def test_cast_ballot_over_http(client, db, voter, council):
    election, c = council
    headers = auth("voter")
    body = {"selections": {"President": c["P1"].id, "Secretary": "abstain"}}

    response = client.post(f"/api/voting/{election.id}/ballot", json=body, headers=headers)
    assert response.status_code == 201
    assert response.json()["data"]["selections"] == {"President": c["P1"].id, "Secretary": None}

    again = client.post(f"/api/voting/{election.id}/ballot", json=body, headers=headers)
    assert again.status_code == 409
    assert again.json()["detail"] == "already voted"

    status = client.get(f"/api/voting/{election.id}/status", headers=headers)
    assert status.json()["data"]["has_voted"] is True


def test_http_error_mapping(client, db, voter, council):
    election, _ = council
    headers = auth("voter")
    partial = client.post(f"/api/voting/{election.id}/ballot", json={"selections": {}}, headers=headers)
    assert partial.status_code == 422
    missing = client.post("/api/voting/12345/ballot", json={"selections": {}}, headers=headers)
    assert missing.status_code == 404
    anonymous = client.post(f"/api/voting/{election.id}/ballot", json={"selections": {}})
    assert anonymous.status_code == 401
