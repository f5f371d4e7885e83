# tests/test_candidates.py
from datetime import timedelta

from conftest import auth, make_election, make_profile
from uvote.routers.candidates import models as candidate_models
from uvote.routers.voting import controller as voting
from uvote.utils.timeutils import utcnow


def application_body(election_id, **overrides):
    body = {"election_id": election_id, "name": "Vera Voter", "position": "President", "bio": "Listening first."}
    body.update(overrides)
    return body


def test_admin_adds_candidate_with_known_position(client, db, admin):
    election = make_election(db)
    body = {"election_id": election.id, "name": "Paula", "position": "President"}
    response = client.post("/api/candidates/", json=body, headers=auth("admin"))
    assert response.status_code == 201
    assert response.json()["data"]["position"] == "President"

    bad = client.post("/api/candidates/", json={**body, "position": "Emperor"}, headers=auth("admin"))
    assert bad.status_code == 400


def test_free_form_positions_when_election_lists_none(client, db, admin):
    election = make_election(db, positions=())
    body = {"election_id": election.id, "name": "Mara", "position": "Mayor"}
    assert client.post("/api/candidates/", json=body, headers=auth("admin")).status_code == 201


def test_list_and_update_candidates(client, db, admin, council):
    election, c = council
    listed = client.get("/api/candidates/", params={"election_id": election.id, "position": "President"},
                        headers=auth("admin")).json()["data"]
    assert [x["name"] for x in listed] == ["Paula", "Pedro"]

    response = client.put(f"/api/candidates/{c['P1'].id}", json={"bio": "New bio"}, headers=auth("admin"))
    assert response.json()["data"]["bio"] == "New bio"
    assert response.json()["data"]["position"] == "President"


def test_candidate_with_votes_cannot_be_deleted(client, db, admin, voter, council):
    election, c = council
    voting.cast_ballot(db, "voter", election.id, {"President": c["P1"].id, "Secretary": "abstain"})

    assert client.delete(f"/api/candidates/{c['P1'].id}", headers=auth("admin")).status_code == 409
    assert client.delete(f"/api/candidates/{c['P2'].id}", headers=auth("admin")).status_code == 200


def test_application_lifecycle(client, db, admin, voter):
    election = make_election(db)
    submitted = client.post("/api/candidates/applications", json=application_body(election.id),
                            headers=auth("voter"))
    assert submitted.status_code == 201
    application = submitted.json()["data"]
    assert application["status"] == "pending"
    assert application["department"] == "CS"

    duplicate = client.post("/api/candidates/applications", json=application_body(election.id),
                            headers=auth("voter"))
    assert duplicate.status_code == 409

    review_url = f"/api/candidates/applications/{application['id']}/review"
    assert client.put(review_url, json={"status": "approved"}, headers=auth("voter")).status_code == 403
    approved = client.put(review_url, json={"status": "approved", "feedback": "Welcome"}, headers=auth("admin"))
    assert approved.json()["data"]["status"] == "approved"
    assert approved.json()["data"]["reviewed_by"] == "admin"

    db.expire_all()
    linked = db.query(candidate_models.Candidate).filter_by(application_id=application["id"]).one()
    assert linked.name == "Vera Voter"

    back = client.put(review_url, json={"status": "pending"}, headers=auth("admin"))
    assert back.status_code == 400

    disqualified = client.put(review_url, json={"status": "disqualified"}, headers=auth("admin"))
    assert disqualified.status_code == 200
    db.expire_all()
    assert db.query(candidate_models.Candidate).filter_by(application_id=application["id"]).count() == 0


def test_rejected_application_can_be_reopened_and_resubmitted(client, db, admin, voter):
    election = make_election(db)
    first = client.post("/api/candidates/applications", json=application_body(election.id),
                        headers=auth("voter")).json()["data"]
    client.put(f"/api/candidates/applications/{first['id']}/review", json={"status": "rejected"},
               headers=auth("admin"))

    resubmitted = client.post("/api/candidates/applications", json=application_body(election.id),
                              headers=auth("voter"))
    assert resubmitted.status_code == 201


def test_applications_respect_the_candidacy_window(client, db, voter):
    closed = make_election(
        db,
        candidacy_start_date=None,
        candidacy_end_date=None,
        starts_in=timedelta(days=-5),
        ends_in=timedelta(days=-1),
    )
    response = client.post("/api/candidates/applications", json=application_body(closed.id), headers=auth("voter"))
    assert response.status_code == 400

    now = utcnow()
    not_yet = make_election(
        db,
        starts_in=timedelta(days=5),
        ends_in=timedelta(days=6),
        candidacy_start_date=now + timedelta(days=1),
        candidacy_end_date=now + timedelta(days=2),
    )
    response = client.post("/api/candidates/applications", json=application_body(not_yet.id), headers=auth("voter"))
    assert response.status_code == 400


def test_users_see_only_their_own_applications(client, db, admin, voter):
    make_profile(db, "other")
    election = make_election(db)
    client.post("/api/candidates/applications", json=application_body(election.id), headers=auth("voter"))
    client.post("/api/candidates/applications", json=application_body(election.id, name="Otto"),
                headers=auth("other"))

    mine = client.get("/api/candidates/applications", headers=auth("voter")).json()["data"]
    assert [a["user_id"] for a in mine] == ["voter"]
    everyone = client.get("/api/candidates/applications", params={"election_id": election.id},
                          headers=auth("admin")).json()["data"]
    assert len(everyone) == 2


def test_withdrawing_an_application(client, db, admin, voter):
    make_profile(db, "other")
    election = make_election(db)
    application = client.post("/api/candidates/applications", json=application_body(election.id),
                              headers=auth("voter")).json()["data"]
    url = f"/api/candidates/applications/{application['id']}"

    assert client.delete(url, headers=auth("other")).status_code == 403
    assert client.delete(url, headers=auth("voter")).status_code == 200
    assert client.delete(url, headers=auth("voter")).status_code == 404
