# tests/conftest.py
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from uvote.database import Base, get_db
from uvote.routers.candidates import models as candidate_models
from uvote.routers.elections import models as election_models
from uvote.routers.users import models as user_models
from uvote.utils.jwt import create_access_token
from uvote.utils.timeutils import utcnow


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    # No context manager: startup would create tables in the configured database.
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth(user_id, email=None):
    claims = {"sub": user_id}
    if email:
        claims["email"] = email
    return {"Authorization": f"Bearer {create_access_token(claims)}"}


def make_profile(db, user_id, department="CS", year_level="3rd Year", verified=True, roles=("voter",),
                 first_name=None, last_name="Tester"):
    profile = user_models.Profile(
        id=user_id,
        email=f"{user_id}@uni.edu",
        first_name=first_name or user_id.capitalize(),
        last_name=last_name,
        department=department,
        year_level=year_level,
        is_verified=verified,
    )
    for role in roles:
        profile.roles.append(user_models.UserRole(role=user_models.RoleEnum(role)))
    db.add(profile)
    db.commit()
    return profile


def make_election(db, positions=("President", "Secretary"), starts_in=timedelta(days=-1),
                  ends_in=timedelta(days=1), **fields):
    now = utcnow()
    election = election_models.Election(
        title=fields.pop("title", "Student Council"),
        start_date=now + starts_in,
        end_date=now + ends_in,
        positions=list(positions),
        departments=fields.pop("departments", []),
        eligible_year_levels=fields.pop("eligible_year_levels", []),
        status=fields.pop("status", election_models.ElectionStatusEnum.active),
        created_by="admin",
        **fields,
    )
    db.add(election)
    db.commit()
    return election


def make_candidate(db, election, name, position, **fields):
    candidate = candidate_models.Candidate(election_id=election.id, name=name, position=position, **fields)
    db.add(candidate)
    db.commit()
    return candidate


@pytest.fixture
def admin(db):
    return make_profile(db, "admin", roles=("admin",))


@pytest.fixture
def voter(db):
    return make_profile(db, "voter")


@pytest.fixture
def council(db):
    """President: P1, P2. Secretary: S1."""
    election = make_election(db)
    candidates = {
        "P1": make_candidate(db, election, "Paula", "President"),
        "P2": make_candidate(db, election, "Pedro", "President"),
        "S1": make_candidate(db, election, "Sara", "Secretary"),
    }
    return election, candidates
