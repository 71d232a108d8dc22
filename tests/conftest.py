"""
Pytest configuration and fixtures for the helpdesk API tests
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["MAIL_SERVER"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from helpdesk.main import app
from helpdesk.core.database import get_session
from helpdesk.core.security import ActiveContext, open_user_session
from helpdesk.models import Member, MemberRole, Organization, Team, User


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def db_session(engine):
    """Session shared by the fixtures and the API under test"""
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(db_session):
    app.dependency_overrides[get_session] = lambda: db_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    counter = {"n": 0}

    def _make_user(full_name=None, email=None):
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@example.com",
            full_name=full_name or f"Test User {counter['n']}",
            password_hash="not-a-real-hash",
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def add_member(db_session):
    def _add_member(user, organization, role=MemberRole.MEMBER, team=None):
        member = Member(
            user_id=user.id,
            organization_id=organization.id,
            team_id=team.id if team else None,
            role=role,
        )
        db_session.add(member)
        db_session.commit()
        db_session.refresh(member)
        return member

    return _add_member


@pytest.fixture
def make_organization(db_session, add_member):
    counter = {"n": 0}

    def _make_organization(name=None, owner=None):
        counter["n"] += 1
        organization = Organization(
            name=name or f"Organization {counter['n']}",
            slug=f"organization-{counter['n']}",
        )
        db_session.add(organization)
        db_session.commit()
        db_session.refresh(organization)
        if owner is not None:
            add_member(owner, organization, MemberRole.OWNER)
        return organization

    return _make_organization


@pytest.fixture
def make_team(db_session):
    def _make_team(organization, name="Support"):
        team = Team(name=name, organization_id=organization.id)
        db_session.add(team)
        db_session.commit()
        db_session.refresh(team)
        return team

    return _make_team


@pytest.fixture
def login(db_session):
    """Open a real login session for a user; returns (context, headers)"""
    def _login(user):
        user_session, token = open_user_session(db_session, user)
        context = ActiveContext(user=user, session=user_session)
        return context, {"Authorization": f"Bearer {token}"}

    return _login


@pytest.fixture
def auth_headers(login):
    def _auth_headers(user):
        return login(user)[1]

    return _auth_headers


@pytest.fixture
def owner(make_user):
    return make_user(full_name="Olivia Owner", email="owner@example.com")


@pytest.fixture
def organization(make_organization, owner):
    """An organization whose org-level owner is `owner`"""
    return make_organization(name="Acme Support", owner=owner)
