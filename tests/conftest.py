import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("SUPER_ADMIN_PHONE", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from db import get_session
from main import app
from models import CommunityHead, CommunityHeadStatus, MasterAdmin, Role, User
from routers.auth import create_session_token, hash_password


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
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(engine):
    def get_session_override():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = get_session_override
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session):
    counter = {"n": 0}

    def _make_user(role=Role.donor, name=None, password="secret123"):
        counter["n"] += 1
        user = User(
            role=role,
            name=name or f"{role.value.title()} {counter['n']}",
            phone=f"98765{counter['n']:05d}",
            password_hash=hash_password(password),
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        if role in (Role.master_admin, Role.super_admin):
            session.add(MasterAdmin(user_id=user.id,
                                    can_create_admin=role == Role.super_admin))
            session.commit()
        return user

    return _make_user


@pytest.fixture
def make_community_head(session, make_user):
    def _make_community_head(locality="Dharavi", status=CommunityHeadStatus.active):
        user = make_user(Role.community_head)
        ch = CommunityHead(user_id=user.id, locality=locality, status=status)
        session.add(ch)
        session.commit()
        session.refresh(ch)
        return user, ch

    return _make_community_head


@pytest.fixture
def login_as(client):
    """Return a TestClient whose session cookie belongs to ``user``."""

    def _login_as(user):
        logged_in = TestClient(app)
        logged_in.cookies.set("session", create_session_token(user.id))
        return logged_in

    return _login_as
