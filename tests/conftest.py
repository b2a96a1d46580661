"""Pytest configuration and fixtures."""

import os
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import listshare.services.realtime as realtime_module
from listshare.database import Base, get_db
from listshare.main import app
from listshare.models import List, ListItem, ListMember, ListSettings, User
from listshare.services.auth import create_access_token, get_password_hash
from listshare.tasks.notifications import dispatch_change_event


class AuthHeaders(dict):
    """Dict subclass that also stores user_id."""

    def __init__(self, *args, user_id: int | None = None, email: str | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.user_id = user_id
        self.email = email


# Use test database - PostgreSQL in Docker, SQLite locally
if os.getenv("DATABASE_URL"):
    # Running in Docker - use PostgreSQL test database
    SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL").replace("/listshare", "/listshare_test")
else:
    # Running locally - use SQLite
    SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

connect_args = {"check_same_thread": False} if "sqlite" in SQLALCHEMY_DATABASE_URL else {}
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=connect_args)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    if "postgresql" in SQLALCHEMY_DATABASE_URL:
        # For PostgreSQL, create the test database
        from sqlalchemy_utils import create_database, database_exists

        # Create test database if it doesn't exist
        if not database_exists(SQLALCHEMY_DATABASE_URL):
            create_database(SQLALCHEMY_DATABASE_URL)

    Base.metadata.create_all(bind=engine)
    yield
    # Don't drop database - just leave it for next run (each test cleans up after itself)


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = TestingSessionLocal()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture(autouse=True)
def mock_redis(monkeypatch):
    """Replace the publishing Redis client so no server is needed."""
    redis_client = MagicMock()
    monkeypatch.setattr(realtime_module, "_sync_redis", redis_client)
    return redis_client


@pytest.fixture(autouse=True)
def celery_delay():
    """Capture queued change events instead of sending them to a broker."""
    with patch.object(dispatch_change_event, "delay") as mock_delay:
        yield mock_delay


@pytest.fixture(scope="function")
def client(db):
    """Create a test client with database override."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(client):
    """Create a user and return auth headers with user info."""
    # Register user
    response = client.post(
        "/api/v1/auth/register",
        json={
            "email": "test@example.com",
            "password": "testpass123",
            "username": "tester",
            "name": "Test User",
        },
    )
    assert response.status_code == 201
    data = response.json()
    token = data["access_token"]
    user_id = data["user"]["id"]

    return AuthHeaders(
        {"Authorization": f"Bearer {token}"}, user_id=user_id, email="test@example.com"
    )


# Direct database helpers. Hashing is slow, so these share one hash.
_PASSWORD_HASH = None


def make_user(db, email: str, username: str | None = None) -> User:
    global _PASSWORD_HASH
    if _PASSWORD_HASH is None:
        _PASSWORD_HASH = get_password_hash("testpass123")
    user = User(email=email, password_hash=_PASSWORD_HASH, username=username)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def headers_for(user: User) -> AuthHeaders:
    token = create_access_token(user.id, user.email)
    return AuthHeaders({"Authorization": f"Bearer {token}"}, user_id=user.id, email=user.email)


def make_list(db, owner: User, name: str = "Movie night", **settings) -> List:
    list_obj = List(owner_id=owner.id, name=name)
    list_obj.settings = ListSettings(**settings)
    db.add(list_obj)
    db.commit()
    db.refresh(list_obj)
    return list_obj


def make_item(db, list_obj: List, creator: User, title: str = "Alien", position: int = 0) -> ListItem:
    item = ListItem(list_id=list_obj.id, user_id=creator.id, title=title, position=position)
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def add_member(db, list_obj: List, user: User, role: str = "edit") -> ListMember:
    member = ListMember(list_id=list_obj.id, user_id=user.id, role=role)
    db.add(member)
    db.commit()
    db.refresh(member)
    return member


@pytest.fixture
def owner(db):
    return make_user(db, "owner@example.com", username="owner")


@pytest.fixture
def editor(db):
    return make_user(db, "editor@example.com", username="editor")


@pytest.fixture
def outsider(db):
    return make_user(db, "outsider@example.com", username="outsider")


@pytest.fixture
def shared_list(db, owner):
    """A private list with voting, downvotes, ratings and comments switched on."""
    return make_list(
        db,
        owner,
        enable_voting=True,
        enable_downvote=True,
        enable_rating=True,
        enable_comments=True,
    )


@pytest.fixture
def item(db, shared_list, owner):
    return make_item(db, shared_list, owner)
