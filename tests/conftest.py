"""
Shared fixtures: SQLite test database, fake crusade feed and API client
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_crusades.db")
os.environ["USE_FIREBASE"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"

from datetime import datetime, timedelta, timezone

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from crusades.core.db import Base, get_db
from crusades.models import Event, User
from crusades.services.external_feed import ExternalFeedClient, get_feed_client
from crusades.services.feed_cache import MemoryFeedCache
from crusades.services.token_service import TokenIdentity, token_service
from crusades.utils.security import hash_password
from main import app

# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///./test_crusades.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

FEED_URL = "https://feed.test/crusades.json"
PASSWORD = "password123"


def iso_day(offset: int = 0) -> str:
    """UTC calendar date shifted by ``offset`` days"""
    return (datetime.now(timezone.utc).date() + timedelta(days=offset)).isoformat()


@pytest.fixture
def db_session():
    """Create test database session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def feed_items():
    """Items served by the fake external feed; tests append to it"""
    return []


@pytest.fixture
def feed_requests():
    return []


@pytest.fixture
def feed(feed_items, feed_requests):
    def handler(request: httpx.Request) -> httpx.Response:
        feed_requests.append(request)
        return httpx.Response(200, json={"crusades": feed_items})

    return ExternalFeedClient(
        url=FEED_URL,
        cache=MemoryFeedCache(ttl_seconds=300),
        timeout=1.0,
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture
def client(db_session, feed):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_feed_client] = lambda: feed
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    counter = {"n": 0}

    def _make(**fields):
        counter["n"] += 1
        n = counter["n"]
        user = User(
            email=fields.pop("email", f"user{n}@example.com"),
            password=hash_password(fields.pop("password", PASSWORD)),
            full_name=fields.pop("full_name", f"User {n}"),
            country=fields.pop("country", "Nigeria"),
            **fields,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_event(db_session):
    def _make(creator, event_id=1000, date=None, **fields):
        event = Event(
            id=event_id,
            title=fields.pop("title", f"Crusade {event_id}"),
            description=fields.pop("description", "An evening of worship"),
            date=date or iso_day(7),
            venue=fields.pop("venue", "National Stadium"),
            created_by=creator.id,
            **fields,
        )
        db_session.add(event)
        db_session.commit()
        db_session.refresh(event)
        return event

    return _make


def auth_headers(user, now=None):
    token = token_service.issue(TokenIdentity(user.id, user.email), now=now)
    return {"Authorization": f"Bearer {token}"}
