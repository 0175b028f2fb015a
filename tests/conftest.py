"""Test configuration and fixtures."""

import itertools
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from boards.database import Base, get_db
from boards.main import app
from boards.models import User
from boards.monitoring.performance import performance_monitor
from boards.services.event_service import EventService

# A Wednesday, noon UTC
NOW = datetime(2025, 6, 11, 12, 0, tzinfo=timezone.utc)

SF_LAT = 37.7749
SF_LNG = -122.4194

# In-memory database shared across connections in one test
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    """Create a fresh schema and session per test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    """Test client sharing the test session with the app."""
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_metrics():
    performance_monitor.reset_metrics()
    yield
    performance_monitor.reset_metrics()


@pytest.fixture
def make_user(db):
    """Factory for persisted users."""
    counter = itertools.count(1)

    def _make(**overrides):
        n = next(counter)
        values = {
            'email': f"user{n}@example.com",
            'username': f"user{n}",
            'display_name': f"User {n}",
        }
        values.update(overrides)
        user = User(**values)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_event(db):
    """Factory for persisted events (with embeddings) hosted by a given user."""
    service = EventService(db)

    def _make(host, **overrides):
        values = {
            'title': "Neighborhood hangout",
            'description': "",
            'start_time': NOW + timedelta(days=1),
            'address': "1 Valencia St, San Francisco",
            'latitude': SF_LAT,
            'longitude': SF_LNG,
            'vibe': [],
            'event_type': 'other',
        }
        values.update(overrides)
        return service.create_event(host, values)

    return _make


@pytest.fixture
def auth_headers():
    """Headers identifying the acting user."""
    def _headers(user):
        return {"X-User-Id": user.id}

    return _headers


@pytest.fixture
def now():
    """Fixed evaluation time for clock-dependent logic."""
    return NOW
