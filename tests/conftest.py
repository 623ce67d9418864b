"""Shared test fixtures for the hangout API tests."""

import os
import tempfile
import uuid

# Point the app at a throw-away SQLite database before anything imports settings
_db_dir = tempfile.mkdtemp(prefix="hangout-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_db_dir, 'test.db')}"
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ["PLACES_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient

from app.core.exceptions import UpstreamUnavailableError
from app.core.security import create_access_token
from app.db.base import Base
from app.db.session import SessionLocal, engine
from app.main import app
from app.modules.recommendations.schemas.recommendation import GeoPoint, Place
from app.modules.user_management.models.user import User


class FakePlaceSearch:
    """Returns a fixed list of places and records each call"""

    def __init__(self, places=None):
        self.places = list(places or [])
        self.calls = []

    def search(self, center, radius_meters, category_hints, keyword=None):
        self.calls.append({
            "center": center,
            "radius_meters": radius_meters,
            "category_hints": list(category_hints),
            "keyword": keyword,
        })
        return list(self.places)


class FailingPlaceSearch:
    def __init__(self):
        self.calls = 0

    def search(self, center, radius_meters, category_hints, keyword=None):
        self.calls += 1
        raise UpstreamUnavailableError("search provider timed out")


def make_place(name, lat, lng, price_tier=None, rating=None, category="cafe"):
    return Place(
        name=name,
        category=category,
        location=GeoPoint(lat=lat, lng=lng),
        price_tier=price_tier,
        rating=rating,
    )


@pytest.fixture(autouse=True)
def reset_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    def _make_user(name=None, lat=40.7128, lng=-74.0060, interests=None):
        suffix = uuid.uuid4().hex[:8]
        name = name or f"user-{suffix}"
        user = User(
            id=str(uuid.uuid4()),
            email=f"{name.lower()}-{suffix}@example.com",
            username=f"{name.lower()}_{suffix}",
            display_name=name,
            interests=",".join(interests) if interests else None,
            latitude=lat,
            longitude=lng,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def fake_search():
    return FakePlaceSearch()


@pytest.fixture
def failing_search():
    return FailingPlaceSearch()


@pytest.fixture
def client():
    return TestClient(app)


def auth_headers(user_or_id):
    user_id = getattr(user_or_id, "id", user_or_id)
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}
