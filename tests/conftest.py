import os

# Test configuration must be in place before moviereviews reads its settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["TMDB_API_KEY"] = "test-tmdb-key"
os.environ.pop("TMDB_ACCESS_TOKEN", None)

import pytest
from datetime import datetime, timedelta, timezone
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from moviereviews.config import TMDBSettings
from moviereviews.database import Base, get_db
from moviereviews.errors import UpstreamUnavailable
from moviereviews.main import app
from moviereviews.models.review import Review
from moviereviews.models.user import User
from moviereviews.services.movie_search_service import MovieSearchService
from moviereviews.services.tmdb_service import TMDBService
from moviereviews.utils.dependencies import get_movie_search_service, get_tmdb_service
from moviereviews.utils.security import create_access_token

SQLALCHEMY_DATABASE_URL = "sqlite://"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

BASE_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

TEST_TMDB_SETTINGS = TMDBSettings(
    api_key="test-tmdb-key",
    max_concurrent_fetches=4,
    primary_language="es-ES",
    fallback_language="en-US",
)


class FakeTMDBService(TMDBService):
    """
    TMDB stand-in for tests

    titles: {(movie_id, locale): title or full metadata dict}
    failures: set of movie_id or (movie_id, locale) that raise UpstreamUnavailable
    """

    def __init__(self, titles=None, failures=None):
        super().__init__(TEST_TMDB_SETTINGS)
        self.titles = titles or {}
        self.failures = set(failures or ())
        self.calls = []

    def resolve_title(self, movie_id, locale):
        self.calls.append((movie_id, locale))
        if movie_id in self.failures or (movie_id, locale) in self.failures:
            raise UpstreamUnavailable("TMDB down", details={"movieId": movie_id})
        entry = self.titles.get((movie_id, locale))
        if entry is None:
            raise UpstreamUnavailable("Not found upstream", details={"movieId": movie_id})
        if isinstance(entry, str):
            return {"title": entry, "release_date": "1999-03-31", "poster_path": f"/{movie_id}.jpg"}
        return entry


@pytest.fixture
def db_session():
    """Provide a clean database session for each test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fake_tmdb():
    return FakeTMDBService()


@pytest.fixture
def client(db_session, fake_tmdb):
    """FastAPI test client with the database and TMDB dependencies overridden."""

    def override_get_db():
        test_db = TestingSessionLocal()
        try:
            yield test_db
        finally:
            test_db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_tmdb_service] = lambda: fake_tmdb
    app.dependency_overrides[get_movie_search_service] = lambda: MovieSearchService(fake_tmdb, TEST_TMDB_SETTINGS)

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ============================================
# Data helpers
# ============================================

def create_user(session, username="alice", avatar=None, is_active=True):
    user = User(
        username=username,
        email=f"{username}@example.com",
        avatar=avatar,
        is_active=is_active
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def create_review(session, user, movie_id="603", rating=4, comment="Great movie",
                  minutes=0, likes_count=0, is_visible=True):
    """Insert a review directly; `minutes` offsets created_at from BASE_TIME"""
    created_at = BASE_TIME + timedelta(minutes=minutes)
    review = Review(
        user_id=user.id,
        movie_id=movie_id,
        rating=rating,
        comment=comment,
        likes_count=likes_count,
        is_visible=is_visible,
        created_at=created_at,
        updated_at=created_at
    )
    session.add(review)
    session.commit()
    session.refresh(review)
    return review


def auth_headers_for(user):
    token = create_access_token(data={"sub": user.email, "user_id": user.id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def alice(db_session):
    return create_user(db_session, "alice", avatar="https://example.com/alice.png")


@pytest.fixture
def bob(db_session):
    return create_user(db_session, "bob")


@pytest.fixture
def carol(db_session):
    return create_user(db_session, "carol")


@pytest.fixture
def alice_headers(alice):
    return auth_headers_for(alice)


@pytest.fixture
def bob_headers(bob):
    return auth_headers_for(bob)
