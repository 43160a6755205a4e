"""
Shared fixtures: an application wired to a private in-memory SQLite database
and a fresh MemoryCache for every test.
"""

import io
import os
import tempfile
from datetime import datetime, timedelta, timezone

# Set up test environment variables before importing the application
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="evently-uploads-"))

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from core.cache import MemoryCache
from core.config import Settings
from core.database import create_db_engine, create_session_factory, init_models
from core.security import create_access_token, hash_password
from models.category import Category
from models.event import Event
from models.review import Review
from models.user import ROLE_ADMIN, ROLE_USER, User

TEST_SECRET = "test-secret"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        DATABASE_URL="sqlite://",
        JWT_SECRET=TEST_SECRET,
        BCRYPT_ROUNDS=4,
        RATE_LIMIT_ENABLED=False,
        UPLOAD_DIR=str(tmp_path / "uploads"),
        ENVIRONMENT="test",
    )


@pytest.fixture
def engine(settings):
    engine = create_db_engine(settings)
    init_models(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def cache():
    return MemoryCache(max_entries=1000)


@pytest.fixture
def app(settings, session_factory, cache):
    from app.main import create_app

    application = create_app(settings)
    # Share the test database and cache with the fixtures
    application.state.session_factory = session_factory
    application.state.cache = cache
    return application


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def make_user(db, settings):
    def _make(username="alice", role=ROLE_USER, password="secret123", email=None):
        user = User(
            username=username,
            email=email or f"{username}@example.com",
            password_hash=hash_password(password, settings),
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def admin(make_user):
    return make_user("admin", role=ROLE_ADMIN)


@pytest.fixture
def member(make_user):
    return make_user("alice")


@pytest.fixture
def auth_headers(settings):
    def _headers(user):
        token = create_access_token(user.user_id, user.username, user.role, settings)
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def category(db):
    category = Category(category_name="Technology")
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


@pytest.fixture
def make_event(db, category, admin):
    def _make(name="Launch party", days=7, category_id=None, **fields):
        event = Event(
            user_id=admin.user_id,
            category_id=category_id or category.category_id,
            name=name,
            event_date=datetime.now(timezone.utc) + timedelta(days=days),
            **fields,
        )
        db.add(event)
        db.commit()
        db.refresh(event)
        return event
    return _make


@pytest.fixture
def make_review(db):
    def _make(event, user, rating=4, review_text="Nice"):
        review = Review(event_id=event.event_id, user_id=user.user_id, rating=rating, review_text=review_text)
        db.add(review)
        db.commit()
        db.refresh(review)
        return review
    return _make


@pytest.fixture
def png_bytes():
    buffer = io.BytesIO()
    Image.new("RGB", (32, 32), color=(200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()
