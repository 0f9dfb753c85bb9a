"""Pytest configuration and fixtures."""

import pytest

from commute_match import create_app, db as app_db
from commute_match.models import User, UserMatchingPreference
from commute_match.services.embedding_service import build_embedding_text
from config.testing import TestingConfig
from tests.fakes import FakeEmbeddingService


@pytest.fixture(scope="session")
def app():
    """Create application for testing."""
    app = create_app(config=TestingConfig)
    return app


@pytest.fixture(autouse=True)
def fake_embeddings(app):
    """Install a fresh fake embedding provider for every test."""
    service = FakeEmbeddingService()
    app.extensions["embedding_service"] = service
    yield service
    app.extensions.pop("embedding_service", None)


@pytest.fixture(scope="function")
def client(app):
    """Flask test client.

    Requests do not preserve their context, so the ``db`` fixture's app
    context is the only one left to pop at teardown.
    """
    with app.app_context():
        yield app.test_client()


@pytest.fixture(scope="function")
def db(app):
    """Database session for testing."""
    with app.app_context():
        # Create all tables
        app_db.create_all()
        yield app_db
        # Drop all tables
        app_db.session.remove()
        app_db.drop_all()


@pytest.fixture
def make_user(db):
    """Factory creating users."""
    counter = {"n": 0}

    def _make_user(full_name=None, email=None):
        counter["n"] += 1
        user = User(
            full_name=full_name or f"User {counter['n']}",
            email=email or f"user{counter['n']}@example.com",
        )
        db.session.add(user)
        db.session.commit()
        return user

    return _make_user


@pytest.fixture
def make_preferences(db, make_user):
    """Factory creating a user with stored preferences (and optionally an embedding)."""

    def _make_preferences(embedding=None, full_name=None, **fields):
        user = make_user(full_name=full_name)
        values = {
            "profession": "",
            "about_me": "",
            "languages": [],
            "interests": [],
            "commute_days": [],
        }
        values.update(fields)
        prefs = UserMatchingPreference(user_id=user.id, **values)
        if embedding is not None:
            prefs.embedding = embedding
            prefs.embedding_text = build_embedding_text(prefs)
            prefs.embedding_version = FakeEmbeddingService.version
        db.session.add(prefs)
        db.session.commit()
        return prefs

    return _make_preferences


@pytest.fixture
def sample_user(make_user):
    """Create a sample user."""
    return make_user(full_name="Test User", email="test@example.com")
