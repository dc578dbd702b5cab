"""Test configuration and fixtures for the TapIn backend tests."""

import os
import sys
import pathlib
import uuid
import pytest
from unittest.mock import patch


from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

BACKEND_DIR = pathlib.Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

# Set test environment before importing backend modules
os.environ["TESTING"] = "true"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["JWT_SECRET"] = "test_jwt_secret"
os.environ.pop("JWT_AUDIENCE", None)
os.environ["TESTING_MODE"] = "True"
os.environ["LOG_LEVEL"] = "DEBUG"


@pytest.fixture(autouse=True)
def test_engine():
    """Create a test database engine."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    # Ensure models are imported so tables are registered in SQLModel.metadata
    import models  # noqa: F401

    SQLModel.metadata.create_all(engine)
    return engine


@pytest.fixture
def test_session(test_engine):
    """Create a test database session."""
    with Session(test_engine) as session:
        yield session


@pytest.fixture
def override_get_session(test_session):
    """Override the get_session dependency for testing."""

    def _override_get_session():
        yield test_session

    return _override_get_session


@pytest.fixture
def test_app(override_get_session):
    """Create a test FastAPI application."""
    # Patch update_database to skip migrations in tests
    with patch("app.update_database"):
        from app import create_app

        app = create_app()
    from models.common import get_session

    app.dependency_overrides[get_session] = override_get_session
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(test_app):
    """Create a test client."""
    with TestClient(test_app) as client:
        yield client


@pytest.fixture
def login(test_app):
    """Act as the given user id in the following requests"""
    from routes.deps import current_user_id

    def _login(user_id: str):
        test_app.dependency_overrides[current_user_id] = lambda: user_id

    yield _login
    test_app.dependency_overrides.pop(current_user_id, None)


def make_profile(session: Session, name: str, **kwargs):
    from models.profile import Profile

    profile = Profile(id=str(uuid.uuid4()), name=name, **kwargs)
    session.add(profile)
    session.commit()
    return profile


@pytest.fixture
def alice(test_session):
    return make_profile(test_session, "Alice Smith", major="Physics", year="2")


@pytest.fixture
def bob(test_session):
    return make_profile(test_session, "Bob Jones", avatar_url="https://cdn/bob.png")


@pytest.fixture
def carol(test_session):
    return make_profile(test_session, "Carol Alvarez")


@pytest.fixture(autouse=True)
def reset_database_state(test_session):
    """Reset database state after each test."""
    yield
    # Handle any pending rollbacks first
    try:
        if test_session.in_transaction():
            test_session.rollback()

        from sqlalchemy import text

        for table in reversed(SQLModel.metadata.sorted_tables):
            try:
                test_session.execute(text(f"DELETE FROM {table.name}"))
                test_session.commit()
            except Exception:
                test_session.rollback()
    except Exception:
        # If session is in bad state, just pass
        pass
