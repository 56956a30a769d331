# backend/tests/conftest.py
"""
Pytest configuration for the MentorHub availability service.

Tests run against an in-memory SQLite database. The environment is set
before any mentorhub import so the engine is built for it.
"""

from datetime import datetime
import os

# Set testing mode BEFORE any app imports
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["ENVIRONMENT"] = "test"
os.environ.setdefault("CI", "true")

from fastapi.testclient import TestClient
import pytest
from sqlalchemy.orm import Session

from mentorhub.database import Base, SessionLocal, engine
from mentorhub.main import app
import mentorhub.models  # noqa: F401
from tests.helpers.schedule_builders import FIXED_NOW


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def db() -> Session:
    """Fresh schema per test on the shared in-memory engine."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """HTTP client; every request gets its own session from the app's factory."""
    with TestClient(app) as test_client:
        yield test_client
