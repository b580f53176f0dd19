"""Pytest fixtures for TaskTrack Core testing."""
import os

# Configure settings BEFORE importing app modules
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SEED_USERS"] = "false"

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tasktrack_core import crud, models
from tasktrack_core.database import Base, get_db
from tasktrack_core.seed import seed_users

test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestSession = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


def override_get_db():
    db = TestSession()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def db():
    Base.metadata.create_all(bind=test_engine)
    session = TestSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def users(db) -> dict[str, models.User]:
    """Seeded pm_user, dev_user and qa_user keyed by role name."""
    seed_users(db)
    return {
        "pm": crud.get_user_by_username(db, "pm_user"),
        "dev": crud.get_user_by_username(db, "dev_user"),
        "qa": crud.get_user_by_username(db, "qa_user"),
    }


@pytest.fixture
def extra_users(db, users) -> dict[str, models.User]:
    """A second user for each role, for ownership checks."""
    extras = {
        "pm2": models.User(username="pm_two", role=models.UserRole.PM),
        "dev2": models.User(username="dev_two", role=models.UserRole.DEV),
        "qa2": models.User(username="qa_two", role=models.UserRole.QA),
    }
    db.add_all(extras.values())
    db.commit()
    return extras


@pytest.fixture
def client(db):
    from tasktrack_core.api.main import app

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
async def api(db):
    """Async httpx client wired to the app in-process, as the MCP server uses it."""
    from tasktrack_core.api.main import app

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test/api") as client:
        yield client
    app.dependency_overrides.clear()
