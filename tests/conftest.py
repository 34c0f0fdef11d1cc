"""
Test configuration and fixtures
"""

import os

# Must be set before app modules create the engine
os.environ.setdefault("DATABASE_URL", "sqlite://")

import json
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.core.config import settings
from app.core.database import get_db, Base
from app.models import agent_history_metadata
from app.services.agent_router import agent_router
from app.services.auth import JWTService

# Test database URL (in-memory SQLite for testing)
SQLALCHEMY_DATABASE_URL = "sqlite://"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

AGENT_TABLES = [store.table for store in agent_router.stores()]


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database session for each test."""
    Base.metadata.create_all(bind=engine)
    agent_history_metadata.create_all(bind=engine, tables=AGENT_TABLES)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        agent_history_metadata.drop_all(bind=engine, tables=AGENT_TABLES)
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with database dependency override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def relational_backend(monkeypatch):
    """Route the session API to the first-party tables."""
    monkeypatch.setattr(settings, "session_backend", "relational")
    yield


@pytest.fixture
def agent_history_backend(monkeypatch):
    """Route the session API to the agent history tables."""
    monkeypatch.setattr(settings, "session_backend", "agent_history")
    yield


@pytest.fixture
def make_auth_headers():
    """Factory for bearer headers carrying the user id in the given claim."""
    def _make(user_id: str = "alice", claim: str = "preferred_username", **claims) -> dict:
        claims[claim] = user_id
        token = JWTService.create_access_token(claims)
        return {"Authorization": f"Bearer {token}"}
    return _make


@pytest.fixture
def alice_headers(make_auth_headers):
    return make_auth_headers("alice")


@pytest.fixture
def bob_headers(make_auth_headers):
    return make_auth_headers("bob")


@pytest.fixture
def history_payload():
    """Factory for message column values as the workflow tool writes them."""
    def _payload(content: str, message_type: str = "human", **extra) -> str:
        payload = {"type": message_type, "content": content, "additional_kwargs": {}, "response_metadata": {}}
        payload.update(extra)
        return json.dumps(payload)
    return _payload


@pytest.fixture
def insert_history(db_session, history_payload):
    """Insert rows into an agent history table the way the workflow tool does."""
    def _insert(agent_type: str, session_id: str, content: str = "", message_type: str = "human",
                raw: str = None, created_at=None) -> int:
        store = agent_router.route(agent_type)
        message = raw if raw is not None else history_payload(content, message_type)
        row_id = store.insert_message(db_session, session_id, message, created_at=created_at)
        db_session.commit()
        return row_id
    return _insert
