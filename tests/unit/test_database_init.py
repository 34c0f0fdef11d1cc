"""
Unit tests for table creation at startup
"""

import pytest
from sqlalchemy import create_engine, inspect
from sqlalchemy.pool import StaticPool
import app.main as main
from app.core.config import settings
from app.services.agent_router import agent_router

AGENT_TABLE_NAMES = {store.name for store in agent_router.stores()}


@pytest.fixture
def fresh_engine(monkeypatch):
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    monkeypatch.setattr(main, "engine", engine)
    yield engine
    engine.dispose()


class TestInitDatabase:
    """Test which tables init_database creates"""

    def test_creates_agent_history_tables_by_default(self, fresh_engine):
        assert settings.create_agent_history_tables is True

        main.init_database()

        names = set(inspect(fresh_engine).get_table_names())
        assert {"chat_sessions", "chat_messages"} <= names
        assert AGENT_TABLE_NAMES <= names

    def test_skips_agent_history_tables_when_disabled(self, fresh_engine, monkeypatch):
        monkeypatch.setattr(settings, "create_agent_history_tables", False)

        main.init_database()

        names = set(inspect(fresh_engine).get_table_names())
        assert {"chat_sessions", "chat_messages"} <= names
        assert not AGENT_TABLE_NAMES & names
