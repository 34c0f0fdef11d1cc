"""
Agent types and their backing agent history tables
"""

import logging
from enum import Enum
from typing import Dict, Iterable, Optional

from app.core.config import settings
from app.deps.exceptions import ValidationError
from app.models.agent_history import agent_history_table
from app.services.agent_history_store import AgentHistoryStore

logger = logging.getLogger(__name__)


class AgentType(str, Enum):
    CONTRATOS = "ia-contratos"
    LABORAL = "ia-laboral"
    DEFENSA_CONSUMIDOR = "ia-defensa-consumidor"
    GENERAL = "ia-general"

    @classmethod
    def from_value(cls, value: str) -> "AgentType":
        """Strict lookup used where an unknown agent type is a client error"""
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(f"Unknown agent type: {value}")


class AgentRouter:
    """
    Maps agent type strings to agent history stores

    Unknown agent types fall back to the default store instead of failing.
    """

    def __init__(self, tables: Dict[str, str], default_agent_type: str):
        missing = [agent.value for agent in AgentType if agent.value not in tables]
        if missing:
            raise ValueError(f"No agent history table configured for: {', '.join(missing)}")
        if default_agent_type not in tables:
            raise ValueError(f"Default agent type {default_agent_type!r} has no table")

        self._stores: Dict[AgentType, AgentHistoryStore] = {
            agent: AgentHistoryStore(agent_history_table(tables[agent.value]))
            for agent in AgentType
        }
        self.default_agent_type = AgentType(default_agent_type)

    def route(self, agent_type: Optional[str]) -> AgentHistoryStore:
        """
        Resolve the store for an agent type

        Args:
            agent_type: Agent type string from the request

        Returns:
            The agent's store, or the default store for unknown values
        """
        try:
            agent = AgentType(agent_type)
        except ValueError:
            logger.warning(
                f"Unknown agent type {agent_type!r}, using {self.default_agent_type.value} store"
            )
            agent = self.default_agent_type
        return self._stores[agent]

    def stores(self) -> Iterable[AgentHistoryStore]:
        return self._stores.values()

    def agent_types(self) -> Iterable[AgentType]:
        return self._stores.keys()


agent_router = AgentRouter(settings.agent_history_tables, settings.default_agent_type)
