# Database models
from app.core.database import Base
from .chat_history import ChatSession, ChatMessage
from .agent_history import agent_history_metadata, agent_history_table

__all__ = ["Base", "ChatSession", "ChatMessage", "agent_history_metadata", "agent_history_table"]
