"""
Chat history database models
"""

from sqlalchemy import Column, Integer, BigInteger, String, DateTime, Text, Boolean, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base


class ChatSession(Base):
    """Chat session owned by one user and one agent type"""
    __tablename__ = "chat_sessions"

    session_id = Column(String(100), primary_key=True)
    user_id = Column(String(100), nullable=False, index=True)
    agent_type = Column(String(50), nullable=False)  # One of AgentType values
    session_name = Column(String(200), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    message_count = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    # Relationships
    messages = relationship(
        "ChatMessage",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="ChatMessage.message_order",
    )

    __table_args__ = (
        Index('idx_chat_sessions_user_agent', 'user_id', 'agent_type'),
    )


class ChatMessage(Base):
    """Chat message model for storing conversation turns"""
    __tablename__ = "chat_messages"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(String(100), ForeignKey("chat_sessions.session_id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    is_user = Column(Boolean, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    message_order = Column(Integer, nullable=True)
    agent_response = Column(Text, nullable=True)
    processing_time_ms = Column(BigInteger, nullable=True)
    error_message = Column(Text, nullable=True)
    metadata_json = Column("metadata", Text, nullable=True)  # JSON string; "metadata" is reserved on declarative classes

    # Relationships
    session = relationship("ChatSession", back_populates="messages")

    # Indexes for efficient querying
    __table_args__ = (
        Index('idx_chat_messages_session_id', 'session_id'),
        Index('idx_chat_messages_created_at', 'created_at'),
    )
