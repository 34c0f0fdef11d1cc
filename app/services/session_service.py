"""
Session service backed by the first-party chat_sessions / chat_messages tables
"""

import logging
import math
from datetime import datetime, timezone
from typing import List, Optional
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.deps.exceptions import AccessDeniedError, NotFoundError, ValidationError
from app.models.chat_history import ChatMessage, ChatSession
from app.schemas.session import (
    AddMessageRequest,
    CreateSessionRequest,
    MessageResponse,
    SessionPage,
    SessionResponse,
)
from app.services.agent_router import AgentType
from app.services.session_ids import encode_session_id
from app.services.session_names import summarize_session_name

logger = logging.getLogger(__name__)


def _like_pattern(term: str) -> str:
    """Substring LIKE pattern with "/" as the escape character"""
    escaped = term.replace("/", "//").replace("%", "/%").replace("_", "/_")
    return f"%{escaped}%"


def message_to_response(message: ChatMessage) -> MessageResponse:
    return MessageResponse(
        id=message.id,
        session_id=message.session_id,
        content=message.content,
        is_user=message.is_user,
        created_at=message.created_at,
        message_order=message.message_order,
        agent_response=message.agent_response,
        processing_time_ms=message.processing_time_ms,
        error_message=message.error_message,
        metadata=message.metadata_json,
    )


def session_to_response(session: ChatSession, with_messages: bool = False) -> SessionResponse:
    response = SessionResponse(
        session_id=session.session_id,
        user_id=session.user_id,
        agent_type=session.agent_type,
        session_name=session.session_name,
        created_at=session.created_at,
        updated_at=session.updated_at,
        message_count=session.message_count or 0,
        is_active=session.is_active,
    )
    if with_messages:
        response.messages = [message_to_response(m) for m in session.messages]
    return response


class SessionService:
    """Create, read, search and delete sessions stored in the relational schema"""

    def __init__(self, db: Session):
        self.db = db

    def _get_owned_session(self, session_id: str, user_id: str) -> ChatSession:
        session = self.db.get(ChatSession, session_id)
        if session is None:
            raise NotFoundError(f"Session not found: {session_id}")
        if session.user_id != user_id:
            raise AccessDeniedError(f"Access denied to session: {session_id}")
        return session

    def _active_sessions(self, user_id: str):
        return self.db.query(ChatSession).filter(
            ChatSession.user_id == user_id,
            ChatSession.is_active.is_(True),
        )

    def create_session(self, user_id: str, request: CreateSessionRequest) -> SessionResponse:
        """
        Create a session, optionally with its first user message

        Args:
            user_id: Authenticated owner
            request: Create session request

        Returns:
            The stored session; message_count is 1 when a first message was saved
        """
        agent_type = AgentType.from_value(request.agent_type)
        logger.info(f"Creating new session for user: {user_id} with agent: {agent_type.value}")

        first_message = request.first_message.strip() if request.first_message else None
        session_name = request.session_name.strip() if request.session_name else ""
        if not session_name:
            session_name = summarize_session_name(request.first_message)

        now = datetime.now(timezone.utc)
        session = ChatSession(
            session_id=encode_session_id(user_id, agent_type.value),
            user_id=user_id,
            agent_type=agent_type.value,
            session_name=session_name,
            created_at=now,
            updated_at=now,
            message_count=0,
            is_active=True,
        )
        if first_message:
            session.messages.append(ChatMessage(
                content=first_message,
                is_user=True,
                created_at=now,
                message_order=1,
            ))
            session.message_count = 1

        self.db.add(session)
        self.db.commit()
        self.db.refresh(session)

        logger.info(f"Created session: {session.session_id} with {session.message_count} messages")
        return session_to_response(session)

    def get_user_sessions(self, user_id: str) -> List[SessionResponse]:
        """All active sessions of a user, most recently updated first"""
        logger.debug(f"Getting sessions for user: {user_id}")
        sessions = (
            self._active_sessions(user_id)
            .order_by(ChatSession.updated_at.desc(), ChatSession.session_id)
            .all()
        )
        return [session_to_response(s) for s in sessions]

    def list_sessions_by_agent(self, user_id: str, agent_type: str) -> List[SessionResponse]:
        logger.debug(f"Getting sessions for user: {user_id} and agent: {agent_type}")
        agent = AgentType.from_value(agent_type)
        sessions = (
            self._active_sessions(user_id)
            .filter(ChatSession.agent_type == agent.value)
            .order_by(ChatSession.updated_at.desc(), ChatSession.session_id)
            .all()
        )
        return [session_to_response(s) for s in sessions]

    def get_user_sessions_paginated(self, user_id: str, agent_type: str, page: int, size: int) -> SessionPage:
        agent = AgentType.from_value(agent_type)
        query = self._active_sessions(user_id).filter(ChatSession.agent_type == agent.value)
        total = query.count()
        sessions = (
            query.order_by(ChatSession.updated_at.desc(), ChatSession.session_id)
            .offset(page * size)
            .limit(size)
            .all()
        )
        return SessionPage(
            items=[session_to_response(s) for s in sessions],
            total=total,
            page=page,
            size=size,
            total_pages=math.ceil(total / size) if size else 0,
        )

    def get_session(self, session_id: str, user_id: str, agent_type: Optional[str] = None) -> SessionResponse:
        logger.debug(f"Getting session: {session_id} for user: {user_id}")
        session = self._get_owned_session(session_id, user_id)
        return session_to_response(session, with_messages=True)

    def get_session_messages(self, session_id: str, user_id: str,
                             agent_type: Optional[str] = None) -> List[MessageResponse]:
        """Messages of a session in order; raises NotFoundError for unknown sessions"""
        logger.debug(f"Getting messages for session: {session_id} and user: {user_id}")
        self._get_owned_session(session_id, user_id)
        messages = (
            self.db.query(ChatMessage)
            .filter(ChatMessage.session_id == session_id)
            .order_by(ChatMessage.message_order, ChatMessage.id)
            .all()
        )
        return [message_to_response(m) for m in messages]

    def add_message(self, session_id: str, user_id: str, agent_type: Optional[str],
                    request: AddMessageRequest) -> MessageResponse:
        logger.debug(f"Adding message to session: {session_id} for user: {user_id}")
        session = self._get_owned_session(session_id, user_id)

        now = datetime.now(timezone.utc)
        message = ChatMessage(
            session_id=session.session_id,
            content=request.content,
            is_user=request.is_user,
            created_at=now,
            message_order=(session.message_count or 0) + 1,
            agent_response=request.agent_response,
            processing_time_ms=request.processing_time_ms,
            error_message=request.error_message,
            metadata_json=request.metadata,
        )
        self.db.add(message)
        session.message_count = (session.message_count or 0) + 1
        session.updated_at = now
        self.db.commit()
        self.db.refresh(message)

        logger.info(f"Added message to session: {session_id}, total messages: {session.message_count}")
        return message_to_response(message)

    def update_session_name(self, session_id: str, user_id: str, agent_type: Optional[str],
                            new_name: str) -> SessionResponse:
        logger.info(f"Updating session name: {session_id} for user: {user_id}")
        if not new_name or not new_name.strip():
            raise ValidationError("Session name is required")
        session = self._get_owned_session(session_id, user_id)
        session.session_name = new_name.strip()
        session.updated_at = datetime.now(timezone.utc)
        self.db.commit()
        self.db.refresh(session)
        return session_to_response(session)

    def search_sessions(self, user_id: str, agent_type: Optional[str], query: str) -> List[SessionResponse]:
        """
        Sessions whose name or any message contains ``query``, case-insensitively

        Returns one entry per session regardless of how many messages match.
        """
        logger.debug(f"Searching sessions for user: {user_id} with term: {query}")
        if not query or not query.strip():
            raise ValidationError("Search query is required")
        pattern = _like_pattern(query.strip())

        matching_messages = select(ChatMessage.session_id).where(ChatMessage.content.ilike(pattern, escape="/"))
        sessions = self._active_sessions(user_id).filter(
            or_(
                ChatSession.session_id.in_(matching_messages),
                ChatSession.session_name.ilike(pattern, escape="/"),
            )
        )
        if agent_type:
            sessions = sessions.filter(ChatSession.agent_type == AgentType.from_value(agent_type).value)
        sessions = sessions.order_by(ChatSession.updated_at.desc(), ChatSession.session_id).all()
        return [session_to_response(s) for s in sessions]

    def delete_session(self, session_id: str, user_id: str, agent_type: Optional[str] = None) -> None:
        logger.info(f"Deleting session: {session_id} for user: {user_id}")
        session = self._get_owned_session(session_id, user_id)
        self.db.expunge(session)

        deleted = (
            self.db.query(ChatMessage)
            .filter(ChatMessage.session_id == session_id)
            .delete(synchronize_session=False)
        )
        self.db.query(ChatSession).filter(ChatSession.session_id == session_id).delete(synchronize_session=False)
        self.db.commit()
        logger.info(f"Deleted session: {session_id} and {deleted} messages")
