"""
Session service backed by the agent history tables of the workflow tool.

No session rows exist here: a session is the set of rows sharing a composite
session id, and the owner and agent type are decoded from that id.
"""

import logging
import math
from collections import OrderedDict
from datetime import datetime, timezone
from typing import List, Optional
from sqlalchemy.engine import Row
from sqlalchemy.orm import Session

from app.deps.exceptions import AccessDeniedError, MessageParseError, NotFoundError, ValidationError
from app.schemas.session import (
    AddMessageRequest,
    CreateSessionRequest,
    MessageResponse,
    SessionPage,
    SessionResponse,
)
from app.services.agent_history_store import AgentHistoryStore
from app.services.agent_router import AgentRouter, agent_router
from app.services.message_adapter import decode_payload, encode_payload, from_history_row
from app.services.session_ids import decode_session_id, encode_session_id, is_owned_by
from app.services.session_names import UNNAMED_SESSION_NAME, summarize_session_name

logger = logging.getLogger(__name__)


class AgentHistorySessionService:
    """
    Session operations over the per-agent history tables

    Policies:
        - get_session_messages returns an empty list for a session with no
          rows yet, since the workflow tool writes messages asynchronously.
        - add_message never writes; messages come from the workflow tool.
    """

    def __init__(self, db: Session, router: AgentRouter = agent_router):
        self.db = db
        self.router = router

    def _check_ownership(self, session_id: str, user_id: str) -> None:
        if not is_owned_by(session_id, user_id):
            raise AccessDeniedError(f"Session not found or access denied: {session_id}")

    def _store_for(self, session_id: str, agent_type: Optional[str]) -> AgentHistoryStore:
        return self.router.route(agent_type or decode_session_id(session_id).agent_type)

    def _summary_to_response(self, store: AgentHistoryStore, summary: Row) -> SessionResponse:
        first_user_message = store.get_first_user_message(self.db, summary.session_id)
        identifier = decode_session_id(summary.session_id)
        return SessionResponse(
            session_id=summary.session_id,
            user_id=identifier.user_id,
            agent_type=identifier.agent_type,
            session_name=(summarize_session_name(first_user_message)
                          if first_user_message is not None else UNNAMED_SESSION_NAME),
            created_at=summary.created_at,
            updated_at=summary.updated_at,
            message_count=summary.message_count,
            is_active=True,
        )

    def create_session(self, user_id: str, request: CreateSessionRequest) -> SessionResponse:
        """
        Allocate a session id and store the first message, if any

        Without a first message nothing is written; the workflow tool creates
        the rows when the conversation starts.
        """
        agent_type = request.agent_type
        logger.info(f"Creating new session for user: {user_id} with agent: {agent_type}")

        store = self.router.route(agent_type)
        session_id = encode_session_id(user_id, agent_type)
        now = datetime.now(timezone.utc)

        first_message = request.first_message.strip() if request.first_message else None
        if first_message:
            store.insert_message(self.db, session_id, encode_payload(first_message, is_user=True), created_at=now)
            self.db.commit()

        session_name = request.session_name.strip() if request.session_name else ""
        if not session_name:
            session_name = summarize_session_name(request.first_message)

        logger.info(f"Created session: {session_id} in {store.name}")
        return SessionResponse(
            session_id=session_id,
            user_id=user_id,
            agent_type=agent_type,
            session_name=session_name,
            created_at=now,
            updated_at=now,
            message_count=1 if first_message else 0,
            is_active=True,
        )

    def list_sessions_by_agent(self, user_id: str, agent_type: str) -> List[SessionResponse]:
        logger.debug(f"Getting sessions for user: {user_id} and agent: {agent_type}")
        store = self.router.route(agent_type)
        summaries = store.get_session_summaries(self.db, user_id, agent_type)
        return [self._summary_to_response(store, s) for s in summaries]

    def get_user_sessions(self, user_id: str) -> List[SessionResponse]:
        """Sessions of a user across every agent store, grouped by agent type"""
        logger.debug(f"Getting sessions for user: {user_id}")
        sessions = []
        for store in self.router.stores():
            for summary in store.get_session_summaries(self.db, user_id):
                sessions.append(self._summary_to_response(store, summary))
        return sessions

    def get_user_sessions_paginated(self, user_id: str, agent_type: str, page: int, size: int) -> SessionPage:
        store = self.router.route(agent_type)
        total = store.count_sessions(self.db, user_id, agent_type)
        summaries = store.get_session_summaries(self.db, user_id, agent_type, offset=page * size, limit=size)
        return SessionPage(
            items=[self._summary_to_response(store, s) for s in summaries],
            total=total,
            page=page,
            size=size,
            total_pages=math.ceil(total / size) if size else 0,
        )

    def get_session(self, session_id: str, user_id: str, agent_type: Optional[str] = None) -> SessionResponse:
        """
        Session with all its messages in insertion order

        Raises:
            AccessDeniedError: session id belongs to another user
            NotFoundError: no rows for the session
            MessageParseError: a stored payload cannot be decoded
        """
        logger.debug(f"Getting session: {session_id} for user: {user_id}")
        self._check_ownership(session_id, user_id)

        store = self._store_for(session_id, agent_type)
        rows = store.get_messages(self.db, session_id)
        if not rows:
            raise NotFoundError(f"Session not found: {session_id}")

        messages = [from_history_row(row) for row in rows]
        first_user_message = next((m.content for m in messages if m.is_user), None)
        identifier = decode_session_id(session_id)
        return SessionResponse(
            session_id=session_id,
            user_id=user_id,
            agent_type=agent_type or identifier.agent_type,
            session_name=(summarize_session_name(first_user_message)
                          if first_user_message is not None else UNNAMED_SESSION_NAME),
            created_at=rows[0].created_at,
            updated_at=rows[-1].created_at,
            message_count=len(messages),
            is_active=True,
            messages=messages,
        )

    def get_session_messages(self, session_id: str, user_id: str,
                             agent_type: Optional[str] = None) -> List[MessageResponse]:
        """Messages of a session; an empty list when the workflow tool has not written any yet"""
        logger.debug(f"Getting messages for session: {session_id}")
        self._check_ownership(session_id, user_id)
        store = self._store_for(session_id, agent_type)
        return [from_history_row(row) for row in store.get_messages(self.db, session_id)]

    def add_message(self, session_id: str, user_id: str, agent_type: Optional[str],
                    request: AddMessageRequest) -> MessageResponse:
        """
        Deprecated: messages of agent history sessions are written by the workflow tool.

        Checks ownership and returns an unsaved echo of the request (``id`` is None).
        """
        self._check_ownership(session_id, user_id)
        logger.warning(
            f"add_message is a no-op for agent history sessions; nothing stored for session {session_id}"
        )
        return MessageResponse(
            id=None,
            session_id=session_id,
            content=request.content,
            is_user=request.is_user,
            created_at=datetime.now(timezone.utc),
            agent_response=request.agent_response,
            processing_time_ms=request.processing_time_ms,
            error_message=request.error_message,
            metadata=request.metadata,
        )

    def update_session_name(self, session_id: str, user_id: str, agent_type: Optional[str],
                            new_name: str) -> SessionResponse:
        self._check_ownership(session_id, user_id)
        raise ValidationError(
            "Agent history sessions are named after their first message and cannot be renamed"
        )

    def search_sessions(self, user_id: str, agent_type: Optional[str], query: str) -> List[SessionResponse]:
        """
        Sessions with at least one message whose content contains ``query``

        Matching is case-insensitive; undecodable rows are skipped. Without an
        agent type every store is searched, grouped by store. Within a store
        results keep the order of each session's most recent message.
        """
        logger.debug(f"Searching sessions for user: {user_id} with term: {query}")
        if not query or not query.strip():
            raise ValidationError("Search query is required")
        term = query.strip().lower()

        stores = [self.router.route(agent_type)] if agent_type else list(self.router.stores())
        results = []
        for store in stores:
            results.extend(self._search_store(store, user_id, term))
        return results

    def _search_store(self, store: AgentHistoryStore, user_id: str, term: str) -> List[SessionResponse]:
        sessions: "OrderedDict[str, list]" = OrderedDict()
        matched = set()
        for row in store.get_user_messages(self.db, user_id):
            try:
                payload = decode_payload(row.message)
            except MessageParseError as e:
                logger.warning(f"Skipping undecodable row {row.id} in {store.name}: {e.message}")
                continue
            sessions.setdefault(row.session_id, []).append((row, payload))
            if term in payload.content.lower():
                matched.add(row.session_id)

        results = []
        for session_id, entries in sessions.items():
            if session_id not in matched:
                continue
            entries.sort(key=lambda entry: entry[0].id)
            first_user_message = next((p.content for _, p in entries if p.is_user), None)
            identifier = decode_session_id(session_id)
            results.append(SessionResponse(
                session_id=session_id,
                user_id=identifier.user_id,
                agent_type=identifier.agent_type,
                session_name=(summarize_session_name(first_user_message)
                              if first_user_message is not None else UNNAMED_SESSION_NAME),
                created_at=entries[0][0].created_at,
                updated_at=entries[-1][0].created_at,
                message_count=len(entries),
                is_active=True,
            ))
        return results

    def delete_session(self, session_id: str, user_id: str, agent_type: Optional[str] = None) -> None:
        logger.info(f"Deleting session: {session_id} for user: {user_id}")
        self._check_ownership(session_id, user_id)
        store = self._store_for(session_id, agent_type)

        deleted = store.delete_session(self.db, session_id)
        if not deleted:
            self.db.rollback()
            raise NotFoundError(f"Session not found: {session_id}")
        self.db.commit()
        logger.info(f"Deleted session: {session_id} ({deleted} rows from {store.name})")
