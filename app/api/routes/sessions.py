"""
Session API endpoints
"""

import logging
import time
from typing import List, Optional, Union
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.deps.exceptions import AccessDeniedError
from app.middleware.auth import get_current_user_id
from app.schemas.session import (
    AddMessageRequest,
    CreateSessionRequest,
    MessageResponse,
    SessionPage,
    SessionResponse,
    UpdateSessionNameRequest,
)
from app.services.agent_session_service import AgentHistorySessionService
from app.services.session_service import SessionService

router = APIRouter()
logger = logging.getLogger(__name__)

SessionBackend = Union[AgentHistorySessionService, SessionService]


def get_session_service(db: Session = Depends(get_db)) -> SessionBackend:
    """Service for the configured storage backend"""
    if settings.session_backend == "relational":
        return SessionService(db)
    return AgentHistorySessionService(db)


@router.get("/health")
async def health():
    """Unauthenticated health check for the session API"""
    return {
        "status": "UP",
        "timestamp": int(time.time() * 1000),
        "service": "session-management"
    }


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED,
             response_model_exclude_none=True)
async def create_session(
    request: CreateSessionRequest,
    user_id: str = Depends(get_current_user_id),
    service: SessionBackend = Depends(get_session_service)
):
    """
    Create a new session for the authenticated user

    The body may repeat the user id; it must match the token.
    """
    if request.user_id and request.user_id != user_id:
        raise AccessDeniedError("Cannot create a session for another user")
    logger.info(f"Creating session for user: {user_id} with agent: {request.agent_type}")
    return service.create_session(user_id, request)


@router.get("", response_model=List[SessionResponse], response_model_exclude_none=True)
async def list_sessions(
    agent_type: Optional[str] = Query(None, alias="agentType"),
    user_id: str = Depends(get_current_user_id),
    service: SessionBackend = Depends(get_session_service)
):
    """Sessions of the authenticated user, for one agent type or all of them"""
    if agent_type:
        return service.list_sessions_by_agent(user_id, agent_type)
    return service.get_user_sessions(user_id)


@router.get("/paginated", response_model=SessionPage, response_model_exclude_none=True)
async def list_sessions_paginated(
    agent_type: str = Query(..., alias="agentType", min_length=1),
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=settings.session_page_size_max),
    user_id: str = Depends(get_current_user_id),
    service: SessionBackend = Depends(get_session_service)
):
    return service.get_user_sessions_paginated(user_id, agent_type, page, size)


@router.get("/search", response_model=List[SessionResponse], response_model_exclude_none=True)
async def search_sessions(
    query: str = Query(..., min_length=1),
    agent_type: Optional[str] = Query(None, alias="agentType"),
    user_id: str = Depends(get_current_user_id),
    service: SessionBackend = Depends(get_session_service)
):
    """Sessions with a message containing the query (case-insensitive)"""
    return service.search_sessions(user_id, agent_type, query)


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str,
    agent_type: Optional[str] = Query(None, alias="agentType"),
    user_id: str = Depends(get_current_user_id),
    service: SessionBackend = Depends(get_session_service)
):
    return service.get_session(session_id, user_id, agent_type)


@router.get("/{session_id}/messages", response_model=List[MessageResponse])
async def get_session_messages(
    session_id: str,
    agent_type: Optional[str] = Query(None, alias="agentType"),
    user_id: str = Depends(get_current_user_id),
    service: SessionBackend = Depends(get_session_service)
):
    return service.get_session_messages(session_id, user_id, agent_type)


@router.post("/{session_id}/messages", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def add_message(
    session_id: str,
    request: AddMessageRequest,
    agent_type: Optional[str] = Query(None, alias="agentType"),
    user_id: str = Depends(get_current_user_id),
    service: SessionBackend = Depends(get_session_service)
):
    logger.info(f"Adding message to session: {session_id} for user: {user_id}")
    return service.add_message(session_id, user_id, agent_type, request)


@router.put("/{session_id}/name", response_model=SessionResponse, response_model_exclude_none=True)
async def update_session_name(
    session_id: str,
    request: UpdateSessionNameRequest,
    agent_type: Optional[str] = Query(None, alias="agentType"),
    user_id: str = Depends(get_current_user_id),
    service: SessionBackend = Depends(get_session_service)
):
    return service.update_session_name(session_id, user_id, agent_type, request.session_name)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(
    session_id: str,
    agent_type: Optional[str] = Query(None, alias="agentType"),
    user_id: str = Depends(get_current_user_id),
    service: SessionBackend = Depends(get_session_service)
):
    logger.info(f"Deleting session: {session_id} for user: {user_id}")
    service.delete_session(session_id, user_id, agent_type)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
