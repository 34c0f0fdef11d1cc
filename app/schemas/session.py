"""
Session API schemas
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema serialized with camelCase field names"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class CreateSessionRequest(CamelModel):
    """Create session request schema"""
    user_id: Optional[str] = Field(None, max_length=100, description="Must match the authenticated user when given")
    agent_type: str = Field(..., description="Agent type, e.g. ia-laboral")
    session_name: Optional[str] = Field(None, max_length=200, description="Display name; derived from first message if omitted")
    first_message: Optional[str] = Field(None, max_length=1000, description="Optional first user message")

    @field_validator('agent_type')
    @classmethod
    def validate_agent_type(cls, v):
        if not v or not v.strip():
            raise ValueError("Agent type is required")
        return v.strip()


class AddMessageRequest(CamelModel):
    """Add message request schema"""
    content: str = Field(..., max_length=10000, description="Message text")
    is_user: bool = Field(..., description="True for user messages, False for agent messages")
    agent_response: Optional[str] = Field(None, max_length=10000)
    error_message: Optional[str] = Field(None, max_length=1000)
    metadata: Optional[str] = Field(None, max_length=2000, description="Opaque JSON string")
    processing_time_ms: Optional[int] = Field(None, ge=0)

    @field_validator('content')
    @classmethod
    def validate_content(cls, v):
        if not v or not v.strip():
            raise ValueError("Content is required")
        return v


class UpdateSessionNameRequest(CamelModel):
    """Rename session request schema"""
    session_name: str = Field(..., max_length=200)

    @field_validator('session_name')
    @classmethod
    def validate_session_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Session name is required")
        return v.strip()


class MessageResponse(CamelModel):
    """Message response schema"""
    id: Optional[int] = None
    session_id: str
    content: str
    is_user: bool
    created_at: Optional[datetime] = None
    message_order: Optional[int] = None
    agent_response: Optional[str] = None
    processing_time_ms: Optional[int] = None
    error_message: Optional[str] = None
    metadata: Optional[str] = None


class SessionResponse(CamelModel):
    """Session response schema; messages are only populated for single-session reads"""
    session_id: str
    user_id: Optional[str] = None
    agent_type: Optional[str] = None
    session_name: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    message_count: int = 0
    is_active: bool = True
    messages: Optional[List[MessageResponse]] = None


class SessionPage(CamelModel):
    """Paginated session listing"""
    items: List[SessionResponse] = Field(default_factory=list)
    total: int
    page: int
    size: int
    total_pages: int
