"""
Conversion between agent history rows and message DTOs
"""

import json
import logging
from typing import Any, Dict, Mapping, Union
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from app.deps.exceptions import MessageParseError
from app.schemas.session import MessageResponse

logger = logging.getLogger(__name__)

HUMAN_TYPE = "human"
AI_TYPE = "ai"


class MessagePayload(BaseModel):
    """JSON payload stored in the ``message`` column"""
    model_config = ConfigDict(extra="ignore")

    type: str
    content: str
    additional_kwargs: Dict[str, Any] = Field(default_factory=dict)
    response_metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def is_user(self) -> bool:
        return self.type == HUMAN_TYPE


def decode_payload(raw: Union[str, bytes, Mapping[str, Any], None]) -> MessagePayload:
    """
    Decode a raw ``message`` column value

    Args:
        raw: JSON text, or a mapping when the driver already decoded JSONB

    Returns:
        Validated message payload

    Raises:
        MessageParseError: if the value is not a JSON object with string
            ``type`` and ``content`` fields
    """
    if raw is None:
        raise MessageParseError("Message payload is empty")
    try:
        if isinstance(raw, Mapping):
            return MessagePayload.model_validate(dict(raw))
        return MessagePayload.model_validate_json(raw)
    except PydanticValidationError as e:
        raise MessageParseError(f"Invalid message payload: {e.errors()[0]['msg']}") from e


def encode_payload(content: str, is_user: bool) -> str:
    """Serialize a message the way the workflow tool stores it"""
    payload = MessagePayload(type=HUMAN_TYPE if is_user else AI_TYPE, content=content)
    return payload.model_dump_json()


def from_history_row(row: Any) -> MessageResponse:
    """
    Normalize an agent history row into a message DTO

    ``row`` needs ``id``, ``session_id``, ``message`` and optionally
    ``created_at`` attributes (a SQLAlchemy ``Row`` works).
    """
    payload = decode_payload(row.message)
    metadata = json.dumps(payload.response_metadata) if payload.response_metadata else None
    return MessageResponse(
        id=row.id,
        session_id=row.session_id,
        content=payload.content,
        is_user=payload.is_user,
        created_at=getattr(row, "created_at", None),
        metadata=metadata,
    )
