"""
Composite session identifiers: ``userId_agentType_epochMillis_uuid8``
"""

import logging
import time
import uuid
from typing import NamedTuple, Optional

logger = logging.getLogger(__name__)

DELIMITER = "_"


class SessionIdentifier(NamedTuple):
    user_id: Optional[str]
    agent_type: Optional[str]


def encode_session_id(user_id: str, agent_type: str) -> str:
    """
    Build a new session identifier

    Args:
        user_id: Owner of the session
        agent_type: Agent type the session belongs to

    Returns:
        ``f"{user_id}_{agent_type}_{epoch_millis}_{uuid8}"``
    """
    if DELIMITER in user_id or DELIMITER in agent_type:
        # The format has no escaping; decode_session_id will return truncated parts
        logger.warning(
            f"Session id parts contain '{DELIMITER}' and will not decode back: "
            f"user_id={user_id!r}, agent_type={agent_type!r}"
        )
    epoch_millis = int(time.time() * 1000)
    suffix = uuid.uuid4().hex[:8]
    return f"{user_id}{DELIMITER}{agent_type}{DELIMITER}{epoch_millis}{DELIMITER}{suffix}"


def decode_session_id(session_id: Optional[str]) -> SessionIdentifier:
    """Split a session identifier into its user id and agent type (positions 0 and 1)"""
    if not session_id:
        return SessionIdentifier(None, None)
    parts = session_id.split(DELIMITER)
    user_id = parts[0] if parts[0] else None
    agent_type = parts[1] if len(parts) > 1 and parts[1] else None
    return SessionIdentifier(user_id, agent_type)


def session_id_prefix(user_id: str, agent_type: Optional[str] = None) -> str:
    """Prefix shared by every session id of a user (and agent type, when given)"""
    if agent_type is None:
        return f"{user_id}{DELIMITER}"
    return f"{user_id}{DELIMITER}{agent_type}{DELIMITER}"


def is_owned_by(session_id: str, user_id: str) -> bool:
    return decode_session_id(session_id).user_id == user_id
