"""
Display names derived from a session's first message
"""

from typing import Optional

DEFAULT_SESSION_NAME = "Nueva conversación"
UNNAMED_SESSION_NAME = "Conversación"

MAX_WORDS = 4
ELLIPSIS_THRESHOLD = 30
MAX_NAME_LENGTH = 50
ELLIPSIS = "..."


def summarize_session_name(first_message: Optional[str]) -> str:
    """
    Derive a short session name from the first message text

    Takes the first four words; appends "..." when the original text is longer
    than 30 characters and cuts anything over 50 characters down to 47 + "...".
    """
    if first_message is None or not first_message.strip():
        return DEFAULT_SESSION_NAME

    words = first_message.split()
    name = " ".join(words[:MAX_WORDS])
    if len(first_message) > ELLIPSIS_THRESHOLD:
        name += ELLIPSIS

    if len(name) > MAX_NAME_LENGTH:
        name = name[:MAX_NAME_LENGTH - len(ELLIPSIS)] + ELLIPSIS
    return name
