"""
Custom exceptions for session management
"""


class SessionServiceError(Exception):
    """Base exception for session and message operations"""
    status_code = 500
    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class NotFoundError(SessionServiceError):
    """Raised when a session or message does not exist"""
    status_code = 404
    error_code = "NOT_FOUND"


class AccessDeniedError(SessionServiceError):
    """Raised when the session belongs to another user"""
    status_code = 403
    error_code = "FORBIDDEN"


class ValidationError(SessionServiceError):
    """Raised for malformed input that passes schema validation"""
    status_code = 400
    error_code = "BAD_REQUEST"


class MessageParseError(SessionServiceError):
    """Raised when a stored agent history payload cannot be decoded"""
    status_code = 422
    error_code = "MESSAGE_PARSE_ERROR"


class UnauthenticatedError(SessionServiceError):
    """Raised when the caller identity is missing or invalid"""
    status_code = 401
    error_code = "UNAUTHORIZED"

    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(message)
