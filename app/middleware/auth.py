"""
Authentication dependency resolving the caller from the bearer token
"""

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.deps.exceptions import UnauthenticatedError
from app.services.auth import AuthService

# HTTP Bearer token scheme; missing credentials are reported as UnauthenticatedError
security = HTTPBearer(auto_error=False)


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> str:
    """
    Dependency returning the authenticated user id
    Raises UnauthenticatedError if the token is missing or has no user claim
    """
    if credentials is None or not credentials.credentials:
        raise UnauthenticatedError("User not authenticated")
    return AuthService.get_current_user_id(credentials.credentials)
