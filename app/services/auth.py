"""
Bearer token decoding and caller identity
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from app.core.config import settings
from app.deps.exceptions import UnauthenticatedError

# Checked in this order; the first claim present is the user id
USER_ID_CLAIMS = ("preferred_username", "sub", "username")


class JWTService:
    """Service for JWT token management"""

    @staticmethod
    def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
        """Create a JWT access token (used by tests and local tooling)"""
        to_encode = data.copy()
        expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=15))
        to_encode.update({"exp": expire})
        return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)

    @staticmethod
    def decode_token(token: str) -> Dict[str, Any]:
        """
        Decode a bearer token into its claims

        Signature checks can be disabled with ``jwt_verify_signature`` when an
        upstream gateway has already validated the token.
        """
        try:
            if not settings.jwt_verify_signature:
                return jwt.get_unverified_claims(token)
            return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
        except JWTError as e:
            raise UnauthenticatedError(f"Invalid token: {e}")


class AuthService:
    """Resolves the calling user from token claims"""

    @staticmethod
    def extract_user_id(claims: Dict[str, Any]) -> str:
        for claim in USER_ID_CLAIMS:
            value = claims.get(claim)
            if value is not None and str(value) != "":
                return str(value)
        raise UnauthenticatedError("User ID not found in JWT token")

    @staticmethod
    def get_current_user_id(token: str) -> str:
        return AuthService.extract_user_id(JWTService.decode_token(token))
