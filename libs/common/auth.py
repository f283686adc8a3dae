"""Token verification for owner scoping.

Sign-in and session management live outside this repository; the search
service only needs to turn a bearer token into the owner id every query is
scoped to.

Design
- "AuthManager" verifies end‑user JWTs and can issue them for tests/tools
- ``get_current_owner_id`` is a drop‑in FastAPI dependency
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
import jwt
from fastapi import HTTPException, Request, status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import structlog

logger = structlog.get_logger("auth")

security = HTTPBearer()


class AuthManager:
    """Authentication manager for end‑user tokens.

    The token subject (``sub``) carries the owner id. Keep payloads minimal
    and avoid sensitive data.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        access_token_expire_minutes: int = 30
    ):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.access_token_expire_minutes = access_token_expire_minutes

    def create_access_token(
        self,
        data: Dict[str, Any],
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """Create a JWT access token."""
        to_encode = data.copy()
        if expires_delta:
            expire = datetime.now(timezone.utc) + expires_delta
        else:
            expire = datetime.now(timezone.utc) + timedelta(minutes=self.access_token_expire_minutes)

        to_encode.update({"exp": expire})
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str) -> Dict[str, Any]:
        """Verify and decode a JWT token.

        Raises ``HTTPException`` with 401 on invalid/expired tokens.
        """
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token has expired",
                headers={"WWW-Authenticate": "Bearer"},
            )
        except jwt.InvalidTokenError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Could not validate credentials",
                headers={"WWW-Authenticate": "Bearer"},
            )


def get_auth_manager(request: Request) -> AuthManager:
    """Get auth manager from application state."""
    return request.app.state.auth_manager


def get_current_owner_id(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    auth_manager: AuthManager = Depends(get_auth_manager),
) -> str:
    """Resolve the owner id (token subject) for the current request."""
    payload = auth_manager.verify_token(credentials.credentials)
    owner_id = payload.get("sub")
    if not owner_id:
        logger.warning("Token without subject rejected")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return str(owner_id)
