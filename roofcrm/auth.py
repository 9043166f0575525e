"""
JWT validation for requests coming from the CRM.

Accounts, passwords and roles live in the CRM's auth service; it issues access
tokens signed with the shared JWT_SECRET. This module only verifies them and
extracts the user id (recorded as `created_by` on material orders).

Library: python-jose[cryptography] for JWT.
"""

from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, HTTPException, Query, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from .config import settings

security = HTTPBearer(auto_error=False)


def _get_jwt_secret() -> str:
    """Get JWT secret, failing loudly if not configured."""
    secret = settings.JWT_SECRET
    if not secret:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="JWT_SECRET not configured — set it in environment variables",
        )
    return secret


def create_access_token(user_id: int) -> str:
    """Create a short-lived access token (15 min default). Used by service scripts and tests."""
    expire = datetime.utcnow() + timedelta(minutes=settings.JWT_ACCESS_EXPIRE_MINUTES)
    payload = {
        "sub": str(user_id),
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(payload, _get_jwt_secret(), algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    """Decode and validate a JWT. Raises HTTPException on failure."""
    try:
        payload = jwt.decode(token, _get_jwt_secret(), algorithms=[settings.JWT_ALGORITHM])
        return payload
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


def user_id_from_token(token: str) -> int:
    """Validate an access token and return its user id."""
    payload = decode_token(token)

    if payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type — use an access token",
        )

    user_id = payload.get("sub")
    if not user_id or not str(user_id).isdigit():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )
    return int(user_id)


# --- FastAPI dependencies ---

def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> int:
    """FastAPI dependency — extracts and validates the bearer JWT, returns the user id."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return user_id_from_token(credentials.credentials)


def get_download_user_id(
    token: Optional[str] = Query(None),
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> int:
    """
    Download links are opened with window.open, which can't set headers —
    accept ?token= as well as the Authorization header.
    """
    if token:
        return user_id_from_token(token)
    return get_current_user_id(credentials)
