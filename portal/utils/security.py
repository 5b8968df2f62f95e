from datetime import datetime, timedelta, timezone
from typing import Any, Optional
import jwt
from jwt.exceptions import InvalidTokenError as JWTError
from fastapi import HTTPException, status

from pwdlib import PasswordHash

from portal.config.settings import settings

password_hasher = PasswordHash.recommended()


def hash_password(password: str) -> str:
    """Hash a password using Argon2."""
    return password_hasher.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hashed password."""
    try:
        return password_hasher.verify(plain_password, hashed_password)
    except Exception:
        return False


def _encode(payload: dict[str, Any]) -> str:
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_access_token(
    user_id: str,
    role: str,
    department_id: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a short-lived JWT access token.

    Role and department ride along for clients; the server always
    re-reads them from the user row.
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))

    return _encode({
        "sub": user_id,
        "role": role,
        "dept": department_id,
        "type": "access",
        "iat": now,
        "exp": expire,
    })


def create_refresh_token(user_id: str, role: str) -> str:
    """
    Create a long-lived JWT refresh token.
    Only accepted by the refresh endpoint.
    """
    now = datetime.now(timezone.utc)
    expire = now + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)

    return _encode({
        "sub": user_id,
        "role": role,
        "type": "refresh",
        "iat": now,
        "exp": expire,
    })


def verify_token_type(token: str, expected_type: str) -> dict[str, Any]:
    """Universal token decoder and type verifier."""
    try:
        payload = jwt.decode(
            token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )
    if payload.get("type") != expected_type:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token type. Expected {expected_type}",
        )
    return payload
