"""
Bearer-token authentication for the community API.

Tokens are HS256 JWTs whose ``sub`` claim is the user id. Handlers receive an
``AuthUser`` snapshot rather than an ORM object so the identity outlives the
session it was loaded in.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from bridgehead.config import ACCESS_TOKEN_EXPIRE_MINUTES, JWT_ALGORITHM, SECRET_KEY
from bridgehead.db import get_session
from bridgehead.models import User

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthUser:
    """Identity and display fields of the authenticated caller."""
    id: int
    full_name: str
    avatar_url: Optional[str] = None
    badge: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "AuthUser":
        return cls(id=user.id, full_name=user.full_name, avatar_url=user.avatar_url, badge=user.badge)


def create_access_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {"exp": expire, "sub": str(user_id)}
    return jwt.encode(to_encode, SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> int:
    """
    Return the user id carried by a token.

    Raises:
        ValueError: if the token is malformed, expired, or has no usable subject
    """
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        raise ValueError(f"Invalid token: {e}") from e

    subject = payload.get("sub")
    if subject is None:
        raise ValueError("Token payload missing 'sub'")
    try:
        return int(subject)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Token subject is not a user id: {subject!r}") from e


def _load_user(user_id: int) -> Optional[AuthUser]:
    with get_session() as db:
        user = db.query(User).filter(User.id == user_id).first()
        return AuthUser.from_user(user) if user else None


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> AuthUser:
    """Require a valid bearer token for a known user, else 401."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No token, authorization denied",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user_id = decode_access_token(credentials.credentials)
    except ValueError as e:
        logger.warning("Rejected bearer token: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token is not valid",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = _load_user(user_id)
    if user is None:
        logger.warning("Token for unknown user %s", user_id)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[AuthUser]:
    """Attach the caller if the token checks out; any bad token means guest."""
    if credentials is None:
        return None
    try:
        user_id = decode_access_token(credentials.credentials)
    except ValueError as e:
        logger.debug("Ignoring invalid token on optional-auth route: %s", e)
        return None
    return _load_user(user_id)
