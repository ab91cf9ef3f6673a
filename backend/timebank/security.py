"""
TimeBank Backend — Credentials and Session Tokens
==================================================

What:  Password hashing, access-token issuing/verification and the FastAPI
       dependency that yields the acting user id for mutating routes.
How:
    - Passwords: bcrypt with a per-password salt; verification through
      bcrypt.checkpw (constant time).
    - Sessions: HS256 JWT signed with JWT_SECRET_KEY; `sub` holds the user
      id as a string, `exp` the expiry.
    - Routes declare `acting_user_id: CurrentUserId` and receive the id of
      the authenticated caller, or the request fails with 401.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Annotated, Optional

import bcrypt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from timebank.config import settings
from timebank.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of its input
_BCRYPT_MAX_BYTES = 72


# ══════════════════════════════════════════════════════════════════════════
# Password Hashing
# ══════════════════════════════════════════════════════════════════════════

def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """Hash a plaintext password with bcrypt; returns the `$2b$...` string."""
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Check a plaintext password against a stored bcrypt hash.

    A malformed stored hash counts as a mismatch.
    """
    try:
        return bcrypt.checkpw(_password_bytes(plain_password), hashed_password.encode("utf-8"))
    except ValueError as e:
        logger.error("Stored password hash is malformed: %s", e)
        return False


_dummy_hash: Optional[str] = None


def dummy_password_hash() -> str:
    """
    A valid hash of a random value, checked when the email is unknown so
    that unknown and known emails take the same time to reject.
    """
    global _dummy_hash
    if _dummy_hash is None:
        _dummy_hash = hash_password("timebank-unknown-user")
    return _dummy_hash


# ══════════════════════════════════════════════════════════════════════════
# Access Tokens
# ══════════════════════════════════════════════════════════════════════════

def create_access_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    """
    Issue a signed session token for `user_id`.

    Args:
        user_id: Authenticated user's id (stored as the `sub` claim).
        expires_delta: Lifetime; defaults to ACCESS_TOKEN_EXPIRE_MINUTES.
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    claims = {"sub": str(user_id), "iat": now, "exp": expire}
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> int:
    """
    Verify a session token and return the user id it was issued for.

    Raises:
        AuthenticationError: bad signature, expired, or no usable subject.
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.info("Rejected session token: %s", e)
        raise AuthenticationError(message="Invalid or expired session token")

    subject = payload.get("sub")
    try:
        return int(subject)
    except (TypeError, ValueError):
        raise AuthenticationError(message="Invalid or expired session token")


# ══════════════════════════════════════════════════════════════════════════
# FastAPI Dependency
# ══════════════════════════════════════════════════════════════════════════

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> int:
    """
    Resolve the acting user id from the `Authorization: Bearer` header.

    Raises:
        AuthenticationError: header missing or token invalid (→ 401).
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError()
    return decode_access_token(credentials.credentials)


CurrentUserId = Annotated[int, Depends(get_current_user_id)]
