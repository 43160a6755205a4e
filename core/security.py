"""
Password hashing and access-token helpers.

Passwords are hashed with bcrypt through passlib. Access tokens are HS256 JWTs
carrying the user id, username and role, valid for JWT_EXPIRE_MINUTES
(24 hours by default).
"""

from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from core.config import Settings, get_settings
from core.errors import ServerError

__all__ = [
    "JWTError",
    "hash_password",
    "verify_password",
    "create_access_token",
    "decode_access_token",
]

# Compared against when the username does not exist, so both login failures cost one bcrypt check
_DUMMY_PASSWORD = "evently-timing-equaliser"


@lru_cache()
def _password_context(rounds: int) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


def hash_password(password: str, settings: Optional[Settings] = None) -> str:
    settings = settings or get_settings()
    return _password_context(settings.BCRYPT_ROUNDS).hash(password)


def verify_password(password: str, hashed: Optional[str], settings: Optional[Settings] = None) -> bool:
    """
    Check a plain password against a stored bcrypt hash.

    A missing hash is still checked against a throwaway hash so callers cannot
    tell an unknown user from a wrong password by response time.
    """
    settings = settings or get_settings()
    context = _password_context(settings.BCRYPT_ROUNDS)
    if not hashed:
        context.verify(_DUMMY_PASSWORD, _dummy_hash(settings.BCRYPT_ROUNDS))
        return False
    try:
        return context.verify(password, hashed)
    except ValueError:
        # Stored value is not a recognisable hash
        return False


@lru_cache()
def _dummy_hash(rounds: int) -> str:
    return _password_context(rounds).hash(_DUMMY_PASSWORD)


def _secret(settings: Settings) -> str:
    if not settings.JWT_SECRET:
        raise ServerError("Server configuration error - missing JWT secret")
    return settings.JWT_SECRET


def create_access_token(
    user_id: int,
    username: str,
    role: str,
    settings: Optional[Settings] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Issue a signed access token.

    Args:
        user_id: Identifier of the authenticated user
        username: Username claim
        role: Role claim ("user" or "admin")
        settings: Application settings (defaults to get_settings())
        expires_delta: Override of the validity window

    Returns:
        str: encoded JWT

    Raises:
        ServerError: If JWT_SECRET is not configured
    """
    settings = settings or get_settings()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.JWT_EXPIRE_MINUTES))
    claims: Dict[str, Any] = {
        "userId": user_id,
        "username": username,
        "role": role or "user",
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(claims, _secret(settings), algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str, settings: Optional[Settings] = None) -> Dict[str, Any]:
    """
    Verify signature and expiry of a token and return its claims.

    Raises:
        JWTError: If the signature is invalid, the token is malformed or expired
        ServerError: If JWT_SECRET is not configured
    """
    settings = settings or get_settings()
    return jwt.decode(token, _secret(settings), algorithms=[settings.JWT_ALGORITHM])
