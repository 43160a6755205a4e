"""
Bearer token authentication for Evently.

This module provides the dependencies that admit a request: ``get_current_user``
verifies the ``Authorization: Bearer <token>`` header and ``require_roles``
additionally checks the caller's role.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.api.deps import get_app_settings
from core.config import Settings
from core.errors import AuthenticationError, AuthorizationError
from core.security import JWTError, decode_access_token
from models.user import ROLE_ADMIN

logger = logging.getLogger(__name__)

# Bearer scheme; missing headers are reported by get_current_user itself
bearer_scheme = HTTPBearer(auto_error=False)

AUTH_REQUIRED = "Authentication required"
INVALID_TOKEN = "Invalid or expired token"
FORBIDDEN = "Forbidden - Insufficient permissions"


@dataclass(frozen=True)
class CurrentUser:
    user_id: int
    username: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_app_settings),
) -> CurrentUser:
    """
    Dependency that requires a valid access token.

    Args:
        request: FastAPI request, the admitted user is stored on request.state.user
        credentials: Parsed Authorization header
        settings: Application settings

    Returns:
        CurrentUser: identity carried by the token

    Raises:
        AuthenticationError: Header missing or malformed, or token invalid/expired
    """
    if credentials is None or not credentials.credentials:
        logger.warning(f"Missing bearer token for {request.method} {request.url.path}")
        raise AuthenticationError(AUTH_REQUIRED)

    try:
        claims = decode_access_token(credentials.credentials, settings)
        user = CurrentUser(
            user_id=int(claims["userId"]),
            username=str(claims.get("username", "")),
            role=str(claims.get("role", "user")),
        )
    except (JWTError, KeyError, TypeError, ValueError):
        logger.warning(f"Rejected token for {request.method} {request.url.path}")
        raise AuthenticationError(INVALID_TOKEN)

    request.state.user = user
    return user


def require_roles(*roles: str) -> Callable[..., CurrentUser]:
    """
    Build a dependency that admits only the given roles.

    Example:
        @router.post("", dependencies=[Depends(require_roles("admin"))])
    """
    def dependency(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role not in roles:
            logger.warning(f"User {user.user_id} with role {user.role} denied; requires {roles}")
            raise AuthorizationError(FORBIDDEN)
        return user

    return dependency


require_admin = require_roles(ROLE_ADMIN)
