"""
Rate limiting middleware for Evently.

This module provides rate limiting for the credential endpoints (register and
login) to slow down password guessing.
"""

import logging

from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from core.config import Settings, get_settings

logger = logging.getLogger(__name__)

# Initialize limiter
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",  # Use in-memory storage (for Redis, use redis://host:port)
    strategy="fixed-window"
)

_auth_limit = {"value": get_settings().AUTH_RATE_LIMIT}


def auth_rate_limit() -> str:
    """Current limit for register/login, e.g. "20/minute"."""
    return _auth_limit["value"]


def setup_rate_limiting(app, settings: Settings):
    """
    Setup rate limiting for FastAPI app.

    Args:
        app: FastAPI application instance
        settings: Application settings (RATE_LIMIT_ENABLED, AUTH_RATE_LIMIT)
    """
    limiter.enabled = settings.RATE_LIMIT_ENABLED
    _auth_limit["value"] = settings.AUTH_RATE_LIMIT
    limiter.reset()

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    logger.info(f"Rate limiting configured: enabled={settings.RATE_LIMIT_ENABLED}, auth={settings.AUTH_RATE_LIMIT}")
