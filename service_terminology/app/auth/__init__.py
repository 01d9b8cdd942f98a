"""
Service-account authentication against the terminology server.
"""

from .authenticator import Authenticator, session_token_from_cookies
from .session_cache import (
    EMPTY_SESSION,
    Session,
    SessionCache,
    get_session_cache,
    init_session_cache,
    reset_session_cache,
)

__all__ = [
    "EMPTY_SESSION",
    "Authenticator",
    "Session",
    "SessionCache",
    "get_session_cache",
    "init_session_cache",
    "reset_session_cache",
    "session_token_from_cookies",
]
