"""Authentication: password hashing, login rate limiting, stateless session cookies."""

from .cookies import (
    ADMIN_COOKIE,
    SITE_COOKIE,
    CookieOptions,
    SessionCookie,
    create_admin_session_cookie,
    create_logout_cookie,
    create_site_session_cookie,
    decode_session,
    encode_session,
)
from .passwords import hash_password, verify_password
from .rate_limiter import AuthRateLimiter, RateLimitResult
from .session import (
    Session,
    create_session,
    extend_session,
    is_admin_session,
    is_valid_session,
)

__all__ = [
    "ADMIN_COOKIE",
    "SITE_COOKIE",
    "CookieOptions",
    "SessionCookie",
    "create_admin_session_cookie",
    "create_logout_cookie",
    "create_site_session_cookie",
    "decode_session",
    "encode_session",
    "hash_password",
    "verify_password",
    "AuthRateLimiter",
    "RateLimitResult",
    "Session",
    "create_session",
    "extend_session",
    "is_admin_session",
    "is_valid_session",
]
