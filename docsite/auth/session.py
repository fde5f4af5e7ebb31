"""
Stateless sessions.

A Session is the whole authorization grant; it lives in the client's cookie
and the server keeps no session table. Tokens therefore cannot be revoked
before expires_at: logout only clears the browser's copy.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt

from .rate_limiter import now_ms

SESSION_DURATION_MS = 24 * 60 * 60 * 1000  # 24 hours


class Session(BaseModel):
    """Authorization record carried in the site/admin cookie"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    is_authenticated: StrictBool = Field(alias="isAuthenticated")
    is_admin: StrictBool = Field(alias="isAdmin")
    expires_at: StrictInt = Field(alias="expiresAt")  # epoch ms


def create_session(is_admin: bool = False, now: Optional[int] = None) -> Session:
    current = now if now is not None else now_ms()
    return Session(
        is_authenticated=True,
        is_admin=is_admin,
        expires_at=current + SESSION_DURATION_MS,
    )


def is_valid_session(session: Optional[Session], now: Optional[int] = None) -> bool:
    if session is None:
        return False
    current = now if now is not None else now_ms()
    return session.is_authenticated and current < session.expires_at


def is_admin_session(session: Optional[Session], now: Optional[int] = None) -> bool:
    return is_valid_session(session, now) and session.is_admin is True


def extend_session(session: Session, now: Optional[int] = None) -> Session:
    """Return a copy of session with a fresh 24h expiry"""
    current = now if now is not None else now_ms()
    return session.model_copy(update={"expires_at": current + SESSION_DURATION_MS})
