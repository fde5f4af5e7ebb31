"""
FastAPI dependencies and helpers for session-cookie authentication.
"""

from typing import Any, Dict, Mapping, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from docsite.auth.cookies import ADMIN_COOKIE, SITE_COOKIE, SessionCookie, decode_session
from docsite.auth.session import Session, is_admin_session, is_valid_session
from docsite.utils.exceptions import AUTH_ERRORS, CONTENT_ERRORS

from .context import get_context


class ApiError(Exception):
    """Raised inside routes/dependencies; rendered as {"error": code, "message": ...}"""

    def __init__(
        self,
        status_code: int,
        code: str,
        message: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        **extra: Any,
    ):
        self.status_code = status_code
        self.code = code
        self.message = message or AUTH_ERRORS.get(code) or CONTENT_ERRORS.get(code) or code
        self.headers = headers
        self.extra = extra
        super().__init__(self.message)


def error_response(
    status_code: int,
    code: str,
    message: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
    **extra: Any,
) -> JSONResponse:
    body = {
        "error": code,
        "message": message or AUTH_ERRORS.get(code) or CONTENT_ERRORS.get(code) or code,
    }
    body.update({k: v for k, v in extra.items() if v is not None})
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def get_client_ip(headers: Mapping[str, str], remote_addr: Optional[str] = None) -> str:
    """First X-Forwarded-For entry, else the socket peer, else "unknown" """
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return (remote_addr or "unknown").strip()


def request_client_ip(request: Request) -> str:
    return get_client_ip(request.headers, request.client.host if request.client else None)


def set_session_cookie(response: JSONResponse, cookie: SessionCookie) -> None:
    response.set_cookie(key=cookie.name, value=cookie.value, **cookie.options.as_set_cookie_kwargs())


def read_site_session(request: Request) -> Optional[Session]:
    return decode_session(request.cookies.get(SITE_COOKIE), get_context(request).session_secret)


def read_admin_session(request: Request) -> Optional[Session]:
    return decode_session(request.cookies.get(ADMIN_COOKIE), get_context(request).session_secret)


def require_site_session(request: Request) -> Session:
    """Dependency for site routes: a valid site_session cookie"""
    session = read_site_session(request)
    if session is None:
        raise ApiError(401, "UNAUTHORIZED")
    if not is_valid_session(session):
        raise ApiError(401, "SESSION_EXPIRED")
    return session


def require_admin_session(request: Request) -> Session:
    """Dependency for admin routes: a valid admin_session cookie with the admin flag"""
    session = read_admin_session(request)
    if session is None:
        raise ApiError(401, "UNAUTHORIZED")
    if not is_valid_session(session):
        raise ApiError(401, "SESSION_EXPIRED")
    if not is_admin_session(session):
        raise ApiError(401, "UNAUTHORIZED")
    return session
