"""Site-scope authentication routes: /api/auth/*"""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from docsite.auth.cookies import ADMIN_COOKIE, SITE_COOKIE, create_logout_cookie
from docsite.auth.session import is_valid_session
from docsite.utils.logger import get_logger

from .auth_deps import read_site_session, request_client_ip, set_session_cookie
from .context import get_context
from .login import perform_login

logger = get_logger(__name__)

auth_router = APIRouter(prefix="/api/auth", tags=["auth"])


@auth_router.post("/login")
async def login(request: Request):
    """Log in with the site password"""
    return await perform_login(request, get_context(request), admin=False)


@auth_router.get("/check")
async def check_session(request: Request):
    """Whether the caller holds a valid site session; never an error"""
    session = read_site_session(request)
    if session is None or not is_valid_session(session):
        return {"isAuthenticated": False}
    return {"isAuthenticated": True, "expiresAt": session.expires_at}


@auth_router.post("/logout")
async def logout(request: Request):
    """Clear both the site and admin cookies"""
    secure = get_context(request).secure_cookies
    logger.info("Logged out", client_ip=request_client_ip(request))
    response = JSONResponse({"success": True, "message": "Logged out successfully"})
    set_session_cookie(response, create_logout_cookie(SITE_COOKIE, secure=secure))
    set_session_cookie(response, create_logout_cookie(ADMIN_COOKIE, secure=secure))
    return response


@auth_router.get("/rate-limit")
async def rate_limit_status(request: Request):
    """Remaining login attempts for the caller; does not consume one"""
    ctx = get_context(request)
    result = ctx.rate_limiter.peek(request_client_ip(request))
    body = {"allowed": result.allowed, "remainingAttempts": result.remaining_attempts}
    if result.reset_time is not None:
        body["resetTime"] = result.reset_time
    return body
