"""
Password login shared by the site and admin scopes.

Both scopes use the same flow and the same rate limiter; they differ only in
which stored hash is checked and which cookie is minted.
"""

from typing import Any, Optional

from fastapi import Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from docsite.auth.cookies import create_admin_session_cookie, create_site_session_cookie
from docsite.auth.passwords import verify_password
from docsite.auth.session import create_session
from docsite.utils.exceptions import INTERNAL_ERROR
from docsite.utils.logger import get_logger
from docsite.validation.input_validator import validate_password

from .auth_deps import error_response, request_client_ip, set_session_cookie
from .context import AppContext

logger = get_logger(__name__)


async def read_password(request: Request) -> Optional[str]:
    """The "password" field of a JSON body, or None if absent/not a string"""
    try:
        body: Any = await request.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    password = body.get("password")
    if not password or not isinstance(password, str):
        return None
    return password


async def perform_login(request: Request, ctx: AppContext, admin: bool) -> JSONResponse:
    scope = "admin" if admin else "site"
    client_ip = request_client_ip(request)

    try:
        rate_limit = ctx.rate_limiter.check_rate_limit(client_ip)
        if not rate_limit.allowed:
            logger.warning("Login rate limited", scope=scope, client_ip=client_ip)
            return error_response(
                429,
                "RATE_LIMITED",
                headers={"Retry-After": str(rate_limit.retry_after_seconds())},
                resetTime=rate_limit.reset_time,
            )

        password = await read_password(request)
        if password is None:
            return error_response(400, "VALIDATION_ERROR", "Password is required")

        validation = validate_password(password)
        if not validation.is_valid:
            return error_response(400, "VALIDATION_ERROR", validation.error)

        credentials = await run_in_threadpool(ctx.config_store.get_credentials)
        if credentials is None:
            # Same response as a wrong password; the log records the real cause
            logger.warning("Site configuration not found", scope=scope, client_ip=client_ip)
            stored_hash = ""
        else:
            stored_hash = credentials.admin_password_hash if admin else credentials.site_password_hash

        is_valid = bool(stored_hash) and await run_in_threadpool(verify_password, password, stored_hash)
        if not is_valid:
            logger.warning(
                "Invalid login attempt",
                scope=scope,
                client_ip=client_ip,
                remaining_attempts=rate_limit.remaining_attempts,
            )
            return error_response(
                401,
                "INVALID_CREDENTIALS",
                remainingAttempts=rate_limit.remaining_attempts,
            )

        ctx.rate_limiter.reset(client_ip)

        session = create_session(is_admin=admin)
        if admin:
            cookie = create_admin_session_cookie(session, ctx.session_secret, secure=ctx.secure_cookies)
        else:
            cookie = create_site_session_cookie(session, ctx.session_secret, secure=ctx.secure_cookies)

        response = JSONResponse({
            "success": True,
            "message": "Admin login successful" if admin else "Login successful",
            "expiresAt": session.expires_at,
        })
        set_session_cookie(response, cookie)

        logger.info("Login successful", scope=scope, client_ip=client_ip)
        return response
    except Exception as e:
        logger.exception("Login error", scope=scope, client_ip=client_ip, error=str(e))
        return error_response(500, INTERNAL_ERROR, "Login failed due to server error")
