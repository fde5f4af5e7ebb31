"""Health check and client error intake: /api/health, /api/log-error"""

import time
from datetime import datetime, timezone

from fastapi import APIRouter, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from docsite import __version__
from docsite.utils.logger import get_logger

from .auth_deps import error_response, request_client_ip
from .context import get_context
from .models import ClientErrorLog

logger = get_logger(__name__)

system_router = APIRouter(prefix="/api", tags=["system"])

CLIENT_LOG_LEVELS = {"debug", "info", "warning", "error", "critical"}


@system_router.get("/health")
async def health_check(request: Request):
    """Health check endpoint for deployment platforms"""
    ctx = get_context(request)
    storage_ok = await run_in_threadpool(ctx.config_store.health_check)

    checks = {
        "storage": storage_ok,
        # Without a token only public repositories at the anonymous rate limit
        "github_token": bool(ctx.settings.github.token),
        "session_secret": bool(ctx.settings.security.session_secret),
    }
    healthy = storage_ok
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "status": "healthy" if healthy else "unhealthy",
            "service": "docsite",
            "version": __version__,
            "environment": ctx.settings.app.environment,
            "uptime_seconds": int(time.time() - ctx.started_at),
            "checks": checks,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
        headers={"Cache-Control": "no-cache, no-store, must-revalidate"},
    )


@system_router.head("/health")
async def health_ping():
    return Response(status_code=200, headers={"Cache-Control": "no-cache, no-store, must-revalidate"})


@system_router.post("/log-error")
async def log_client_error(request: Request, report: ClientErrorLog):
    """Record an error reported by the browser (production only)"""
    ctx = get_context(request)
    if not ctx.settings.app.is_production:
        return error_response(403, "FORBIDDEN", "Error logging is only enabled in production")

    level = report.level.lower() if report.level.lower() in CLIENT_LOG_LEVELS else "error"
    getattr(logger, level)(
        "Client error reported",
        error_id=report.id,
        message=report.message[:1000],
        stack=(report.stack or "")[:5000],
        context=report.context,
        reported_at=report.timestamp,
        client_ip=request_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return {"success": True}
