"""
Admin-scope routes: /admin/api/*

The admin_session cookie is scoped to /admin, so every admin route lives
under that prefix. All routes except login/check/logout require a valid
admin session.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from docsite.auth.cookies import ADMIN_COOKIE, create_logout_cookie
from docsite.auth.passwords import hash_password
from docsite.auth.session import Session, is_admin_session, is_valid_session
from docsite.utils.exceptions import INTERNAL_ERROR, GitHubError, StorageError
from docsite.utils.logger import get_logger
from docsite.validation.content_validator import ContentValidator
from docsite.validation.input_validator import (
    sanitize_string,
    validate_folders,
    validate_github_repo,
    validate_password,
)

from .auth_deps import ApiError, read_admin_session, require_admin_session, set_session_cookie
from .context import get_context
from .login import perform_login
from .models import RateLimitResetRequest, SiteConfigUpdateRequest, ValidateContentRequest

logger = get_logger(__name__)

admin_router = APIRouter(prefix="/admin/api", tags=["admin"])

# Display strings and their stored length caps
DISPLAY_FIELDS = {"title": 255, "slogan": 255, "help_text": 2000}
URL_FIELDS = ("logo_url", "iframe_url")
# May be cleared with an explicit null; other fields ignore null
NULLABLE_FIELDS = {"logo_url", "slogan", "help_text", "iframe_url"}


@admin_router.post("/login")
async def admin_login(request: Request):
    """Log in with the admin password"""
    return await perform_login(request, get_context(request), admin=True)


@admin_router.get("/check")
async def admin_check(request: Request):
    session = read_admin_session(request)
    if session is None or not is_valid_session(session):
        return {"isAuthenticated": False, "isAdmin": False}
    return {
        "isAuthenticated": True,
        "isAdmin": is_admin_session(session),
        "expiresAt": session.expires_at,
    }


@admin_router.post("/logout")
async def admin_logout(request: Request):
    """Clear the admin cookie; the site session is left alone"""
    response = JSONResponse({"success": True, "message": "Admin logged out successfully"})
    set_session_cookie(response, create_logout_cookie(ADMIN_COOKIE, secure=get_context(request).secure_cookies))
    return response


@admin_router.get("/config")
async def get_config(request: Request, session: Session = Depends(require_admin_session)):
    """Current site configuration, without password hashes"""
    ctx = get_context(request)
    try:
        config = await run_in_threadpool(ctx.config_store.get_config)
    except StorageError as e:
        logger.error("Failed to load site configuration", error=str(e))
        raise ApiError(500, INTERNAL_ERROR, "Failed to load site configuration")
    return {"config": config.public_dict() if config else None}


def build_config_patch(update: SiteConfigUpdateRequest) -> Dict[str, Any]:
    """
    Validate an admin update and turn it into a store patch.

    Raises:
        ApiError: 400 VALIDATION_ERROR listing every problem found
    """
    provided = update.model_dump(exclude_unset=True)
    errors: List[str] = []
    patch: Dict[str, Any] = {}

    for key, value in provided.items():
        if value is None and key not in NULLABLE_FIELDS:
            continue

        if key == "github_repo":
            result = validate_github_repo(value)
            if result.is_valid:
                patch[key] = value.strip()
            errors.extend(result.errors)
        elif key == "folders":
            result = validate_folders(value)
            if result.is_valid:
                patch[key] = [folder.strip() for folder in value]
            errors.extend(result.errors)
        elif key in ("site_password", "admin_password"):
            if not value:
                # Empty means keep the current password
                continue
            result = validate_password(value)
            if result.is_valid:
                patch[f"{key}_hash"] = hash_password(value)
            errors.extend(f"{key}: {error}" for error in result.errors)
        elif key in DISPLAY_FIELDS:
            patch[key] = sanitize_string(value, DISPLAY_FIELDS[key]) if value is not None else None
        elif key in URL_FIELDS:
            patch[key] = value.strip() if value else None
        elif key == "branch":
            branch = value.strip()
            if not branch or ".." in branch:
                errors.append("Invalid branch name")
            else:
                patch[key] = branch
        else:
            patch[key] = value

    if errors:
        raise ApiError(400, "VALIDATION_ERROR", errors[0], errors=errors)
    return patch


@admin_router.put("/config")
async def update_config(
    request: Request,
    update: SiteConfigUpdateRequest,
    session: Session = Depends(require_admin_session),
):
    """Partially update the site configuration"""
    ctx = get_context(request)
    # bcrypt is slow; keep it off the event loop
    patch = await run_in_threadpool(build_config_patch, update)

    try:
        config = await run_in_threadpool(ctx.config_store.update_config, patch)
    except StorageError as e:
        logger.error("Failed to update site configuration", error=str(e))
        raise ApiError(500, INTERNAL_ERROR, "Failed to update site configuration")

    logger.info("Site configuration updated", fields=sorted(patch.keys()))
    return {"success": True, "config": config.public_dict()}


@admin_router.post("/rate-limit/reset")
async def reset_rate_limit(
    request: Request,
    body: RateLimitResetRequest,
    session: Session = Depends(require_admin_session),
):
    """Clear the login attempt record for an identifier"""
    identifier = body.identifier.strip()
    get_context(request).rate_limiter.reset(identifier)
    logger.info("Rate limit reset by admin", identifier=identifier)
    return {"success": True, "identifier": identifier}


@admin_router.post("/validate-content")
async def validate_content(body: ValidateContentRequest, session: Session = Depends(require_admin_session)):
    """Run the quick pre-check and the full validation pipeline on submitted markdown"""
    quick = ContentValidator.quick_validate(body.content)
    result = ContentValidator.validate_markdown_content(body.content, body.filename)
    return {
        "quickCheck": {"isValid": quick.is_valid, "errors": quick.errors},
        "result": result.to_dict(),
    }


@admin_router.get("/repository")
async def repository_info(request: Request, session: Session = Depends(require_admin_session)):
    """Access check and metadata for the configured repository"""
    ctx = get_context(request)
    try:
        config = await run_in_threadpool(ctx.config_store.get_config)
    except StorageError as e:
        logger.error("Failed to load site configuration", error=str(e))
        raise ApiError(500, INTERNAL_ERROR, "Failed to load site configuration")

    if config is None or not config.github_repo:
        raise ApiError(400, "VALIDATION_ERROR", "No GitHub repository configured")

    try:
        client = ctx.github_client_factory(config)
        accessible = await run_in_threadpool(client.check_access)
        info = await run_in_threadpool(client.get_repo_info) if accessible else None
    except GitHubError as e:
        logger.warning("Repository lookup failed", repo=config.github_repo, error=str(e))
        raise ApiError(502, "GITHUB_FETCH_ERROR", str(e) if ctx.expose_errors else None)

    return {"accessible": accessible, "repository": info, "branch": config.branch}
