"""Repository routes: /api/github/files and /api/github/content"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from docsite.auth.session import Session
from docsite.models.site_config import SiteConfig
from docsite.services.github_client import is_markdown_file
from docsite.utils.exceptions import (
    CONTENT_ERRORS,
    ContentValidationError,
    FileNotFoundInRepoError,
    GitHubError,
    GitHubRateLimitError,
    StorageError,
)
from docsite.utils.logger import get_logger
from docsite.validation.content_processor import ContentProcessor
from docsite.validation.content_validator import ContentValidator

from .auth_deps import ApiError, error_response, require_site_session
from .context import AppContext, get_context

logger = get_logger(__name__)

content_router = APIRouter(prefix="/api/github", tags=["content"])


def validate_document_path(path: str) -> str:
    path = (path or "").strip().lstrip("/")
    if not path:
        raise ApiError(400, "VALIDATION_ERROR", "File path is required")
    if ".." in path.split("/") or "\\" in path:
        raise ApiError(400, "VALIDATION_ERROR", "Invalid file path")
    if not is_markdown_file(path):
        raise ApiError(400, "VALIDATION_ERROR", "Only markdown files can be viewed")
    return path


def load_document(ctx: AppContext, config: SiteConfig, path: str) -> Dict[str, Any]:
    """
    Fetch a document, validate it and build the response payload.

    Raises:
        FileNotFoundInRepoError: Path does not exist on the configured branch
        GitHubRateLimitError: GitHub API rate limit exhausted
        GitHubError: Any other fetch failure
        ContentValidationError: The document failed validation
    """
    client = ctx.github_client_factory(config)
    content = client.get_file_content(path)

    filename = path.rsplit("/", 1)[-1]
    result = ContentValidator.validate_markdown_content(content, filename)
    if not result.is_valid:
        raise ContentValidationError(result.errors)

    sanitized = result.sanitized_content
    return {
        "path": path,
        "content": sanitized,
        "frontmatter": result.frontmatter or {},
        "warnings": result.warnings,
        "title": ContentProcessor.extract_title(sanitized, filename),
        "description": ContentProcessor.extract_description(sanitized),
        "tags": ContentProcessor.extract_tags(sanitized),
        "readingTime": ContentProcessor.get_reading_time(sanitized),
    }


@content_router.get("/content")
async def get_content(
    request: Request,
    path: str = Query(""),
    session: Session = Depends(require_site_session),
):
    """Validated, sanitized markdown for one repository file"""
    ctx = get_context(request)
    path = validate_document_path(path)

    try:
        config = await run_in_threadpool(ctx.config_store.get_config)
        if config is None or not config.github_repo:
            return error_response(500, "GITHUB_FETCH_ERROR", "No GitHub repository configured")

        payload = await run_in_threadpool(load_document, ctx, config, path)
    except FileNotFoundInRepoError:
        return error_response(404, "FILE_NOT_FOUND", CONTENT_ERRORS["FILE_NOT_FOUND"], path=path)
    except GitHubRateLimitError as e:
        headers = {"Retry-After": str(e.retry_after)} if e.retry_after is not None else None
        return error_response(429, "RATE_LIMITED", CONTENT_ERRORS["RATE_LIMITED"], headers=headers)
    except ContentValidationError as e:
        logger.warning("Content validation failed", path=path, errors=e.errors)
        return error_response(400, "CONTENT_VALIDATION_ERROR", CONTENT_ERRORS["CONTENT_VALIDATION_ERROR"], errors=e.errors)
    except StorageError as e:
        logger.error("Failed to load site configuration", error=str(e))
        return error_response(500, "GITHUB_FETCH_ERROR", CONTENT_ERRORS["GITHUB_FETCH_ERROR"])
    except Exception as e:
        logger.exception("Content fetch error", path=path, error=str(e))
        message = str(e) if ctx.expose_errors else CONTENT_ERRORS["GITHUB_FETCH_ERROR"]
        return error_response(500, "GITHUB_FETCH_ERROR", message)

    # Frontmatter may hold YAML dates
    return JSONResponse(
        jsonable_encoder(payload),
        headers={"Cache-Control": f"private, max-age={ctx.settings.content.cache_max_age_seconds}"},
    )


def load_file_tree(ctx: AppContext, config: SiteConfig) -> Dict[str, Any]:
    """
    List the markdown files under the configured folders and record the sync.

    Raises:
        GitHubRateLimitError: GitHub API rate limit exhausted
        GitHubError: Repository unreachable or listing failed
    """
    client = ctx.github_client_factory(config)
    if not client.check_access():
        raise GitHubError("Unable to access GitHub repository")

    files = client.get_markdown_files(config.folders)

    try:
        last_sync = ctx.config_store.update_last_sync()
    except StorageError as e:
        # The listing is still good; only the timestamp is lost
        logger.warning("Failed to record last sync", error=str(e))
        last_sync = None

    return {
        "success": True,
        "files": files,
        "lastSync": last_sync or datetime.now(timezone.utc).isoformat(),
        "repository": config.github_repo,
        "branch": config.branch,
        "folders": config.folders,
    }


@content_router.get("/files")
async def get_files(request: Request, session: Session = Depends(require_site_session)):
    """Markdown file tree for the viewer's navigation"""
    ctx = get_context(request)

    try:
        config = await run_in_threadpool(ctx.config_store.get_config)
        if config is None or not config.github_repo:
            return error_response(500, "GITHUB_FETCH_ERROR", "Site not configured")

        payload = await run_in_threadpool(load_file_tree, ctx, config)
    except GitHubRateLimitError as e:
        headers = {"Retry-After": str(e.retry_after)} if e.retry_after is not None else None
        return error_response(429, "RATE_LIMITED", CONTENT_ERRORS["RATE_LIMITED"], headers=headers)
    except StorageError as e:
        logger.error("Failed to load site configuration", error=str(e))
        return error_response(500, "GITHUB_FETCH_ERROR", "Failed to fetch files")
    except Exception as e:
        logger.exception("File listing error", error=str(e))
        message = str(e) if ctx.expose_errors else "Failed to fetch files"
        return error_response(500, "GITHUB_FETCH_ERROR", message)

    logger.info("Repository files listed", repository=payload["repository"], folders=len(payload["folders"]))
    return JSONResponse(
        payload,
        headers={"Cache-Control": f"private, max-age={ctx.settings.content.files_cache_max_age_seconds}"},
    )
