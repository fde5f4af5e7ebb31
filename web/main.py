"""FastAPI application for the docsite viewer backend"""

import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from docsite import __version__
from docsite.auth.rate_limiter import AuthRateLimiter
from docsite.services.config_store import SiteConfigStore, create_config_store, seed_credentials
from docsite.utils.config import Settings, config_manager
from docsite.utils.exceptions import INTERNAL_ERROR, DocsiteError
from docsite.utils.logger import get_logger, setup_logger

from .admin_routes import admin_router
from .auth_deps import ApiError, error_response
from .auth_routes import auth_router
from .content_routes import content_router
from .context import AppContext, GitHubClientFactory, default_github_client_factory, resolve_session_secret
from .security_headers import SecurityHeadersMiddlewareASGI
from .system_routes import system_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging and seed credentials for a first deployment"""
    ctx: AppContext = app.state.context
    settings = ctx.settings
    setup_logger(
        log_level=settings.logging.level,
        log_format=settings.logging.format,
        file_path=settings.logging.file_path,
        max_bytes=settings.logging.max_bytes,
        backup_count=settings.logging.backup_count,
    )
    try:
        await run_in_threadpool(
            seed_credentials,
            ctx.config_store,
            os.getenv("SITE_PASSWORD"),
            os.getenv("ADMIN_PASSWORD"),
        )
    except DocsiteError as e:
        logger.error("Failed to seed site configuration", error=str(e))
    logger.info("Docsite startup completed", environment=settings.app.environment, version=__version__)
    yield
    logger.info("Docsite shutting down")


def create_app(
    settings: Optional[Settings] = None,
    config_store: Optional[SiteConfigStore] = None,
    github_client_factory: Optional[GitHubClientFactory] = None,
    rate_limiter: Optional[AuthRateLimiter] = None,
) -> FastAPI:
    """
    Build the application with its collaborators.

    Every collaborator can be injected; the defaults come from settings.
    The rate limiter lives for as long as the app does.

    Raises:
        ConfigError: Production settings without a session secret
    """
    if settings is None:
        settings = config_manager.settings

    app = FastAPI(
        title="Docsite Viewer",
        description="Password-protected viewer for markdown documentation hosted on GitHub",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.context = AppContext(
        settings=settings,
        rate_limiter=rate_limiter or AuthRateLimiter(),
        config_store=config_store if config_store is not None else create_config_store(settings),
        github_client_factory=github_client_factory or default_github_client_factory(settings),
        session_secret=resolve_session_secret(settings),
    )

    # CORS - credentials need explicit origins in production
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.cors_origins if settings.app.is_production else ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddlewareASGI)

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        return error_response(exc.status_code, exc.code, exc.message, headers=exc.headers, **exc.extra)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [
            f"{'.'.join(str(part) for part in error.get('loc', ())[1:]) or 'body'}: {error.get('msg')}"
            for error in exc.errors()
        ]
        return error_response(400, "VALIDATION_ERROR", errors[0] if errors else None, errors=errors)

    @app.exception_handler(DocsiteError)
    async def docsite_error_handler(request: Request, exc: DocsiteError):
        logger.error("Unhandled application error", path=request.url.path, error=str(exc))
        ctx: AppContext = request.app.state.context
        message = str(exc) if ctx.expose_errors else "An internal error occurred"
        return error_response(500, INTERNAL_ERROR, message)

    app.include_router(auth_router)
    app.include_router(admin_router)
    app.include_router(content_router)
    app.include_router(system_router)

    return app


app = create_app()
