"""Per-app shared collaborators, injected into routes through request.app.state"""

import secrets
import time
from dataclasses import dataclass, field
from typing import Callable

from fastapi import Request

from docsite.auth.rate_limiter import AuthRateLimiter
from docsite.models.site_config import SiteConfig
from docsite.services.config_store import SiteConfigStore
from docsite.services.github_client import GitHubClient
from docsite.utils.config import Settings
from docsite.utils.exceptions import ConfigError
from docsite.utils.logger import get_logger

logger = get_logger(__name__)

GitHubClientFactory = Callable[[SiteConfig], GitHubClient]


@dataclass
class AppContext:
    settings: Settings
    rate_limiter: AuthRateLimiter
    config_store: SiteConfigStore
    github_client_factory: GitHubClientFactory
    session_secret: str
    started_at: float = field(default_factory=time.time)

    @property
    def secure_cookies(self) -> bool:
        return self.settings.app.is_production

    @property
    def expose_errors(self) -> bool:
        """Internal error text is only returned to clients outside production"""
        return not self.settings.app.is_production


def default_github_client_factory(settings: Settings) -> GitHubClientFactory:
    def factory(config: SiteConfig) -> GitHubClient:
        return GitHubClient(
            repo_url=config.github_repo,
            branch=config.branch,
            token=settings.github.token,
            api_base_url=settings.github.api_base_url,
            connection_timeout=settings.github.connection_timeout,
            read_timeout=settings.github.read_timeout,
        )
    return factory


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def resolve_session_secret(settings: Settings) -> str:
    """
    Signing key for session cookies.

    Production refuses to start without SESSION_SECRET. Elsewhere a random
    per-process key is used, so sessions end when the process restarts.
    """
    secret = (settings.security.session_secret or "").strip()
    if secret:
        return secret
    if settings.app.is_production:
        raise ConfigError("SESSION_SECRET must be set in production")
    logger.warning("SESSION_SECRET not set; using a temporary per-process key")
    return secrets.token_urlsafe(32)
