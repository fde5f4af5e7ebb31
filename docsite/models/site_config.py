"""Site configuration data models"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

SENSITIVE_FIELDS = ("site_password_hash", "admin_password_hash")


class SiteConfig(BaseModel):
    """The single site configuration record"""
    id: Optional[str] = None
    title: str = "Documentation Site"
    logo_url: Optional[str] = None
    slogan: Optional[str] = None
    help_text: Optional[str] = None
    github_repo: str = ""
    branch: str = "main"
    folders: List[str] = Field(default_factory=lambda: ["docs"])
    iframe_url: Optional[str] = None
    auto_refresh_enabled: bool = True
    refresh_interval_minutes: int = 15
    last_sync_at: Optional[str] = None  # ISO format timestamp
    site_password_hash: str = ""
    admin_password_hash: str = ""
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def public_dict(self) -> Dict[str, Any]:
        """Config as returned to the admin panel: never includes password hashes"""
        return self.model_dump(exclude=set(SENSITIVE_FIELDS))


class SiteCredentials(BaseModel):
    """Subset of SiteConfig the login flows need"""
    site_password_hash: str = ""
    admin_password_hash: str = ""
