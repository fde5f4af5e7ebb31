"""API request models for the docsite web layer"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class SiteConfigUpdateRequest(BaseModel):
    """Partial update of the site configuration; omitted fields are left unchanged"""
    title: Optional[str] = None
    logo_url: Optional[str] = None
    slogan: Optional[str] = None
    help_text: Optional[str] = None
    github_repo: Optional[str] = None
    branch: Optional[str] = None
    folders: Optional[List[str]] = None
    iframe_url: Optional[str] = None
    auto_refresh_enabled: Optional[bool] = None
    refresh_interval_minutes: Optional[int] = Field(default=None, ge=1, le=1440)
    # Plaintext; hashed before storage, empty means "keep current"
    site_password: Optional[str] = None
    admin_password: Optional[str] = None


class RateLimitResetRequest(BaseModel):
    identifier: str = Field(..., min_length=1)


class ValidateContentRequest(BaseModel):
    content: str
    filename: Optional[str] = None


class ClientErrorLog(BaseModel):
    """Error report posted by the browser"""
    id: Optional[str] = None
    message: str = Field(..., min_length=1)
    stack: Optional[str] = None
    level: str = "error"
    context: Dict[str, Any] = Field(default_factory=dict)
    timestamp: Optional[str] = None
