"""
Configuration management with schema validation.
Settings come from an optional data/settings.yaml plus environment overrides.
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from .exceptions import ConfigError
from .logger import get_logger

logger = get_logger(__name__)

# Load environment variables
load_dotenv()

DATA_DIR = Path(os.getenv("DOCSITE_DATA_DIR", "data"))
SETTINGS_FILE = DATA_DIR / "settings.yaml"


class AppSettings(BaseModel):
    name: str = "Docsite"
    version: str = "1.0.0"
    environment: str = "development"

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() == "production"


class LoggingSettings(BaseModel):
    level: str = "INFO"
    format: str = "json"
    file_path: Optional[str] = None
    max_bytes: int = 10485760
    backup_count: int = 5


class SecuritySettings(BaseModel):
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    # HMAC key for session cookies; required in production
    session_secret: Optional[str] = None


class GitHubSettings(BaseModel):
    api_base_url: str = "https://api.github.com"
    token: Optional[str] = None
    connection_timeout: int = 10
    read_timeout: int = 30


class StorageSettings(BaseModel):
    backend: str = "auto"  # auto, yaml or supabase
    site_config_path: str = str(DATA_DIR / "site_config.yaml")
    supabase_url: Optional[str] = None
    supabase_service_key: Optional[str] = None
    supabase_table: str = "site_configs"
    request_timeout: int = 10


class ContentSettings(BaseModel):
    cache_max_age_seconds: int = 600
    files_cache_max_age_seconds: int = 300


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    github: GitHubSettings = Field(default_factory=GitHubSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    content: ContentSettings = Field(default_factory=ContentSettings)


# (env var, section, field) applied on top of settings.yaml
ENV_OVERRIDES = (
    ("ENVIRONMENT", "app", "environment"),
    ("LOG_LEVEL", "logging", "level"),
    ("LOG_FORMAT", "logging", "format"),
    ("GITHUB_TOKEN", "github", "token"),
    ("SUPABASE_URL", "storage", "supabase_url"),
    ("SUPABASE_SERVICE_ROLE_KEY", "storage", "supabase_service_key"),
    ("SITE_CONFIG_PATH", "storage", "site_config_path"),
    ("STORAGE_BACKEND", "storage", "backend"),
    ("SESSION_SECRET", "security", "session_secret"),
)


class ConfigManager:
    """Loads application settings from YAML and the environment"""

    def __init__(self, settings_path: Optional[Path] = None):
        self.settings_path = Path(settings_path) if settings_path else SETTINGS_FILE
        self._settings: Optional[Settings] = None

    def _substitute_env_vars(self, value: Any) -> Any:
        """Recursively substitute ${VAR} and ${VAR:default} references"""
        if isinstance(value, str):
            if value.startswith("${") and value.endswith("}"):
                var_expr = value[2:-1]
                if ":" in var_expr:
                    var_name, default = var_expr.split(":", 1)
                    return os.getenv(var_name.strip(), default.strip())
                else:
                    return os.getenv(var_expr, value)
        elif isinstance(value, dict):
            return {k: self._substitute_env_vars(v) for k, v in value.items()}
        elif isinstance(value, list):
            return [self._substitute_env_vars(item) for item in value]
        return value

    def _apply_env_overrides(self, data: Dict[str, Any]) -> Dict[str, Any]:
        for env_name, section, field in ENV_OVERRIDES:
            env_value = os.getenv(env_name)
            if env_value:
                data.setdefault(section, {})[field] = env_value
        return data

    def load_settings(self) -> Settings:
        """Load and validate settings; a missing settings.yaml means defaults"""
        raw_data: Dict[str, Any] = {}
        if self.settings_path.exists():
            try:
                with open(self.settings_path, "r", encoding="utf-8") as f:
                    raw_data = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                raise ConfigError(f"Failed to read settings from {self.settings_path}: {e}")
            if not isinstance(raw_data, dict):
                raise ConfigError(f"Settings file must contain a mapping: {self.settings_path}")

        processed = self._apply_env_overrides(self._substitute_env_vars(raw_data))
        try:
            self._settings = Settings(**processed)
        except ValidationError as e:
            raise ConfigError(f"Invalid settings: {e}")

        logger.debug("Settings loaded", path=str(self.settings_path), environment=self._settings.app.environment)
        return self._settings

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            return self.load_settings()
        return self._settings


# Global instance
config_manager = ConfigManager()
