"""
Site configuration storage.

Two backends share one interface: a YAML file written atomically (default,
single-host deployments) and a Supabase table reached over PostgREST.
Updates are partial patches: omitted keys are untouched, and empty password
hashes are dropped so they can never erase stored credentials.
"""

import shutil
import tempfile
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List, Optional

import requests
import yaml
from pydantic import ValidationError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..auth.passwords import hash_password
from ..models.site_config import SENSITIVE_FIELDS, SiteConfig, SiteCredentials
from ..utils.config import Settings
from ..utils.exceptions import StorageError
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Fields a patch may never set directly
READ_ONLY_FIELDS = {"id", "created_at"}


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def clean_patch(patch: Dict[str, Any]) -> Dict[str, Any]:
    """Drop unknown and read-only keys, and empty sensitive values"""
    cleaned: Dict[str, Any] = {}
    for key, value in patch.items():
        if key not in SiteConfig.model_fields or key in READ_ONLY_FIELDS:
            continue
        if key in SENSITIVE_FIELDS and not value:
            continue
        cleaned[key] = value
    return cleaned


class SiteConfigStore(ABC):
    """Storage collaborator for the site configuration"""

    @abstractmethod
    def get_config(self) -> Optional[SiteConfig]:
        """Return the stored config, or None if none exists yet"""

    @abstractmethod
    def _create(self, config: SiteConfig) -> SiteConfig:
        ...

    @abstractmethod
    def _update(self, config_id: str, patch: Dict[str, Any]) -> SiteConfig:
        ...

    @abstractmethod
    def health_check(self) -> bool:
        ...

    def update_config(self, patch: Dict[str, Any]) -> SiteConfig:
        """
        Apply a partial update, creating the config with defaults if none exists.

        Raises:
            StorageError: If the backend cannot be read or written
        """
        cleaned = clean_patch(patch)
        current = self.get_config()
        now = _utcnow_iso()

        if current is None:
            logger.info("No site configuration found, creating initial configuration")
            try:
                new_config = SiteConfig(**{**cleaned, "id": str(uuid.uuid4()), "created_at": now, "updated_at": now})
            except ValidationError as e:
                raise StorageError(f"Invalid site configuration: {e}") from e
            return self._create(new_config)

        cleaned["updated_at"] = now
        return self._update(current.id, cleaned)

    def update_last_sync(self) -> Optional[str]:
        """Stamp last_sync_at with the current time; None when no config exists yet"""
        current = self.get_config()
        if current is None:
            logger.warning("No site configuration found to update sync time")
            return None
        now = _utcnow_iso()
        self._update(current.id, {"last_sync_at": now, "updated_at": now})
        return now

    def get_credentials(self) -> Optional[SiteCredentials]:
        config = self.get_config()
        if config is None:
            return None
        return SiteCredentials(
            site_password_hash=config.site_password_hash,
            admin_password_hash=config.admin_password_hash,
        )

    def set_credentials(self, updates: Dict[str, Optional[str]]) -> None:
        """Store new password hashes; empty or missing values keep the existing hash"""
        patch = {key: updates.get(key) for key in SENSITIVE_FIELDS}
        cleaned = clean_patch(patch)
        if not cleaned:
            return
        self.update_config(cleaned)


class YamlSiteConfigStore(SiteConfigStore):
    """Site configuration kept in a single YAML document"""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.lock = Lock()

    def _read(self) -> Optional[SiteConfig]:
        if not self.path.exists():
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw_data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise StorageError(f"Failed to read site configuration: {e}") from e
        if not raw_data:
            return None
        try:
            return SiteConfig(**raw_data)
        except (TypeError, ValidationError) as e:
            raise StorageError(f"Stored site configuration is invalid: {e}") from e

    def _atomic_write(self, config: SiteConfig) -> None:
        """Write YAML file atomically"""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode="w", dir=str(self.path.parent), delete=False, encoding="utf-8"
        ) as tf:
            yaml.safe_dump(config.model_dump(), tf, default_flow_style=False, sort_keys=False, allow_unicode=True)
            temp_path = Path(tf.name)
        try:
            shutil.move(str(temp_path), str(self.path))
        except OSError as e:
            if temp_path.exists():
                temp_path.unlink()
            raise StorageError(f"Failed to save site configuration to {self.path}: {e}") from e

    def get_config(self) -> Optional[SiteConfig]:
        with self.lock:
            return self._read()

    def _create(self, config: SiteConfig) -> SiteConfig:
        with self.lock:
            self._atomic_write(config)
        return config

    def _update(self, config_id: str, patch: Dict[str, Any]) -> SiteConfig:
        with self.lock:
            current = self._read()
            if current is None or current.id != config_id:
                raise StorageError("Site configuration changed during update")
            try:
                updated = SiteConfig(**{**current.model_dump(), **patch})
            except ValidationError as e:
                raise StorageError(f"Invalid site configuration: {e}") from e
            self._atomic_write(updated)
        return updated

    def health_check(self) -> bool:
        try:
            self.get_config()
            return True
        except StorageError:
            return False


class SupabaseSiteConfigStore(SiteConfigStore):
    """Site configuration row in a Supabase (PostgREST) table"""

    def __init__(
        self,
        url: str,
        service_key: str,
        table: str = "site_configs",
        timeout: int = 10,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = f"{url.rstrip('/')}/rest/v1/{table}"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "apikey": service_key,
            "Authorization": f"Bearer {service_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Prefer": "return=representation",
        })

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=5),
        retry=retry_if_exception_type((requests.exceptions.ConnectionError, requests.exceptions.Timeout)),
        reraise=True,
    )
    def _send(self, method: str, params: Dict[str, str], json_body: Optional[Dict[str, Any]] = None) -> requests.Response:
        return self.session.request(
            method=method,
            url=self.base_url,
            params=params,
            json=json_body,
            timeout=self.timeout,
        )

    def _request(self, method: str, params: Dict[str, str], json_body: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        try:
            response = self._send(method, params, json_body)
        except requests.exceptions.RequestException as e:
            logger.error("Supabase request failed", method=method, error=str(e))
            raise StorageError("Site configuration storage is unreachable") from e

        if response.status_code >= 400:
            logger.error(
                "Supabase returned an error",
                method=method,
                status_code=response.status_code,
                body=response.text[:500],
            )
            raise StorageError(f"Site configuration storage error (HTTP {response.status_code})")

        try:
            rows = response.json()
        except ValueError as e:
            raise StorageError("Site configuration storage returned invalid JSON") from e
        if not isinstance(rows, list):
            raise StorageError("Site configuration storage returned an unexpected payload")
        return rows

    def _to_config(self, row: Dict[str, Any]) -> SiteConfig:
        try:
            return SiteConfig(**{k: v for k, v in row.items() if v is not None})
        except ValidationError as e:
            raise StorageError(f"Stored site configuration is invalid: {e}") from e

    def get_config(self) -> Optional[SiteConfig]:
        rows = self._request("GET", {"select": "*", "limit": "1"})
        if not rows:
            return None
        return self._to_config(rows[0])

    def _create(self, config: SiteConfig) -> SiteConfig:
        rows = self._request("POST", {}, config.model_dump(mode="json"))
        if not rows:
            raise StorageError("Site configuration storage did not return the created row")
        logger.info("Created site configuration", config_id=rows[0].get("id"))
        return self._to_config(rows[0])

    def _update(self, config_id: str, patch: Dict[str, Any]) -> SiteConfig:
        rows = self._request("PATCH", {"id": f"eq.{config_id}"}, patch)
        if not rows:
            raise StorageError("Site configuration not found for update")
        return self._to_config(rows[0])

    def health_check(self) -> bool:
        try:
            self._request("GET", {"select": "id", "limit": "1"})
            return True
        except StorageError:
            return False


def create_config_store(settings: Settings) -> SiteConfigStore:
    """Pick the storage backend from settings"""
    storage = settings.storage
    use_supabase = storage.backend == "supabase" or (
        storage.backend == "auto" and storage.supabase_url and storage.supabase_service_key
    )
    if use_supabase:
        if not storage.supabase_url or not storage.supabase_service_key:
            raise StorageError("Supabase storage selected but SUPABASE_URL/SUPABASE_SERVICE_ROLE_KEY are not set")
        logger.info("Using Supabase site configuration store", table=storage.supabase_table)
        return SupabaseSiteConfigStore(
            url=storage.supabase_url,
            service_key=storage.supabase_service_key,
            table=storage.supabase_table,
            timeout=storage.request_timeout,
        )
    logger.info("Using YAML site configuration store", path=storage.site_config_path)
    return YamlSiteConfigStore(Path(storage.site_config_path))


def seed_credentials(
    store: SiteConfigStore,
    site_password: Optional[str],
    admin_password: Optional[str],
) -> bool:
    """
    Create the first site configuration from bootstrap passwords.

    Does nothing when a configuration already exists or neither password is
    given. Returns True when a configuration was created.
    """
    if not site_password and not admin_password:
        return False
    if store.get_config() is not None:
        return False

    updates: Dict[str, Optional[str]] = {}
    if site_password:
        updates["site_password_hash"] = hash_password(site_password)
    if admin_password:
        updates["admin_password_hash"] = hash_password(admin_password)
    store.set_credentials(updates)

    logger.info(
        "Seeded site configuration from environment",
        site_password_set=bool(site_password),
        admin_password_set=bool(admin_password),
    )
    return True
