"""Shared fixtures: isolated site config store, fake GitHub, app factory"""

from pathlib import Path
from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from docsite.auth import passwords
from docsite.auth.rate_limiter import AuthRateLimiter
from docsite.services.config_store import YamlSiteConfigStore, seed_credentials
from docsite.utils.config import AppSettings, SecuritySettings, Settings
from docsite.utils.exceptions import FileNotFoundInRepoError

SITE_PASSWORD = "correct-horse-battery"
ADMIN_PASSWORD = "admin-staple-secret"
REPO_URL = "https://github.com/acme/handbook"
SESSION_SECRET = "test-session-signing-key"


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    """Lowest bcrypt cost so hashing doesn't dominate the test run."""
    monkeypatch.setattr(passwords, "SALT_ROUNDS", 4)


class FakeGitHubClient:
    """Serves files from a dict; a value that is an exception is raised instead"""

    def __init__(self, files: Dict[str, object], repo_info: Optional[dict] = None):
        self.files = files
        self.repo_info = repo_info or {"name": "handbook", "fullName": "acme/handbook"}
        self.accessible = True
        self.requested = []
        self.listed = []
        self.listing_error: Optional[Exception] = None

    def get_file_content(self, path: str) -> str:
        self.requested.append(path)
        value = self.files.get(path)
        if isinstance(value, Exception):
            raise value
        if value is None:
            raise FileNotFoundInRepoError(path)
        return value

    def get_repo_info(self) -> dict:
        return self.repo_info

    def check_access(self) -> bool:
        return self.accessible

    def get_markdown_files(self, folders: List[str]) -> List[dict]:
        """Folder nodes built from the markdown keys of the served files"""
        self.listed.append(list(folders))
        if self.listing_error is not None:
            raise self.listing_error
        tree = []
        for folder in folders:
            children = [
                {"name": path.rsplit("/", 1)[-1], "path": path, "type": "file", "sha": "0" * 40, "size": len(str(value))}
                for path, value in sorted(self.files.items())
                if path.startswith(folder + "/") and path.endswith(".md") and isinstance(value, str)
            ]
            tree.append({"name": folder, "path": folder, "type": "folder", "children": children})
        return tree


@pytest.fixture
def github_files() -> Dict[str, object]:
    return {}


@pytest.fixture
def fake_github(github_files) -> FakeGitHubClient:
    return FakeGitHubClient(github_files)


@pytest.fixture
def store(tmp_path: Path) -> YamlSiteConfigStore:
    config_store = YamlSiteConfigStore(tmp_path / "site_config.yaml")
    seed_credentials(config_store, SITE_PASSWORD, ADMIN_PASSWORD)
    config_store.update_config({"github_repo": REPO_URL, "folders": ["docs"]})
    return config_store


@pytest.fixture
def rate_limiter() -> AuthRateLimiter:
    return AuthRateLimiter()


@pytest.fixture
def make_client(store, fake_github, rate_limiter):
    """Factory for clients over an app wired to the test collaborators"""
    from web.main import create_app

    def _make(environment: str = "development", config_store=None) -> TestClient:
        app = create_app(
            settings=Settings(
                app=AppSettings(environment=environment),
                security=SecuritySettings(session_secret=SESSION_SECRET),
            ),
            config_store=config_store if config_store is not None else store,
            github_client_factory=lambda config: fake_github,
            rate_limiter=rate_limiter,
        )
        # Secure cookies are only sent back over https
        base_url = "https://testserver" if environment == "production" else "http://testserver"
        return TestClient(app, base_url=base_url)

    return _make


@pytest.fixture
def client(make_client) -> TestClient:
    return make_client()


@pytest.fixture
def session_secret() -> str:
    return SESSION_SECRET


@pytest.fixture
def site_password() -> str:
    return SITE_PASSWORD


@pytest.fixture
def admin_password() -> str:
    return ADMIN_PASSWORD


@pytest.fixture
def site_client(client) -> TestClient:
    """Client holding a site session cookie"""
    res = client.post("/api/auth/login", json={"password": SITE_PASSWORD})
    assert res.status_code == 200, res.text
    return client


@pytest.fixture
def admin_client(client) -> TestClient:
    """Client holding an admin session cookie"""
    res = client.post("/admin/api/login", json={"password": ADMIN_PASSWORD})
    assert res.status_code == 200, res.text
    return client
