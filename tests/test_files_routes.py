"""Tests for /api/github/files"""

import pytest

from docsite.utils.exceptions import GitHubError, GitHubRateLimitError, StorageError


@pytest.fixture
def github_files():
    return {
        "docs/intro.md": "# Intro\n",
        "docs/setup/install.md": "# Install\n",
        "docs/diagram.png": "binary",
        "guides/style.md": "# Style\n",
    }


def test_requires_session(client, fake_github):
    res = client.get("/api/github/files")
    assert res.status_code == 401
    assert res.json()["error"] == "UNAUTHORIZED"
    assert fake_github.listed == []


def test_lists_configured_folders(site_client, fake_github, store):
    assert store.get_config().last_sync_at is None

    res = site_client.get("/api/github/files")
    assert res.status_code == 200, res.text
    body = res.json()
    assert body["success"] is True
    assert body["repository"] == "https://github.com/acme/handbook"
    assert body["branch"] == "main"
    assert body["folders"] == ["docs"]
    assert fake_github.listed == [["docs"]]

    [docs] = body["files"]
    assert docs["type"] == "folder"
    assert [item["path"] for item in docs["children"]] == ["docs/intro.md", "docs/setup/install.md"]
    assert res.headers["cache-control"] == "private, max-age=300"

    assert store.get_config().last_sync_at == body["lastSync"]


def test_folders_follow_site_config(site_client, fake_github, store):
    store.update_config({"folders": ["guides", "docs"]})
    body = site_client.get("/api/github/files").json()
    assert [node["path"] for node in body["files"]] == ["guides", "docs"]
    assert body["files"][0]["children"][0]["name"] == "style.md"


def test_inaccessible_repository(site_client, fake_github):
    fake_github.accessible = False
    res = site_client.get("/api/github/files")
    assert res.status_code == 500
    assert res.json()["error"] == "GITHUB_FETCH_ERROR"
    assert fake_github.listed == []


def test_rate_limited(site_client, fake_github):
    fake_github.listing_error = GitHubRateLimitError("GitHub API rate limit exceeded", retry_after=30)
    res = site_client.get("/api/github/files")
    assert res.status_code == 429
    assert res.json()["error"] == "RATE_LIMITED"
    assert res.headers["retry-after"] == "30"


def test_listing_failure_hides_detail_in_production(make_client, fake_github, site_password):
    fake_github.listing_error = GitHubError("GitHub API error (HTTP 502)", status_code=502)
    client = make_client(environment="production")
    client.post("/api/auth/login", json={"password": site_password})
    res = client.get("/api/github/files")
    assert res.status_code == 500
    assert res.json() == {"error": "GITHUB_FETCH_ERROR", "message": "Failed to fetch files"}


def test_sync_stamp_failure_still_returns_files(site_client, store, monkeypatch):
    def broken():
        raise StorageError("disk full")

    monkeypatch.setattr(store, "update_last_sync", broken)
    res = site_client.get("/api/github/files")
    assert res.status_code == 200
    assert res.json()["lastSync"]


def test_unconfigured_site(make_client, tmp_path, site_password):
    from docsite.services.config_store import YamlSiteConfigStore, seed_credentials

    bare = YamlSiteConfigStore(tmp_path / "bare.yaml")
    seed_credentials(bare, site_password, "admin-password-123")
    client = make_client(config_store=bare)
    client.post("/api/auth/login", json={"password": site_password})
    res = client.get("/api/github/files")
    assert res.status_code == 500
    assert res.json()["message"] == "Site not configured"
