"""Tests for the admin API under /admin/api"""

import base64
import json

from docsite.auth.cookies import decode_session, encode_session
from docsite.auth.passwords import verify_password
from docsite.auth.session import create_session


def test_admin_login_sets_admin_cookie(client, admin_password, session_secret):
    res = client.post("/admin/api/login", json={"password": admin_password})
    assert res.status_code == 200, res.text
    session = decode_session(res.cookies["admin_session"], session_secret)
    assert session.is_admin is True
    assert "Path=/admin" in res.headers["set-cookie"]
    assert "site_session" not in res.cookies


def test_site_password_does_not_open_admin_scope(client, site_password):
    res = client.post("/admin/api/login", json={"password": site_password})
    assert res.status_code == 401
    assert res.json()["error"] == "INVALID_CREDENTIALS"


def test_admin_check(client, admin_password):
    assert client.get("/admin/api/check").json() == {"isAuthenticated": False, "isAdmin": False}
    client.post("/admin/api/login", json={"password": admin_password})
    body = client.get("/admin/api/check").json()
    assert body["isAuthenticated"] is True
    assert body["isAdmin"] is True


def test_site_session_does_not_grant_admin(site_client):
    res = site_client.get("/admin/api/config")
    assert res.status_code == 401
    assert res.json()["error"] == "UNAUTHORIZED"


def test_non_admin_session_in_admin_cookie_rejected(client, session_secret):
    client.cookies.set("admin_session", encode_session(create_session(is_admin=False), session_secret))
    res = client.get("/admin/api/config")
    assert res.status_code == 401
    assert res.json()["error"] == "UNAUTHORIZED"


def test_expired_admin_session(client, session_secret):
    client.cookies.set("admin_session", encode_session(create_session(is_admin=True, now=0), session_secret))
    res = client.get("/admin/api/config")
    assert res.status_code == 401
    assert res.json()["error"] == "SESSION_EXPIRED"


def _unsigned_cookie(payload: dict) -> str:
    raw = json.dumps(payload).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


FOREVER_ADMIN = {"isAuthenticated": True, "isAdmin": True, "expiresAt": 9_999_999_999_999}


def test_forged_admin_cookie_rejected(client):
    client.cookies.set("admin_session", _unsigned_cookie(FOREVER_ADMIN))
    res = client.get("/admin/api/config")
    assert res.status_code == 401
    assert res.json()["error"] == "UNAUTHORIZED"


def test_admin_cookie_signed_with_other_key_rejected(client):
    session = create_session(is_admin=True)
    client.cookies.set("admin_session", encode_session(session, "some-other-key"))
    res = client.get("/admin/api/config")
    assert res.status_code == 401


def test_tampered_admin_cookie_rejected(client, session_secret):
    # Keep a genuine signature but swap in an elevated payload
    genuine = encode_session(create_session(is_admin=False), session_secret)
    signature = genuine.rsplit(".", 1)[1]
    client.cookies.set("admin_session", f"{_unsigned_cookie(FOREVER_ADMIN)}.{signature}")
    res = client.get("/admin/api/config")
    assert res.status_code == 401
    assert client.get("/admin/api/check").json() == {"isAuthenticated": False, "isAdmin": False}


def test_get_config_hides_hashes(admin_client):
    res = admin_client.get("/admin/api/config")
    assert res.status_code == 200
    config = res.json()["config"]
    assert config["github_repo"] == "https://github.com/acme/handbook"
    assert "site_password_hash" not in config
    assert "admin_password_hash" not in config


def test_update_config_partial(admin_client, store):
    before = store.get_config()
    res = admin_client.put(
        "/admin/api/config",
        json={"title": "  <b>Team Docs</b> ", "folders": ["docs", "guides"], "refresh_interval_minutes": 30},
    )
    assert res.status_code == 200, res.text
    config = store.get_config()
    assert config.title == "bTeam Docs/b"
    assert config.folders == ["docs", "guides"]
    assert config.refresh_interval_minutes == 30
    assert config.github_repo == before.github_repo
    assert config.site_password_hash == before.site_password_hash
    assert "site_password_hash" not in res.json()["config"]


def test_update_config_new_password_is_hashed(admin_client, store):
    old_admin_hash = store.get_credentials().admin_password_hash
    res = admin_client.put("/admin/api/config", json={"site_password": "brand-new-secret", "admin_password": ""})
    assert res.status_code == 200, res.text
    credentials = store.get_credentials()
    assert verify_password("brand-new-secret", credentials.site_password_hash)
    assert credentials.admin_password_hash == old_admin_hash


def test_update_config_validation_errors(admin_client, store):
    res = admin_client.put(
        "/admin/api/config",
        json={"github_repo": "https://gitlab.com/a/b", "folders": ["../etc"], "site_password": "password"},
    )
    assert res.status_code == 400
    body = res.json()
    assert body["error"] == "VALIDATION_ERROR"
    assert "Invalid GitHub repository URL format" in body["errors"]
    assert "Invalid folder name: ../etc" in body["errors"]
    assert "site_password: Password is too common" in body["errors"]
    assert store.get_config().github_repo == "https://github.com/acme/handbook"


def test_update_config_schema_error(admin_client):
    res = admin_client.put("/admin/api/config", json={"refresh_interval_minutes": 0})
    assert res.status_code == 400
    assert res.json()["error"] == "VALIDATION_ERROR"


def test_update_config_can_clear_optional_fields(admin_client, store):
    admin_client.put("/admin/api/config", json={"slogan": "Hello"})
    assert store.get_config().slogan == "Hello"
    admin_client.put("/admin/api/config", json={"slogan": None, "title": None})
    config = store.get_config()
    assert config.slogan is None
    assert config.title == "Documentation Site"


def test_update_config_requires_admin(client):
    res = client.put("/admin/api/config", json={"title": "x"})
    assert res.status_code == 401


def test_admin_rate_limit_reset(admin_client, rate_limiter):
    for _ in range(6):
        rate_limiter.check_rate_limit("203.0.113.7")
    res = admin_client.post("/admin/api/rate-limit/reset", json={"identifier": "203.0.113.7"})
    assert res.status_code == 200
    assert rate_limiter.check_rate_limit("203.0.113.7").allowed is True


def test_validate_content(admin_client):
    res = admin_client.post(
        "/admin/api/validate-content",
        json={"content": "---\ntitle: Hi\n---\n<script>x()</script>\n", "filename": "hi.md"},
    )
    assert res.status_code == 200
    body = res.json()
    assert body["quickCheck"]["isValid"] is False
    assert body["result"]["isValid"] is False
    assert "Script tags are not allowed" in body["result"]["errors"]
    assert body["result"]["frontmatter"] == {"title": "Hi"}


def test_repository_info(admin_client):
    res = admin_client.get("/admin/api/repository")
    assert res.status_code == 200
    body = res.json()
    assert body["accessible"] is True
    assert body["repository"]["fullName"] == "acme/handbook"
    assert body["branch"] == "main"


def test_admin_logout_keeps_site_session(client, site_password, admin_password):
    client.post("/api/auth/login", json={"password": site_password})
    client.post("/admin/api/login", json={"password": admin_password})
    res = client.post("/admin/api/logout")
    assert res.status_code == 200
    assert client.get("/admin/api/check").json()["isAuthenticated"] is False
    assert client.get("/api/auth/check").json()["isAuthenticated"] is True
