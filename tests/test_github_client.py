"""Tests for the GitHub REST client"""

import base64

import pytest

from docsite.services.github_client import (
    GitHubClient,
    is_markdown_file,
    parse_github_url,
)
from docsite.utils.exceptions import FileNotFoundInRepoError, GitHubError, GitHubRateLimitError


class FakeResponse:
    def __init__(self, status_code=200, payload=None, headers=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.headers = headers or {}
        self.text = text
        self.encoding = None

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeSession:
    def __init__(self, responses):
        self.headers = {}
        self.responses = list(responses)
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        return self.responses.pop(0)


def make_client(responses, token=None) -> GitHubClient:
    return GitHubClient(
        "https://github.com/acme/handbook",
        branch="develop",
        token=token,
        session=FakeSession(responses),
    )


def encoded(text: str) -> str:
    # GitHub wraps base64 content at 60 columns
    raw = base64.b64encode(text.encode("utf-8")).decode("ascii")
    return "\n".join(raw[i:i + 60] for i in range(0, len(raw), 60))


def test_parse_github_url():
    assert parse_github_url("https://github.com/acme/handbook") == ("acme", "handbook")
    assert parse_github_url("https://github.com/acme/handbook.git") == ("acme", "handbook")
    assert parse_github_url("https://example.com/acme/handbook") is None


def test_file_helpers():
    assert is_markdown_file("docs/Guide.MD") is True
    assert is_markdown_file("notes.markdown") is True
    assert is_markdown_file("image.png") is False


def test_invalid_repo_url():
    with pytest.raises(GitHubError):
        GitHubClient("not a url", session=FakeSession([]))


def test_token_sets_authorization_header():
    client = make_client([], token="ghp_secret")
    assert client.session.headers["Authorization"] == "Bearer ghp_secret"
    assert "Authorization" not in make_client([]).session.headers


def test_get_file_content_decodes_base64():
    text = "# Guide\n\nHéllo wörld\n" * 10
    client = make_client([FakeResponse(200, {"type": "file", "encoding": "base64", "content": encoded(text)})])
    assert client.get_file_content("docs/guide.md") == text

    call = client.session.calls[0]
    assert call["url"] == "https://api.github.com/repos/acme/handbook/contents/docs/guide.md"
    assert call["params"] == {"ref": "develop"}


def test_large_file_falls_back_to_download_url():
    entry = {"type": "file", "encoding": "none", "content": "", "download_url": "https://raw.example/guide.md"}
    client = make_client([FakeResponse(200, entry), FakeResponse(200, text="# Big file\n")])
    assert client.get_file_content("guide.md") == "# Big file\n"
    assert client.session.calls[1]["url"] == "https://raw.example/guide.md"


def test_directory_is_error():
    client = make_client([FakeResponse(200, [{"type": "file"}])])
    with pytest.raises(GitHubError):
        client.get_file_content("docs")


def test_not_found():
    client = make_client([FakeResponse(404, {"message": "Not Found"})])
    with pytest.raises(FileNotFoundInRepoError) as exc_info:
        client.get_file_content("missing.md")
    assert exc_info.value.path == "missing.md"
    assert exc_info.value.status_code == 404


def test_rate_limit_403_with_exhausted_quota():
    response = FakeResponse(403, {"message": "rate limit"}, headers={"X-RateLimit-Remaining": "0", "Retry-After": "30"})
    client = make_client([response])
    with pytest.raises(GitHubRateLimitError) as exc_info:
        client.get_file_content("guide.md")
    assert exc_info.value.retry_after == 30


def test_rate_limit_429():
    client = make_client([FakeResponse(429, {})])
    with pytest.raises(GitHubRateLimitError):
        client.get_file_content("guide.md")


def test_plain_403_is_generic_error():
    client = make_client([FakeResponse(403, {}, headers={"X-RateLimit-Remaining": "10"})])
    with pytest.raises(GitHubError) as exc_info:
        client.get_file_content("guide.md")
    assert not isinstance(exc_info.value, GitHubRateLimitError)
    assert exc_info.value.status_code == 403


def test_repo_info_and_access():
    payload = {
        "name": "handbook",
        "full_name": "acme/handbook",
        "description": "Docs",
        "private": True,
        "default_branch": "main",
        "updated_at": "2024-01-01T00:00:00Z",
    }
    client = make_client([FakeResponse(200, payload), FakeResponse(500, {})])
    assert client.get_repo_info() == {
        "name": "handbook",
        "fullName": "acme/handbook",
        "description": "Docs",
        "isPrivate": True,
        "defaultBranch": "main",
        "lastUpdated": "2024-01-01T00:00:00Z",
    }
    assert client.check_access() is False


def entry(path, kind="file", **extra):
    return {"name": path.rsplit("/", 1)[-1], "path": path, "type": kind, **extra}


def test_get_markdown_files_walks_folders():
    client = make_client([
        FakeResponse(200, [
            entry("docs/intro.md", sha="abc", size=120),
            entry("docs/logo.png"),
            entry("docs/setup", "dir"),
            entry("docs/assets", "dir"),
        ]),
        FakeResponse(200, [entry("docs/setup/install.markdown", sha="def", size=80)]),
        FakeResponse(200, [entry("docs/assets/logo.svg")]),
        FakeResponse(404, {"message": "Not Found"}),
    ])

    tree = client.get_markdown_files(["docs", "guides"])

    assert tree == [
        {
            "name": "docs",
            "path": "docs",
            "type": "folder",
            "children": [
                {"name": "intro.md", "path": "docs/intro.md", "type": "file", "sha": "abc", "size": 120},
                {
                    "name": "setup",
                    "path": "docs/setup",
                    "type": "folder",
                    "children": [
                        {
                            "name": "install.markdown",
                            "path": "docs/setup/install.markdown",
                            "type": "file",
                            "sha": "def",
                            "size": 80,
                        },
                    ],
                },
            ],
        },
        {"name": "guides", "path": "guides", "type": "folder", "children": []},
    ]
    urls = [call["url"] for call in client.session.calls]
    assert urls[0] == "https://api.github.com/repos/acme/handbook/contents/docs"
    assert urls[1].endswith("/contents/docs/setup")
    assert all(call["params"] == {"ref": "develop"} for call in client.session.calls)


def test_get_markdown_files_rate_limited():
    client = make_client([FakeResponse(429, {}, headers={"Retry-After": "12"})])
    with pytest.raises(GitHubRateLimitError):
        client.get_markdown_files(["docs"])


def test_directory_listing_of_file_is_error():
    client = make_client([FakeResponse(200, {"type": "file", "name": "README.md"})])
    with pytest.raises(GitHubError):
        client.get_directory_contents("README.md")
