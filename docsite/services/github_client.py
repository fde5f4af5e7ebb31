"""GitHub REST API client for reading repository markdown"""

import base64
import binascii
import re
import time
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..utils.exceptions import FileNotFoundInRepoError, GitHubError, GitHubRateLimitError
from ..utils.logger import get_logger

logger = get_logger(__name__)

GITHUB_URL_PATTERN = re.compile(r"github\.com/([^/]+)/([^/]+)")
MARKDOWN_FILE_PATTERN = re.compile(r"\.(md|markdown)$", re.IGNORECASE)


def parse_github_url(url: str) -> Optional[Tuple[str, str]]:
    """Return (owner, repo) for a github.com URL, or None"""
    match = GITHUB_URL_PATTERN.search(url or "")
    if not match:
        return None
    repo = match.group(2)
    if repo.endswith(".git"):
        repo = repo[:-4]
    return match.group(1), repo


def is_markdown_file(filename: str) -> bool:
    return bool(MARKDOWN_FILE_PATTERN.search(filename or ""))


class GitHubClient:
    """Read-only client for one repository branch"""

    def __init__(
        self,
        repo_url: str,
        branch: str = "main",
        token: Optional[str] = None,
        api_base_url: str = "https://api.github.com",
        connection_timeout: int = 10,
        read_timeout: int = 30,
        session: Optional[requests.Session] = None,
    ):
        parsed = parse_github_url(repo_url)
        if not parsed:
            raise GitHubError("Invalid GitHub repository URL")
        self.owner, self.repo = parsed
        self.branch = branch or "main"
        self.api_base_url = api_base_url.rstrip("/")
        # (connect_timeout, read_timeout)
        self.timeout = (connection_timeout, read_timeout)

        self.session = session or requests.Session()
        self.session.headers.update({
            "Accept": "application/vnd.github+json",
            "User-Agent": "docsite-viewer",
        })
        # Optional for public repos
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    @property
    def repo_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=retry_if_exception_type((requests.exceptions.ConnectionError, requests.exceptions.Timeout)),
        reraise=True,
    )
    def _send(self, url: str, params: Optional[Dict[str, str]] = None) -> requests.Response:
        return self.session.get(url, params=params, timeout=self.timeout)

    def _get(self, endpoint: str, params: Optional[Dict[str, str]] = None, path: str = "") -> Any:
        """
        GET an API endpoint and return its JSON body.

        Raises:
            FileNotFoundInRepoError: On 404
            GitHubRateLimitError: When the API rate limit is exhausted
            GitHubError: On any other failure
        """
        url = f"{self.api_base_url}{endpoint}"
        try:
            response = self._send(url, params)
        except requests.exceptions.RequestException as e:
            logger.error("GitHub request failed", endpoint=endpoint, error=str(e))
            raise GitHubError(f"GitHub request failed: {e}") from e

        logger.debug("GitHub response", endpoint=endpoint, status_code=response.status_code)

        if response.status_code == 404:
            raise FileNotFoundInRepoError(path or endpoint)

        if response.status_code == 429 or (
            response.status_code == 403 and response.headers.get("X-RateLimit-Remaining") == "0"
        ):
            retry_after = self._retry_after(response)
            logger.warning("GitHub rate limit exceeded", endpoint=endpoint, retry_after=retry_after)
            raise GitHubRateLimitError("GitHub API rate limit exceeded", retry_after=retry_after)

        if response.status_code >= 400:
            raise GitHubError(
                f"GitHub API error (HTTP {response.status_code})",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise GitHubError("GitHub returned invalid JSON") from e

    @staticmethod
    def _retry_after(response: requests.Response) -> Optional[int]:
        header = response.headers.get("Retry-After")
        if header and header.isdigit():
            return int(header)
        reset = response.headers.get("X-RateLimit-Reset")
        if reset and reset.isdigit():
            return max(0, int(reset) - int(time.time()))
        return None

    def get_repo_info(self) -> Dict[str, Any]:
        data = self._get(self.repo_path)
        return {
            "name": data.get("name"),
            "fullName": data.get("full_name"),
            "description": data.get("description"),
            "isPrivate": data.get("private"),
            "defaultBranch": data.get("default_branch"),
            "lastUpdated": data.get("updated_at"),
        }

    def check_access(self) -> bool:
        try:
            self.get_repo_info()
            return True
        except GitHubError:
            return False

    def _get_file_entry(self, path: str) -> Dict[str, Any]:
        data = self._get(
            f"{self.repo_path}/contents/{quote(path.lstrip('/'))}",
            params={"ref": self.branch},
            path=path,
        )
        if isinstance(data, list) or data.get("type") != "file":
            raise GitHubError(f"Expected file, got directory: {path}")
        return data

    def get_file_content(self, path: str) -> str:
        """Fetch and decode a file's text from the configured branch"""
        entry = self._get_file_entry(path)

        if entry.get("encoding") == "base64" and entry.get("content") is not None:
            try:
                return base64.b64decode(entry["content"]).decode("utf-8")
            except (binascii.Error, UnicodeDecodeError) as e:
                raise GitHubError(f"Failed to decode file content: {path}") from e

        # Files over 1 MB come back without inline content
        download_url = entry.get("download_url")
        if not download_url:
            raise GitHubError(f"File content unavailable: {path}")
        try:
            response = self._send(download_url)
        except requests.exceptions.RequestException as e:
            raise GitHubError(f"GitHub request failed: {e}") from e
        if response.status_code == 404:
            raise FileNotFoundInRepoError(path)
        if response.status_code >= 400:
            raise GitHubError(f"GitHub raw download failed (HTTP {response.status_code})", status_code=response.status_code)
        response.encoding = "utf-8"
        return response.text


    def get_directory_contents(self, path: str = "") -> List[Dict[str, Any]]:
        data = self._get(
            f"{self.repo_path}/contents/{quote(path.strip('/'))}",
            params={"ref": self.branch},
            path=path,
        )
        if not isinstance(data, list):
            raise GitHubError(f"Expected directory, got file: {path}")
        return data

    def get_markdown_files(self, folders: List[str]) -> List[Dict[str, Any]]:
        """
        Markdown file tree for the configured folders.

        One folder node per configured folder, in the given order. Subfolders
        without markdown files are left out and a folder missing from the
        branch yields an empty node.

        Raises:
            GitHubRateLimitError: GitHub API rate limit exhausted
            GitHubError: Any other listing failure
        """
        tree = []
        for folder in folders:
            try:
                children = self._markdown_children(folder)
            except FileNotFoundInRepoError:
                logger.warning("Configured folder not found in repository", folder=folder, branch=self.branch)
                children = []
            tree.append({"name": folder, "path": folder, "type": "folder", "children": children})
        return tree

    def _markdown_children(self, path: str) -> List[Dict[str, Any]]:
        items = []
        for entry in self.get_directory_contents(path):
            if entry.get("type") == "dir":
                children = self._markdown_children(entry["path"])
                if children:
                    items.append({
                        "name": entry["name"],
                        "path": entry["path"],
                        "type": "folder",
                        "children": children,
                    })
            elif entry.get("type") == "file" and is_markdown_file(entry.get("name", "")):
                items.append({
                    "name": entry["name"],
                    "path": entry["path"],
                    "type": "file",
                    "sha": entry.get("sha"),
                    "size": entry.get("size", 0),
                })
        return items
