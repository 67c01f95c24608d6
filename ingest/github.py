"""
GitHub API client used to look up the account behind an email address.
Two lookups are supported: user search by email and pull request author.
Failures are not retried; anything other than the documented outcomes raises RemoteError.
"""
import logging
import os
import threading
from typing import Any, Callable, Dict, List, Optional

import requests

from errors import AuthorUnavailableError, MissingCredentialError, RemoteError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = os.getenv("GITHUB_API_URL", "https://api.github.com")
USER_AGENT = "usernamify/0.1.0"


class UserSearchResult:
    """Outcome of a user search: matched logins plus GitHub's total_count."""

    def __init__(self, usernames: List[str], total_count: int):
        self.usernames = usernames
        self.total_count = total_count

    def __repr__(self):
        return f"UserSearchResult(usernames={self.usernames!r}, total_count={self.total_count})"


class GitHubClient:
    """Thin wrapper over the two GitHub REST endpoints the resolver needs."""

    def __init__(self, token: str, base_url: str = None, per_page: int = 5):
        self.token = token
        self.base_url = (base_url or DEFAULT_API_URL).rstrip("/")
        self.per_page = per_page
        self.headers = {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": USER_AGENT,
        }

    def _get(self, path: str, params: Dict[str, Any] = None) -> requests.Response:
        url = f"{self.base_url}{path}"
        logger.debug("GET %s params=%s", url, params)
        try:
            return requests.get(url, headers=self.headers, params=params or {})
        except requests.RequestException as ex:
            raise RemoteError(f"Request to {url} failed: {ex}") from ex

    @staticmethod
    def _json(resp: requests.Response, what: str) -> Dict[str, Any]:
        try:
            data = resp.json()
        except ValueError as ex:
            raise RemoteError(f"Invalid JSON in {what} response", resp.status_code) from ex
        if not isinstance(data, dict):
            raise RemoteError(f"Unexpected {what} response payload", resp.status_code)
        return data

    def search_users_by_email(self, email: str) -> UserSearchResult:
        """Search GitHub users whose public email matches."""
        resp = self._get("/search/users", params={"q": email, "per_page": self.per_page, "page": 1})
        if resp.status_code != 200:
            raise RemoteError(f"Failed to search for GitHub user by email address {email}", resp.status_code)
        data = self._json(resp, "user search")
        items = data.get("items") or []
        usernames = [item.get("login") for item in items if item.get("login")]
        total_count = int(data.get("total_count") or 0)
        return UserSearchResult(usernames, total_count)

    def get_pull_request_author(self, owner: str, repository: str, number: int) -> str:
        """Return the login of the pull request author.

        Raises AuthorUnavailableError when the pull request is missing (404) or
        has no author, e.g. because the account was deleted.
        """
        resp = self._get(f"/repos/{owner}/{repository}/pulls/{number}")
        if resp.status_code == 404:
            raise AuthorUnavailableError(f"Pull request {owner}/{repository}#{number} not found")
        if resp.status_code != 200:
            raise RemoteError(f"Failed to fetch pull request {owner}/{repository}#{number}", resp.status_code)
        data = self._json(resp, "pull request")
        login = (data.get("user") or {}).get("login")
        if not login:
            raise AuthorUnavailableError(f"Pull request {owner}/{repository}#{number} has no author")
        return login


def client_factory(token: Optional[str] = None, base_url: Optional[str] = None) -> Callable[[], GitHubClient]:
    """Return a callable that builds a GitHubClient, reading GITHUB_TOKEN only when called."""
    def build() -> GitHubClient:
        resolved = token or os.getenv("GITHUB_TOKEN")
        if not resolved:
            raise MissingCredentialError("`GITHUB_TOKEN` not set (or pass --github-token)")
        logger.debug("Constructing GitHub client for %s", base_url or DEFAULT_API_URL)
        return GitHubClient(resolved, base_url=base_url)
    return build


class LazyGitHubClient:
    """Builds the client on first use, at most once."""

    def __init__(self, factory: Callable[[], Any]):
        self._factory = factory
        self._client = None
        self._lock = threading.Lock()

    @property
    def initialized(self) -> bool:
        return self._client is not None

    def get(self):
        if self._client is None:
            with self._lock:
                if self._client is None:
                    self._client = self._factory()
        return self._client
