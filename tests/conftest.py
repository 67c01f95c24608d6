import sys
import os

import pytest

# Add project root to sys.path so tests can import top-level modules like 'storage', 'resolve', 'ingest', etc.
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from errors import AuthorUnavailableError  # noqa: E402
from ingest.github import LazyGitHubClient, UserSearchResult  # noqa: E402
from storage.users import UserCache  # noqa: E402


class FakeGitHub:
    """Stands in for GitHubClient and records every call."""

    def __init__(self, search=None, authors=None, totals=None):
        self.search = search or {}  # email -> list of logins
        self.totals = totals or {}  # email -> total_count reported by search, if not len(logins)
        self.authors = authors or {}  # (owner, repo, number) -> login
        self.search_calls = []
        self.pr_calls = []

    def search_users_by_email(self, email):
        self.search_calls.append(email)
        names = list(self.search.get(email, []))
        return UserSearchResult(names, self.totals.get(email, len(names)))

    def get_pull_request_author(self, owner, repository, number):
        self.pr_calls.append((owner, repository, number))
        author = self.authors.get((owner, repository, number))
        if author is None:
            raise AuthorUnavailableError(f"{owner}/{repository}#{number} not found")
        return author


class CountingFactory:
    def __init__(self, client):
        self.client = client
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.client


@pytest.fixture
def user_cache(tmp_path):
    cache = UserCache(str(tmp_path / 'users.db'))
    yield cache
    cache.close()


@pytest.fixture
def make_directory():
    """Return (fake_github, counting_factory, lazy_client) for the given search/author tables."""
    def _make(search=None, authors=None, totals=None):
        fake = FakeGitHub(search, authors, totals)
        factory = CountingFactory(fake)
        return fake, factory, LazyGitHubClient(factory)
    return _make
