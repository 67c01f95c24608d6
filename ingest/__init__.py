"""
Ingest package: GitHub lookups for email addresses and pull request authors.
"""

from .github import GitHubClient, LazyGitHubClient, UserSearchResult, client_factory

__all__ = ["GitHubClient", "LazyGitHubClient", "UserSearchResult", "client_factory"]
