"""
Extract package: find email addresses and pull request links in changelog text.
"""

from .emails import find_emails, iter_emails, unique_emails
from .pull_requests import PullRequestRef, find_pull_requests, last_pull_request

__all__ = [
    "find_emails",
    "iter_emails",
    "unique_emails",
    "PullRequestRef",
    "find_pull_requests",
    "last_pull_request",
]
