"""
GitHub pull request link detection in free text.
"""
import re
from typing import List, Optional

# Reference: https://stackoverflow.com/a/59082561
PULL_REQUEST_PATTERN = re.compile(
    r"github\.com/(?P<owner>[\w.-]+)/(?P<repository>[\w.-]+)/pull/(?P<number>\d+)"
)


class PullRequestRef:
    """
    A pull request identified by a link, e.g. github.com/owner/repo/pull/42.
    """
    def __init__(self, owner: str, repository: str, number: int):
        self.owner = owner
        self.repository = repository
        self.number = number

    def __eq__(self, other):
        if not isinstance(other, PullRequestRef):
            return NotImplemented
        return (self.owner, self.repository, self.number) == (other.owner, other.repository, other.number)

    def __hash__(self):
        return hash((self.owner, self.repository, self.number))

    def __repr__(self):
        return f"PullRequestRef(owner={self.owner!r}, repository={self.repository!r}, number={self.number})"


def find_pull_requests(text: str) -> List[PullRequestRef]:
    """Return pull request references in the order they appear in text."""
    if not text:
        return []
    refs: List[PullRequestRef] = []
    for m in PULL_REQUEST_PATTERN.finditer(text):
        # the pattern only admits digits, so int() failing is a bug and must surface
        number = int(m.group("number"))
        refs.append(PullRequestRef(m.group("owner"), m.group("repository"), number))
    return refs


def last_pull_request(text: str) -> Optional[PullRequestRef]:
    """The last pull request link in text.

    Merge commits put the canonical reference last, after revert titles that
    may embed older links.
    """
    refs = find_pull_requests(text)
    return refs[-1] if refs else None
