"""
Error types raised while replacing changelog emails with GitHub usernames.
Everything except AuthorUnavailableError aborts the run.
"""
from typing import List, Optional


class UsernamifyError(Exception):
    """Base class for fatal errors; the CLI catches this and exits non-zero."""


class MultipleEmailsError(UsernamifyError):
    """A single line contains more than one distinct email address."""

    def __init__(self, line: str, emails: List[str]):
        self.line = line
        self.emails = emails
        super().__init__(
            f"Unsupported input: multiple email addresses in one line ({', '.join(emails)}): {line.strip()}"
        )


class StorageError(UsernamifyError):
    """Reading from or writing to the user database failed."""


class RemoteError(UsernamifyError):
    """A GitHub API call failed (transport, auth, rate limit, unexpected status)."""

    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        super().__init__(message if status is None else f"{message} (HTTP {status})")


class MissingCredentialError(RemoteError):
    """A GitHub API call was needed but no token is configured."""


class AmbiguousUserError(UsernamifyError):
    """GitHub search returned more than one account for one email address."""

    def __init__(self, email: str, usernames: List[str], total_count: int):
        self.email = email
        self.usernames = usernames
        self.total_count = total_count
        super().__init__(f"More than one user found for {email}: {total_count} result(s) {usernames}")


class AuthorUnavailableError(UsernamifyError):
    """The pull request exists without an author, or could not be found.

    Not fatal: the resolver folds it into an unresolved email.
    """
