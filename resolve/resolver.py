"""
Resolve the email address in a changelog line to a GitHub username.

Strategies run in order and stop at the first hit:
1. no-reply pattern: 1234567+username@users.noreply.github.com carries the username itself
2. user cache: emails resolved in earlier lines or earlier runs
3. GitHub user search by email
4. author of the last pull request linked from the same line
"""
import logging
from typing import Optional, Union

from errors import AmbiguousUserError, AuthorUnavailableError, MultipleEmailsError
from extract.emails import unique_emails
from extract.pull_requests import last_pull_request
from resolve.models import Replaced, Unresolved

logger = logging.getLogger(__name__)

NOREPLY_DOMAIN = "users.noreply.github.com"
BOT_SUFFIX = "[bot]"


def is_noreply(email: str) -> bool:
    return email.endswith("@" + NOREPLY_DOMAIN)


def canonical_username(name: str) -> str:
    """Strip the [bot] marker from app accounts, e.g. dependabot[bot] -> dependabot."""
    if name.endswith(BOT_SUFFIX) and len(name) > len(BOT_SUFFIX):
        return name[:-len(BOT_SUFFIX)]
    return name


def username_from_noreply(email: str) -> Optional[str]:
    """Return the username encoded in a GitHub no-reply address, or None if the format is unknown."""
    prefix = email[:-len("@" + NOREPLY_DOMAIN)]
    _, sep, username = prefix.partition("+")
    if not sep or not username:
        logger.warning("Unknown no-reply email format: %s", email)
        return None
    return canonical_username(username)


class IdentityResolver:
    """Turns one line of text into a Replaced or Unresolved outcome.

    :param cache: a storage.users.UserCache (anything with get/insert).
    :param directory: a LazyGitHubClient; the client is only built when a
        line actually needs the GitHub API.
    """

    def __init__(self, cache, directory):
        self.cache = cache
        self.directory = directory

    def resolve_line(self, line: str) -> Union[Replaced, Unresolved]:
        emails = unique_emails(line)
        if len(emails) > 1:
            raise MultipleEmailsError(line, emails)
        if not emails:
            return Replaced(line)

        email = emails[0]
        username = self.resolve_email(email, context=line)
        if username is None:
            return Unresolved(line, email)
        return Replaced(line.replace(email, f"@{username}"))

    def resolve_email(self, email: str, context: str = "") -> Optional[str]:
        """Return the username for email, or None if no strategy finds one.

        context is the surrounding text searched for pull request links.
        """
        if is_noreply(email):
            return username_from_noreply(email)

        username = self.cache.get(email)
        if username:
            logger.debug("Resolved %s from cache: %s", email, username)
            return username

        username = self._search(email)
        if username:
            return username

        return self._from_pull_request(email, context)

    def _search(self, email: str) -> Optional[str]:
        result = self.directory.get().search_users_by_email(email)
        # GitHub does not allow two accounts to share an email address
        if result.total_count > 1 or len(result.usernames) > 1:
            raise AmbiguousUserError(email, result.usernames, result.total_count)
        if not result.usernames:
            logger.debug("No GitHub user found for %s", email)
            return None
        username = result.usernames[0]
        self.cache.insert(email, username, source="search")
        logger.debug("Resolved %s via user search: %s", email, username)
        return username

    def _from_pull_request(self, email: str, context: str) -> Optional[str]:
        ref = last_pull_request(context)
        if ref is None:
            return None
        try:
            author = self.directory.get().get_pull_request_author(ref.owner, ref.repository, ref.number)
        except AuthorUnavailableError as ex:
            logger.warning("Author unavailable for %s: %s", email, ex)
            return None
        username = canonical_username(author)
        self.cache.insert(email, username, source="pull_request")
        logger.debug("Resolved %s via pull request %r: %s", email, ref, username)
        return username
