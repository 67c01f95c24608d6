"""
Apply the identity resolver to every line of a changelog.
"""
import re
from typing import List

from resolve.resolver import IdentityResolver

UNRESOLVED_HEADER = (
    "GitHub usernames for the following email addresses are unavailable. "
    "Either the email addresses are invalid, or the users updated their publicly visible "
    "email addresses recently."
)

# Only '\n' ends a line; other separators str.splitlines honours stay inside it.
LINE_PATTERN = re.compile(r"[^\n]*\n|[^\n]+")


def split_lines(text: str) -> List[str]:
    """Split text into lines, each keeping its own line ending ('\\n' or '\\r\\n')."""
    return LINE_PATTERN.findall(text or "")


class ProcessingReport:
    """
    Rewritten text plus the emails that could not be resolved.
    """
    def __init__(self, text: str, unresolved: List[str], replaced_lines: int):
        self.text = text
        self.unresolved = unresolved  # distinct, in order of first appearance
        self.replaced_lines = replaced_lines


def process_text(text: str, resolver: IdentityResolver) -> ProcessingReport:
    """Resolve emails line by line and rejoin the lines.

    Lines are handled strictly in order so cache entries written for one line
    serve the lines after it. A fatal error propagates before any text is returned.
    """
    out: List[str] = []
    unresolved: List[str] = []
    replaced = 0
    for line in split_lines(text):
        outcome = resolver.resolve_line(line)
        out.append(outcome.text)
        if not outcome.resolved:
            if outcome.email not in unresolved:
                unresolved.append(outcome.email)
        elif outcome.text != line:
            replaced += 1
    return ProcessingReport("".join(out), unresolved, replaced)


def format_unresolved(emails: List[str]) -> str:
    return UNRESOLVED_HEADER + "\n" + "\n".join(emails)
