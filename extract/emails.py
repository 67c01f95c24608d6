"""
Email address detection in free text.
Purely syntactic: no normalization and no deliverability checks.
"""
import re
from typing import Iterator, List

# Reference: https://stackoverflow.com/a/201378
# The unquoted local part also admits '[' and ']' so bot no-reply addresses
# like 1+dependabot[bot]@users.noreply.github.com match as a whole.
EMAIL_PATTERN = re.compile(
    r"(?:[a-zA-Z0-9!#$%&'*+/=?^_`{|}~\-\[\]]+(?:\.[a-zA-Z0-9!#$%&'*+/=?^_`{|}~\-\[\]]+)*"
    r'|"(?:[\x01-\x08\x0b\x0c\x0e-\x1f\x21\x23-\x5b\x5d-\x7f]|\\[\x01-\x09\x0b\x0c\x0e-\x7f])*")'
    r"@"
    r"(?:(?:[a-z0-9](?:[a-z0-9-]*[a-z0-9])?\.)+[a-z0-9](?:[a-z0-9-]*[a-z0-9])?"
    r"|\[(?:(?:2(?:5[0-5]|[0-4][0-9])|1[0-9][0-9]|[1-9]?[0-9])\.){3}"
    r"(?:(?:2(?:5[0-5]|[0-4][0-9])|1[0-9][0-9]|[1-9]?[0-9])"
    r"|[a-z0-9-]*[a-z0-9]:(?:[\x01-\x08\x0b\x0c\x0e-\x1f\x21-\x5a\x53-\x7f]|\\[\x01-\x09\x0b\x0c\x0e-\x7f])+)\])"
)


def iter_emails(text: str) -> Iterator[str]:
    """Yield email addresses in text, left to right, without overlaps."""
    if not text:
        return
    for m in EMAIL_PATTERN.finditer(text):
        yield m.group(0)


def find_emails(text: str) -> List[str]:
    return list(iter_emails(text))


def unique_emails(text: str) -> List[str]:
    """Distinct email addresses in order of first appearance."""
    seen: List[str] = []
    for email in iter_emails(text):
        if email not in seen:
            seen.append(email)
    return seen
