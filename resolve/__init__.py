"""
Resolve package: map changelog emails to GitHub usernames line by line.
"""

from .models import Replaced, Unresolved
from .processor import ProcessingReport, format_unresolved, process_text
from .resolver import IdentityResolver, canonical_username, is_noreply, username_from_noreply

__all__ = [
    "Replaced",
    "Unresolved",
    "ProcessingReport",
    "format_unresolved",
    "process_text",
    "IdentityResolver",
    "canonical_username",
    "is_noreply",
    "username_from_noreply",
]
