"""
Per-line resolution outcomes.
"""


class Replaced:
    """
    The line after any email was replaced (or the line unchanged if it had none).
    """
    resolved = True

    def __init__(self, text: str):
        self.text = text

    def __repr__(self):
        return f"Replaced(text={self.text!r})"


class Unresolved:
    """
    The line with its email left untouched, and that email for reporting.
    """
    resolved = False

    def __init__(self, text: str, email: str):
        self.text = text
        self.email = email

    def __repr__(self):
        return f"Unresolved(text={self.text!r}, email={self.email!r})"
