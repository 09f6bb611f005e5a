"""
Domain syntax checks for input lines.
"""

import re

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SCHEME_PATTERN = r"(?:https?://)?"
LABEL_PATTERN = r"[a-zA-Z0-9](?:[a-zA-Z0-9\-]{0,61}[a-zA-Z0-9])?"
TLD_PATTERN = r"[a-zA-Z]{2,6}"

DOMAIN_RE = re.compile(
    rf"{SCHEME_PATTERN}(?:{LABEL_PATTERN}\.)+{TLD_PATTERN}/?"
)


def is_valid_domain(value: str) -> bool:
    """
    Return True if ``value`` looks like a domain name.

    Accepts an optional ``http://`` / ``https://`` prefix and an optional
    trailing ``/``. Each label is 1-63 characters of letters, digits and
    internal hyphens; the top-level label is 2-6 letters.
    """
    if not value:
        return False
    return DOMAIN_RE.fullmatch(value) is not None


def to_hostname(value: str) -> str:
    """Strip the scheme and trailing slash, leaving the bare host name."""
    host = value
    for prefix in ("https://", "http://"):
        if host.startswith(prefix):
            host = host[len(prefix):]
            break
    return host.rstrip("/")
