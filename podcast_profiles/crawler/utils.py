"""Small text helpers shared by the extractors and the fetch client.

``mask_secret`` gives a safe, consistent rendering of API keys for log
lines so credentials never reach the logs in full.
"""

from __future__ import annotations

import re
from urllib.parse import urlparse

_WHITESPACE_RE = re.compile(r"\s+")


def clean_text(value) -> str:
    """Collapse whitespace runs to one space and trim; non-strings become ""."""
    if not isinstance(value, str):
        return ""
    return _WHITESPACE_RE.sub(" ", value).strip()


def mask_secret(secret: str | None, visible: int = 4) -> str | None:
    """Return a secret with everything but the last few characters redacted.

    Examples:
        0123456789abcdef -> ***cdef
        abc -> ***

    Returns None if secret is None or empty.
    """
    if not secret:
        return None
    if len(secret) <= visible * 2:
        return "***"
    return "***" + secret[-visible:]


def host_of(url: str) -> str:
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""
