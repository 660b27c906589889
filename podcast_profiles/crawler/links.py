"""Pull URLs, bare hosts, emails and @mentions out of free text.

Every pattern excludes the storage delimiter so text that was already joined
upstream never produces a token spanning two entries.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from urllib.parse import urlparse

from podcast_profiles.config import DEFAULT_LINK_BLOCKLIST
from podcast_profiles.models.records import DELIMITER, LinkSet

_STOP = r"\s\"'<>" + DELIMITER

URL_RE = re.compile(rf"https?://[^{_STOP}]+", re.IGNORECASE)
WWW_RE = re.compile(rf"(?<![/\w.@-])www\.[^{_STOP}]+", re.IGNORECASE)
EMAIL_RE = re.compile(r"[\w.%+-]+@[A-Za-z0-9-]+(?:\.[A-Za-z0-9-]+)*\.[A-Za-z]{2,}")
MENTION_RE = re.compile(r"(?<![\w.@/])@[A-Za-z0-9_](?:[A-Za-z0-9_.]*[A-Za-z0-9_])?")

_TRAILING_PUNCTUATION = ".,;:!?)]}"


def _strip_trailing(token: str) -> str:
    while token and token[-1] in _TRAILING_PUNCTUATION:
        # keep a closing paren that balances one inside the token
        if token[-1] == ")" and token.count("(") >= token.count(")"):
            break
        token = token[:-1]
    return token


def _has_host(token: str) -> bool:
    if token.lower().startswith("www."):
        return len(token) > len("www.")
    try:
        return bool(urlparse(token).hostname)
    except ValueError:
        return False


def is_blocked(url: str, blocklist: Iterable[str] = DEFAULT_LINK_BLOCKLIST) -> bool:
    """True if the URL's host is a blocked domain or a subdomain of one."""
    if not isinstance(url, str) or not url.strip():
        return False

    value = url.strip()
    if not re.match(r"^https?://", value, re.IGNORECASE):
        value = "https://" + value

    try:
        hostname = (urlparse(value).hostname or "").lower()
    except ValueError:
        return False

    return any(
        hostname == domain or hostname.endswith("." + domain) for domain in blocklist
    )


def find_links(
    text, blocklist: Iterable[str] = DEFAULT_LINK_BLOCKLIST
) -> LinkSet:
    """Return the references found in ``text`` in order of first occurrence."""
    if not isinstance(text, str) or not text.strip():
        return LinkSet()

    blocklist = tuple(blocklist)

    found = []
    claimed = []

    def overlaps(match) -> bool:
        start, end = match.span()
        return any(start < c_end and c_start < end for c_start, c_end in claimed)

    def add_url(match) -> None:
        claimed.append(match.span())
        token = _strip_trailing(match.group(0))
        if _has_host(token) and not is_blocked(token, blocklist):
            found.append((match.start(), token))

    for match in URL_RE.finditer(text):
        add_url(match)

    emails = []
    for match in EMAIL_RE.finditer(text):
        if overlaps(match):
            continue
        claimed.append(match.span())
        email = _strip_trailing(match.group(0))
        emails.append(email.lower())
        found.append((match.start(), email))

    for match in WWW_RE.finditer(text):
        if not overlaps(match):
            add_url(match)

    for match in MENTION_RE.finditer(text):
        if overlaps(match):
            continue
        handle = match.group(0)[1:].lower()
        # an email's local part reads like a mention
        if any(handle in email for email in emails):
            continue
        found.append((match.start(), match.group(0)))

    found.sort(key=lambda item: item[0])
    return LinkSet(token for _, token in found)


def extract_links(text, blocklist: Iterable[str] = DEFAULT_LINK_BLOCKLIST) -> str:
    """Delimiter-joined form of :func:`find_links`."""
    return find_links(text, blocklist).join()
