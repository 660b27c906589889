"""Outbound request header construction."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:145.0) "
    "Gecko/20100101 Firefox/145.0"
)

DEFAULT_HEADERS: dict[str, str] = {
    "accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "accept-language": "en-US,en;q=0.5",
    "accept-encoding": "deflate",
    "connection": "keep-alive",
    "cookie": "geo=US",
    "upgrade-insecure-requests": "1",
    "sec-fetch-dest": "document",
    "sec-fetch-mode": "navigate",
    "sec-fetch-site": "none",
    "priority": "u=0, i",
    "user-agent": DEFAULT_USER_AGENT,
}


def default_headers(
    env_overrides: Mapping[str, str] | None = None, user_agent: str | None = None
) -> dict[str, str]:
    """Return the built-in header set with process-start overrides applied.

    ``env_overrides`` comes from ``HEADER_*`` variables and may blank out a
    default by setting it to an empty string.
    """
    headers = dict(DEFAULT_HEADERS)
    if user_agent:
        headers["user-agent"] = user_agent
    for key, value in (env_overrides or {}).items():
        if isinstance(key, str) and isinstance(value, str):
            headers[key.strip().lower()] = value.strip()
    return headers


def load_header_overrides(path: str | Path | None) -> dict:
    """Read the optional JSON override file.

    A missing, unreadable or malformed file, or one that does not hold a
    JSON object, yields no overrides.
    """
    if path is None:
        return {}

    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.debug("No header override file at %s", path)
        return {}
    except OSError as exc:
        logger.warning("Could not read header override file %s: %s", path, exc)
        return {}

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.warning("Ignoring malformed header override file %s: %s", path, exc)
        return {}

    if not isinstance(parsed, dict):
        logger.warning("Header override file %s is not a JSON object", path)
        return {}

    return parsed


def build_headers(
    overrides: Mapping | None = None, defaults: Mapping[str, str] | None = None
) -> dict[str, str]:
    """Merge overrides onto the defaults and drop empty headers.

    Override keys are lower-cased and values trimmed; only non-empty string
    values replace a default.
    """
    headers = dict(DEFAULT_HEADERS if defaults is None else defaults)

    for key, value in (overrides or {}).items():
        if not isinstance(key, str) or not isinstance(value, str):
            continue
        value = value.strip()
        if value:
            headers[key.strip().lower()] = value

    return {
        key: value.strip()
        for key, value in headers.items()
        if isinstance(value, str) and value.strip()
    }
