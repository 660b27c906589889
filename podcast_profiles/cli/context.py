"""Shared setup for CLI commands: logging and the extraction stack."""

from __future__ import annotations

import logging

from podcast_profiles.config import Settings
from podcast_profiles.crawler import FetchClient, ProfileExtractor
from podcast_profiles.crawler.headers import (
    build_headers,
    default_headers,
    load_header_overrides,
)
from podcast_profiles.crawler.proxy_config import ProxyConfig, select_proxy_config

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level: str = "INFO") -> None:
    numeric = getattr(logging, str(level).upper(), None)
    if not isinstance(numeric, int):
        numeric = logging.INFO
    logging.basicConfig(level=numeric, format=LOG_FORMAT)
    # urllib3 connection chatter drowns out per-profile progress
    logging.getLogger("urllib3").setLevel(max(numeric, logging.WARNING))


def build_extractor(
    settings: Settings, max_episodes: int | None = None
) -> tuple[ProfileExtractor, ProxyConfig]:
    """Wire headers, fetch strategy and extractor from settings."""
    headers = build_headers(
        load_header_overrides(settings.headers_file),
        defaults=default_headers(settings.header_env, settings.user_agent),
    )
    proxy_config = select_proxy_config(settings)
    fetch_client = FetchClient(proxy_config, timeout=settings.request_timeout)
    extractor = ProfileExtractor(
        fetch_client,
        headers,
        blocklist=settings.link_blocklist,
        max_episodes=max_episodes if max_episodes is not None else settings.max_episodes,
    )
    return extractor, proxy_config
