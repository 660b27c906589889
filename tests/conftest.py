"""Pytest-wide fixtures for the profile scraper tests."""

from __future__ import annotations

import os

import pytest

from tests.helpers.pages import EPISODE_URLS, PROFILE_HTML, PROFILE_URL, FakeFetchClient, episode_html


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep deployment settings from leaking into tests."""
    for key in [
        "DATABASE_URL",
        "DATABASE_HOST",
        "DATABASE_PORT",
        "DATABASE_NAME",
        "DATABASE_USER",
        "DATABASE_PASSWORD",
        "SCRAPE_NINJA_ENABLED",
        "SCRAPE_NINJA_API_KEY",
        "USER_AGENT",
        "HEADERS_FILE",
        "DATA_DIR",
        "REQUEST_TIMEOUT",
        "MAX_EPISODES",
        "LINK_BLOCKLIST",
        "PROFILES_TABLE",
        "WORKLIST_VIEW",
        "LOG_LEVEL",
    ]:
        monkeypatch.delenv(key, raising=False)
    for key in list(os.environ):
        if key.startswith("HEADER_"):
            monkeypatch.delenv(key)


@pytest.fixture
def fake_fetch_client():
    return FakeFetchClient


@pytest.fixture
def show_pages():
    """Profile page plus three episode pages."""
    return {
        PROFILE_URL: PROFILE_HTML,
        EPISODE_URLS[0]: episode_html(
            "Episode one notes. Sponsor: https://sponsor.example.net/deal",
            href="https://example.com/show",
        ),
        EPISODE_URLS[1]: episode_html("Episode two notes with @guestone"),
        EPISODE_URLS[2]: episode_html(
            "Episode three notes, write to mail@guests.example.org"
        ),
    }
