"""Episode discovery on profile pages and description extraction on episode pages."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from urllib.parse import urljoin, urlparse

from podcast_profiles.config import DEFAULT_LINK_BLOCKLIST
from podcast_profiles.models.records import LinkSet

from .links import find_links
from .profile_fields import anchor_hrefs
from .selectors import CssText, MetaContent, first_match

logger = logging.getLogger(__name__)

# Anchors inside the episode-list container, newest template first.
EPISODE_LINK_SELECTORS = (
    "ol[data-testid='episodes-list'] a[href]",
    ".shelf-content ol.episodes li a[data-testid='click-action']",
    "ol.shelf-grid__list li.episode a[href]",
    ".tracks .tracks__track a.link[href]",
)

EPISODE_DESCRIPTION_SELECTORS = (
    CssText("section.product-hero-desc [data-testid='paragraph']"),
    CssText(".product-hero-desc__section .truncate-wrapper"),
    CssText(".product-hero-desc__section"),
    CssText("[data-testid='description']"),
    MetaContent("og:description"),
)


@dataclass
class EpisodeDescription:
    text: str = ""
    links: LinkSet = field(default_factory=LinkSet)


def _resolve(href, base_url: str) -> str | None:
    if isinstance(href, (list, tuple)):
        href = href[0] if href else ""
    href = str(href or "").strip()
    if not href:
        return None
    try:
        absolute = urljoin(base_url, href)
        parsed = urlparse(absolute)
    except ValueError:
        return None
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    return absolute


def extract_episode_links(document, base_url: str) -> list[str]:
    """Absolute episode URLs in document order.

    Duplicates are kept: each listed link is fetched on its own.
    """
    for selector in EPISODE_LINK_SELECTORS:
        anchors = document.select(selector)
        if not anchors:
            continue

        links = []
        for anchor in anchors:
            resolved = _resolve(anchor.get("href"), base_url)
            if resolved:
                links.append(resolved)

        if links:
            logger.debug(
                "Found %d episode links via %r on %s", len(links), selector, base_url
            )
            return links

    return []


def extract_episode_description(
    document, blocklist: Iterable[str] = DEFAULT_LINK_BLOCKLIST
) -> EpisodeDescription:
    """Long-form description of an episode page and the references in it."""
    element, text = first_match(document, EPISODE_DESCRIPTION_SELECTORS)
    if not text:
        return EpisodeDescription()

    links = find_links(text, blocklist).union(
        find_links(" ".join(anchor_hrefs(element)), blocklist)
    )
    return EpisodeDescription(text=text, links=links)
