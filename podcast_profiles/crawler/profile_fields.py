"""Show-level field extraction from a catalog profile page."""

from __future__ import annotations

from collections.abc import Iterable

from bs4 import Tag

from podcast_profiles.config import DEFAULT_LINK_BLOCKLIST
from podcast_profiles.models.records import ExtractedProfile

from .links import find_links
from .rating import parse_reviews_and_rate
from .selectors import CssText, MetaContent, first_match, first_text

# Catalog pages ship in at least two Svelte templates; scoped class names
# come first, structural fallbacks after.
SHOW_NAME_SELECTORS = (
    CssText(".headings.svelte-1uuona0 h1"),
    CssText(".headings h1"),
    CssText("[data-testid='non-editable-product-title']"),
    MetaContent("apple:title", attribute="name"),
)

HOST_NAME_SELECTORS = (
    CssText(".headings__subtitles .svelte-123qhuj"),
    CssText(".headings.svelte-1uuona0 .subtitle-action.svelte-16t2ez2"),
    CssText(".headings__subtitles"),
    CssText(".headings .subtitle-action"),
)

DESCRIPTION_SELECTORS = (
    CssText(".description .truncate-wrapper p"),
    CssText(
        ".section.section--paragraph.svelte-1cj8vg9.section--display-separator "
        ".shelf-content > div"
    ),
    CssText(".section--paragraph .shelf-content > div"),
    MetaContent("description", attribute="name"),
)

RATING_SELECTORS = (
    CssText(".metadata.svelte-123qhuj li:nth-child(1)"),
    CssText(".headings__metadata-bottom li:nth-child(1)"),
    CssText(".metadata li:nth-child(1)"),
)

CATEGORY_SELECTORS = (
    CssText(".metadata.svelte-123qhuj li:nth-child(2)"),
    CssText(".headings__metadata-bottom li:nth-child(2)"),
    CssText(".metadata li:nth-child(2)"),
)


def anchor_hrefs(element: Tag | None) -> list[str]:
    """``href`` values of anchors inside ``element``, in document order."""
    if not isinstance(element, Tag):
        return []
    hrefs = []
    for anchor in element.find_all("a", href=True):
        href = anchor.get("href")
        if isinstance(href, (list, tuple)):
            href = href[0] if href else ""
        href = str(href).strip()
        if href:
            hrefs.append(href)
    return hrefs


def extract_profile_fields(
    document, url: str, blocklist: Iterable[str] = DEFAULT_LINK_BLOCKLIST
) -> ExtractedProfile:
    """Pull show-level fields out of a parsed profile page.

    Missing fields come back as empty strings; only a missing show name is
    fatal, and that is enforced at validation time.
    """
    description_element, show_description = first_match(
        document, DESCRIPTION_SELECTORS
    )
    links = find_links(show_description, blocklist).union(
        find_links(" ".join(anchor_hrefs(description_element)), blocklist)
    )

    rating = parse_reviews_and_rate(
        first_text(document, RATING_SELECTORS, "rating metadata")
    )

    return ExtractedProfile(
        url=url,
        show_name=first_text(document, SHOW_NAME_SELECTORS, "show name"),
        host_name=first_text(document, HOST_NAME_SELECTORS, "host name"),
        show_description=show_description,
        links=links,
        reviews=rating.reviews,
        rate=rating.rate,
        category=first_text(document, CATEGORY_SELECTORS, "category"),
    )
