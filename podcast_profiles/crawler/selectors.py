"""Ordered selector fallback chains over parsed documents.

A field is described by a list of strategies; the first strategy that
yields non-empty normalized text wins.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from bs4 import BeautifulSoup, Tag

from .utils import clean_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CssText:
    """Text content of the first element matching a CSS selector."""

    selector: str

    def element(self, document) -> Tag | None:
        found = document.select_one(self.selector)
        return found if isinstance(found, Tag) else None

    def text(self, document) -> str:
        element = self.element(document)
        if element is None:
            return ""
        return clean_text(element.get_text(" "))


@dataclass(frozen=True)
class MetaContent:
    """``content`` attribute of a ``<meta>`` tag, by property or name."""

    key: str
    attribute: str = "property"

    def element(self, document) -> Tag | None:
        found = document.find("meta", attrs={self.attribute: self.key})
        return found if isinstance(found, Tag) else None

    def text(self, document) -> str:
        element = self.element(document)
        if element is None:
            return ""
        content = element.get("content")
        return clean_text(content if isinstance(content, str) else "")


def first_text(document, strategies: Sequence, field: str = "") -> str:
    """Return the first non-empty text produced by ``strategies``."""
    for strategy in strategies:
        value = strategy.text(document)
        if value:
            return value
        logger.debug("No %s via %s", field or "value", strategy)
    return ""


def first_match(document, strategies: Sequence) -> tuple[Tag | None, str]:
    """Like :func:`first_text` but also return the element that produced it."""
    for strategy in strategies:
        value = strategy.text(document)
        if value:
            return strategy.element(document), value
    return None, ""


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "html.parser")
