"""In-process records that flow from the worklist to the profiles table."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

# Reserved separator for flattening sequences into one text column.
DELIMITER = "◙"


class ValidationError(Exception):
    """Raised when a record lacks a field required for storage."""


class LinkSet:
    """Ordered, de-duplicated collection of extracted reference tokens.

    Identity is the trimmed, lower-cased token; the first spelling seen is
    the one kept.
    """

    def __init__(self, tokens: Iterable[str] = ()):
        self._items: dict[str, str] = {}
        self.update(tokens)

    @staticmethod
    def _key(token: str) -> str:
        return token.strip().lower()

    def add(self, token: str) -> bool:
        if not isinstance(token, str):
            return False
        token = token.strip()
        if not token or DELIMITER in token:
            return False
        key = self._key(token)
        if key in self._items:
            return False
        self._items[key] = token
        return True

    def update(self, tokens: Iterable[str]) -> None:
        for token in tokens:
            self.add(token)

    def union(self, *others: Iterable[str]) -> "LinkSet":
        merged = LinkSet(self)
        for other in others:
            merged.update(other)
        return merged

    def join(self) -> str:
        return DELIMITER.join(self._items.values())

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._items.values()))

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, token: object) -> bool:
        return isinstance(token, str) and self._key(token) in self._items

    def __eq__(self, other: object) -> bool:
        if isinstance(other, LinkSet):
            return list(self) == list(other)
        if isinstance(other, (list, tuple)):
            return list(self) == list(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"LinkSet({list(self)!r})"


@dataclass(frozen=True)
class WorkItem:
    """One pending profile URL from the worklist."""

    url: str
    search_id: Any = None


@dataclass
class ExtractedProfile:
    url: str
    show_name: str = ""
    host_name: str = ""
    show_description: str = ""
    links: LinkSet = field(default_factory=LinkSet)
    reviews: str = ""
    rate: str = ""
    category: str = ""


@dataclass
class FinalRecord:
    """A profile merged with its episodes; the only thing written to storage."""

    url: str
    search_id: Any = None
    show_name: str = ""
    host_name: str = ""
    show_description: str = ""
    links: LinkSet = field(default_factory=LinkSet)
    reviews: str = ""
    rate: str = ""
    category: str = ""
    episode_descriptions: list[str] = field(default_factory=list)

    @classmethod
    def from_profile(
        cls,
        profile: ExtractedProfile,
        search_id: Any = None,
        episode_descriptions: Iterable[str] = (),
        episode_links: Iterable[Iterable[str]] = (),
    ) -> "FinalRecord":
        return cls(
            url=profile.url,
            search_id=search_id,
            show_name=profile.show_name,
            host_name=profile.host_name,
            show_description=profile.show_description,
            links=profile.links.union(*episode_links),
            reviews=profile.reviews,
            rate=profile.rate,
            category=profile.category,
            episode_descriptions=[d for d in episode_descriptions if d],
        )

    @property
    def episode_description(self) -> str:
        return DELIMITER.join(self.episode_descriptions)

    def validate(self) -> None:
        if not (self.url or "").strip():
            raise ValidationError("Missing url for profile record")
        if not (self.show_name or "").strip():
            raise ValidationError(f"Missing show name for profile {self.url}")

    def to_row(self) -> dict[str, Any]:
        """Flatten to column values, joining sequences with the delimiter."""
        return {
            "search_id": self.search_id,
            "url": self.url,
            "show_name": self.show_name,
            "host_name": self.host_name,
            "show_description": self.show_description,
            "links": self.links.join(),
            "reviews": self.reviews,
            "rate": self.rate,
            "category": self.category,
            "episode_description": self.episode_description,
        }
