"""Heuristic parsing of the rating/review metadata line."""

from __future__ import annotations

import re
from typing import NamedTuple

from .utils import clean_text

_NUMBER = r"[0-9]+(?:\.[0-9]+)?"
_PAREN_RE = re.compile(rf"({_NUMBER})\s*\(([^)]+)\)")
_NUMBER_RE = re.compile(_NUMBER)


class RatingInfo(NamedTuple):
    rate: str
    reviews: str


def parse_reviews_and_rate(metadata_text) -> RatingInfo:
    """Split a line like ``4.5 (1,203 Ratings)`` into rate and reviews.

    Falls back to the first two numbers, then to the first number with the
    whole line as the reviews description.
    """
    cleaned = clean_text(metadata_text)
    if not cleaned:
        return RatingInfo(rate="", reviews="")

    paren = _PAREN_RE.search(cleaned)
    if paren:
        return RatingInfo(rate=paren.group(1), reviews=paren.group(2))

    numbers = _NUMBER_RE.findall(cleaned)
    if len(numbers) >= 2:
        return RatingInfo(rate=numbers[0], reviews=numbers[1])

    return RatingInfo(rate=numbers[0] if numbers else "", reviews=cleaned)
