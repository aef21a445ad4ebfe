"""Heading extraction and GitHub-style anchor normalisation."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Sequence

from .blocks import fenced_line_numbers

HEADING_PATTERN = re.compile(r"^(#{1,6})[ \t]+(.+?)(?:[ \t]+#+)?[ \t]*$")


@dataclass(frozen=True)
class Heading:
    level: int
    title: str
    line: int


def iter_headings(text: str) -> List[Heading]:
    """Return ATX headings outside fenced blocks, in document order."""
    fenced = fenced_line_numbers(text)
    headings: List[Heading] = []
    for index, line in enumerate(text.splitlines(), start=1):
        if index in fenced:
            continue
        match = HEADING_PATTERN.match(line)
        if not match:
            continue
        title = match.group(2).strip()
        if not title:
            continue
        headings.append(Heading(level=len(match.group(1)), title=title, line=index))
    return headings


def normalize_anchor(text: str) -> str:
    """Slugify a heading or anchor the way GitHub renders heading ids."""
    slug = text.strip().lower()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def heading_anchors(text: str) -> List[str]:
    return [normalize_anchor(heading.title) for heading in iter_headings(text)]


def similar_headings(anchor: str, headings: Sequence[Heading]) -> List[str]:
    """Headings whose title contains ``anchor`` as a case-insensitive substring."""
    needle = anchor.lower()
    needle_words = needle.replace("-", " ")
    matches: List[str] = []
    for heading in headings:
        title = heading.title.lower()
        if needle in title or needle_words in title or needle in normalize_anchor(title):
            matches.append(heading.title)
    return matches


__all__ = [
    "HEADING_PATTERN",
    "Heading",
    "heading_anchors",
    "iter_headings",
    "normalize_anchor",
    "similar_headings",
]
