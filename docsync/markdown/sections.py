"""Split markdown into heading-owned sections and merge document revisions."""

from __future__ import annotations

from typing import List, Sequence, Set

from ..models import ContentSection
from .anchors import iter_headings


def parse_sections(text: str) -> List[ContentSection]:
    """Return one section per ATX heading; each owns lines up to the next heading."""
    lines = text.splitlines()
    headings = iter_headings(text)
    sections: List[ContentSection] = []
    for position, heading in enumerate(headings):
        if position + 1 < len(headings):
            end_line = headings[position + 1].line - 1
        else:
            end_line = max(len(lines), heading.line)
        body = lines[heading.line : end_line]
        sections.append(
            ContentSection(
                heading=heading.title,
                content="\n".join(body),
                start_line=heading.line,
                end_line=end_line,
                level=heading.level,
            )
        )
    return sections


def section_key(section: ContentSection) -> str:
    """Sections match across revisions by heading text, ignoring case and padding."""
    return section.heading.strip().lower()


def merge_sections(
    old_sections: Sequence[ContentSection], new_sections: Sequence[ContentSection]
) -> List[ContentSection]:
    """Prefer regenerated sections and keep sections only the old text has.

    New sections come first in their own order; old sections whose heading
    the new text lacks follow unchanged, in old order. Each heading is
    emitted once.
    """
    merged: List[ContentSection] = []
    seen: Set[str] = set()
    for section in list(new_sections) + list(old_sections):
        key = section_key(section)
        if key in seen:
            continue
        seen.add(key)
        merged.append(section)
    return merged


def render_sections(sections: Sequence[ContentSection]) -> str:
    blocks: List[str] = []
    for section in sections:
        heading = f"{'#' * section.level} {section.heading}"
        blocks.append(f"{heading}\n{section.content}" if section.content else heading)
    return "\n".join(blocks)


def merge_documents(old_text: str, new_text: str) -> str:
    """Merge two revisions of a document, keeping the new preamble."""
    new_sections = parse_sections(new_text)
    if not new_sections:
        preamble = new_text.rstrip("\n")
    else:
        preamble = "\n".join(new_text.splitlines()[: new_sections[0].start_line - 1])
    body = render_sections(merge_sections(parse_sections(old_text), new_sections))
    parts = [part for part in (preamble, body) if part]
    merged = "\n".join(parts)
    if new_text.endswith("\n") and not merged.endswith("\n"):
        merged += "\n"
    return merged


__all__ = [
    "merge_documents",
    "merge_sections",
    "parse_sections",
    "render_sections",
    "section_key",
]
