"""Textual transforms applied by the fix engine.

Every transform takes the current document text and returns the new text.
Insertion points are found by heading text and file names in the text as
it is now, never by line numbers computed earlier, so transforms compose in
any order.
"""

from __future__ import annotations

import re
from typing import List, Optional

from ..constants import CANONICAL_SECTION_ORDER, PLACEHOLDER_REPLACEMENT
from ..markdown.anchors import iter_headings
from ..markdown.blocks import fenced_line_numbers

_HEADING_LINE = re.compile(r"^\s{0,3}#{1,6}\s")
_LIST_LINE = re.compile(r"^\s*[-*+]\s")
_BULLET_NAME = re.compile(r"^\s*[-*+]\s+`([^`]+)`")
_FOOTER_LINE = re.compile(r"^-{3,}\s*$")


def _heading_index(lines: List[str], title: str, level: int, fenced: set[int]) -> Optional[int]:
    pattern = re.compile(rf"^#{{{level}}}\s+{re.escape(title)}\s*#*\s*$", re.IGNORECASE)
    for index, line in enumerate(lines):
        if index + 1 in fenced:
            continue
        if pattern.match(line.strip()):
            return index
    return None


def file_bullet(name: str, description: str) -> str:
    return f"- `{name}` - {description}"


def add_file_entry(text: str, name: str, description: str) -> str:
    """Insert a file bullet under ``### Files``, alphabetically where possible."""
    if f"`{name}`" in text:
        return text
    lines = text.split("\n")
    fenced = fenced_line_numbers(text)
    bullet = file_bullet(name, description)

    files_index = _heading_index(lines, "Files", 3, fenced)
    if files_index is None:
        contents_index = _heading_index(lines, "Contents", 2, fenced)
        if contents_index is None:
            return text
        block = ["", "### Files", bullet]
        after = contents_index + 1
        if after < len(lines) and lines[after].strip():
            block.append("")
        lines[after:after] = block
        return "\n".join(lines)

    start = files_index + 1
    while start < len(lines) and not lines[start].strip():
        start += 1

    last_list: Optional[int] = None
    index = start
    while index < len(lines):
        line = lines[index]
        if not line.strip() or _HEADING_LINE.match(line):
            break
        if _LIST_LINE.match(line):
            match = _BULLET_NAME.match(line)
            if match and match.group(1).lower() > name.lower():
                lines.insert(index, bullet)
                return "\n".join(lines)
            last_list = index
        index += 1

    if last_list is not None:
        lines.insert(last_list + 1, bullet)
        return "\n".join(lines)

    insert_at = files_index + 1
    lines.insert(insert_at, bullet)
    following = insert_at + 1
    if following < len(lines) and lines[following].strip():
        lines.insert(following, "")
    return "\n".join(lines)


def add_section(text: str, title: str, body: str) -> str:
    """Insert ``body`` before the next canonical section, the footer or the end."""
    if any(h.level == 2 and h.title.lower() == title.lower() for h in iter_headings(text)):
        return text

    lines = text.split("\n")
    fenced = fenced_line_numbers(text)
    insert_at: Optional[int] = None

    canonical = [name.lower() for name in CANONICAL_SECTION_ORDER]
    if title.lower() in canonical:
        for later in CANONICAL_SECTION_ORDER[canonical.index(title.lower()) + 1 :]:
            insert_at = _heading_index(lines, later, 2, fenced)
            if insert_at is not None:
                break

    if insert_at is None:
        for index in range(len(lines) - 1, -1, -1):
            if index + 1 not in fenced and _FOOTER_LINE.match(lines[index]):
                insert_at = index
                break

    if insert_at is None:
        insert_at = len(lines)
        if lines and lines[-1] == "":
            insert_at -= 1

    section_lines = body.strip("\n").split("\n")
    block: List[str] = []
    if insert_at > 0 and lines[insert_at - 1].strip():
        block.append("")
    block.extend(section_lines)
    if insert_at < len(lines) and lines[insert_at].strip():
        block.append("")
    lines[insert_at:insert_at] = block
    return "\n".join(lines)


def update_file_description(text: str, name: str, description: str) -> str:
    """Replace the description of the first bullet naming ``name``."""
    pattern = re.compile(rf"^(\s*[-*] `{re.escape(name)}` - ).+$")
    lines = text.split("\n")
    for index, line in enumerate(lines):
        match = pattern.match(line)
        if match:
            lines[index] = match.group(1) + description
            break
    return "\n".join(lines)


def remove_placeholder(text: str, target: str) -> str:
    """Replace a bracketed placeholder, or delete lines naming a stale file."""
    if not target:
        return text
    if target.startswith("["):
        pattern = re.escape(target) if target.endswith("]") else re.escape(target) + r"(?:[^\]\n]*\])?"
        return re.sub(pattern, PLACEHOLDER_REPLACEMENT, text)
    lines = text.split("\n")
    return "\n".join(line for line in lines if target not in line)


__all__ = [
    "add_file_entry",
    "add_section",
    "file_bullet",
    "remove_placeholder",
    "update_file_description",
]
