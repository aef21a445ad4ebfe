"""Fenced code block scanning and directory-tree classification."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Literal, Sequence, Set, Tuple

BlockKind = Literal["generic", "directory_tree"]

_FENCE_PATTERN = re.compile(r"^\s{0,3}(`{3,}|~{3,})(.*)$")
_TREE_GLYPHS = ("├──", "└──", "│")
_TREE_WORD = re.compile(r"\btree\b", re.IGNORECASE)
_TREE_ENTRY = re.compile(r"^(?P<prefix>[\s│|]*)(?:├──|└──|├─|└─|\|--|`--|\+--)\s*(?P<name>.*)$")
_TREE_PEEK_LINES = 5


@dataclass(frozen=True)
class CodeBlock:
    """A fenced block; ``start_line`` is the 1-based line of the opening fence."""

    kind: BlockKind
    info: str
    start_line: int
    end_line: int
    lines: Tuple[str, ...]


@dataclass(frozen=True)
class TreeEntry:
    """One named entry of a tree drawing, with its path relative to the tree root."""

    path: str
    is_dir: bool
    offset: int
    raw: str


def scan_code_blocks(text: str) -> List[CodeBlock]:
    """Return every fenced block in ``text``; an unclosed fence runs to the end."""
    lines = text.splitlines()
    blocks: List[CodeBlock] = []
    index = 0
    while index < len(lines):
        match = _FENCE_PATTERN.match(lines[index])
        if not match:
            index += 1
            continue
        fence = match.group(1)
        info = match.group(2).strip()
        start = index
        body: List[str] = []
        index += 1
        while index < len(lines):
            closing = _FENCE_PATTERN.match(lines[index])
            if (
                closing
                and closing.group(1)[0] == fence[0]
                and len(closing.group(1)) >= len(fence)
                and not closing.group(2).strip()
            ):
                break
            body.append(lines[index])
            index += 1
        end = min(index, len(lines) - 1)
        blocks.append(
            CodeBlock(
                kind=classify_block(info, body),
                info=info,
                start_line=start + 1,
                end_line=end + 1,
                lines=tuple(body),
            )
        )
        index += 1
    return blocks


def classify_block(info: str, lines: Sequence[str]) -> BlockKind:
    """Decide whether a fenced block draws a directory tree."""
    peek = [info, *lines[:_TREE_PEEK_LINES]]
    for candidate in peek:
        if any(glyph in candidate for glyph in _TREE_GLYPHS):
            return "directory_tree"
        if _TREE_WORD.search(candidate):
            return "directory_tree"
    return "generic"


def fenced_line_numbers(text: str) -> Set[int]:
    """Return the 1-based line numbers covered by fenced blocks, fences included."""
    covered: Set[int] = set()
    for block in scan_code_blocks(text):
        covered.update(range(block.start_line, block.end_line + 1))
    return covered


def infer_tree_root(lines: Sequence[str]) -> str:
    """Pick the directory a tree drawing describes, relative to the document.

    A leading plain line such as ``src/`` names that child directory; anything
    else describes the document's own directory.
    """
    for line in lines:
        stripped = line.strip()
        if not stripped:
            continue
        if _TREE_ENTRY.match(line) or any(glyph in stripped for glyph in _TREE_GLYPHS):
            return "."
        token = stripped.split()[0]
        if token.endswith("/") and token not in {"./", "/"}:
            return token.rstrip("/")
        return "."
    return "."


def parse_tree_entries(lines: Sequence[str]) -> List[TreeEntry]:
    """Flatten a tree drawing into entries with paths relative to its root."""
    raw_entries: List[Tuple[int, str, int, str]] = []
    for offset, line in enumerate(lines):
        match = _TREE_ENTRY.match(line)
        if not match:
            continue
        name = match.group("name").strip()
        if not name:
            continue
        token = name.split()[0]
        if token.startswith("#"):
            continue
        raw_entries.append((len(match.group("prefix")), token, offset, line))

    if not raw_entries:
        return []

    positive = [column for column, _, _, _ in raw_entries if column > 0]
    unit = min(positive) if positive else 4

    entries: List[TreeEntry] = []
    stack: List[str] = []
    for column, token, offset, line in raw_entries:
        depth = column // unit
        del stack[depth:]
        is_dir = token.endswith("/") or "." not in token
        name = token.rstrip("/")
        path = "/".join([*stack, name])
        entries.append(TreeEntry(path=path, is_dir=is_dir, offset=offset, raw=line))
        if is_dir:
            stack.append(name)
    return entries


__all__ = [
    "BlockKind",
    "CodeBlock",
    "TreeEntry",
    "classify_block",
    "fenced_line_numbers",
    "infer_tree_root",
    "parse_tree_entries",
    "scan_code_blocks",
]
