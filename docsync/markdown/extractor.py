"""Extract file, directory and link references from markdown text.

Extraction is a pure function of the text: nothing touches the filesystem or
the network, and malformed markdown simply yields fewer references. Inline
rules run line by line outside fenced blocks; fenced blocks that draw a
directory tree become :class:`~docsync.models.DirectoryStructureClaim` values.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Set, Tuple

from ..constants import WELL_KNOWN_FILES
from ..models import (
    DirectoryStructureClaim,
    FileReference,
    LinkReference,
    Reference,
    ReferenceKind,
    SourceLocation,
)
from .blocks import fenced_line_numbers, infer_tree_root, scan_code_blocks

_MARKDOWN_LINK = re.compile(r"\[([^\]]*)\]\(([^)]+)\)")
_CODE_SPAN = re.compile(r"`([^`]+)`")
_AUTOLINK = re.compile(r"<(https?://[^>]+)>")
_BARE_URL = re.compile(r"(?:^|\s)(https?://[^\s<>]+)")
_BARE_DIRECTORY = re.compile(r"(?:^|\s)([\w\-]+(?:/[\w\-]+)*/)(?=\s|$|[,.;:)])")
_LINK_TITLE = re.compile(r"^(\S+)\s+(?:\"[^\"]*\"|'[^']*'|\([^)]*\))$")
_WELL_KNOWN = tuple(
    (name, re.compile(r"(?<![\w./\\-])" + re.escape(name) + r"(?=$|[\s,.;:)])"))
    for name in WELL_KNOWN_FILES
)
_URL_PREFIXES = ("http://", "https://", "ftp://", "mailto:")
_NON_PATH_CHARS = set("()<>={}*$|\"'")
_TRAILING_URL_PUNCTUATION = ".,;:!?'\")]"


@dataclass(frozen=True)
class ExtractionResult:
    """References in source order plus directory-tree claims."""

    references: Tuple[Reference, ...]
    claims: Tuple[DirectoryStructureClaim, ...]

    @property
    def file_references(self) -> List[FileReference]:
        return [ref for ref in self.references if isinstance(ref, FileReference)]

    @property
    def link_references(self) -> List[LinkReference]:
        return [ref for ref in self.references if isinstance(ref, LinkReference)]


def extract_references(text: str, source: str) -> ExtractionResult:
    """Parse ``text`` (identified by ``source``) into references and tree claims."""
    fenced = fenced_line_numbers(text)
    references: List[Reference] = []
    for number, line in enumerate(text.splitlines(), start=1):
        if number in fenced:
            continue
        references.extend(_extract_line(line, number, source))

    claims = [
        DirectoryStructureClaim(
            lines=block.lines,
            root=infer_tree_root(block.lines),
            origin=SourceLocation(
                file=source,
                line=block.start_line,
                context=block.lines[0].strip() if block.lines else "",
            ),
        )
        for block in scan_code_blocks(text)
        if block.kind == "directory_tree"
    ]
    return ExtractionResult(references=tuple(references), claims=tuple(claims))


def _extract_line(line: str, number: int, source: str) -> List[Reference]:
    found: List[Tuple[int, Reference]] = []
    context = line.strip()

    def location(column: int) -> SourceLocation:
        return SourceLocation(file=source, line=number, column=column + 1, context=context)

    for match in _MARKDOWN_LINK.finditer(line):
        target = _strip_link_title(match.group(2))
        if not target:
            continue
        found.append(
            (
                match.start(),
                LinkReference(url=target, kind=classify_link_target(target), origin=location(match.start())),
            )
        )

    for match in _CODE_SPAN.finditer(line):
        candidate = match.group(1).strip()
        if not looks_like_file_path(candidate):
            continue
        found.append(
            (
                match.start(),
                FileReference(path=candidate, kind=guess_path_type(candidate), origin=location(match.start())),
            )
        )

    for match in _BARE_DIRECTORY.finditer(line):
        candidate = match.group(1)
        if len(candidate) <= 2:
            continue
        found.append(
            (
                match.start(1),
                FileReference(path=candidate, kind="directory", origin=location(match.start(1))),
            )
        )

    for name, pattern in _WELL_KNOWN:
        for match in pattern.finditer(line):
            found.append(
                (
                    match.start(),
                    FileReference(path=name, kind="file", origin=location(match.start())),
                )
            )

    for match in _AUTOLINK.finditer(line):
        url = match.group(1)
        found.append(
            (
                match.start(),
                LinkReference(url=url, kind=classify_link_target(url), origin=location(match.start())),
            )
        )

    for match in _BARE_URL.finditer(line):
        url = match.group(1).rstrip(_TRAILING_URL_PUNCTUATION)
        if not url:
            continue
        found.append(
            (
                match.start(1),
                LinkReference(url=url, kind=classify_link_target(url), origin=location(match.start(1))),
            )
        )

    found.sort(key=lambda item: item[0])
    return list(_dedupe(reference for _, reference in found))


def _dedupe(references: Iterable[Reference]) -> Iterable[Reference]:
    seen: Set[Tuple[str, int]] = set()
    for reference in references:
        key = (reference.target, reference.origin.line)
        if key in seen:
            continue
        seen.add(key)
        yield reference


def _strip_link_title(raw: str) -> str:
    target = raw.strip()
    match = _LINK_TITLE.match(target)
    if match:
        target = match.group(1)
    if target.startswith("<") and target.endswith(">"):
        target = target[1:-1].strip()
    return target


def classify_link_target(target: str) -> ReferenceKind:
    """Classify a link target by scheme, falling back to anchor or internal."""
    lowered = target.lower()
    if lowered.startswith("http://"):
        return "http"
    if lowered.startswith("https://"):
        return "https"
    if lowered.startswith("ftp://"):
        return "ftp"
    if lowered.startswith("mailto:"):
        return "mailto"
    if "#" in target:
        return "anchor"
    return "internal"


def looks_like_file_path(candidate: str) -> bool:
    """Heuristic for inline code spans that name a path rather than code."""
    if len(candidate) <= 2:
        return False
    if "/" not in candidate and "." not in candidate:
        return False
    if any(char.isspace() for char in candidate):
        return False
    if candidate.lower().startswith(_URL_PREFIXES) or "://" in candidate:
        return False
    if any(char in _NON_PATH_CHARS for char in candidate):
        return False
    return True


def guess_path_type(path: str) -> ReferenceKind:
    """Guess whether ``path`` names a file or a directory from its shape alone."""
    if path.endswith("/"):
        return "directory"
    name = path.rsplit("/", 1)[-1]
    if re.search(r"\.[A-Za-z0-9]+$", name) and not name.startswith("."):
        return "file"
    if name.startswith(".") and "." in name[1:]:
        return "file"
    if "/" in path and "." not in path:
        return "directory"
    if "." in path:
        return "file"
    return "unknown"


__all__ = [
    "ExtractionResult",
    "classify_link_target",
    "extract_references",
    "guess_path_type",
    "looks_like_file_path",
]
