"""Knowledge-file discovery and directory listing utilities."""

from __future__ import annotations

import os
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterator, List, Sequence

from .config import DocSyncConfig
from .constants import KNOWLEDGE_FILE_NAMES, is_excluded_dir
from .logging import get_logger

logger = get_logger("scanner")


@dataclass
class ExcludeRule:
    """An ``exclude_paths`` entry from .docsync.yml."""

    pattern: str
    directory_only: bool
    anchored: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False

        if self.anchored or self.has_slash:
            if fnmatchcase(rel_path, self.pattern):
                return True
            return rel_path.startswith(f"{self.pattern}/")

        return any(fnmatchcase(part, self.pattern) for part in rel_path.split("/"))


def build_exclude_rule(pattern: str) -> ExcludeRule | None:
    pattern = pattern.strip()
    if not pattern:
        return None

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern.rstrip("/")

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern.lstrip("/")

    return ExcludeRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        has_slash="/" in pattern,
    )


def _should_exclude(rel_path: str, is_dir: bool, rules: Sequence[ExcludeRule]) -> bool:
    return any(rule.matches(rel_path, is_dir) for rule in rules)


def _iter_directories(root: Path, rules: Sequence[ExcludeRule]) -> Iterator[tuple[Path, List[str]]]:
    for dirpath, dirnames, filenames in os.walk(root):
        current_dir = Path(dirpath)
        rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

        kept = []
        for name in sorted(dirnames):
            if is_excluded_dir(name):
                continue
            rel_path = f"{rel_dir}/{name}" if rel_dir else name
            if _should_exclude(rel_path, True, rules):
                continue
            kept.append(name)
        dirnames[:] = kept

        yield current_dir, filenames


class KnowledgeScanner:
    """Finds the knowledge file of every directory under a project root."""

    def __init__(self, config: DocSyncConfig | None = None) -> None:
        self.config = config

    def scan(self, root: str | Path) -> List[Path]:
        """Return knowledge files in walk order, one per directory at most."""
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Project path not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Project path is not a directory: {root}")

        names = list(self.config.knowledge_files) if self.config else list(KNOWLEDGE_FILE_NAMES)
        rules = [
            rule
            for rule in (build_exclude_rule(p) for p in (self.config.exclude_paths if self.config else []))
            if rule is not None
        ]

        found: List[Path] = []
        for directory, filenames in _iter_directories(root_path, rules):
            present = set(filenames)
            for name in names:
                if name in present:
                    found.append(directory / name)
                    break
        logger.debug("Discovered %d knowledge file(s) under %s", len(found), root_path)
        return found


def list_child_files(directory: Path) -> List[str]:
    """Names of the regular files directly inside ``directory``, sorted."""
    try:
        entries = sorted(os.scandir(directory), key=lambda entry: entry.name)
    except OSError:
        return []
    return [entry.name for entry in entries if entry.is_file()]


def list_tree_files(directory: Path) -> List[str]:
    """Relative POSIX paths of every file below ``directory``.

    Dot-prefixed directories are not descended into.
    """
    files: List[str] = []
    for dirpath, dirnames, filenames in os.walk(directory):
        dirnames[:] = sorted(name for name in dirnames if not name.startswith("."))
        current = Path(dirpath)
        rel_dir = current.relative_to(directory).as_posix() if current != directory else ""
        for filename in sorted(filenames):
            files.append(f"{rel_dir}/{filename}" if rel_dir else filename)
    return files


__all__ = [
    "ExcludeRule",
    "KnowledgeScanner",
    "build_exclude_rule",
    "list_child_files",
    "list_tree_files",
]
