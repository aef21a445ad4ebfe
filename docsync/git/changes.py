"""Detect project files changed since a date, via git history or mtimes."""

from __future__ import annotations

import os
import subprocess
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from ..constants import SIGNIFICANT_EXTENSIONS, is_excluded_dir, is_test_file
from ..logging import get_logger
from ..models import ChangeSet

logger = get_logger("git.changes")

Runner = Callable[..., str]


class ChangeDetector:
    """Answers "which files changed since X" for a project root.

    Git history is preferred; roots outside a repository (or a failing git
    binary) fall back to modification times, which can only report modified
    files.
    """

    def __init__(
        self,
        runner: Runner | None = None,
        *,
        significant_extensions: Sequence[str] = SIGNIFICANT_EXTENSIONS,
    ) -> None:
        self._runner = runner or self._default_runner
        self.significant_extensions = tuple(ext.lower() for ext in significant_extensions)

    def changes_since(self, root: Path, since: datetime) -> ChangeSet:
        root = Path(root)
        if not self._is_repository(root):
            logger.warning("Git not available - using file system timestamps for change detection")
            return self._filesystem_changes(root, since)
        try:
            return self._git_changes(root, since)
        except (subprocess.CalledProcessError, OSError) as exc:
            logger.warning("Git command failed (%s) - falling back to file system timestamps", exc)
            return self._filesystem_changes(root, since)

    def is_relevant(self, path: str) -> bool:
        """Significant extension, no excluded directory, not a test file."""
        posix = PurePosixPath(path.replace("\\", "/"))
        if any(is_excluded_dir(part) for part in posix.parts[:-1]):
            return False
        if is_test_file(posix.name):
            return False
        return posix.suffix.lower() in self.significant_extensions

    # ------------------------------------------------------------------
    # Internals

    def _is_repository(self, root: Path) -> bool:
        try:
            self._run(["git", "rev-parse", "--git-dir"], cwd=root, capture_output=True)
        except (subprocess.CalledProcessError, OSError):
            return False
        return True

    def _git_changes(self, root: Path, since: datetime) -> ChangeSet:
        last_commit = self._last_commit_date(root)
        output = self._run(
            [
                "git",
                "log",
                f"--since={since:%Y-%m-%d}",
                "--reverse",
                "--name-status",
                "--pretty=format:",
                "--relative",
            ],
            cwd=root,
            capture_output=True,
        )
        states = fold_name_status(output.splitlines())
        relevant = {path: state for path, state in states.items() if self.is_relevant(path)}
        return ChangeSet(
            new_files=tuple(sorted(p for p, s in relevant.items() if s == "added")),
            modified_files=tuple(sorted(p for p, s in relevant.items() if s == "modified")),
            deleted_files=tuple(sorted(p for p, s in relevant.items() if s == "deleted")),
            last_commit_date=last_commit,
        )

    def _last_commit_date(self, root: Path) -> Optional[datetime]:
        try:
            output = self._run(["git", "log", "-1", "--format=%cI"], cwd=root, capture_output=True)
        except (subprocess.CalledProcessError, OSError):
            return None
        try:
            return datetime.fromisoformat(output.strip()) if output.strip() else None
        except ValueError:
            return None

    def _filesystem_changes(self, root: Path, since: datetime) -> ChangeSet:
        threshold = since.timestamp()
        modified: List[str] = []
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames[:] = sorted(name for name in dirnames if not is_excluded_dir(name))
            current = Path(dirpath)
            for filename in sorted(filenames):
                path = current / filename
                rel_path = path.relative_to(root).as_posix()
                if not self.is_relevant(rel_path):
                    continue
                try:
                    if path.stat().st_mtime > threshold:
                        modified.append(rel_path)
                except OSError:
                    continue
        return ChangeSet(modified_files=tuple(modified))

    def _run(self, args: Iterable[str], *, cwd: Path, capture_output: bool = False) -> str:
        return self._runner(args, cwd=cwd, capture_output=capture_output)

    @staticmethod
    def _default_runner(
        args: Iterable[str],
        *,
        cwd: Path,
        capture_output: bool = False,
    ) -> str:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd),
            check=True,
            text=True,
            capture_output=capture_output,
        )
        return completed.stdout if capture_output else ""


def fold_name_status(lines: Iterable[str]) -> Dict[str, str]:
    """Fold chronological ``--name-status`` lines into a final state per path.

    States are ``added``, ``modified`` and ``deleted``. A rename deletes the
    old path and adds the new one; a path added and deleted inside the window
    disappears.
    """
    states: Dict[str, str] = {}

    def added(path: str) -> None:
        states[path] = "modified" if states.get(path) == "deleted" else "added"

    def modified(path: str) -> None:
        if states.get(path) != "added":
            states[path] = "modified"

    def deleted(path: str) -> None:
        if states.get(path) == "added":
            del states[path]
        else:
            states[path] = "deleted"

    for line in lines:
        parts = line.strip().split("\t")
        if len(parts) < 2 or not parts[0]:
            continue
        status = parts[0][0]
        if status == "A":
            added(parts[1])
        elif status == "M" or status == "T":
            modified(parts[1])
        elif status == "D":
            deleted(parts[1])
        elif status == "R" and len(parts) >= 3:
            deleted(parts[1])
            added(parts[2])
        elif status == "C" and len(parts) >= 3:
            added(parts[2])
    return states


__all__ = ["ChangeDetector", "Runner", "fold_name_status"]
