"""Classify documentation drift into typed, severity-ranked issues.

Each detector is independent and additive: placeholders left over from the
bootstrap template, undocumented files, generic descriptions, missing
mandatory sections, references to files deleted since the last update and,
optionally, broken file references found by the filesystem oracle.
"""

from __future__ import annotations

import re
from datetime import datetime
from fnmatch import fnmatchcase
from pathlib import Path, PurePosixPath
from typing import Callable, List, Optional, Sequence

from ..config import DocSyncConfig
from ..constants import (
    GENERIC_DESCRIPTIONS,
    LOCKFILE_NAMES,
    REQUIRED_SECTIONS,
    SIGNIFICANT_EXTENSIONS,
    TEMPLATE_PLACEHOLDERS,
    is_excluded_dir,
)
from ..describe.base import DescriptionGenerator, describe_path
from ..describe.heuristic import HeuristicDescriber
from ..git.changes import ChangeDetector
from ..logging import get_logger
from ..markdown.sections import parse_sections
from ..models import (
    ChangeSet,
    DocumentationAnalysis,
    DocumentationIssue,
    Health,
    IssueLocation,
    Severity,
    SuggestedFix,
    ValidationIssue,
)
from ..oracles.filesystem import FilesystemOracle
from ..scanner import list_child_files
from ..templating import render_document, render_section
from .timestamps import change_window_start, last_known_update

logger = get_logger("analysis.issues")

_BACKTICK_TOKEN = re.compile(r"`([^`]+)`")
_VALIDATION_SEVERITY: dict[str, Severity] = {"error": "high", "warning": "medium", "info": "low"}


def classify_health(issues: Sequence[DocumentationIssue]) -> Health:
    """Derive the overall health from issue severities."""
    high = sum(1 for issue in issues if issue.severity == "high")
    medium = sum(1 for issue in issues if issue.severity == "medium")
    if high > 0 or medium > 3:
        return "poor"
    if medium > 0 or len(issues) > 2:
        return "needs_attention"
    return "good"


def is_lockfile(name: str) -> bool:
    return name in LOCKFILE_NAMES or fnmatchcase(name, "*.lock") or "-lock." in name


class IssueAnalyzer:
    """Produces a :class:`DocumentationAnalysis` for one knowledge file."""

    def __init__(
        self,
        project_root: Path,
        *,
        config: Optional[DocSyncConfig] = None,
        change_detector: Optional[ChangeDetector] = None,
        describer: Optional[DescriptionGenerator] = None,
        filesystem: Optional[FilesystemOracle] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.project_root = Path(project_root).resolve()
        self.config = config or DocSyncConfig(root=self.project_root)
        self.significant_extensions = tuple(
            ext.lower() for ext in (self.config.analysis.significant_extensions or SIGNIFICANT_EXTENSIONS)
        )
        self.change_detector = change_detector or ChangeDetector(
            significant_extensions=self.significant_extensions
        )
        self.describer = describer or HeuristicDescriber()
        self.filesystem = filesystem or FilesystemOracle(self.project_root)
        self.include_reference_checks = self.config.analysis.include_reference_checks
        self._clock = clock

    def analyze(self, knowledge_file: Path) -> DocumentationAnalysis:
        path = Path(knowledge_file).resolve()
        directory = path.parent
        current_files = list_child_files(directory)

        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.error("Could not read %s: %s", self.filesystem.display_path(path), exc)
            issue = self._unreadable_issue(path, exc, current_files)
            return DocumentationAnalysis(
                file_path=str(path),
                issues=(issue,),
                overall_health=classify_health([issue]),
                files_analyzed=tuple(current_files),
                directory_changes=ChangeSet(),
            )

        last_update = last_known_update(path, content)
        since = change_window_start(last_update, self._clock())
        changes = self._directory_changes(directory, since)

        issues: List[DocumentationIssue] = []
        issues.extend(self.detect_placeholders(content))
        issues.extend(self.detect_missing_files(content, directory, path.name, current_files, changes))
        issues.extend(self.detect_outdated_descriptions(content, directory))
        issues.extend(self.detect_missing_sections(content, directory, current_files))
        issues.extend(self.detect_deleted_references(content, current_files, changes))
        if self.include_reference_checks:
            issues.extend(
                fold_validation_issues(self.filesystem.validate_document(path, content))
            )

        health = classify_health(issues)
        logger.debug("%s: %d issue(s), health %s", path.name, len(issues), health)
        return DocumentationAnalysis(
            file_path=str(path),
            issues=tuple(issues),
            overall_health=health,
            files_analyzed=tuple(current_files),
            directory_changes=changes,
            last_updated=last_update,
        )

    # ------------------------------------------------------------------
    # Detectors

    def detect_placeholders(self, content: str) -> List[DocumentationIssue]:
        issues: List[DocumentationIssue] = []
        for text, section in TEMPLATE_PLACEHOLDERS:
            if text not in content:
                continue
            issues.append(
                DocumentationIssue(
                    type="placeholder_content",
                    severity="medium",
                    description=f"Placeholder content found in {section} section",
                    suggested_fix=SuggestedFix(action="remove_placeholder", target=text),
                    location=IssueLocation(section=section, line=_first_line_containing(content, text)),
                )
            )
        return issues

    def detect_missing_files(
        self,
        content: str,
        directory: Path,
        knowledge_name: str,
        current_files: Sequence[str],
        changes: ChangeSet,
    ) -> List[DocumentationIssue]:
        new_names = {PurePosixPath(path).name for path in changes.new_files if self._is_direct_child(path, directory)}
        issues: List[DocumentationIssue] = []
        for name in current_files:
            if name == knowledge_name or not self.is_significant(name):
                continue
            if name in content:
                continue
            is_new = name in new_names
            issues.append(
                DocumentationIssue(
                    type="missing_files",
                    severity="medium" if is_new else "low",
                    description=(
                        f'New file "{name}" not documented' if is_new else f'File "{name}" not documented'
                    ),
                    suggested_fix=SuggestedFix(
                        action="add_files",
                        content=describe_path(self.describer, directory / name),
                        target=name,
                    ),
                    location=IssueLocation(section="Files"),
                )
            )
        return issues

    def detect_outdated_descriptions(self, content: str, directory: Path) -> List[DocumentationIssue]:
        issues: List[DocumentationIssue] = []
        seen: set[str] = set()
        for number, line in enumerate(content.splitlines(), start=1):
            if not any(phrase in line for phrase in GENERIC_DESCRIPTIONS):
                continue
            match = _BACKTICK_TOKEN.search(line)
            if not match:
                continue
            name = match.group(1)
            if name in seen:
                continue
            seen.add(name)
            issues.append(
                DocumentationIssue(
                    type="outdated_descriptions",
                    severity="low",
                    description=f'Generic description for "{name}" could be improved',
                    suggested_fix=SuggestedFix(
                        action="update_content",
                        content=describe_path(self.describer, directory / name),
                        target=name,
                    ),
                    location=IssueLocation(line=number),
                )
            )
        return issues

    def detect_missing_sections(
        self, content: str, directory: Path, current_files: Sequence[str]
    ) -> List[DocumentationIssue]:
        present = {
            section.heading.strip().lower() for section in parse_sections(content) if section.level == 2
        }
        issues: List[DocumentationIssue] = []
        for name in REQUIRED_SECTIONS:
            if name.lower() in present:
                continue
            body = render_section(
                name,
                files=[f for f in current_files if self.is_significant(f)],
                subdirectories=_child_directories(directory),
            )
            issues.append(
                DocumentationIssue(
                    type="missing_sections",
                    severity="medium",
                    description=f"Missing standard section: {name}",
                    suggested_fix=SuggestedFix(action="add_section", content=body, target=name),
                    location=IssueLocation(section=name),
                )
            )
        return issues

    def detect_deleted_references(
        self, content: str, current_files: Sequence[str], changes: ChangeSet
    ) -> List[DocumentationIssue]:
        issues: List[DocumentationIssue] = []
        reported: set[str] = set()
        existing = set(current_files)
        for deleted in changes.deleted_files:
            name = PurePosixPath(deleted).name
            if name in reported or name in existing or name not in content:
                continue
            reported.add(name)
            issues.append(
                DocumentationIssue(
                    type="missing_files",
                    severity="medium",
                    description=f'Reference to deleted file "{name}" should be removed',
                    suggested_fix=SuggestedFix(action="remove_placeholder", target=name),
                    location=IssueLocation(line=_first_line_containing(content, name)),
                )
            )
        return issues

    # ------------------------------------------------------------------
    # Helpers

    def is_significant(self, name: str) -> bool:
        if name.startswith(".") or is_lockfile(name):
            return False
        return PurePosixPath(name).suffix.lower() in self.significant_extensions

    def _relative_dir(self, directory: Path) -> str:
        try:
            rel = directory.resolve().relative_to(self.project_root).as_posix()
        except ValueError:
            return ""
        return "" if rel == "." else rel

    def _is_direct_child(self, path: str, directory: Path) -> bool:
        parent = PurePosixPath(path).parent.as_posix()
        rel_dir = self._relative_dir(directory)
        return parent == (rel_dir or ".")

    def _directory_changes(self, directory: Path, since: datetime) -> ChangeSet:
        changes = self.change_detector.changes_since(self.project_root, since)
        rel_dir = self._relative_dir(directory)
        if not rel_dir:
            return changes
        prefix = f"{rel_dir}/"

        def within(paths: Sequence[str]) -> tuple[str, ...]:
            return tuple(path for path in paths if path.startswith(prefix))

        return ChangeSet(
            new_files=within(changes.new_files),
            modified_files=within(changes.modified_files),
            deleted_files=within(changes.deleted_files),
            last_commit_date=changes.last_commit_date,
        )

    def _unreadable_issue(
        self, path: Path, exc: BaseException, current_files: Sequence[str]
    ) -> DocumentationIssue:
        template = render_document(
            path.parent.name,
            files=[f for f in current_files if self.is_significant(f)],
            subdirectories=_child_directories(path.parent),
            today=self._clock().date(),
        )
        return DocumentationIssue(
            type="missing_sections",
            severity="high",
            description=f"Knowledge file is missing or unreadable: {exc}",
            suggested_fix=SuggestedFix(action="add_section", content=template),
            location=IssueLocation(line=1),
        )


def fold_validation_issues(issues: Sequence[ValidationIssue]) -> List[DocumentationIssue]:
    """Turn filesystem-oracle findings into report-only documentation issues."""
    folded: List[DocumentationIssue] = []
    for issue in issues:
        description = issue.message
        if issue.suggestion:
            description = f"{description} ({issue.suggestion})"
        target = issue.reference.target if issue.reference is not None else None
        folded.append(
            DocumentationIssue(
                type="inconsistent_structure",
                severity=_VALIDATION_SEVERITY.get(issue.severity, "low"),
                description=description,
                suggested_fix=SuggestedFix(action="update_content", target=target),
                location=IssueLocation(line=issue.location.line),
            )
        )
    return folded


def analyze_documentation(
    knowledge_file: Path, project_root: Path, **kwargs: object
) -> DocumentationAnalysis:
    """Convenience wrapper around :class:`IssueAnalyzer`."""
    return IssueAnalyzer(project_root, **kwargs).analyze(knowledge_file)  # type: ignore[arg-type]


def _first_line_containing(content: str, needle: str) -> Optional[int]:
    for number, line in enumerate(content.splitlines(), start=1):
        if needle in line:
            return number
    return None


def _child_directories(directory: Path) -> List[str]:
    try:
        return sorted(
            child.name for child in directory.iterdir() if child.is_dir() and not is_excluded_dir(child.name)
        )
    except OSError:
        return []


__all__ = [
    "IssueAnalyzer",
    "analyze_documentation",
    "classify_health",
    "fold_validation_issues",
    "is_lockfile",
]
