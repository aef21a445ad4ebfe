"""Core data models shared across docsync components."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Literal, Optional, Tuple, Union

ReferenceKind = Literal[
    "file",
    "directory",
    "http",
    "https",
    "ftp",
    "mailto",
    "internal",
    "anchor",
    "unknown",
]
ValidationSeverity = Literal["error", "warning", "info"]
ValidationIssueType = Literal[
    "missing_file",
    "missing_directory",
    "invalid_path",
    "directory_mismatch",
    "broken_link",
    "missing_anchor",
    "invalid_email",
]
IssueType = Literal[
    "missing_files",
    "outdated_descriptions",
    "missing_sections",
    "placeholder_content",
    "inconsistent_structure",
]
Severity = Literal["low", "medium", "high"]
FixAction = Literal["add_section", "update_content", "add_files", "remove_placeholder"]
Health = Literal["good", "needs_attention", "poor"]
DiffLineType = Literal["add", "remove", "context"]

SEVERITY_ORDER: dict[str, int] = {"low": 0, "medium": 1, "high": 2}


@dataclass(frozen=True)
class SourceLocation:
    """Where a reference or issue was found in the original document text."""

    file: str
    line: int
    column: Optional[int] = None
    context: str = ""


@dataclass
class Resolution:
    """Outcome of resolving a reference against the filesystem or network."""

    exists: bool = False
    resolved_path: Optional[str] = None
    status_code: Optional[int] = None
    error_message: Optional[str] = None


@dataclass
class FileReference:
    """A mention of a file or directory path inside a document."""

    path: str
    kind: ReferenceKind
    origin: SourceLocation
    resolution: Optional[Resolution] = None

    @property
    def target(self) -> str:
        return self.path


@dataclass
class LinkReference:
    """A markdown link, autolink or bare URL inside a document."""

    url: str
    kind: ReferenceKind
    origin: SourceLocation
    resolution: Optional[Resolution] = None

    @property
    def target(self) -> str:
        return self.url

    @property
    def file_part(self) -> str:
        return self.url.split("#", 1)[0]

    @property
    def anchor(self) -> Optional[str]:
        if "#" not in self.url:
            return None
        return self.url.split("#", 1)[1]


Reference = Union[FileReference, LinkReference]


@dataclass(frozen=True)
class DirectoryStructureClaim:
    """Tree-drawing lines from a fenced block plus the directory they describe.

    ``root`` is relative to the directory containing the document.
    """

    lines: Tuple[str, ...]
    root: str
    origin: SourceLocation


@dataclass
class ValidationIssue:
    """A discrepancy reported by the filesystem or link oracle."""

    type: ValidationIssueType
    severity: ValidationSeverity
    message: str
    location: SourceLocation
    reference: Optional[Reference] = None
    suggestion: Optional[str] = None


@dataclass(frozen=True)
class SuggestedFix:
    action: FixAction
    content: Optional[str] = None
    target: Optional[str] = None


@dataclass(frozen=True)
class IssueLocation:
    section: Optional[str] = None
    line: Optional[int] = None


@dataclass(frozen=True)
class DocumentationIssue:
    """Typed, severity-ranked problem found in a knowledge file."""

    type: IssueType
    severity: Severity
    description: str
    suggested_fix: SuggestedFix
    location: Optional[IssueLocation] = None


@dataclass(frozen=True)
class ChangeSet:
    """Files changed in a project since a given date."""

    new_files: Tuple[str, ...] = ()
    modified_files: Tuple[str, ...] = ()
    deleted_files: Tuple[str, ...] = ()
    last_commit_date: Optional[datetime] = None


@dataclass(frozen=True)
class DocumentationAnalysis:
    """Per-knowledge-file aggregate produced by one analysis run."""

    file_path: str
    issues: Tuple[DocumentationIssue, ...]
    overall_health: Health
    files_analyzed: Tuple[str, ...]
    directory_changes: ChangeSet
    last_updated: Optional[datetime] = None


@dataclass(frozen=True)
class ContentSection:
    """A markdown section owned by an ATX heading (line numbers are 1-based)."""

    heading: str
    content: str
    start_line: int
    end_line: int
    level: int


@dataclass(frozen=True)
class DiffLine:
    type: DiffLineType
    content: str
    line_number: Optional[int] = None


@dataclass(frozen=True)
class FileDiff:
    file_path: str
    old_content: str
    new_content: str
    lines: Tuple[DiffLine, ...]

    @property
    def has_changes(self) -> bool:
        return any(line.type != "context" for line in self.lines)


@dataclass
class FixResult:
    issue: DocumentationIssue
    applied: bool
    reason: Optional[str] = None
    changes: Optional[str] = None


@dataclass
class FixSummary:
    """Outcome of running the fix engine over one knowledge file."""

    file_path: str
    total_issues: int
    fixes_applied: int
    fixes_skipped: int
    results: List[FixResult] = field(default_factory=list)
    diff: Optional[FileDiff] = None
