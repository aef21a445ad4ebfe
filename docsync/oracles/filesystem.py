"""Resolve extracted file references against the real filesystem."""

from __future__ import annotations

import os
from pathlib import Path, PurePosixPath
from typing import List, Optional, Sequence

from ..logging import get_logger
from ..markdown.blocks import parse_tree_entries
from ..markdown.extractor import extract_references
from ..models import (
    DirectoryStructureClaim,
    FileReference,
    Resolution,
    SourceLocation,
    ValidationIssue,
)
from ..scanner import list_tree_files

logger = get_logger("oracles.filesystem")

_MAX_SUGGESTIONS = 3


class FilesystemOracle:
    """Checks file and directory claims relative to the documents that make them."""

    def __init__(self, project_root: Path) -> None:
        self.project_root = Path(project_root).resolve()

    def resolve_path(self, target: str, document_path: Path) -> Path:
        """Map a path as written in a document to an absolute path.

        Paths resolve against the document's directory; a leading ``/`` means
        the project root.
        """
        cleaned = target.replace("\\", "/")
        if cleaned.startswith("/"):
            base = self.project_root
            cleaned = cleaned.lstrip("/")
        else:
            base = Path(document_path).resolve().parent
        return Path(os.path.normpath(base / cleaned)) if cleaned else base

    def resolve(self, reference: FileReference, document_path: Path) -> List[ValidationIssue]:
        """Fill ``reference.resolution`` and return the issues it raises (zero or one)."""
        resolved = self.resolve_path(reference.path, document_path)
        exists = resolved.exists()
        reference.resolution = Resolution(exists=exists, resolved_path=str(resolved))

        if exists:
            return self._check_kind(reference, resolved)

        if reference.kind == "file":
            return [
                ValidationIssue(
                    type="missing_file",
                    severity="error",
                    message=f"File not found: {reference.path}",
                    location=reference.origin,
                    reference=reference,
                    suggestion=self._suggest(reference.path, resolved, directories=False),
                )
            ]
        if reference.kind == "directory":
            return [
                ValidationIssue(
                    type="missing_directory",
                    severity="error",
                    message=f"Directory not found: {reference.path}",
                    location=reference.origin,
                    reference=reference,
                    suggestion=self._suggest(reference.path, resolved, directories=True),
                )
            ]
        return []

    def _check_kind(self, reference: FileReference, resolved: Path) -> List[ValidationIssue]:
        if reference.kind == "file" and resolved.is_dir():
            message = f"Expected a file but found a directory: {reference.path}"
            suggestion = f"Reference the directory as `{reference.path.rstrip('/')}/`"
        elif reference.kind == "directory" and resolved.is_file():
            message = f"Expected a directory but found a file: {reference.path}"
            suggestion = f"Reference the file as `{reference.path.rstrip('/')}`"
        else:
            return []
        return [
            ValidationIssue(
                type="directory_mismatch",
                severity="warning",
                message=message,
                location=reference.origin,
                reference=reference,
                suggestion=suggestion,
            )
        ]

    def suggestions_for(self, resolved: Path, *, directories: bool = False) -> List[str]:
        """Up to three siblings whose stem resembles the missing entry's stem."""
        parent = resolved.parent
        try:
            entries = sorted(os.scandir(parent), key=lambda entry: entry.name)
        except OSError:
            return []

        wanted = _stem(resolved.name).lower()
        if not wanted:
            return []
        matches: List[str] = []
        for entry in entries:
            if entry.name == resolved.name:
                continue
            if directories and not entry.is_dir():
                continue
            candidate = _stem(entry.name).lower()
            if not candidate:
                continue
            if wanted in candidate or candidate in wanted:
                matches.append(entry.name)
            if len(matches) >= _MAX_SUGGESTIONS:
                break
        return matches

    def _suggest(self, written: str, resolved: Path, *, directories: bool) -> str:
        matches = self.suggestions_for(resolved, directories=directories)
        if matches:
            prefix = str(PurePosixPath(written.rstrip("/")).parent)
            shown = [name if prefix in {".", ""} else f"{prefix}/{name}" for name in matches]
            return f"Did you mean: {', '.join(shown)}?"
        if directories:
            return "Check if the directory path is correct and the directory exists."
        return "Check if the file path is correct and the file exists."

    def claim_root(self, claim: DirectoryStructureClaim, document_path: Path) -> Path:
        doc_dir = Path(document_path).resolve().parent
        if claim.root in {"", "."}:
            return doc_dir
        candidate = Path(os.path.normpath(doc_dir / claim.root))
        if not candidate.exists() and PurePosixPath(claim.root).name == doc_dir.name:
            # A tree drawn from the document's own directory name.
            return doc_dir
        return candidate

    def validate_structure(
        self, claim: DirectoryStructureClaim, document_path: Path
    ) -> List[ValidationIssue]:
        """Report claimed files absent on disk; extra real files are never flagged."""
        root = self.claim_root(claim, document_path)
        actual = set(list_tree_files(root)) if root.is_dir() else set()
        prefix = "" if claim.root in {"", "."} or root == Path(document_path).resolve().parent else claim.root

        issues: List[ValidationIssue] = []
        for entry in parse_tree_entries(claim.lines):
            if entry.is_dir or "#" in entry.raw:
                continue
            if "." not in PurePosixPath(entry.path).name:
                continue
            if entry.path in actual:
                continue
            shown = f"{prefix}/{entry.path}" if prefix else entry.path
            issues.append(
                ValidationIssue(
                    type="missing_file",
                    severity="warning",
                    message=f"File mentioned in directory structure but not found: {shown}",
                    location=SourceLocation(
                        file=claim.origin.file,
                        line=claim.origin.line + entry.offset + 1,
                        context=entry.raw.strip(),
                    ),
                    reference=FileReference(
                        path=shown,
                        kind="file",
                        origin=claim.origin,
                        resolution=Resolution(exists=False, resolved_path=str(root / entry.path)),
                    ),
                    suggestion=f"Check if {shown} exists or update the directory structure documentation",
                )
            )
        return issues

    def validate_document(
        self, document_path: Path, content: Optional[str] = None
    ) -> List[ValidationIssue]:
        """Validate every file reference and tree claim in one document.

        An unreadable document yields a single ``invalid_path`` error.
        """
        document_path = Path(document_path)
        source = self.display_path(document_path)
        if content is None:
            try:
                content = document_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                logger.error("Could not read %s: %s", source, exc)
                return [unreadable_document_issue(source, exc)]

        extraction = extract_references(content, source)
        issues: List[ValidationIssue] = []
        for reference in extraction.file_references:
            issues.extend(self.resolve(reference, document_path))
        for claim in extraction.claims:
            issues.extend(self.validate_structure(claim, document_path))
        logger.debug("%s: %d filesystem issue(s)", source, len(issues))
        return issues

    def display_path(self, path: Path) -> str:
        resolved = Path(path).resolve()
        try:
            return resolved.relative_to(self.project_root).as_posix()
        except ValueError:
            return str(path)


def unreadable_document_issue(source: str, exc: BaseException) -> ValidationIssue:
    return ValidationIssue(
        type="invalid_path",
        severity="error",
        message=f"Could not read documentation file: {exc}",
        location=SourceLocation(file=source, line=1),
        suggestion="Check that the file exists and is readable.",
    )


def _stem(name: str) -> str:
    stem = PurePosixPath(name).stem
    return stem or name


def count_by_severity(issues: Sequence[ValidationIssue], severity: str) -> int:
    return sum(1 for issue in issues if issue.severity == severity)


__all__ = ["FilesystemOracle", "count_by_severity", "unreadable_document_issue"]
