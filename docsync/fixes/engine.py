"""Apply documentation issues as targeted edits to a knowledge file."""

from __future__ import annotations

import re
from datetime import date
from pathlib import Path
from typing import Callable, List, Optional

from ..analysis.timestamps import stamp_last_updated
from ..logging import get_logger
from ..markdown.diff import compute_diff
from ..models import (
    SEVERITY_ORDER,
    DocumentationAnalysis,
    DocumentationIssue,
    FixResult,
    FixSummary,
)
from . import transforms

logger = get_logger("fixes.engine")

Approver = Callable[[DocumentationIssue, str, str], bool]

NO_CHANGES = "no changes would be made"
NO_AUTOMATIC_FIX = "no automatic fix available"
DECLINED = "declined"


class FixEngine:
    """Applies fixes high severity first, threading each result into the next.

    The document is read once and written once; ``dry_run`` skips the write
    but reports the same results and diff.
    """

    def __init__(self, approver: Approver | None = None) -> None:
        self.approver = approver

    def apply(
        self,
        analysis: DocumentationAnalysis,
        *,
        dry_run: bool = False,
        severity_threshold: str = "medium",
        auto_approve: bool = True,
        stamp: bool = False,
        today: Optional[date] = None,
    ) -> FixSummary:
        if severity_threshold not in SEVERITY_ORDER:
            raise ValueError(f"Unknown severity threshold: {severity_threshold}")
        if not auto_approve and self.approver is None:
            raise ValueError("Interactive fixing requires an approver")

        threshold = SEVERITY_ORDER[severity_threshold]
        eligible = [issue for issue in analysis.issues if SEVERITY_ORDER[issue.severity] >= threshold]
        ordered = sorted(eligible, key=lambda issue: -SEVERITY_ORDER[issue.severity])
        path = Path(analysis.file_path)

        try:
            original = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.error("Could not read %s: %s", path, exc)
            results = [
                FixResult(issue=issue, applied=False, reason=f"Could not read {path.name}: {exc}")
                for issue in ordered
            ]
            return _summary(analysis, results)

        current = original
        results: List[FixResult] = []
        for issue in ordered:
            result = self._apply_one(issue, current)
            if result.applied and not auto_approve and self.approver is not None:
                if not self.approver(issue, current, result.changes or current):
                    result = FixResult(issue=issue, applied=False, reason=DECLINED)
            if result.applied and result.changes is not None:
                current = result.changes
            else:
                logger.debug("Skipped fix for %s: %s", issue.description, result.reason)
            results.append(result)

        if stamp and any(result.applied for result in results):
            current = stamp_last_updated(current, today)

        if not dry_run and current != original:
            try:
                path.write_text(current, encoding="utf-8")
            except OSError as exc:
                logger.error("Failed to write fixes to %s: %s", path, exc)
                results = [
                    FixResult(issue=r.issue, applied=False, reason=f"Failed to write changes: {exc}")
                    if r.applied
                    else r
                    for r in results
                ]
                current = original

        summary = _summary(analysis, results)
        summary.diff = compute_diff(original, current, str(path))
        return summary

    def _apply_one(self, issue: DocumentationIssue, content: str) -> FixResult:
        fix = issue.suggested_fix
        try:
            if fix.action == "add_files":
                if not fix.target or fix.content is None:
                    return FixResult(issue=issue, applied=False, reason=NO_AUTOMATIC_FIX)
                updated = transforms.add_file_entry(content, fix.target, fix.content)
            elif fix.action == "add_section":
                if not fix.target or fix.content is None:
                    return FixResult(issue=issue, applied=False, reason=NO_AUTOMATIC_FIX)
                updated = transforms.add_section(content, fix.target, fix.content)
            elif fix.action == "update_content":
                if not fix.target or fix.content is None:
                    return FixResult(issue=issue, applied=False, reason=NO_AUTOMATIC_FIX)
                updated = transforms.update_file_description(content, fix.target, fix.content)
            elif fix.action == "remove_placeholder":
                if not fix.target:
                    return FixResult(issue=issue, applied=False, reason=NO_AUTOMATIC_FIX)
                updated = transforms.remove_placeholder(content, fix.target)
            else:
                return FixResult(issue=issue, applied=False, reason=f"Unknown fix action: {fix.action}")
        except (ValueError, KeyError, TypeError, re.error) as exc:
            return FixResult(issue=issue, applied=False, reason=f"Error applying fix: {exc}")

        if updated == content:
            return FixResult(issue=issue, applied=False, reason=NO_CHANGES)
        return FixResult(issue=issue, applied=True, changes=updated)


def _summary(analysis: DocumentationAnalysis, results: List[FixResult]) -> FixSummary:
    applied = sum(1 for result in results if result.applied)
    return FixSummary(
        file_path=analysis.file_path,
        total_issues=len(analysis.issues),
        fixes_applied=applied,
        fixes_skipped=len(results) - applied,
        results=results,
    )


__all__ = ["Approver", "DECLINED", "FixEngine", "NO_AUTOMATIC_FIX", "NO_CHANGES"]
