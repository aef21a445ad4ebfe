"""Issue detection and health classification for knowledge files."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from docsync.analysis.issues import IssueAnalyzer, classify_health, fold_validation_issues, is_lockfile
from docsync.config import DocSyncConfig
from docsync.git.changes import ChangeDetector
from docsync.models import DocumentationIssue, SourceLocation, SuggestedFix, ValidationIssue
from tests._fixtures.fake_git import FakeGit, no_git
from tests._fixtures.project_builder import ProjectBuilder

KNOWLEDGE = """
# src

## Overview

This directory contains [brief description of the directory's purpose].

## Contents

### Files
- `index.ts` - Core application module
- `removed.ts` - Helper that used to live here

## Notes

Nothing yet.

---

*Last updated: 2024-05-01*
"""


class StubDescriber:
    def describe(self, file_path: Path, content: str) -> str:
        return f"Describes {Path(file_path).name}"


def _issue(severity: str) -> DocumentationIssue:
    return DocumentationIssue(
        type="missing_files",
        severity=severity,  # type: ignore[arg-type]
        description="x",
        suggested_fix=SuggestedFix(action="add_files"),
    )


def _analyzer(root: Path, runner, *, reference_checks: bool = False) -> IssueAnalyzer:  # type: ignore[no-untyped-def]
    config = DocSyncConfig(root=root)
    config.analysis.include_reference_checks = reference_checks
    return IssueAnalyzer(
        root,
        config=config,
        change_detector=ChangeDetector(runner=runner),
        describer=StubDescriber(),
        clock=lambda: datetime(2024, 6, 1, 12, 0),
    )


@pytest.mark.parametrize(
    "severities, expected",
    [
        ([], "good"),
        (["low"], "good"),
        (["low", "low"], "good"),
        (["low", "low", "low"], "needs_attention"),
        (["medium"], "needs_attention"),
        (["high"], "poor"),
        (["medium"] * 3, "needs_attention"),
        (["medium"] * 4, "poor"),
    ],
)
def test_classify_health(severities: list, expected: str) -> None:
    assert classify_health([_issue(severity) for severity in severities]) == expected


def test_is_lockfile() -> None:
    assert is_lockfile("package-lock.json")
    assert is_lockfile("yarn.lock")
    assert is_lockfile("deps.lock")
    assert is_lockfile("custom-lock.yaml")
    assert not is_lockfile("locker.ts")


def test_analyze_reports_each_kind_of_drift(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "src/KNOWLEDGE.md": KNOWLEDGE,
            "src/index.ts": "export const main = () => 1;\n",
            "src/legacy.ts": "export {};\n",
            "src/new.ts": "export class Widget {}\n",
            "src/package-lock.json": "{}\n",
            "src/.hidden.ts": "",
            "src/style.css": "",
            "src/nested/deep.ts": "",
        }
    )
    runner = FakeGit("A\tsrc/new.ts\nA\tsrc/nested/deep.ts\nM\tsrc/legacy.ts\nD\tsrc/removed.ts\nA\tother/x.ts\n")
    analyzer = _analyzer(project_builder.path(), runner)

    analysis = analyzer.analyze(project_builder.path("src/KNOWLEDGE.md"))

    summary = [(issue.type, issue.severity, issue.suggested_fix.target) for issue in analysis.issues]
    assert summary == [
        ("placeholder_content", "medium", "[brief description of the directory's purpose]"),
        ("missing_files", "low", "legacy.ts"),
        ("missing_files", "medium", "new.ts"),
        ("outdated_descriptions", "low", "index.ts"),
        ("missing_sections", "medium", "Purpose"),
        ("missing_files", "medium", "removed.ts"),
    ]
    placeholder, legacy, new, outdated, purpose, deleted = analysis.issues
    assert placeholder.location is not None and placeholder.location.line == 5
    assert placeholder.location.section == "Overview"
    assert new.description == 'New file "new.ts" not documented'
    assert new.suggested_fix.content == "Describes new.ts"
    assert legacy.description == 'File "legacy.ts" not documented'
    assert outdated.suggested_fix.action == "update_content"
    assert outdated.suggested_fix.content == "Describes index.ts"
    assert purpose.suggested_fix.content is not None
    assert purpose.suggested_fix.content.startswith("## Purpose\n")
    assert deleted.suggested_fix.action == "remove_placeholder"

    assert analysis.overall_health == "poor"
    assert analysis.last_updated == datetime(2024, 5, 1)
    assert analysis.directory_changes.new_files == ("src/nested/deep.ts", "src/new.ts")
    assert analysis.directory_changes.deleted_files == ("src/removed.ts",)
    assert "--since=2024-05-01" in next(cmd for cmd, _ in runner.calls if "--name-status" in cmd)


def test_deleted_reference_is_skipped_when_file_still_exists(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "KNOWLEDGE.md": "# P\n\n## Overview\n\n## Contents\n\n- `app.ts` - Entry\n\n## Purpose\n\nRuns.\n",
            "app.ts": "",
        }
    )
    analyzer = _analyzer(project_builder.path(), FakeGit("D\tapp.ts\nA\tapp.ts\nD\tsrc/app.ts\n"))

    analysis = analyzer.analyze(project_builder.path("KNOWLEDGE.md"))

    assert analysis.issues == ()
    assert analysis.overall_health == "good"


def test_missing_document_yields_single_high_issue(project_builder: ProjectBuilder) -> None:
    project_builder.write({"lib/util.ts": "export {};\n"})
    analyzer = _analyzer(project_builder.path(), no_git)

    analysis = analyzer.analyze(project_builder.path("lib/KNOWLEDGE.md"))

    assert len(analysis.issues) == 1
    issue = analysis.issues[0]
    assert issue.severity == "high"
    assert issue.type == "missing_sections"
    assert issue.suggested_fix.action == "add_section"
    assert issue.suggested_fix.target is None
    assert issue.suggested_fix.content is not None
    assert issue.suggested_fix.content.startswith("# lib\n")
    assert "- `util.ts` - [description]" in issue.suggested_fix.content
    assert "*Created: 2024-06-01*" in issue.suggested_fix.content
    assert analysis.overall_health == "poor"


def test_reference_checks_fold_into_inconsistent_structure(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "KNOWLEDGE.md": (
                "# P\n\n## Overview\n\nSee `missing.ts`.\n\n## Contents\n\n- `app.ts` - Entry\n\n"
                "## Purpose\n\nRuns.\n"
            ),
            "app.ts": "",
        }
    )
    analyzer = _analyzer(project_builder.path(), no_git, reference_checks=True)

    analysis = analyzer.analyze(project_builder.path("KNOWLEDGE.md"))

    assert [(issue.type, issue.severity) for issue in analysis.issues] == [("inconsistent_structure", "high")]
    issue = analysis.issues[0]
    assert issue.suggested_fix.action == "update_content"
    assert issue.suggested_fix.target == "missing.ts"
    assert issue.suggested_fix.content is None
    assert issue.description.startswith("File not found: missing.ts")
    assert issue.location is not None and issue.location.line == 5


def test_fold_validation_issues_maps_severities() -> None:
    issues = [
        ValidationIssue(
            type="missing_file",
            severity=severity,  # type: ignore[arg-type]
            message="m",
            location=SourceLocation(file="K.md", line=2),
        )
        for severity in ("error", "warning", "info")
    ]

    folded = fold_validation_issues(issues)

    assert [issue.severity for issue in folded] == ["high", "medium", "low"]
    assert all(issue.suggested_fix.target is None for issue in folded)
