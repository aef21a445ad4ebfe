from __future__ import annotations

from docsync.models import (
    ChangeSet,
    DocumentationAnalysis,
    DocumentationIssue,
    FixResult,
    FixSummary,
    SourceLocation,
    SuggestedFix,
    ValidationIssue,
)
from docsync.report import (
    DocumentFailure,
    DocumentUpdate,
    DocumentValidation,
    UpdateReport,
    ValidationReport,
    render_update_report,
    render_validation_report,
)


def _validation_issue(severity: str, message: str, line: int) -> ValidationIssue:
    return ValidationIssue(
        type="missing_file",
        severity=severity,  # type: ignore[arg-type]
        message=message,
        location=SourceLocation(file="src/KNOWLEDGE.md", line=line, context="- `config.yaml`"),
        suggestion="Did you mean: config.yml?" if severity == "error" else None,
    )


def test_validation_report_lists_issues_and_summary() -> None:
    report = ValidationReport(
        documents=[
            DocumentValidation(
                path="src/KNOWLEDGE.md",
                issues=[
                    _validation_issue("error", "File not found: config.yaml", 3),
                    _validation_issue("warning", "Anchor not found: #setup", 9),
                ],
            ),
            DocumentValidation(path="README.md"),
        ],
        failures=[DocumentFailure(path="lib/README.md", error="boom")],
    )

    rendered = render_validation_report(report)

    assert "src/KNOWLEDGE.md\n  ERROR line 3: File not found: config.yaml\n" in rendered
    assert "      > - `config.yaml`" in rendered
    assert "      Suggestion: Did you mean: config.yml?" in rendered
    assert "  WARNING line 9: Anchor not found: #setup" in rendered
    assert "README.md\n  No issues found" in rendered
    assert "lib/README.md\n  FAILED: boom" in rendered
    assert "  Files validated: 2" in rendered
    assert "  Total issues: 2" in rendered
    assert "  Errors: 1" in rendered
    assert "  Warnings: 1" in rendered
    assert "Info:" not in rendered
    assert "  Failed documents: 1" in rendered
    assert rendered.endswith("\n") and not rendered.endswith("\n\n")
    assert report.has_errors


def test_validation_report_without_errors() -> None:
    report = ValidationReport(documents=[DocumentValidation(path="KNOWLEDGE.md")])

    assert not report.has_errors
    assert "Failed documents" not in render_validation_report(report)


def _update(dry_run: bool) -> UpdateReport:
    missing = DocumentationIssue(
        type="missing_files",
        severity="medium",
        description="New files not documented: util.ts",
        suggested_fix=SuggestedFix(action="add_files", content="- `util.ts` - Utility module"),
    )
    placeholder = DocumentationIssue(
        type="placeholder_content",
        severity="low",
        description="Template placeholder text found: [description]",
        suggested_fix=SuggestedFix(action="remove_placeholder", target="[description]"),
    )
    analysis = DocumentationAnalysis(
        file_path="src/KNOWLEDGE.md",
        issues=(missing, placeholder),
        overall_health="needs_attention",
        files_analyzed=("util.ts",),
        directory_changes=ChangeSet(new_files=("src/util.ts",)),
    )
    summary = FixSummary(
        file_path="src/KNOWLEDGE.md",
        total_issues=2,
        fixes_applied=1,
        fixes_skipped=1,
        results=[
            FixResult(issue=missing, applied=True),
            FixResult(issue=placeholder, applied=False, reason="below severity threshold"),
        ],
    )
    return UpdateReport(
        updates=[DocumentUpdate(path="src/KNOWLEDGE.md", analysis=analysis, summary=summary)],
        dry_run=dry_run,
    )


def test_update_report_lists_results_and_totals() -> None:
    report = _update(dry_run=False)

    rendered = render_update_report(report)

    assert "src/KNOWLEDGE.md (needs attention, 2 issues)" in rendered
    assert "  applied  [medium] New files not documented: util.ts" in rendered
    assert (
        "  skipped  [low] Template placeholder text found: [description] (below severity threshold)"
        in rendered
    )
    assert "Fix report\n" in rendered
    assert "  Files processed: 1" in rendered
    assert "  Total issues: 2 (high 0, medium 1, low 1)" in rendered
    assert "  Fixes applied: 1" in rendered
    assert "  Fixes skipped: 1" in rendered


def test_update_report_dry_run_wording() -> None:
    rendered = render_update_report(_update(dry_run=True))

    assert "Fix report (dry-run)" in rendered
    assert "  Fixes that would be applied: 1" in rendered
