"""Human-facing reports for validate and update batch runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from jinja2 import Environment

from .models import DocumentationAnalysis, FixSummary, ValidationIssue
from .oracles.filesystem import count_by_severity
from .templating import default_environment


@dataclass
class DocumentFailure:
    """A knowledge file whose processing raised instead of reporting issues."""

    path: str
    error: str


@dataclass
class DocumentValidation:
    path: str
    issues: List[ValidationIssue] = field(default_factory=list)


@dataclass
class ValidationReport:
    """Outcome of ``docsync validate`` across every discovered knowledge file."""

    documents: List[DocumentValidation] = field(default_factory=list)
    failures: List[DocumentFailure] = field(default_factory=list)

    @property
    def files_validated(self) -> int:
        return len(self.documents)

    @property
    def issues(self) -> List[ValidationIssue]:
        return [issue for document in self.documents for issue in document.issues]

    @property
    def total_issues(self) -> int:
        return len(self.issues)

    @property
    def errors(self) -> int:
        return count_by_severity(self.issues, "error")

    @property
    def warnings(self) -> int:
        return count_by_severity(self.issues, "warning")

    @property
    def infos(self) -> int:
        return count_by_severity(self.issues, "info")

    @property
    def has_errors(self) -> bool:
        return self.errors > 0 or bool(self.failures)


@dataclass
class DocumentUpdate:
    path: str
    analysis: DocumentationAnalysis
    summary: FixSummary


@dataclass
class UpdateReport:
    """Outcome of ``docsync update``; counts are aggregated over all files."""

    updates: List[DocumentUpdate] = field(default_factory=list)
    failures: List[DocumentFailure] = field(default_factory=list)
    dry_run: bool = False

    @property
    def files_processed(self) -> int:
        return len(self.updates)

    @property
    def total_issues(self) -> int:
        return sum(len(update.analysis.issues) for update in self.updates)

    @property
    def issues_by_severity(self) -> Dict[str, int]:
        counts = {"high": 0, "medium": 0, "low": 0}
        for update in self.updates:
            for issue in update.analysis.issues:
                counts[issue.severity] += 1
        return counts

    @property
    def fixes_applied(self) -> int:
        return sum(update.summary.fixes_applied for update in self.updates)

    @property
    def fixes_skipped(self) -> int:
        return sum(update.summary.fixes_skipped for update in self.updates)


def render_validation_report(report: ValidationReport, *, env: Optional[Environment] = None) -> str:
    template = (env or default_environment()).get_template("reports/validation.txt.j2")
    rendered = template.render(report=report, documents=report.documents, failures=report.failures)
    return rendered.rstrip("\n") + "\n"


def render_update_report(report: UpdateReport, *, env: Optional[Environment] = None) -> str:
    template = (env or default_environment()).get_template("reports/update.txt.j2")
    rendered = template.render(report=report, updates=report.updates, failures=report.failures)
    return rendered.rstrip("\n") + "\n"


__all__ = [
    "DocumentFailure",
    "DocumentUpdate",
    "DocumentValidation",
    "UpdateReport",
    "ValidationReport",
    "render_update_report",
    "render_validation_report",
]
