"""Batch orchestration for the validate and update runs."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

import httpx

from .analysis.issues import IssueAnalyzer, classify_health, fold_validation_issues
from .config import ConfigError, DocSyncConfig, load_config, parse_severity
from .describe.base import DescriptionGenerator
from .describe.heuristic import HeuristicDescriber
from .describe.llm import LLMDescriber, LLMRunner
from .fixes.engine import Approver, FixEngine
from .git.changes import ChangeDetector
from .logging import get_logger
from .models import DocumentationAnalysis, ValidationIssue
from .oracles.filesystem import FilesystemOracle, unreadable_document_issue
from .oracles.links import LinkOracle
from .report import (
    DocumentFailure,
    DocumentUpdate,
    DocumentValidation,
    UpdateReport,
    ValidationReport,
)
from .scanner import KnowledgeScanner


class Orchestrator:
    """Runs validation and update passes over every knowledge file in a project.

    Collaborators are injectable so tests can drive a run against a synthetic
    tree without git, network access or a model runtime.
    """

    def __init__(
        self,
        *,
        change_detector: ChangeDetector | None = None,
        describer: DescriptionGenerator | None = None,
        link_transport: httpx.AsyncBaseTransport | None = None,
        approver: Approver | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.change_detector = change_detector
        self.describer = describer
        self.link_transport = link_transport
        self.approver = approver
        self.clock = clock
        self.logger = get_logger("orchestrator")

    def run_validate(self, path: str | Path = ".", *, check_links: Optional[bool] = None) -> ValidationReport:
        """Validate file references, tree claims and (optionally) links."""
        root = _resolve_root(path)
        config = load_config(root)
        self.logger.info("Starting validation run for %s", root)
        documents = KnowledgeScanner(config).scan(root)
        self.logger.info("Found %d knowledge file(s) to validate", len(documents))

        filesystem = FilesystemOracle(root)
        links_enabled = config.links.enabled if check_links is None else check_links
        link_oracle = self._link_oracle(root, config, filesystem) if links_enabled else None

        report = ValidationReport()
        for document in documents:
            display = filesystem.display_path(document)
            self.logger.info("Validating %s", display)
            try:
                issues = self._validate_document(document, filesystem, link_oracle)
            except Exception as exc:  # one broken document must not abort the batch
                self._record_failure(report.failures, display, exc)
                continue
            report.documents.append(DocumentValidation(path=display, issues=issues))

        self.logger.info(
            "Validation finished: %d file(s), %d issue(s), %d error(s)",
            report.files_validated,
            report.total_issues,
            report.errors,
        )
        return report

    def run_update(
        self,
        path: str | Path = ".",
        *,
        dry_run: bool = False,
        interactive: bool = False,
        severity_threshold: Optional[str] = None,
        check_links: Optional[bool] = None,
    ) -> UpdateReport:
        """Analyze every knowledge file and apply the fixes above the threshold."""
        root = _resolve_root(path)
        config = load_config(root)
        threshold = parse_severity(severity_threshold or config.fix.severity_threshold)
        if interactive and self.approver is None:
            raise ValueError("Interactive updates require an approver")

        self.logger.info("Starting update run for %s%s", root, " (dry-run)" if dry_run else "")
        documents = KnowledgeScanner(config).scan(root)
        self.logger.info("Found %d knowledge file(s) to analyze", len(documents))

        filesystem = FilesystemOracle(root)
        analyzer = IssueAnalyzer(
            root,
            config=config,
            change_detector=self.change_detector,
            describer=self._describer(config),
            filesystem=filesystem,
            clock=self.clock,
        )
        links_enabled = config.links.check_during_update if check_links is None else check_links
        link_oracle = self._link_oracle(root, config, filesystem) if links_enabled else None
        engine = FixEngine(approver=self.approver)
        stamp = config.fix.stamp_last_updated and not dry_run

        report = UpdateReport(dry_run=dry_run)
        for document in documents:
            display = filesystem.display_path(document)
            self.logger.info("Analyzing %s", display)
            try:
                analysis = analyzer.analyze(document)
                if link_oracle is not None:
                    analysis = self._with_link_issues(analysis, document, link_oracle)
                summary = engine.apply(
                    analysis,
                    dry_run=dry_run,
                    severity_threshold=threshold,
                    auto_approve=not interactive,
                    stamp=stamp,
                    today=self.clock().date(),
                )
            except Exception as exc:  # one broken document must not abort the batch
                self._record_failure(report.failures, display, exc)
                continue
            self.logger.info(
                "%s: health %s, %d fix(es) applied, %d skipped",
                display,
                analysis.overall_health,
                summary.fixes_applied,
                summary.fixes_skipped,
            )
            report.updates.append(DocumentUpdate(path=display, analysis=analysis, summary=summary))

        self.logger.info(
            "Update finished: %d file(s), %d issue(s), %d fix(es) applied",
            report.files_processed,
            report.total_issues,
            report.fixes_applied,
        )
        return report

    def _validate_document(
        self,
        document: Path,
        filesystem: FilesystemOracle,
        link_oracle: LinkOracle | None,
    ) -> List[ValidationIssue]:
        try:
            content = document.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            display = filesystem.display_path(document)
            self.logger.error("Could not read %s: %s", display, exc)
            return [unreadable_document_issue(display, exc)]

        issues = filesystem.validate_document(document, content)
        if link_oracle is not None:
            issues.extend(link_oracle.check_document(document, content))
        return issues

    def _with_link_issues(
        self, analysis: DocumentationAnalysis, document: Path, link_oracle: LinkOracle
    ) -> DocumentationAnalysis:
        try:
            content = document.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return analysis
        folded = fold_validation_issues(link_oracle.check_document(document, content))
        if not folded:
            return analysis
        issues = analysis.issues + tuple(folded)
        return replace(analysis, issues=issues, overall_health=classify_health(issues))

    def _link_oracle(self, root: Path, config: DocSyncConfig, filesystem: FilesystemOracle) -> LinkOracle:
        oracle = LinkOracle.from_config(root, config.links, transport=self.link_transport)
        oracle.filesystem = filesystem
        return oracle

    def _describer(self, config: DocSyncConfig) -> DescriptionGenerator:
        if self.describer is not None:
            return self.describer
        if config.describe.provider == "llm":
            try:
                runner = LLMRunner.from_config(config.describe.llm)
            except RuntimeError as exc:
                raise ConfigError(f"Invalid describe.llm configuration: {exc}") from exc
            return LLMDescriber(runner)
        return HeuristicDescriber()

    def _record_failure(self, failures: List[DocumentFailure], display: str, exc: Exception) -> None:
        self.logger.error(
            "Failed to process %s: %s", display, exc, exc_info=self.logger.isEnabledFor(logging.DEBUG)
        )
        failures.append(DocumentFailure(path=display, error=str(exc) or exc.__class__.__name__))


def _resolve_root(path: str | Path) -> Path:
    root = Path(path).expanduser().resolve()
    if not root.exists():
        raise FileNotFoundError(f"Project path not found: {path}")
    if not root.is_dir():
        raise NotADirectoryError(f"Project path is not a directory: {path}")
    return root


__all__ = ["Orchestrator"]
