"""CLI entrypoints for docsync commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Callable

from .config import SEVERITY_LEVELS, ConfigError
from .logging import configure_logging
from .markdown.diff import compute_diff, format_diff_for_console
from .models import DocumentationIssue
from .orchestrator import Orchestrator
from .report import render_update_report, render_validation_report


class ConsoleApprover:
    """Asks on the terminal before each fix is applied.

    Answering ``q`` declines the current fix and every fix after it.
    """

    def __init__(
        self,
        *,
        ask: Callable[[str], str] = input,
        write: Callable[[str], None] = print,
        color: bool = True,
    ) -> None:
        self._ask = ask
        self._write = write
        self.color = color
        self.stopped = False

    def __call__(self, issue: DocumentationIssue, before: str, after: str) -> bool:
        if self.stopped:
            return False
        self._write(f"\n[{issue.severity}] {issue.description}")
        self._write(format_diff_for_console(compute_diff(before, after, "proposed fix"), color=self.color))
        while True:
            try:
                answer = self._ask("Apply this fix? [y/n/q] ").strip().lower()
            except EOFError:
                answer = "q"
            if answer in {"y", "yes"}:
                return True
            if answer in {"n", "no", ""}:
                return False
            if answer in {"q", "quit"}:
                self.stopped = True
                return False


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the project root (defaults to current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docsync",
        description="Validate and repair per-directory knowledge files against the project tree.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write detailed logs to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    validate_parser = subparsers.add_parser(
        "validate",
        help="Check file references, directory trees and links in knowledge files.",
    )
    _add_verbose_option(validate_parser, suppress_default=True)
    _add_path_argument(validate_parser)
    validate_parser.add_argument(
        "--no-links",
        action="store_true",
        help="Skip link validation (no network requests).",
    )
    validate_parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 1 when any error-severity issue is found.",
    )

    update_parser = subparsers.add_parser(
        "update",
        help="Analyze knowledge files and apply fixes for documentation drift.",
    )
    _add_verbose_option(update_parser, suppress_default=True)
    _add_path_argument(update_parser)
    update_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show the changes that would be made without writing them.",
    )
    update_parser.add_argument(
        "-i",
        "--interactive",
        action="store_true",
        help="Ask before applying each fix.",
    )
    update_parser.add_argument(
        "--severity-threshold",
        choices=SEVERITY_LEVELS,
        default=None,
        help="Only fix issues at or above this severity (defaults to the configured value).",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for docsync commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)
    color = sys.stdout.isatty()

    if args.command == "validate":
        orchestrator = Orchestrator()
        try:
            report = orchestrator.run_validate(
                args.path,
                check_links=False if args.no_links else None,
            )
        except (ConfigError, FileNotFoundError, NotADirectoryError) as exc:
            parser.exit(1, f"docsync validate failed: {exc}\n")
        print(render_validation_report(report), end="")
        if args.strict and report.has_errors:
            parser.exit(1)
    elif args.command == "update":
        approver = ConsoleApprover(color=color) if args.interactive else None
        orchestrator = Orchestrator(approver=approver)
        try:
            report = orchestrator.run_update(
                args.path,
                dry_run=bool(args.dry_run),
                interactive=bool(args.interactive),
                severity_threshold=args.severity_threshold,
            )
        except (ConfigError, FileNotFoundError, NotADirectoryError) as exc:
            parser.exit(1, f"docsync update failed: {exc}\n")
        for update in report.updates:
            diff = update.summary.diff
            if diff is None or not diff.has_changes:
                continue
            heading = f"Changes for {update.path}"
            if args.dry_run:
                heading += " (dry-run)"
            print(f"{heading}:")
            print(format_diff_for_console(diff, color=color))
            print()
        print(render_update_report(report), end="")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


if __name__ == "__main__":
    main(sys.argv[1:])
