"""Knowledge-file discovery."""

from __future__ import annotations

import pytest

from docsync.config import DocSyncConfig
from docsync.scanner import KnowledgeScanner, build_exclude_rule, list_child_files, list_tree_files
from tests._fixtures.project_builder import ProjectBuilder


def test_scan_prefers_knowledge_over_readme(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "README.md": "# Root\n",
            "KNOWLEDGE.md": "# Root knowledge\n",
            "src/README.md": "# Src\n",
            "src/knowledge.md": "# src knowledge\n",
            "lib/README.md": "# Lib\n",
            "docs/guide.md": "# Guide\n",
        }
    )

    found = KnowledgeScanner().scan(project_builder.path())

    relative = [path.relative_to(project_builder.path()).as_posix() for path in found]
    assert relative == ["KNOWLEDGE.md", "lib/README.md", "src/knowledge.md"]


def test_scan_skips_excluded_and_configured_directories(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "KNOWLEDGE.md": "# Root\n",
            "node_modules/pkg/README.md": "# Pkg\n",
            ".github/README.md": "# CI\n",
            "dist/KNOWLEDGE.md": "# Build\n",
            "examples/demo/README.md": "# Demo\n",
            "packages/core/README.md": "# Core\n",
            "packages/legacy/README.md": "# Legacy\n",
        }
    )
    config = DocSyncConfig(root=project_builder.path(), exclude_paths=["examples/", "packages/legacy"])

    found = KnowledgeScanner(config).scan(project_builder.path())

    relative = [path.relative_to(project_builder.path()).as_posix() for path in found]
    assert relative == ["KNOWLEDGE.md", "packages/core/README.md"]


def test_scan_rejects_missing_or_file_roots(project_builder: ProjectBuilder) -> None:
    project_builder.write({"file.txt": "x"})
    scanner = KnowledgeScanner()

    with pytest.raises(FileNotFoundError):
        scanner.scan(project_builder.path("nope"))
    with pytest.raises(NotADirectoryError):
        scanner.scan(project_builder.path("file.txt"))


def test_exclude_rule_matching() -> None:
    anchored = build_exclude_rule("/build-output/")
    bare = build_exclude_rule("fixtures")

    assert build_exclude_rule("   ") is None
    assert anchored is not None and anchored.matches("build-output", True)
    assert not anchored.matches("build-output", False)
    assert bare is not None and bare.matches("tests/fixtures", True)


def test_list_helpers(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "b.ts": "",
            "a.ts": "",
            "sub/c.ts": "",
            "sub/deeper/d.ts": "",
            ".git/config": "",
            "node_modules/x.js": "",
        }
    )

    assert list_child_files(project_builder.path()) == ["a.ts", "b.ts"]
    assert list_child_files(project_builder.path("absent")) == []
    assert list_tree_files(project_builder.path()) == [
        "a.ts",
        "b.ts",
        "node_modules/x.js",
        "sub/c.ts",
        "sub/deeper/d.ts",
    ]
