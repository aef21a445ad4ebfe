"""Heuristic file descriptions."""

from __future__ import annotations

from pathlib import Path

import pytest

from docsync.describe.base import describe_path, read_source
from docsync.describe.heuristic import HeuristicDescriber


@pytest.mark.parametrize(
    "name, content, expected",
    [
        (
            "widget.test.ts",
            "it('renders', () => {})\nit('updates', () => {})\ntest('unmounts', () => {})\n",
            "Test suite with 3 test cases covering widget",
        ),
        ("widget.spec.ts", "", "Test file for widget functionality"),
        ("test_parser.test.py", "def test_one():\n    pass\n", "Test suite with 1 test case covering test_parser"),
        ("models.ts", "export class User {}\nclass Account {}\n", "Contains 2 classes providing core functionality"),
        ("types.ts", "export interface Props {}\n", "Defines 1 interface for type safety"),
        (
            "helpers.js",
            "function a() {}\nfunction b() {}\nconst c = () => 1\n",
            "Utility module with 3 functions",
        ),
        ("tools.py", "def a():\n    pass\ndef b():\n    pass\ndef c():\n    pass\n", "Utility module with 3 functions"),
        ("index.ts", "export const a = 1;\nexport { b, c };\n", "Module exporting 2 components"),
        ("index.ts", "", "Source module implementing index functionality"),
        ("notes.md", "", "Documentation file"),
        ("settings.yaml", "", "Configuration file"),
        ("Makefile", "", "Makefile implementation file"),
    ],
)
def test_heuristic_descriptions(name: str, content: str, expected: str) -> None:
    assert HeuristicDescriber().describe(Path(name), content) == expected


def test_classes_take_priority_over_functions() -> None:
    content = "class A {}\nfunction a() {}\nfunction b() {}\nfunction c() {}\n"

    assert HeuristicDescriber().describe(Path("mixed.ts"), content).startswith("Contains 1 class ")


def test_describe_path_reads_file(tmp_path: Path) -> None:
    source = tmp_path / "service.ts"
    source.write_text("export interface Service {}\nexport interface Client {}\n", encoding="utf-8")

    assert describe_path(HeuristicDescriber(), source) == "Defines 2 interfaces for type safety"


def test_read_source_tolerates_missing_and_binary_files(tmp_path: Path) -> None:
    blob = tmp_path / "blob.bin"
    blob.write_bytes(b"\xff\xfeabc")

    assert read_source(tmp_path / "absent.ts") == ""
    assert read_source(blob) == "abc"
