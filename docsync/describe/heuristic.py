"""Regex heuristics that describe a file from its name and raw text."""

from __future__ import annotations

import re
from pathlib import Path

from ..constants import is_test_file

_TEST_CASE = re.compile(r"\b(?:it|test)\s*\(|^\s*(?:async\s+)?def\s+test_\w*", re.MULTILINE)
_CLASS = re.compile(r"^\s*(?:export\s+)?(?:default\s+)?(?:abstract\s+)?class\s+\w+", re.MULTILINE)
_INTERFACE = re.compile(r"^\s*(?:export\s+)?interface\s+\w+", re.MULTILINE)
_FUNCTION = re.compile(
    r"\bfunction\s+\w+|\bconst\s+\w+\s*=\s*(?:async\s*)?\(|^\s*(?:async\s+)?def\s+\w+",
    re.MULTILINE,
)
_NAMED_EXPORT = re.compile(r"\bexport\s+(?:default\s+)?(?:async\s+)?(?:class|function|const|let|interface|type)\s+\w+")
_EXPORT_LIST = re.compile(r"\bexport\s*\{[^}]+\}")

_SOURCE_EXTENSIONS = {".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".py"}
_CONFIG_EXTENSIONS = {".json", ".yaml", ".yml", ".toml"}


def _plural(count: int, singular: str, plural: str | None = None) -> str:
    return singular if count == 1 else (plural or f"{singular}s")


class HeuristicDescriber:
    """Counts tests, classes, interfaces, functions and exports, in that order."""

    def describe(self, file_path: Path, content: str) -> str:
        name = Path(file_path).name
        stem = name.split(".", 1)[0] or name

        if is_test_file(name):
            count = len(_TEST_CASE.findall(content))
            if count:
                return f"Test suite with {count} test {_plural(count, 'case')} covering {stem}"
            return f"Test file for {stem} functionality"

        classes = len(_CLASS.findall(content))
        if classes:
            return f"Contains {classes} {_plural(classes, 'class', 'classes')} providing core functionality"

        interfaces = len(_INTERFACE.findall(content))
        if interfaces:
            return f"Defines {interfaces} {_plural(interfaces, 'interface')} for type safety"

        functions = len(_FUNCTION.findall(content))
        if functions > 2:
            return f"Utility module with {functions} functions"

        exports = len(_NAMED_EXPORT.findall(content)) + len(_EXPORT_LIST.findall(content))
        if exports:
            return f"Module exporting {exports} {_plural(exports, 'component')}"

        return self.fallback(name)

    @staticmethod
    def fallback(name: str) -> str:
        """Describe a file from its extension alone."""
        path = Path(name)
        suffix = path.suffix.lower()
        stem = name.split(".", 1)[0] or name
        if is_test_file(name):
            return f"Test file for {stem} functionality"
        if suffix in _SOURCE_EXTENSIONS:
            return f"Source module implementing {stem} functionality"
        if suffix == ".md":
            return "Documentation file"
        if suffix in _CONFIG_EXTENSIONS:
            return "Configuration file"
        return f"{stem} implementation file"


__all__ = ["HeuristicDescriber"]
