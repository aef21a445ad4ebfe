"""Interface shared by file description generators."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

_MAX_SOURCE_BYTES = 256_000


class DescriptionGenerator(Protocol):
    """Produces a one-sentence description of a source file."""

    def describe(self, file_path: Path, content: str) -> str:
        ...


def read_source(path: Path) -> str:
    """Return the beginning of a file's text, or an empty string if unreadable."""
    try:
        with Path(path).open("rb") as handle:
            raw = handle.read(_MAX_SOURCE_BYTES)
    except OSError:
        return ""
    return raw.decode("utf-8", errors="ignore")


def describe_path(generator: DescriptionGenerator, path: Path) -> str:
    return generator.describe(Path(path), read_source(path))


__all__ = ["DescriptionGenerator", "describe_path", "read_source"]
