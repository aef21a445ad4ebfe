"""Heading extraction and anchor normalisation."""

from __future__ import annotations

import pytest

from docsync.markdown.anchors import Heading, heading_anchors, iter_headings, normalize_anchor, similar_headings


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("API & SDK", "api-sdk"),
        ("api-sdk", "api-sdk"),
        ("  Getting Started!  ", "getting-started"),
        ("Step 1:  Install -- Tools", "step-1-install-tools"),
        ("snake_case_heading", "snake_case_heading"),
    ],
)
def test_normalize_anchor(raw: str, expected: str) -> None:
    assert normalize_anchor(raw) == expected


@pytest.mark.parametrize("raw", ["API & SDK", "Hello,  World", "--Edge--", "Ünïcode Title", ""])
def test_normalize_anchor_is_idempotent(raw: str) -> None:
    once = normalize_anchor(raw)
    assert normalize_anchor(once) == once


def test_iter_headings_skips_fenced_blocks() -> None:
    text = "# Title\n```\n# not a heading\n```\n## Setup ##\n#hashtag\n"

    headings = iter_headings(text)

    assert headings == [Heading(level=1, title="Title", line=1), Heading(level=2, title="Setup", line=5)]


def test_heading_anchors_are_normalized() -> None:
    text = "# Project Guide\n\n## Install & Run\n"

    assert heading_anchors(text) == ["project-guide", "install-run"]


def test_similar_headings_matches_substrings() -> None:
    headings = [
        Heading(level=2, title="Initial Setup", line=3),
        Heading(level=2, title="Usage", line=8),
        Heading(level=2, title="Getting Started Guide", line=12),
    ]

    assert similar_headings("setup", headings) == ["Initial Setup"]
    assert similar_headings("getting-started", headings) == ["Getting Started Guide"]
    assert similar_headings("deploy", headings) == []
