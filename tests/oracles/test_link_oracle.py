"""Link oracle verdicts with a mocked HTTP transport."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import List

import httpx

from docsync.config import LinkConfig
from docsync.models import LinkReference, SourceLocation
from docsync.oracles.links import LinkOracle, suggest_url_fix
from tests._fixtures.project_builder import ProjectBuilder

DOCUMENT = """
# Guide

See [home](https://example.com/ok) and [gone](https://example.com/missing).
Also [flaky](https://example.com/error) and [slow](https://example.com/slow).
Read [setup](guide.md#setup) and [intro](#intro) and [nope](#nope).
Mail [us](mailto:team@example.com) or [bad](mailto:not-an-email).
Files: [local](docs/missing.md) and [ftp](ftp://files.example.com/a.txt).

## Intro
"""


def _handler(seen: List[httpx.Request]):  # type: ignore[no-untyped-def]
    def handle(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path == "/ok":
            return httpx.Response(200)
        if request.url.path == "/missing":
            return httpx.Response(404)
        if request.url.path == "/error":
            return httpx.Response(503)
        raise httpx.ReadTimeout("timed out", request=request)

    return handle


def _oracle(root: Path, seen: List[httpx.Request]) -> LinkOracle:
    return LinkOracle(root, transport=httpx.MockTransport(_handler(seen)), user_agent="docsync-tests")


def test_document_links_are_validated_in_order(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "KNOWLEDGE.md": DOCUMENT,
            "guide.md": "# Guide\n\n## Initial Setup Steps\n\n## Usage\n",
        }
    )
    seen: List[httpx.Request] = []
    oracle = _oracle(project_builder.path(), seen)

    issues = oracle.check_document(project_builder.path("KNOWLEDGE.md"))

    assert [(issue.type, issue.severity) for issue in issues] == [
        ("broken_link", "error"),
        ("broken_link", "warning"),
        ("broken_link", "warning"),
        ("missing_anchor", "warning"),
        ("missing_anchor", "warning"),
        ("invalid_email", "warning"),
        ("missing_file", "error"),
    ]
    assert issues[0].message == "HTTPS link is broken: https://example.com/missing (HTTP 404 Not Found)"
    assert issues[0].suggestion == suggest_url_fix(404)
    assert issues[1].message.endswith("(HTTP 503 Service Unavailable)")
    assert issues[2].message.endswith("(Request timeout)")
    assert issues[3].suggestion == "Similar headings found: Initial Setup Steps"
    assert issues[4].message == "Anchor link target not found: #nope"
    assert issues[4].suggestion == "Check if the heading exists in the target file"
    assert issues[5].suggestion == "Check email address format"
    assert issues[6].message == "Internal link target not found: docs/missing.md"
    assert issues[6].suggestion == "Check if the target file exists and the path is correct"

    assert {request.method for request in seen} == {"HEAD"}
    assert all(request.headers["User-Agent"] == "docsync-tests" for request in seen)


def test_anchor_resolves_against_target_headings(project_builder: ProjectBuilder) -> None:
    project_builder.write({"KNOWLEDGE.md": "# K\n", "guide.md": "# Guide\n\n## API & SDK\n"})
    oracle = LinkOracle(project_builder.path())
    reference = LinkReference(
        url="guide.md#api-sdk", kind="anchor", origin=SourceLocation(file="KNOWLEDGE.md", line=1)
    )

    result = asyncio.run(oracle.validate(reference, project_builder.path("KNOWLEDGE.md")))

    assert result.valid is True
    assert reference.resolution is not None and reference.resolution.exists is True


def test_anchor_into_unreadable_file(project_builder: ProjectBuilder) -> None:
    project_builder.write({"KNOWLEDGE.md": "# K\n"})
    oracle = LinkOracle(project_builder.path())
    reference = LinkReference(
        url="absent.md#setup", kind="anchor", origin=SourceLocation(file="KNOWLEDGE.md", line=1)
    )

    result = asyncio.run(oracle.validate(reference, project_builder.path("KNOWLEDGE.md")))

    assert result.valid is False
    assert result.issues[0].suggestion == "Could not read target file"


def test_internal_link_with_query_and_encoding(project_builder: ProjectBuilder) -> None:
    project_builder.write({"KNOWLEDGE.md": "# K\n", "docs/user guide.md": "# Guide\n"})
    oracle = LinkOracle(project_builder.path())
    reference = LinkReference(
        url="docs/user%20guide.md?raw=1", kind="internal", origin=SourceLocation(file="KNOWLEDGE.md", line=1)
    )

    result = asyncio.run(oracle.validate(reference, project_builder.path("KNOWLEDGE.md")))

    assert result.valid is True


def test_internal_link_suggests_similar_files(project_builder: ProjectBuilder) -> None:
    project_builder.write({"KNOWLEDGE.md": "# K\n", "docs/setup-guide.md": "# Setup\n"})
    oracle = LinkOracle(project_builder.path())
    reference = LinkReference(
        url="docs/setup.md", kind="internal", origin=SourceLocation(file="KNOWLEDGE.md", line=1)
    )

    result = asyncio.run(oracle.validate(reference, project_builder.path("KNOWLEDGE.md")))

    assert result.issues[0].suggestion == "Similar files found: setup-guide.md"


def test_validate_all_bounds_concurrency_and_keeps_order(tmp_path: Path) -> None:
    in_flight = 0
    peak = 0

    async def handle(request: httpx.Request) -> httpx.Response:
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        # later links answer first
        await asyncio.sleep(0.01 * (10 - int(request.url.path.strip("/"))))
        in_flight -= 1
        return httpx.Response(200 if request.url.path != "/3" else 410)

    oracle = LinkOracle(tmp_path, max_concurrency=2, transport=httpx.MockTransport(handle))
    references = [
        LinkReference(url=f"https://example.com/{n}", kind="https", origin=SourceLocation(file="K.md", line=n))
        for n in range(1, 7)
    ]

    results = asyncio.run(oracle.validate_all(references, tmp_path / "K.md"))

    assert [result.reference.url for result in results] == [ref.url for ref in references]
    assert [result.valid for result in results] == [True, True, False, True, True, True]
    assert results[2].issues[0].severity == "error"
    assert peak <= 2


def test_from_config_copies_link_settings(tmp_path: Path) -> None:
    config = LinkConfig(timeout_ms=1500, max_concurrency=3, user_agent="custom-agent")

    oracle = LinkOracle.from_config(tmp_path, config)

    assert oracle.timeout_ms == 1500
    assert oracle.max_concurrency == 3
    assert oracle.user_agent == "custom-agent"


def test_suggest_url_fix_messages() -> None:
    assert suggest_url_fix(403).startswith("Access forbidden")
    assert suggest_url_fix(500).startswith("Server error")
    assert suggest_url_fix(301).startswith("URL redirects")
    assert suggest_url_fix(None) == "Check if the URL is correct and the website is accessible"
