"""Link validation for markdown documents.

HTTP(S) links are probed with a single HEAD request each; internal links and
anchors resolve against the filesystem; ``mailto:`` links get a shape check.
``ftp://`` links are reported valid without probing.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence
from urllib.parse import unquote

import httpx

from ..config import LinkConfig
from ..constants import DEFAULT_MAX_CONCURRENCY, DEFAULT_TIMEOUT_MS, DEFAULT_USER_AGENT
from ..logging import get_logger
from ..markdown.anchors import heading_anchors, iter_headings, normalize_anchor, similar_headings
from ..markdown.extractor import extract_references
from ..models import LinkReference, Resolution, ValidationIssue
from .filesystem import FilesystemOracle, unreadable_document_issue

logger = get_logger("oracles.links")

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_MAX_HEADING_SUGGESTIONS = 3


@dataclass
class LinkCheckResult:
    reference: LinkReference
    valid: bool
    issues: List[ValidationIssue] = field(default_factory=list)


class LinkOracle:
    """Validates link references found in knowledge files."""

    def __init__(
        self,
        project_root: Path,
        *,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        filesystem: Optional[FilesystemOracle] = None,
    ) -> None:
        self.project_root = Path(project_root).resolve()
        self.timeout_ms = timeout_ms
        self.max_concurrency = max(1, max_concurrency)
        self.user_agent = user_agent
        self._transport = transport
        self.filesystem = filesystem or FilesystemOracle(self.project_root)

    @classmethod
    def from_config(
        cls,
        project_root: Path,
        config: LinkConfig,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "LinkOracle":
        return cls(
            project_root,
            timeout_ms=config.timeout_ms,
            max_concurrency=config.max_concurrency,
            user_agent=config.user_agent,
            transport=transport,
        )

    def client(self) -> httpx.AsyncClient:
        """Build the HTTP client used for HEAD probes."""
        return httpx.AsyncClient(
            timeout=self.timeout_ms / 1000,
            headers={"User-Agent": self.user_agent},
            follow_redirects=True,
            transport=self._transport,
        )

    async def validate(
        self,
        reference: LinkReference,
        document_path: Path,
        *,
        client: Optional[httpx.AsyncClient] = None,
        document_text: Optional[str] = None,
    ) -> LinkCheckResult:
        """Validate one link and record its resolution on the reference."""
        kind = reference.kind
        try:
            if kind in ("http", "https"):
                if client is None:
                    async with self.client() as owned:
                        return await self._validate_http(reference, owned)
                return await self._validate_http(reference, client)
            if kind == "internal":
                return self._validate_internal(reference, document_path)
            if kind == "anchor":
                return self._validate_anchor(reference, document_path, document_text)
            if kind == "mailto":
                return self._validate_mailto(reference)
            reference.resolution = Resolution(exists=True)
            return LinkCheckResult(reference=reference, valid=True)
        except (OSError, ValueError) as exc:
            reference.resolution = Resolution(exists=False, error_message=str(exc))
            return LinkCheckResult(
                reference=reference,
                valid=False,
                issues=[
                    ValidationIssue(
                        type="invalid_path",
                        severity="error",
                        message=f"Error validating link {reference.url}: {exc}",
                        location=reference.origin,
                        reference=reference,
                    )
                ],
            )

    async def validate_all(
        self,
        references: Sequence[LinkReference],
        document_path: Path,
        *,
        document_text: Optional[str] = None,
    ) -> List[LinkCheckResult]:
        """Validate links concurrently; results keep the order of ``references``."""
        if not references:
            return []
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async with self.client() as client:

            async def bounded(reference: LinkReference) -> LinkCheckResult:
                async with semaphore:
                    return await self.validate(
                        reference, document_path, client=client, document_text=document_text
                    )

            return list(await asyncio.gather(*(bounded(ref) for ref in references)))

    async def validate_document(
        self, document_path: Path, content: Optional[str] = None
    ) -> List[ValidationIssue]:
        """Extract and validate every link in a document, in source order."""
        document_path = Path(document_path)
        source = self.filesystem.display_path(document_path)
        if content is None:
            try:
                content = document_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                logger.error("Could not read %s: %s", source, exc)
                return [unreadable_document_issue(source, exc)]

        extraction = extract_references(content, source)
        results = await self.validate_all(
            extraction.link_references, document_path, document_text=content
        )
        issues: List[ValidationIssue] = []
        for result in results:
            issues.extend(result.issues)
        return issues

    def check_document(self, document_path: Path, content: Optional[str] = None) -> List[ValidationIssue]:
        """Synchronous wrapper around :meth:`validate_document`."""
        return asyncio.run(self.validate_document(document_path, content))

    async def _validate_http(
        self, reference: LinkReference, client: httpx.AsyncClient
    ) -> LinkCheckResult:
        url = reference.url
        label = reference.kind.upper()
        try:
            response = await client.head(url)
        except httpx.TimeoutException:
            logger.debug("HEAD %s timed out", url)
            return self._broken_http(reference, "Request timeout", status=None, permanent=False)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.debug("HEAD %s failed: %s", url, exc)
            return self._broken_http(
                reference, str(exc) or exc.__class__.__name__, status=None, permanent=False
            )

        status = response.status_code
        logger.debug("HEAD %s -> %d", url, status)
        if response.is_success:
            reference.resolution = Resolution(exists=True, status_code=status)
            return LinkCheckResult(reference=reference, valid=True)

        reason = f"HTTP {status} {response.reason_phrase}".strip()
        return self._broken_http(reference, reason, status=status, permanent=400 <= status < 500, label=label)

    def _broken_http(
        self,
        reference: LinkReference,
        error: str,
        *,
        status: Optional[int],
        permanent: bool,
        label: Optional[str] = None,
    ) -> LinkCheckResult:
        reference.resolution = Resolution(exists=False, status_code=status, error_message=error)
        label = label or reference.kind.upper()
        return LinkCheckResult(
            reference=reference,
            valid=False,
            issues=[
                ValidationIssue(
                    type="broken_link",
                    severity="error" if permanent else "warning",
                    message=f"{label} link is broken: {reference.url} ({error})",
                    location=reference.origin,
                    reference=reference,
                    suggestion=suggest_url_fix(status),
                )
            ],
        )

    def _validate_internal(self, reference: LinkReference, document_path: Path) -> LinkCheckResult:
        target = _link_path(reference.file_part)
        if not target:
            reference.resolution = Resolution(exists=True)
            return LinkCheckResult(reference=reference, valid=True)

        resolved = self.filesystem.resolve_path(target, document_path)
        if resolved.exists():
            reference.resolution = Resolution(exists=True, resolved_path=str(resolved))
            return LinkCheckResult(reference=reference, valid=True)

        reference.resolution = Resolution(exists=False, resolved_path=str(resolved))
        matches = self.filesystem.suggestions_for(resolved)
        suggestion = (
            f"Similar files found: {', '.join(matches)}"
            if matches
            else "Check if the target file exists and the path is correct"
        )
        return LinkCheckResult(
            reference=reference,
            valid=False,
            issues=[
                ValidationIssue(
                    type="missing_directory" if target.endswith("/") else "missing_file",
                    severity="error",
                    message=f"Internal link target not found: {reference.url}",
                    location=reference.origin,
                    reference=reference,
                    suggestion=suggestion,
                )
            ],
        )

    def _validate_anchor(
        self,
        reference: LinkReference,
        document_path: Path,
        document_text: Optional[str],
    ) -> LinkCheckResult:
        anchor = reference.anchor or ""
        if not anchor:
            return self._missing_anchor(reference, "Anchor link missing fragment identifier")

        target = _link_path(reference.file_part)
        if target:
            target_path = self.filesystem.resolve_path(target, document_path)
            try:
                content = target_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError):
                reference.resolution = Resolution(exists=False, resolved_path=str(target_path))
                return self._missing_anchor(reference, "Could not read target file")
        else:
            target_path = Path(document_path).resolve()
            if document_text is not None:
                content = document_text
            else:
                try:
                    content = target_path.read_text(encoding="utf-8")
                except (OSError, UnicodeDecodeError):
                    return self._missing_anchor(reference, "Could not read target file")

        if normalize_anchor(unquote(anchor)) in heading_anchors(content):
            reference.resolution = Resolution(exists=True, resolved_path=str(target_path))
            return LinkCheckResult(reference=reference, valid=True)

        reference.resolution = Resolution(exists=False, resolved_path=str(target_path))
        similar = similar_headings(unquote(anchor), iter_headings(content))[:_MAX_HEADING_SUGGESTIONS]
        if similar:
            suggestion = f"Similar headings found: {', '.join(similar)}"
        else:
            suggestion = "Check if the heading exists in the target file"
        return self._missing_anchor(reference, suggestion)

    def _missing_anchor(self, reference: LinkReference, suggestion: str) -> LinkCheckResult:
        if reference.resolution is None:
            reference.resolution = Resolution(exists=False)
        return LinkCheckResult(
            reference=reference,
            valid=False,
            issues=[
                ValidationIssue(
                    type="missing_anchor",
                    severity="warning",
                    message=f"Anchor link target not found: {reference.url}",
                    location=reference.origin,
                    reference=reference,
                    suggestion=suggestion,
                )
            ],
        )

    def _validate_mailto(self, reference: LinkReference) -> LinkCheckResult:
        address = reference.url[len("mailto:") :].split("?", 1)[0]
        if _EMAIL_PATTERN.match(unquote(address)):
            reference.resolution = Resolution(exists=True)
            return LinkCheckResult(reference=reference, valid=True)
        reference.resolution = Resolution(exists=False, error_message="invalid address")
        return LinkCheckResult(
            reference=reference,
            valid=False,
            issues=[
                ValidationIssue(
                    type="invalid_email",
                    severity="warning",
                    message=f"Invalid email address: {reference.url}",
                    location=reference.origin,
                    reference=reference,
                    suggestion="Check email address format",
                )
            ],
        )


def suggest_url_fix(status: Optional[int]) -> str:
    if status == 404:
        return "URL not found - check if the page has moved or been deleted"
    if status == 403:
        return "Access forbidden - the URL might require authentication"
    if status == 500:
        return "Server error - try again later or contact the website administrator"
    if status is not None and 300 <= status < 400:
        return "URL redirects - consider updating to the final destination"
    return "Check if the URL is correct and the website is accessible"


def _link_path(file_part: str) -> str:
    return unquote(file_part.split("?", 1)[0]).strip()


__all__ = ["LinkCheckResult", "LinkOracle", "suggest_url_fix"]
