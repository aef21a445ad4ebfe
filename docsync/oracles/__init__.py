"""Oracles that check documentation claims against the filesystem and network."""

from .filesystem import FilesystemOracle
from .links import LinkCheckResult, LinkOracle

__all__ = ["FilesystemOracle", "LinkCheckResult", "LinkOracle"]
