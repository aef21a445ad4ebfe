"""Fixed lists shared by scanners, analyzers and fixers."""

from __future__ import annotations

EXCLUDED_DIRS: frozenset[str] = frozenset(
    {
        ".git",
        "node_modules",
        ".vscode",
        ".idea",
        "dist",
        "build",
        "coverage",
        ".nyc_output",
        ".next",
        ".nuxt",
        "out",
        "temp",
        "tmp",
        ".cache",
        ".parcel-cache",
    }
)

KNOWLEDGE_FILE_NAMES: tuple[str, ...] = ("KNOWLEDGE.md", "knowledge.md", "README.md")

SIGNIFICANT_EXTENSIONS: tuple[str, ...] = (
    ".ts",
    ".js",
    ".tsx",
    ".jsx",
    ".md",
    ".json",
    ".yaml",
    ".yml",
)

LOCKFILE_NAMES: frozenset[str] = frozenset(
    {
        "package-lock.json",
        "npm-shrinkwrap.json",
        "yarn.lock",
        "pnpm-lock.yaml",
        "bun.lockb",
        "composer.lock",
        "Cargo.lock",
        "poetry.lock",
    }
)

WELL_KNOWN_FILES: tuple[str, ...] = (
    "package.json",
    ".env",
    ".gitignore",
    "Dockerfile",
    "Makefile",
    "README.md",
    "LICENSE",
    "tsconfig.json",
    ".npmrc",
    ".editorconfig",
)

# (placeholder text, section it belongs to)
TEMPLATE_PLACEHOLDERS: tuple[tuple[str, str], ...] = (
    ("[brief description of the directory's purpose]", "Overview"),
    ("[description]", "Files"),
    ("[Describe the role this directory plays", "Purpose"),
    ("[List and describe important files", "Key Components"),
    ("[List any dependencies or relationships", "Dependencies"),
    ("[Any additional notes, warnings", "Notes"),
)

GENERIC_DESCRIPTIONS: tuple[str, ...] = (
    "Core application module",
    "File containing application logic",
    "TypeScript/JavaScript module",
)

REQUIRED_SECTIONS: tuple[str, ...] = ("Overview", "Contents", "Purpose")

CANONICAL_SECTION_ORDER: tuple[str, ...] = (
    "Overview",
    "Contents",
    "Purpose",
    "Key Components",
    "Dependencies",
    "Notes",
)

PLACEHOLDER_REPLACEMENT = "Content to be documented"

DEFAULT_USER_AGENT = "docsync link validator"
DEFAULT_TIMEOUT_MS = 5000
DEFAULT_MAX_CONCURRENCY = 8
CHANGE_WINDOW_DAYS = 30


def is_excluded_dir(name: str) -> bool:
    """Return True for directory names every tree walk must skip."""
    return name in EXCLUDED_DIRS or name.startswith(".")


def is_test_file(name: str) -> bool:
    return ".test." in name or ".spec." in name


__all__ = [
    "CANONICAL_SECTION_ORDER",
    "CHANGE_WINDOW_DAYS",
    "DEFAULT_MAX_CONCURRENCY",
    "DEFAULT_TIMEOUT_MS",
    "DEFAULT_USER_AGENT",
    "EXCLUDED_DIRS",
    "GENERIC_DESCRIPTIONS",
    "KNOWLEDGE_FILE_NAMES",
    "LOCKFILE_NAMES",
    "PLACEHOLDER_REPLACEMENT",
    "REQUIRED_SECTIONS",
    "SIGNIFICANT_EXTENSIONS",
    "TEMPLATE_PLACEHOLDERS",
    "WELL_KNOWN_FILES",
    "is_excluded_dir",
    "is_test_file",
]
