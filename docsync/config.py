"""Configuration loading for docsync (.docsync.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import yaml

from .constants import (
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_TIMEOUT_MS,
    DEFAULT_USER_AGENT,
    KNOWLEDGE_FILE_NAMES,
    SIGNIFICANT_EXTENSIONS,
)

CONFIG_FILENAME = ".docsync.yml"
SEVERITY_LEVELS = ("low", "medium", "high")
DESCRIBE_PROVIDERS = ("heuristic", "llm")

_TRUE_WORDS = {"true", "yes", "on", "1"}
_FALSE_WORDS = {"false", "no", "off", "0"}
_SCALARS = (str, int, float, bool)


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class LinkConfig:
    """Link oracle settings."""

    enabled: bool = True
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    user_agent: str = DEFAULT_USER_AGENT
    check_during_update: bool = False


@dataclass
class AnalysisConfig:
    """Issue analyzer settings."""

    significant_extensions: List[str] = field(default_factory=lambda: list(SIGNIFICANT_EXTENSIONS))
    include_reference_checks: bool = True


@dataclass
class FixConfig:
    """Fix engine defaults; CLI flags override them."""

    severity_threshold: str = "medium"
    stamp_last_updated: bool = True


@dataclass
class LLMConfig:
    """LLM runtime settings for the llm description provider."""

    model: Optional[str] = None
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    request_timeout: Optional[float] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None


@dataclass
class DescribeConfig:
    """Which description generator to use for new or generic file entries."""

    provider: str = "heuristic"
    llm: Optional[LLMConfig] = None


@dataclass
class DocSyncConfig:
    """Represents the high-level settings defined in .docsync.yml."""

    root: Path
    knowledge_files: List[str] = field(default_factory=lambda: list(KNOWLEDGE_FILE_NAMES))
    exclude_paths: List[str] = field(default_factory=list)
    links: LinkConfig = field(default_factory=LinkConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    fix: FixConfig = field(default_factory=FixConfig)
    describe: DescribeConfig = field(default_factory=DescribeConfig)


def load_config(config_path: Path) -> DocSyncConfig:
    """Load configuration from disk; a missing file yields the defaults."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return DocSyncConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = DocSyncConfig(root=root)

    knowledge_files = _as_str_list(data.get("knowledge_files"))
    if knowledge_files:
        config.knowledge_files = knowledge_files
    config.exclude_paths = _as_str_list(data.get("exclude_paths"))

    links_data = _as_dict(data.get("links"))
    if links_data:
        links = config.links
        links.enabled = _bool_or(links_data.get("enabled"), links.enabled)
        links.timeout_ms = _positive_int(links_data.get("timeout_ms"), "links.timeout_ms", links.timeout_ms)
        links.max_concurrency = _positive_int(
            links_data.get("max_concurrency"), "links.max_concurrency", links.max_concurrency
        )
        links.user_agent = _as_str(links_data.get("user_agent")) or links.user_agent
        links.check_during_update = _bool_or(
            links_data.get("check_during_update"), links.check_during_update
        )

    analysis_data = _as_dict(data.get("analysis"))
    if analysis_data:
        extensions = _as_str_list(analysis_data.get("significant_extensions"))
        if extensions:
            config.analysis.significant_extensions = [_normalize_extension(ext) for ext in extensions]
        config.analysis.include_reference_checks = _bool_or(
            analysis_data.get("include_reference_checks"),
            config.analysis.include_reference_checks,
        )

    fix_data = _as_dict(data.get("fix"))
    if fix_data:
        threshold = _as_str(fix_data.get("severity_threshold"))
        if threshold is not None:
            config.fix.severity_threshold = parse_severity(threshold)
        config.fix.stamp_last_updated = _bool_or(
            fix_data.get("stamp_last_updated"), config.fix.stamp_last_updated
        )

    describe_data = _as_dict(data.get("describe"))
    if describe_data:
        provider = (_as_str(describe_data.get("provider")) or "heuristic").strip().lower()
        if provider not in DESCRIBE_PROVIDERS:
            raise ConfigError(
                f"describe.provider must be one of {', '.join(DESCRIBE_PROVIDERS)}; got '{provider}'"
            )
        config.describe.provider = provider
        config.describe.llm = _load_llm(_as_dict(describe_data.get("llm")))

    return config


def parse_severity(value: str) -> str:
    """Validate a severity threshold value."""
    normalized = value.strip().lower()
    if normalized not in SEVERITY_LEVELS:
        raise ConfigError(
            f"severity_threshold must be one of {', '.join(SEVERITY_LEVELS)}; got '{value}'"
        )
    return normalized


def _load_llm(llm_data: Dict[str, Any]) -> Optional[LLMConfig]:
    if not llm_data:
        return None
    llm = LLMConfig(
        model=_as_str(llm_data.get("model")),
        base_url=_as_str(llm_data.get("base_url")),
        api_key=_as_str(llm_data.get("api_key")),
        request_timeout=_as_float(llm_data.get("request_timeout")),
        temperature=_as_float(llm_data.get("temperature")),
        max_tokens=_as_int(llm_data.get("max_tokens")),
    )
    if not any(
        (
            llm.model,
            llm.base_url,
            llm.api_key,
            llm.request_timeout,
            llm.temperature,
            llm.max_tokens,
        )
    ):
        return None
    return llm


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return {} if loaded is None else loaded


def _normalize_extension(value: str) -> str:
    value = value.strip().lower()
    return value if value.startswith(".") else f".{value}"


def _positive_int(value: Any, name: str, default: int) -> int:
    if value is None:
        return default
    parsed = _as_int(value)
    if parsed is None or parsed <= 0:
        raise ConfigError(f"{name} must be a positive integer; got {value!r}")
    return parsed


def _bool_or(value: Any, default: bool) -> bool:
    parsed = _as_bool(value)
    return default if parsed is None else parsed


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, _SCALARS) else None


def _as_number(value: Any, kind: Callable[[Any], Any]) -> Any:
    # YAML booleans are ints in Python; neither counts as a number here
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        return None
    try:
        return kind(value)
    except ValueError:
        return None


def _as_float(value: Any) -> Optional[float]:
    return _as_number(value, float)


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, float):
        return None
    return _as_number(value, int)


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS or word in _FALSE_WORDS:
            return word in _TRUE_WORDS
    return None


def _as_str_list(value: Any) -> List[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if isinstance(item, _SCALARS)]
    return []


__all__ = [
    "AnalysisConfig",
    "CONFIG_FILENAME",
    "ConfigError",
    "DescribeConfig",
    "DocSyncConfig",
    "FixConfig",
    "LLMConfig",
    "LinkConfig",
    "load_config",
    "parse_severity",
]
