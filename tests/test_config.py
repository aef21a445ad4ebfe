"""Tests for docsync.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from docsync.config import ConfigError, DocSyncConfig, LLMConfig, load_config, parse_severity
from docsync.constants import KNOWLEDGE_FILE_NAMES, SIGNIFICANT_EXTENSIONS


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, DocSyncConfig)
    assert config.root == tmp_path.resolve()
    assert config.knowledge_files == list(KNOWLEDGE_FILE_NAMES)
    assert config.exclude_paths == []
    assert config.links.enabled is True
    assert config.links.timeout_ms == 5000
    assert config.links.max_concurrency == 8
    assert config.links.check_during_update is False
    assert config.analysis.significant_extensions == list(SIGNIFICANT_EXTENSIONS)
    assert config.analysis.include_reference_checks is True
    assert config.fix.severity_threshold == "medium"
    assert config.fix.stamp_last_updated is True
    assert config.describe.provider == "heuristic"
    assert config.describe.llm is None


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / ".docsync.yml"
    config_file.write_text(
        """
knowledge_files: [README.md]
exclude_paths:
  - "examples/"
  - "legacy/*"
links:
  enabled: false
  timeout_ms: 2500
  max_concurrency: 4
  user_agent: "acme-docs"
  check_during_update: "yes"
analysis:
  significant_extensions: [ts, .PY]
  include_reference_checks: false
fix:
  severity_threshold: HIGH
  stamp_last_updated: false
describe:
  provider: llm
  llm:
    model: "ai/smollm2"
    base_url: "http://localhost:12434/engines/v1"
    temperature: 0.1
    max_tokens: 64
    request_timeout: 15
""",
        encoding="utf-8",
    )

    config = load_config(config_file)

    assert config.knowledge_files == ["README.md"]
    assert config.exclude_paths == ["examples/", "legacy/*"]
    assert config.links.enabled is False
    assert config.links.timeout_ms == 2500
    assert config.links.max_concurrency == 4
    assert config.links.user_agent == "acme-docs"
    assert config.links.check_during_update is True
    assert config.analysis.significant_extensions == [".ts", ".py"]
    assert config.analysis.include_reference_checks is False
    assert config.fix.severity_threshold == "high"
    assert config.fix.stamp_last_updated is False
    assert config.describe.provider == "llm"
    assert config.describe.llm == LLMConfig(
        model="ai/smollm2",
        base_url="http://localhost:12434/engines/v1",
        temperature=0.1,
        max_tokens=64,
        request_timeout=15.0,
    )


def test_load_config_accepts_sibling_path(tmp_path: Path) -> None:
    (tmp_path / ".docsync.yml").write_text("exclude_paths: vendor/\n", encoding="utf-8")

    config = load_config(tmp_path / "KNOWLEDGE.md")

    assert config.exclude_paths == ["vendor/"]


def test_empty_config_file_yields_defaults(tmp_path: Path) -> None:
    (tmp_path / ".docsync.yml").write_text("\n", encoding="utf-8")

    assert load_config(tmp_path) == DocSyncConfig(root=tmp_path.resolve())


@pytest.mark.parametrize(
    "content",
    [
        "- just\n- a list\n",
        "links: [unclosed\n",
        "fix:\n  severity_threshold: urgent\n",
        "links:\n  timeout_ms: -5\n",
        "links:\n  max_concurrency: lots\n",
        "describe:\n  provider: oracle\n",
    ],
)
def test_invalid_config_raises(tmp_path: Path, content: str) -> None:
    (tmp_path / ".docsync.yml").write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_parse_severity_normalizes() -> None:
    assert parse_severity(" Low ") == "low"
    with pytest.raises(ConfigError):
        parse_severity("critical")
