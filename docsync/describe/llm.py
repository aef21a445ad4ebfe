"""File descriptions from a local OpenAI-compatible model runtime."""

from __future__ import annotations

import ipaddress
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence
from urllib.error import HTTPError, URLError
from urllib.parse import urlparse
from urllib.request import Request, urlopen

from ..config import LLMConfig
from ..logging import get_logger
from .base import DescriptionGenerator
from .heuristic import HeuristicDescriber

logger = get_logger("describe.llm")

_AUTO = object()
_MAX_PROMPT_CHARS = 6000
_MAX_DESCRIPTION_CHARS = 160

SYSTEM_PROMPT = (
    "You write one-line descriptions of source files for directory documentation. "
    "Answer with a single plain sentence fragment, no markdown, no file name."
)


@dataclass
class LLMRequest:
    """One description prompt bound for the local model runtime."""

    prompt: str
    system: Optional[str]
    model: str
    temperature: Optional[float]
    max_tokens: Optional[int]
    base_url: str
    api_key: Optional[str]
    request_timeout: Optional[float]

    def chat_payload(self) -> dict[str, object]:
        messages = [{"role": "user", "content": self.prompt}]
        if self.system:
            messages.insert(0, {"role": "system", "content": self.system})
        payload: dict[str, object] = {"model": self.model, "messages": messages}
        for key, value in (("temperature", self.temperature), ("max_tokens", self.max_tokens)):
            if value is not None:
                payload[key] = value
        return payload


class LLMRunner:
    """Sends description prompts to a local ``/chat/completions`` endpoint.

    Only loopback and ``*.local`` hosts are accepted as ``base_url`` so that
    source files never leave the machine.
    """

    DEFAULT_MODEL = "ai/smollm2:360M-Q4_K_M"
    DEFAULT_BASE_URL = "http://localhost:12434/engines/v1"
    DEFAULT_TEMPERATURE = 0.2
    DEFAULT_MAX_TOKENS = 80
    DEFAULT_TIMEOUT = 30.0
    ENV_PREFIXES = ("DOCSYNC_LLM", "MODEL_RUNNER", "OPENAI")

    def __init__(
        self,
        model: str | None = None,
        *,
        base_url: str | None = None,
        temperature: Optional[float] = DEFAULT_TEMPERATURE,
        max_tokens: Optional[int] = DEFAULT_MAX_TOKENS,
        api_key: str | None | object = _AUTO,
        request_timeout: Optional[float] = DEFAULT_TIMEOUT,
        transport: Callable[[LLMRequest], str] | None = None,
    ) -> None:
        self.model = model or _env_setting("MODEL", self.ENV_PREFIXES) or self.DEFAULT_MODEL
        self.base_url = _require_local_url(
            base_url or _env_setting("BASE_URL", self.ENV_PREFIXES) or self.DEFAULT_BASE_URL
        )
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.api_key = _env_setting("API_KEY", self.ENV_PREFIXES) if api_key is _AUTO else api_key
        self.request_timeout = request_timeout
        self._transport = transport or _post_chat_completion

    @classmethod
    def from_config(cls, config: LLMConfig | None) -> "LLMRunner":
        if config is None:
            return cls()

        def pick(value, default):  # type: ignore[no-untyped-def]
            return default if value is None else value

        return cls(
            model=config.model,
            base_url=config.base_url,
            temperature=pick(config.temperature, cls.DEFAULT_TEMPERATURE),
            max_tokens=pick(config.max_tokens, cls.DEFAULT_MAX_TOKENS),
            api_key=pick(config.api_key, _AUTO),
            request_timeout=pick(config.request_timeout, cls.DEFAULT_TIMEOUT),
        )

    def run(self, prompt: str, *, system: str | None = None) -> str:
        return self._transport(
            LLMRequest(
                prompt=prompt,
                system=system,
                model=self.model,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                base_url=self.base_url,
                api_key=self.api_key,  # type: ignore[arg-type]
                request_timeout=self.request_timeout,
            )
        )


def _post_chat_completion(request: LLMRequest) -> str:
    headers = {"Content-Type": "application/json"}
    if request.api_key:
        headers["Authorization"] = f"Bearer {request.api_key}"
    body = json.dumps(request.chat_payload()).encode("utf-8")
    http_request = Request(f"{request.base_url}/chat/completions", data=body, headers=headers, method="POST")

    try:
        with urlopen(http_request, timeout=request.request_timeout or LLMRunner.DEFAULT_TIMEOUT) as response:
            raw = response.read()
    except HTTPError as exc:  # pragma: no cover - depends on runtime
        detail = exc.read().decode("utf-8", errors="ignore").strip()
        raise RuntimeError(f"Model runtime answered {exc.code}: {detail or exc.reason}") from exc
    except URLError as exc:  # pragma: no cover - depends on runtime
        raise RuntimeError(f"Model runtime unreachable: {exc.reason}") from exc
    except OSError as exc:  # pragma: no cover - depends on runtime
        raise RuntimeError(f"Model runtime request failed: {exc}") from exc

    try:
        answer = extract_content(json.loads(raw.decode("utf-8")))
    except json.JSONDecodeError as exc:
        raise RuntimeError("Model runtime returned invalid JSON") from exc
    if not answer.strip():
        raise RuntimeError("Model runtime returned an empty answer")
    return answer.strip()


def _env_setting(suffix: str, prefixes: Sequence[str]) -> str | None:
    for prefix in prefixes:
        value = os.getenv(f"{prefix}_{suffix}")
        if value:
            return value
    return None


def _require_local_url(url: str) -> str:
    normalized = url.rstrip("/")
    host = urlparse(normalized).hostname
    if host is not None and not _is_local_host(host):
        raise RuntimeError(f"Remote base_url '{url}' is not permitted. Configure a local model runner.")
    return normalized


def extract_content(payload: object) -> str:
    """Pull the answer text out of a chat or legacy completion payload."""
    choices = payload.get("choices") if isinstance(payload, dict) else None
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return ""
    first = choices[0]
    message = first.get("message")
    for candidate in (message.get("content") if isinstance(message, dict) else None, first.get("text")):
        if isinstance(candidate, str):
            return candidate
    return ""


def _is_local_host(host: str) -> bool:
    lowered = host.lower()
    if lowered in {"localhost", "0.0.0.0", "model-runner.docker.internal"}:
        return True
    if lowered.endswith((".local", ".localdomain")):
        return True
    try:
        return ipaddress.ip_address(lowered).is_loopback
    except ValueError:
        return False


class LLMDescriber:
    """Asks a local model for a description, falling back to heuristics."""

    def __init__(
        self,
        runner: LLMRunner,
        *,
        fallback: DescriptionGenerator | None = None,
    ) -> None:
        self.runner = runner
        self.fallback = fallback or HeuristicDescriber()

    def describe(self, file_path: Path, content: str) -> str:
        prompt = (
            f"File: {Path(file_path).name}\n\n"
            f"```\n{content[:_MAX_PROMPT_CHARS]}\n```\n\n"
            "Describe what this file provides in one short sentence."
        )
        try:
            answer = self.runner.run(prompt, system=SYSTEM_PROMPT)
        except RuntimeError as exc:
            logger.warning("LLM description failed for %s: %s", Path(file_path).name, exc)
            return self.fallback.describe(file_path, content)

        description = clean_description(answer)
        if not description:
            return self.fallback.describe(file_path, content)
        return description


def clean_description(answer: str) -> str:
    """Reduce a model answer to one bullet-safe line."""
    for line in answer.splitlines():
        text = line.strip().strip("`*_\"'").strip()
        if text.startswith(("- ", "* ")):
            text = text[2:].strip()
        if text:
            text = text.rstrip(".")
            if len(text) > _MAX_DESCRIPTION_CHARS:
                text = text[: _MAX_DESCRIPTION_CHARS - 3].rstrip() + "..."
            return text
    return ""


__all__ = ["LLMDescriber", "LLMRequest", "LLMRunner", "clean_description", "extract_content"]
