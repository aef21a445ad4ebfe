"""Pluggable generators for one-line file descriptions."""

from .base import DescriptionGenerator, describe_path, read_source
from .heuristic import HeuristicDescriber
from .llm import LLMDescriber, LLMRunner

__all__ = [
    "DescriptionGenerator",
    "HeuristicDescriber",
    "LLMDescriber",
    "LLMRunner",
    "describe_path",
    "read_source",
]
