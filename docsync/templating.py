"""Jinja2 environment and section rendering helpers."""

from __future__ import annotations

from datetime import date
from functools import lru_cache
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from jinja2 import Environment, FileSystemLoader, TemplateNotFound

from .constants import CANONICAL_SECTION_ORDER

TEMPLATES_DIR = Path(__file__).with_name("templates")


def create_environment(templates_dir: Path | None = None) -> Environment:
    """Build an environment that prefers ``templates_dir`` over the bundled templates."""
    directories: List[str] = []
    if templates_dir:
        directories.append(str(templates_dir))
    directories.append(str(TEMPLATES_DIR))
    loader = FileSystemLoader(directories)
    return Environment(loader=loader, autoescape=False, trim_blocks=True, lstrip_blocks=True)


@lru_cache(maxsize=1)
def default_environment() -> Environment:
    return create_environment()


def section_template_name(title: str) -> str:
    return f"sections/{title.strip().lower().replace(' ', '_')}.j2"


def render_section(
    title: str,
    *,
    files: Sequence[str] = (),
    subdirectories: Sequence[str] = (),
    env: Optional[Environment] = None,
) -> str:
    """Render the heading and body inserted for a missing section."""
    env = env or default_environment()
    try:
        template = env.get_template(section_template_name(title))
    except TemplateNotFound:
        template = env.get_template("sections/default.j2")
    return template.render(title=title, files=list(files), subdirectories=list(subdirectories)).strip("\n")


def render_document(
    directory_name: str,
    *,
    files: Iterable[str] = (),
    subdirectories: Iterable[str] = (),
    today: Optional[date] = None,
    env: Optional[Environment] = None,
) -> str:
    """Render a full knowledge file with every canonical section."""
    env = env or default_environment()
    files = list(files)
    subdirectories = list(subdirectories)
    sections = [
        render_section(title, files=files, subdirectories=subdirectories, env=env)
        for title in CANONICAL_SECTION_ORDER
    ]
    template = env.get_template("document.md.j2")
    rendered = template.render(
        directory_name=directory_name,
        sections=sections,
        today=(today or date.today()).isoformat(),
    )
    return rendered.rstrip("\n") + "\n"


__all__ = [
    "TEMPLATES_DIR",
    "create_environment",
    "default_environment",
    "render_document",
    "render_section",
    "section_template_name",
]
