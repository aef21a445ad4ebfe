"""Read and write the ``*Last updated: YYYY-MM-DD*`` marker of knowledge files."""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Optional

from ..constants import CHANGE_WINDOW_DAYS

LAST_UPDATED_PATTERN = re.compile(r"\*Last updated: (\d{4}-\d{2}-\d{2})\*")
_FOOTER_PATTERN = re.compile(r"^-{3,}\s*$")


def read_last_updated(text: str) -> Optional[datetime]:
    """Return the date recorded by the first marker, if it parses."""
    match = LAST_UPDATED_PATTERN.search(text)
    if not match:
        return None
    try:
        return datetime.strptime(match.group(1), "%Y-%m-%d")
    except ValueError:
        return None


def last_known_update(path: Path, text: Optional[str] = None) -> Optional[datetime]:
    """Marker date, else the file's modification time, else ``None``."""
    if text is not None:
        marked = read_last_updated(text)
        if marked is not None:
            return marked
    try:
        return datetime.fromtimestamp(Path(path).stat().st_mtime)
    except OSError:
        return None


def change_window_start(last_update: Optional[datetime], now: Optional[datetime] = None) -> datetime:
    """Start of the change-detection window for a document."""
    if last_update is not None:
        return last_update
    return (now or datetime.now()) - timedelta(days=CHANGE_WINDOW_DAYS)


def stamp_last_updated(text: str, today: Optional[date] = None) -> str:
    """Set the marker to ``today``, adding a ``---`` footer when none exists."""
    stamp = f"*Last updated: {(today or date.today()).isoformat()}*"
    if LAST_UPDATED_PATTERN.search(text):
        return LAST_UPDATED_PATTERN.sub(stamp, text)

    lines = text.rstrip("\n").split("\n") if text.strip() else []
    has_footer = any(_FOOTER_PATTERN.match(line) for line in lines)
    if not has_footer:
        if lines and lines[-1].strip():
            lines.append("")
        lines.extend(["---", ""])
    lines.append(stamp)
    return "\n".join(lines) + "\n"


__all__ = [
    "LAST_UPDATED_PATTERN",
    "change_window_start",
    "last_known_update",
    "read_last_updated",
    "stamp_last_updated",
]
