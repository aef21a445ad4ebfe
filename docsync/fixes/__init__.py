"""Targeted textual fixes for knowledge files."""

from .engine import DECLINED, NO_AUTOMATIC_FIX, NO_CHANGES, Approver, FixEngine
from .transforms import add_file_entry, add_section, remove_placeholder, update_file_description

__all__ = [
    "Approver",
    "DECLINED",
    "FixEngine",
    "NO_AUTOMATIC_FIX",
    "NO_CHANGES",
    "add_file_entry",
    "add_section",
    "remove_placeholder",
    "update_file_description",
]
